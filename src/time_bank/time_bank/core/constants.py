"""Constants and defaults.

Note: Keep constants here to avoid magic numbers spread across code.
"""

DEFAULT_TARGET_DAILY_MINUTES = 480
MAX_TARGET_DAILY_MINUTES = 960

# Adjustments are bounded to one day in either direction.
MAX_ADJUSTMENT_SECONDS = 24 * 60 * 60

DEFAULT_SUMMARY_RANGE_DAYS = 30
DEFAULT_SYNC_RANGE_DAYS = 7

DEFAULT_LIST_LIMIT = 30
MAX_LIST_LIMIT = 200
DEFAULT_ENTRIES_LIMIT = 200
MAX_ENTRIES_LIMIT = 1000

MAX_TEXT_LENGTH = 255

# Caller-supplied clock timestamps may run slightly ahead of the server clock.
CLOCK_SKEW_TOLERANCE_SECONDS = 60

DEFAULT_LOCK_TIMEOUT_SECONDS = 10.0

CLOCKIFY_BASE_URL = "https://api.clockify.me/api/v1"
CLOCKIFY_PAGE_SIZE = 200
CLOCKIFY_TIMEOUT_SECONDS = 30.0
CLOCKIFY_MAX_ATTEMPTS = 3
CLOCKIFY_RETRY_BASE_DELAY = 0.75
CLOCKIFY_RETRY_MAX_DELAY = 6.0

UNMAPPED_PREVIEW_LIMIT = 20
