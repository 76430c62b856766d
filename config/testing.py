from .config import Config

DB_CONFIG = dict(Config.db_config(), database="time_bank_test")

DEBUG = False
TESTING = True
LOG_LEVEL = "WARNING"
LOCK_TIMEOUT_SECONDS = 2.0

AUTO_INIT_DB = False

CLOCKIFY_BASE_URL = Config.CLOCKIFY_BASE_URL
CLOCKIFY_TIMEOUT_SECONDS = 5.0
CLOCKIFY_MAX_ATTEMPTS = 1
CLOCKIFY_AUTO_SYNC_ENABLED = False
CLOCKIFY_AUTO_SYNC_HOUR_UTC = 3
CLOCKIFY_AUTO_SYNC_LOOKBACK_DAYS = 7
