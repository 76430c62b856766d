from .config import Config, env_flag

DB_CONFIG = Config.db_config()

DEBUG = False
LOG_LEVEL = Config.LOG_LEVEL
LOCK_TIMEOUT_SECONDS = Config.LOCK_TIMEOUT_SECONDS

AUTO_INIT_DB = env_flag("AUTO_INIT_DB", "0")

CLOCKIFY_BASE_URL = Config.CLOCKIFY_BASE_URL
CLOCKIFY_TIMEOUT_SECONDS = Config.CLOCKIFY_TIMEOUT_SECONDS
CLOCKIFY_MAX_ATTEMPTS = Config.CLOCKIFY_MAX_ATTEMPTS
CLOCKIFY_AUTO_SYNC_ENABLED = env_flag("CLOCKIFY_AUTO_SYNC_ENABLED", "1")
CLOCKIFY_AUTO_SYNC_HOUR_UTC = Config.CLOCKIFY_AUTO_SYNC_HOUR_UTC
CLOCKIFY_AUTO_SYNC_LOOKBACK_DAYS = Config.CLOCKIFY_AUTO_SYNC_LOOKBACK_DAYS
