import os


def env_flag(name: str, default: str = "0") -> bool:
    return os.environ.get(name, default).strip().lower() in {"1", "true", "yes", "on"}


class Config:
    # Database
    DB_USER = os.environ.get("DB_USER", "root")
    DB_PASSWORD = os.environ.get("DB_PASSWORD", "")
    DB_HOST = os.environ.get("DB_HOST", "localhost")
    DB_PORT = int(os.environ.get("DB_PORT", "3306"))
    DB_NAME = os.environ.get("DB_NAME", "time_bank_db")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOCK_TIMEOUT_SECONDS = float(os.environ.get("LOCK_TIMEOUT_SECONDS", "10"))

    # Clockify
    CLOCKIFY_BASE_URL = os.environ.get("CLOCKIFY_BASE_URL", "https://api.clockify.me/api/v1")
    CLOCKIFY_TIMEOUT_SECONDS = float(os.environ.get("CLOCKIFY_TIMEOUT_SECONDS", "30"))
    CLOCKIFY_MAX_ATTEMPTS = int(os.environ.get("CLOCKIFY_MAX_ATTEMPTS", "3"))
    CLOCKIFY_AUTO_SYNC_HOUR_UTC = os.environ.get("CLOCKIFY_AUTO_SYNC_HOUR_UTC", "3")
    CLOCKIFY_AUTO_SYNC_LOOKBACK_DAYS = int(os.environ.get("CLOCKIFY_AUTO_SYNC_LOOKBACK_DAYS", "7"))

    @classmethod
    def db_config(cls) -> dict:
        """mysql-connector keyword dict."""
        return {
            "host": cls.DB_HOST,
            "port": cls.DB_PORT,
            "user": cls.DB_USER,
            "password": cls.DB_PASSWORD,
            "database": cls.DB_NAME,
        }
