import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        timezone: str,
        trend_months: int,
        recent_limit: int,
        default_user_id: int,
        log_level: str,
    ) -> None:
        self.database_url = database_url
        self.timezone = timezone
        self.trend_months = trend_months
        self.recent_limit = recent_limit
        self.default_user_id = default_user_id
        self.log_level = log_level


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finance.db"
    database_url = os.getenv("FINANCE_DATABASE_URL", f"sqlite:///{default_db}")
    timezone = os.getenv("FINANCE_TIMEZONE", "UTC")
    trend_months = int(os.getenv("FINANCE_TREND_MONTHS", "6"))
    recent_limit = int(os.getenv("FINANCE_RECENT_LIMIT", "5"))
    default_user_id = int(os.getenv("FINANCE_DEFAULT_USER_ID", "1"))
    log_level = os.getenv("FINANCE_LOG_LEVEL", "INFO").upper()
    return Settings(
        database_url=database_url,
        timezone=timezone,
        trend_months=trend_months,
        recent_limit=recent_limit,
        default_user_id=default_user_id,
        log_level=log_level,
    )
