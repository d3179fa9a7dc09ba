import os
from functools import lru_cache
from pathlib import Path


class Settings:
    def __init__(
        self,
        database_url: str,
        secret_key: str,
        token_max_age_secs: int,
        log_level: str,
        auto_create_schema: bool,
    ) -> None:
        self.database_url = database_url
        self.secret_key = secret_key
        self.token_max_age_secs = token_max_age_secs
        self.log_level = log_level
        self.auto_create_schema = auto_create_schema


def _ensure_data_dir() -> Path:
    root = Path(os.getenv("FINANCE_DATA_DIR", "./data")).resolve()
    root.mkdir(parents=True, exist_ok=True)
    return root


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    data_dir = _ensure_data_dir()
    default_db = data_dir / "finance.db"
    database_url = os.getenv("FINANCE_DATABASE_URL", f"sqlite:///{default_db}")
    secret_key = os.getenv(
        "FINANCE_SECRET_KEY",
        "5f0c2a1e9b7d4c38a6e1f0b2d9c87a43e6b1d0f2a9c4e7b3d8f1a6c2e0b9d7f4",
    )
    token_max_age_secs = int(os.getenv("FINANCE_TOKEN_MAX_AGE_SECS", "3600"))
    log_level = os.getenv("FINANCE_LOG_LEVEL", "INFO").upper()
    auto_create_schema = os.getenv("FINANCE_AUTO_CREATE_SCHEMA", "1") not in {
        "0",
        "false",
        "no",
    }
    return Settings(
        database_url=database_url,
        secret_key=secret_key,
        token_max_age_secs=token_max_age_secs,
        log_level=log_level,
        auto_create_schema=auto_create_schema,
    )
