# file: config.py
import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from dotenv import load_dotenv

from errors import ConfigurationError

CH_API_BASE = "https://api.company-information.service.gov.uk"


@dataclass(frozen=True)
class Settings:
    companies_house_api_key: Optional[str]
    companies_house_base_url: str = CH_API_BASE
    # None means wait forever
    upstream_timeout_seconds: Optional[float] = 30.0
    db_path: str = "companies.db"
    host: str = "127.0.0.1"
    port: int = 3000
    log_level: str = "INFO"


def _number(name: str, raw: str, kind=float):
    try:
        return kind(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}") from None


def _timeout(raw: Optional[str]) -> Optional[float]:
    if raw is None:
        return 30.0
    raw = raw.strip()
    if not raw:
        return None
    seconds = _number("UPSTREAM_TIMEOUT_SECONDS", raw)
    return seconds if seconds > 0 else None


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    load_dotenv()
    return Settings(
        companies_house_api_key=os.getenv("COMPANIES_HOUSE_API_KEY") or None,
        companies_house_base_url=os.getenv("COMPANIES_HOUSE_BASE_URL", CH_API_BASE).rstrip("/"),
        upstream_timeout_seconds=_timeout(os.getenv("UPSTREAM_TIMEOUT_SECONDS")),
        db_path=os.getenv("DB_PATH", "companies.db"),
        host=os.getenv("HOST", "127.0.0.1"),
        port=_number("PORT", os.getenv("PORT", "3000"), int),
        log_level=os.getenv("LOG_LEVEL", "INFO"),
    )
