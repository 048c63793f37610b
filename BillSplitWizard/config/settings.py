"""
Settings for the bill split wizard, read from environment variables.

Variables:
    BILLSPLIT_FIREBASE_CREDENTIALS: Path to a service-account JSON file.
    BILLSPLIT_SPLIT_CACHE_SIZE: Max entries in the split result cache (default 100).
    BILLSPLIT_LOG_LEVEL: Logging level name (default INFO).
    BILLSPLIT_CURRENCY_SYMBOL: Symbol used by format_currency (default ฿).
"""

import os
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional


DEFAULT_SPLIT_CACHE_SIZE = 100


@dataclass(frozen=True)
class Settings:
    firebase_credentials: Optional[str] = None
    split_cache_size: int = DEFAULT_SPLIT_CACHE_SIZE
    log_level: str = "INFO"
    currency_symbol: str = "฿"


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or not raw.strip():
        return default
    try:
        value = int(raw)
    except ValueError:
        raise ValueError(f"{name} must be an integer, got: {raw}")
    if value < 1:
        raise ValueError(f"{name} must be >= 1, got: {value}")
    return value


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Load settings once per process. Call get_settings.cache_clear() to reload."""
    return Settings(
        firebase_credentials=os.environ.get("BILLSPLIT_FIREBASE_CREDENTIALS") or None,
        split_cache_size=_int_env("BILLSPLIT_SPLIT_CACHE_SIZE", DEFAULT_SPLIT_CACHE_SIZE),
        log_level=os.environ.get("BILLSPLIT_LOG_LEVEL", "INFO").upper(),
        currency_symbol=os.environ.get("BILLSPLIT_CURRENCY_SYMBOL", "฿"),
    )
