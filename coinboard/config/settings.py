from __future__ import annotations

import os
from dataclasses import dataclass
from typing import List


class SettingsError(RuntimeError):
    """Raised when the environment cannot produce a usable configuration."""


def parse_csv(value: str | None, default: List[str]) -> List[str]:
    if not value:
        return default
    items = [x.strip() for x in value.split(",")]
    return [x for x in items if x]


def parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    try:
        return int(value)
    except ValueError as exc:
        raise SettingsError(f"Expected an integer, got {value!r}") from exc


def parse_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    try:
        return float(value)
    except ValueError as exc:
        raise SettingsError(f"Expected a number, got {value!r}") from exc


@dataclass(frozen=True)
class Settings:
    CMC_API_KEY: str
    CMC_BASE_URL: str
    CMC_CONVERT: str
    HTTP_TIMEOUT_SECONDS: float
    HOST: str
    PORT: int
    RELOAD: bool
    LOG_LEVEL: str
    CORS_ORIGINS: List[str]

    @staticmethod
    def from_env() -> "Settings":
        api_key = (os.getenv("CMC_API_KEY") or "").strip()
        if not api_key:
            raise SettingsError(
                "CMC_API_KEY is not set; export the CoinMarketCap API key before starting the service"
            )

        return Settings(
            CMC_API_KEY=api_key,
            CMC_BASE_URL=os.getenv("CMC_BASE_URL", "https://pro-api.coinmarketcap.com/v1").rstrip("/"),
            CMC_CONVERT=os.getenv("CMC_CONVERT", "USD").strip().upper() or "USD",
            HTTP_TIMEOUT_SECONDS=parse_float(os.getenv("HTTP_TIMEOUT_SECONDS"), 10.0),
            HOST=os.getenv("HOST", "0.0.0.0"),
            PORT=parse_int(os.getenv("PORT"), 3000),
            RELOAD=parse_bool(os.getenv("RELOAD"), False),
            LOG_LEVEL=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
            CORS_ORIGINS=parse_csv(os.getenv("CORS_ORIGINS"), ["*"]),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
