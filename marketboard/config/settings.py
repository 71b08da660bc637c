# marketboard/config/settings.py
from __future__ import annotations

import os
from dataclasses import dataclass


def parse_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "y", "on"}


def parse_int(value: str | None, default: int) -> int:
    if value is None or value.strip() == "":
        return default
    return int(value)


def parse_float(value: str | None, default: float) -> float:
    if value is None or value.strip() == "":
        return default
    return float(value)


def join_url(base: str, path: str) -> str:
    """
    Join a base URL and a path without doubling or dropping the slash:
      join_url("https://host/test/api/", "/market") -> "https://host/test/api/market"
    """
    return base.rstrip("/") + "/" + path.lstrip("/")


@dataclass(frozen=True)
class Settings:
    UPSTREAM_BASE_URL: str
    CURRENCY_PATH: str
    MARKET_PATH: str
    POLLING_ENABLED: bool
    POLLING_MS: int
    HTTP_TIMEOUT_S: float
    PROXY_ENABLED: bool
    PROXY_PREFIX: str
    PROXY_TARGET: str
    STALE_MULTIPLIER: float

    @property
    def currency_url(self) -> str:
        return join_url(self.UPSTREAM_BASE_URL, self.CURRENCY_PATH)

    @property
    def market_url(self) -> str:
        return join_url(self.UPSTREAM_BASE_URL, self.MARKET_PATH)

    @staticmethod
    def from_env() -> "Settings":
        return Settings(
            UPSTREAM_BASE_URL=os.getenv("UPSTREAM_BASE_URL", "https://user26614.requestly.tech/test/api"),
            CURRENCY_PATH=os.getenv("CURRENCY_PATH", "/currency"),
            MARKET_PATH=os.getenv("MARKET_PATH", "/market"),
            POLLING_ENABLED=parse_bool(os.getenv("POLLING_ENABLED"), True),
            POLLING_MS=parse_int(os.getenv("POLLING_MS"), 10_000),
            HTTP_TIMEOUT_S=parse_float(os.getenv("HTTP_TIMEOUT_S"), 10.0),
            PROXY_ENABLED=parse_bool(os.getenv("PROXY_ENABLED"), False),
            PROXY_PREFIX=os.getenv("PROXY_PREFIX", "/api"),
            PROXY_TARGET=os.getenv("PROXY_TARGET", "https://user26614.requestly.tech/test/api"),
            STALE_MULTIPLIER=parse_float(os.getenv("STALE_MULTIPLIER"), 2.5),
        )


_settings: Settings | None = None


def get_settings() -> Settings:
    global _settings
    if _settings is None:
        _settings = Settings.from_env()
    return _settings
