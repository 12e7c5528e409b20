"""Environment driven configuration and wiring."""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from typing import List, Optional

from .cache import CoordinateCache
from .health import HealthRegistry
from .providers.base import DataProvider, RequestConfig
from .providers.metno import MetNoProvider
from .providers.nws import NWSProvider
from .providers.openmeteo import OpenMeteoProvider
from .providers.openweather import OpenWeatherProvider
from .providers.stormglass import StormglassProvider
from .services.fetch import FetchOrchestrator

DEFAULT_USER_AGENT = "seastate/0.1 (+https://example.invalid/seastate)"
LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class ImproperlyConfigured(RuntimeError):
    """A required environment variable is missing or malformed."""


def env(name: str, default: str | None = None) -> str:
    """Fetch environment variables while allowing explicit defaults."""

    value = os.environ.get(name, default)
    if value is None:
        raise ImproperlyConfigured(f"Environment variable {name} is required")
    return value


def env_float(name: str, default: float) -> float:
    raw = env(name, str(default))
    try:
        value = float(raw)
    except ValueError as exc:
        raise ImproperlyConfigured(f"Environment variable {name} must be a number, got {raw!r}") from exc
    if value <= 0:
        raise ImproperlyConfigured(f"Environment variable {name} must be positive")
    return value


@dataclass(frozen=True)
class Settings:
    openweather_api_key: Optional[str] = None
    stormglass_api_key: Optional[str] = None
    metno_user_agent: str = DEFAULT_USER_AGENT
    provider_timeout: float = 5.0
    log_level: str = "INFO"
    testing_mode: bool = False

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            openweather_api_key=os.environ.get("SEASTATE_OPENWEATHER_API_KEY") or None,
            stormglass_api_key=os.environ.get("SEASTATE_STORMGLASS_API_KEY") or None,
            metno_user_agent=env("SEASTATE_METNO_USER_AGENT", DEFAULT_USER_AGENT),
            provider_timeout=env_float("SEASTATE_PROVIDER_TIMEOUT", 5.0),
            log_level=env("SEASTATE_LOG_LEVEL", "INFO").upper(),
            testing_mode=os.environ.get("TESTING_MODE", "0") == "1",
        )


def configure_logging(level: str = "INFO") -> None:
    root = logging.getLogger()
    if not root.handlers:
        logging.basicConfig(level=level, format=LOG_FORMAT)
    else:
        root.setLevel(level)


def build_providers(settings: Settings) -> List[DataProvider]:
    """Free providers are always registered, paid ones only with a key."""
    common = {
        "request_config": RequestConfig(timeout=settings.provider_timeout),
        "testing_mode": settings.testing_mode,
    }
    providers: List[DataProvider] = [
        MetNoProvider(user_agent=settings.metno_user_agent, **common),
        NWSProvider(user_agent=settings.metno_user_agent, **common),
        OpenMeteoProvider(**common),
    ]
    if settings.openweather_api_key:
        providers.append(OpenWeatherProvider(api_key=settings.openweather_api_key, **common))
    if settings.stormglass_api_key:
        providers.append(StormglassProvider(api_key=settings.stormglass_api_key, **common))
    return providers


def build_orchestrator(
    settings: Optional[Settings] = None,
    cache: Optional[CoordinateCache] = None,
    health: Optional[HealthRegistry] = None,
) -> FetchOrchestrator:
    settings = settings or Settings.from_env()
    configure_logging(settings.log_level)
    return FetchOrchestrator(build_providers(settings), cache=cache, health=health)


__all__ = [
    "ImproperlyConfigured",
    "Settings",
    "build_orchestrator",
    "build_providers",
    "configure_logging",
    "env",
]
