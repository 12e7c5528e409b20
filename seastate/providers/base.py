from __future__ import annotations

import logging
import math
import os
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Tuple, Type, TypeVar

import requests
from pydantic import BaseModel, ValidationError
from requests import Response

from ..coordinates import PrecisionTier
from ..entities import Metric


class ProviderError(RuntimeError):
    """Base provider error."""

    def __init__(self, message: str, *, provider: Optional[str] = None) -> None:
        super().__init__(message)
        self.provider = provider


class ProviderUnavailable(ProviderError):
    """Network failure, timeout or non-2xx answer."""


class QuotaExceeded(ProviderUnavailable):
    """Raised when a provider reports a quota/usage limit issue."""


class SchemaMismatch(ProviderError):
    """Payload is missing required fields or carries values of the wrong type."""

    def __init__(self, message: str, *, provider: Optional[str] = None, field: Optional[str] = None) -> None:
        super().__init__(message, provider=provider)
        self.field = field

    def __str__(self) -> str:
        base = super().__str__()
        if self.field:
            return f"{base} (field {self.field})"
        return base


@dataclass
class RequestConfig:
    timeout: float = 5.0


class DataProvider:
    """Base class that adds timeouts and error mapping for HTTP providers."""

    name: str = ""
    licence: str = "free"
    precision: PrecisionTier = PrecisionTier.STANDARD
    metrics: Tuple[Metric, ...] = ()

    def __init__(
        self,
        session: Optional[requests.Session] = None,
        request_config: Optional[RequestConfig] = None,
        testing_mode: Optional[bool] = None,
    ) -> None:
        self.request_config = request_config or RequestConfig()
        self.session = session or requests.Session()
        self._log = logging.getLogger(self.__class__.__name__)
        if testing_mode is None:
            testing_mode = os.environ.get("TESTING_MODE", "0") == "1"
        self.testing_mode = testing_mode

    @property
    def label(self) -> str:
        return f"{self.licence}:{self.name}"

    @property
    def timeout(self) -> float:
        return self.request_config.timeout

    def supports(self, metric: Metric) -> bool:
        return Metric(metric) in self.metrics

    # Public API ---------------------------------------------------------
    def fetch_raw(
        self, latitude: float, longitude: float, metric: Metric, timeout: Optional[float] = None
    ) -> Any:
        raise NotImplementedError

    def normalize(self, metric: Metric, payload: Any) -> List[Any]:
        raise NotImplementedError

    def fetch(self, latitude: float, longitude: float, metric: Metric, timeout: Optional[float] = None) -> List[Any]:
        return self.normalize(metric, self.fetch_raw(latitude, longitude, metric, timeout=timeout))

    # Helpers ------------------------------------------------------------
    def _unsupported(self, metric: Metric) -> ProviderError:
        return ProviderError(f"{self.name} does not serve {Metric(metric).value}", provider=self.name)

    def _handle_response(self, response: Response) -> Response:
        if response.status_code == 429:
            self._log.warning("Quota exceeded: %s", response.text[:200])
            raise QuotaExceeded("quota exceeded", provider=self.name)
        if response.status_code >= 400:
            self._log.error("Provider returned %s: %s", response.status_code, response.text[:200])
            raise ProviderUnavailable(f"HTTP {response.status_code}", provider=self.name)
        return response

    def _request(self, method: str, url: str, timeout: Optional[float] = None, **kwargs) -> Response:
        try:
            response = self.session.request(
                method,
                url,
                timeout=timeout if timeout is not None else self.request_config.timeout,
                **kwargs,
            )
        except requests.Timeout as exc:
            self._log.error("Request timed out", exc_info=exc)
            raise ProviderUnavailable("timeout", provider=self.name) from exc
        except requests.RequestException as exc:
            self._log.error("Request failed", exc_info=exc)
            raise ProviderUnavailable("request failed", provider=self.name) from exc
        if self.testing_mode:
            self._log.info("%s %s -> %s", method, url, response.status_code)
        return self._handle_response(response)

    def _get_json(self, url: str, timeout: Optional[float] = None, **kwargs) -> Any:
        response = self._request("GET", url, timeout=timeout, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            self._log.error("Failed to decode JSON", exc_info=exc)
            raise SchemaMismatch("invalid json", provider=self.name) from exc


# Shared adapter helpers -------------------------------------------------------

WATER_TEMP_RANGE = (-2.0, 40.0)

ModelT = TypeVar("ModelT", bound=BaseModel)


def schema_error(provider: str, exc: ValidationError) -> SchemaMismatch:
    errors = exc.errors()
    first: Dict[str, Any] = errors[0] if errors else {}
    location = ".".join(str(part) for part in first.get("loc", ()))
    return SchemaMismatch(first.get("msg", "invalid payload"), provider=provider, field=location or None)


def validate_payload(provider: str, model: Type[ModelT], payload: Any) -> ModelT:
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise schema_error(provider, exc) from exc


def as_utc(value: datetime) -> datetime:
    """Naive timestamps are UTC (every provider is queried in UTC/GMT)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def is_solar_daytime(timestamp: datetime, longitude: Optional[float]) -> bool:
    """06:00-18:00 local solar time, approximated as UTC + longitude / 15."""
    hour = timestamp.hour + timestamp.minute / 60.0
    if longitude is not None:
        hour = (hour + longitude / 15.0) % 24
    return 6.0 <= hour < 18.0


def series_value(values: Optional[Sequence[Any]], index: int) -> Optional[float]:
    if not values or index >= len(values):
        return None
    value = values[index]
    if value is None:
        return None
    number = float(value)
    return number if math.isfinite(number) else None


def check_marine_ranges(
    provider: str, wave_height_m: Optional[float], water_temp_c: Optional[float], field: str
) -> None:
    if wave_height_m is not None and wave_height_m < 0:
        raise SchemaMismatch(f"negative wave height {wave_height_m}", provider=provider, field=field)
    if water_temp_c is not None and not WATER_TEMP_RANGE[0] <= water_temp_c <= WATER_TEMP_RANGE[1]:
        raise SchemaMismatch(f"water temperature {water_temp_c} out of range", provider=provider, field=field)


def sort_by_timestamp(records: List[Any]) -> List[Any]:
    return sorted(records, key=lambda record: record.timestamp)


__all__ = [
    "DataProvider",
    "ProviderError",
    "ProviderUnavailable",
    "QuotaExceeded",
    "RequestConfig",
    "SchemaMismatch",
    "as_utc",
    "check_marine_ranges",
    "is_solar_daytime",
    "schema_error",
    "series_value",
    "sort_by_timestamp",
    "validate_payload",
]
