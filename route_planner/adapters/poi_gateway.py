"""POI catalog gateway: protocol, HTTP client and in-memory fixture implementation."""

import random
import time
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Any, Protocol

import httpx

from route_planner.adapters.resilience import CircuitBreaker, RetryPolicy
from route_planner.errors import UpstreamUnavailableError
from route_planner.geo.distance import haversine_km
from route_planner.models.common import Geo
from route_planner.models.poi import Poi


class PoiGateway(Protocol):
    """Read access to the external POI catalog.

    Every method raises UpstreamUnavailableError when the catalog cannot be reached.
    """

    def get_poi(self, poi_id: int) -> Poi | None:
        """Get a POI by ID.

        Returns:
            POI or None if the catalog does not know the ID
        """
        ...

    def get_pois_batch(self, poi_ids: list[int]) -> list[Poi]:
        """Best-effort batch fetch; unknown IDs are simply absent from the result."""
        ...

    def search_nearby(
        self, lat: float, lon: float, radius_m: int = 1000, category: str | None = None
    ) -> list[Poi]:
        """POIs within ``radius_m`` metres of a location."""
        ...

    def search_by_city(
        self, city_id: int, category: str | None = None, limit: int = 50
    ) -> list[Poi]:
        """POIs of a city, optionally restricted to one category."""
        ...


# Metrics interface (implemented by utils.metrics)
class GatewayMetrics:
    """Interface for gateway call metrics."""

    def record_latency(self, operation: str, outcome: str, latency_ms: float) -> None:
        """Record call latency."""
        pass

    def inc_error(self, operation: str, reason: str) -> None:
        """Increment error counter."""
        pass


# Logging interface (implemented by utils.logging)
class GatewayLogger:
    """Interface for structured gateway logging."""

    def log_attempt(
        self,
        operation: str,
        attempt: int,
        outcome: str,
        latency_ms: float,
        error_reason: str | None = None,
    ) -> None:
        """Log one call attempt."""
        pass


class _NotFound(Exception):
    """Catalog answered 404."""


class HttpPoiGateway:
    """Synchronous httpx client for the POI catalog with timeout, retries and breaker."""

    def __init__(
        self,
        base_url: str,
        policy: RetryPolicy,
        breaker: CircuitBreaker,
        client: httpx.Client | None = None,
        metrics: GatewayMetrics | None = None,
        logger: GatewayLogger | None = None,
        sleep_fn: Callable[[float], None] | None = None,
    ) -> None:
        """Initialize gateway.

        Args:
            base_url: Catalog base URL (e.g. http://poi-service/api/v1/pois)
            policy: Timeout and retry configuration
            breaker: Circuit breaker shared by all operations of this gateway
            client: Optional httpx client (for testing with mocks)
            metrics: Metrics recorder (optional, defaults to no-op)
            logger: Structured logger (optional, defaults to no-op)
            sleep_fn: Injectable sleep function (default: time.sleep)
        """
        self._base_url = base_url.rstrip("/")
        self._policy = policy
        self._breaker = breaker
        self._client = client or httpx.Client(timeout=policy.timeout_ms / 1000)
        self._metrics = metrics or GatewayMetrics()
        self._logger = logger or GatewayLogger()
        self._sleep = sleep_fn or time.sleep

    def get_poi(self, poi_id: int) -> Poi | None:
        try:
            data = self._call("get_poi", f"/{poi_id}")
        except _NotFound:
            return None
        return Poi.model_validate(data)

    def get_pois_batch(self, poi_ids: list[int]) -> list[Poi]:
        if not poi_ids:
            return []
        try:
            data = self._call("get_pois_batch", "/batch", {"ids": [str(i) for i in poi_ids]})
        except _NotFound:
            return []
        return [Poi.model_validate(item) for item in data]

    def search_nearby(
        self, lat: float, lon: float, radius_m: int = 1000, category: str | None = None
    ) -> list[Poi]:
        params: dict[str, Any] = {"lat": lat, "lng": lon, "radius": radius_m}
        if category:
            params["type"] = category
        try:
            data = self._call("search_nearby", "/search/nearby", params)
        except _NotFound:
            return []
        return [Poi.model_validate(item) for item in data]

    def search_by_city(
        self, city_id: int, category: str | None = None, limit: int = 50
    ) -> list[Poi]:
        params: dict[str, Any] = {"cityId": city_id, "limit": limit}
        if category:
            params["type"] = category
        try:
            data = self._call("search_by_city", "/search", params)
        except _NotFound:
            return []
        return [Poi.model_validate(item) for item in data]

    def close(self) -> None:
        self._client.close()

    def _call(self, operation: str, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` with breaker check and bounded retries.

        Raises:
            _NotFound: Catalog answered 404 (not retried, not a breaker failure)
            UpstreamUnavailableError: Catalog answered another 4xx (not retried,
                not a breaker failure)
            UpstreamUnavailableError: Breaker open or all attempts failed
        """
        if self._breaker.is_open(datetime.now()):
            self._metrics.inc_error(operation, "breaker_open")
            self._logger.log_attempt(operation, 0, "breaker_open", 0.0, error_reason="breaker_open")
            raise UpstreamUnavailableError(f"POI catalog circuit open ({operation})")

        last_error: Exception | None = None
        for attempt in range(self._policy.retry_count + 1):
            attempt_start = time.monotonic()
            try:
                response = self._client.get(
                    f"{self._base_url}{path}",
                    params=params,
                    timeout=self._policy.timeout_ms / 1000,
                )
                if response.status_code == 404:
                    elapsed_ms = (time.monotonic() - attempt_start) * 1000
                    self._breaker.record_success()
                    self._metrics.record_latency(operation, "not_found", elapsed_ms)
                    self._logger.log_attempt(operation, attempt + 1, "not_found", elapsed_ms)
                    raise _NotFound(path)
                if response.is_client_error:
                    # Rejected requests are neither retried nor counted against the breaker
                    elapsed_ms = (time.monotonic() - attempt_start) * 1000
                    reason = f"http_{response.status_code}"
                    self._metrics.inc_error(operation, reason)
                    self._logger.log_attempt(
                        operation, attempt + 1, "rejected", elapsed_ms, error_reason=reason
                    )
                    raise UpstreamUnavailableError(
                        f"POI catalog rejected {operation} ({response.status_code})"
                    )
                response.raise_for_status()
                data = response.json()
            except _NotFound:
                raise
            except (httpx.HTTPError, ValueError) as e:
                elapsed_ms = (time.monotonic() - attempt_start) * 1000
                last_error = e
                reason = "timeout" if isinstance(e, httpx.TimeoutException) else type(e).__name__
                self._metrics.inc_error(operation, reason)
                self._logger.log_attempt(
                    operation, attempt + 1, "error", elapsed_ms, error_reason=reason
                )
                self._breaker.record_failure(datetime.now())

                if attempt < self._policy.retry_count and not self._breaker.is_open(datetime.now()):
                    jitter_ms = random.uniform(
                        self._policy.retry_jitter_min_ms, self._policy.retry_jitter_max_ms
                    )
                    self._sleep(jitter_ms / 1000)
                    continue
                break
            else:
                elapsed_ms = (time.monotonic() - attempt_start) * 1000
                self._breaker.record_success()
                self._metrics.record_latency(operation, "success", elapsed_ms)
                self._logger.log_attempt(operation, attempt + 1, "success", elapsed_ms)
                return data

        raise UpstreamUnavailableError(f"POI catalog unavailable ({operation})") from last_error


class InMemoryPoiGateway:
    """Fixture-backed catalog for local development and tests.

    Setting ``available = False`` makes every call fail like an unreachable catalog.
    """

    def __init__(self, pois: Iterable[Poi] = ()) -> None:
        self._pois: dict[int, Poi] = {p.id: p for p in pois}
        self.available = True
        self.calls: list[str] = []

    def add(self, poi: Poi) -> None:
        self._pois[poi.id] = poi

    def get_poi(self, poi_id: int) -> Poi | None:
        self._check("get_poi")
        return self._pois.get(poi_id)

    def get_pois_batch(self, poi_ids: list[int]) -> list[Poi]:
        self._check("get_pois_batch")
        return [self._pois[i] for i in dict.fromkeys(poi_ids) if i in self._pois]

    def search_nearby(
        self, lat: float, lon: float, radius_m: int = 1000, category: str | None = None
    ) -> list[Poi]:
        self._check("search_nearby")
        origin = Geo(lat=lat, lon=lon)
        results = []
        for poi in self._pois.values():
            geo = poi.geo
            if geo is None or (category and poi.category != category):
                continue
            if haversine_km(origin, geo) * 1000 <= radius_m:
                results.append(poi)
        return results

    def search_by_city(
        self, city_id: int, category: str | None = None, limit: int = 50
    ) -> list[Poi]:
        self._check("search_by_city")
        results = [
            p
            for p in self._pois.values()
            if p.city_id == city_id and (category is None or p.category == category)
        ]
        return results[:limit]

    def _check(self, operation: str) -> None:
        self.calls.append(operation)
        if not self.available:
            raise UpstreamUnavailableError(f"POI catalog unavailable ({operation})")
