"""Prometheus metrics for the POI gateway and the optimizer."""

from prometheus_client import Counter, Histogram

# POI gateway metrics
poi_gateway_latency_ms = Histogram(
    "poi_gateway_latency_ms",
    "POI catalog call latency in milliseconds",
    ["operation", "outcome"],
    buckets=[10, 50, 100, 200, 500, 1000, 2000, 4000],
)

poi_gateway_errors_total = Counter(
    "poi_gateway_errors_total",
    "Total POI catalog call errors",
    ["operation", "reason"],
)

# Optimizer metrics
route_optimizations_total = Counter(
    "route_optimizations_total",
    "Total day optimizations",
    ["mode", "strategy"],
)

route_optimization_latency_ms = Histogram(
    "route_optimization_latency_ms",
    "Day optimization latency in milliseconds",
    ["mode"],
    buckets=[0.1, 0.5, 1, 5, 10, 50, 100, 500],
)


class PrometheusGatewayMetrics:
    """Prometheus-based gateway metrics implementation."""

    def record_latency(self, operation: str, outcome: str, latency_ms: float) -> None:
        """Record call latency."""
        poi_gateway_latency_ms.labels(operation=operation, outcome=outcome).observe(latency_ms)

    def inc_error(self, operation: str, reason: str) -> None:
        """Increment error counter."""
        poi_gateway_errors_total.labels(operation=operation, reason=reason).inc()


class PrometheusOptimizerMetrics:
    """Prometheus-based optimizer metrics implementation."""

    def record_run(self, mode: str, strategy: str, latency_ms: float) -> None:
        """Record one day optimization."""
        route_optimizations_total.labels(mode=mode, strategy=strategy).inc()
        route_optimization_latency_ms.labels(mode=mode).observe(latency_ms)
