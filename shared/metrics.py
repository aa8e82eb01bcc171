"""
Prometheus metrics for Timberline services.
"""

import time
from contextlib import contextmanager
from typing import Dict, Any, Optional, Tuple

from prometheus_client import Counter, Gauge, Histogram, Info, CollectorRegistry, generate_latest


# name -> (type, help, labels)
MetricDefinition = Tuple[type, str, Tuple[str, ...]]

COMMON_METRICS: Dict[str, MetricDefinition] = {
    "http_requests_total": (Counter, "Total HTTP requests", ("method", "endpoint", "status_code")),
    "http_request_duration_seconds": (Histogram, "HTTP request duration in seconds", ("method", "endpoint")),
    "health_check_total": (Counter, "Total health check requests", ("status",)),
    "errors_total": (Counter, "Total errors", ("error_type", "service")),
    "business_events_total": (Counter, "Total business events", ("event_type", "service")),
}

SERVICE_METRICS: Dict[str, Dict[str, MetricDefinition]] = {
    "pricing": {
        "price_quotes_total": (Counter, "Total price quotes", ("category", "purchasable")),
        "price_quote_duration_seconds": (Histogram, "Price quote duration in seconds", ("category",)),
        "catalog_categories": (Gauge, "Product categories in the loaded catalogue", ("strategy",)),
    },
    "permissions": {
        "permission_checks_total": (Counter, "Total permission checks", ("decision",)),
        "permission_check_duration_seconds": (
            Histogram, "Permission check duration in seconds", ("endpoint",)
        ),
    },
}


class MetricsCollector:
    """Metrics of one service, kept in the service's own registry."""

    def __init__(self, service_name: str, registry: Optional[CollectorRegistry] = None):
        self.service_name = service_name
        self.registry = registry if registry is not None else CollectorRegistry()
        self._metrics: Dict[str, Any] = {}

        info = Info("service_info", "Service information", registry=self.registry)
        info.info({"service": service_name, "version": "1.0.0"})

        definitions = dict(COMMON_METRICS)
        definitions.update(SERVICE_METRICS.get(service_name, {}))
        for name, (metric_type, documentation, labels) in definitions.items():
            self._metrics[name] = metric_type(name, documentation, labels, registry=self.registry)

    def get_metric(self, name: str):
        """Get a metric by name."""
        return self._metrics.get(name)

    def export(self) -> bytes:
        """Render the registry in Prometheus text format."""
        return generate_latest(self.registry)

    def record_http_request(self, method: str, endpoint: str, status_code: int, duration: float):
        self._metrics["http_requests_total"].labels(
            method=method, endpoint=endpoint, status_code=str(status_code)
        ).inc()
        self._metrics["http_request_duration_seconds"].labels(
            method=method, endpoint=endpoint
        ).observe(duration)

    def record_health_check(self, status: str):
        self._metrics["health_check_total"].labels(status=status).inc()

    def record_error(self, error_type: str):
        self._metrics["errors_total"].labels(error_type=error_type, service=self.service_name).inc()

    def record_business_event(self, event_type: str):
        self._metrics["business_events_total"].labels(
            event_type=event_type, service=self.service_name
        ).inc()

    @contextmanager
    def time_operation(self, operation_name: str, **labels):
        """Observe the duration of the block in a histogram."""
        start_time = time.time()
        try:
            yield
        finally:
            if operation_name in self._metrics:
                self._metrics[operation_name].labels(**labels).observe(time.time() - start_time)

    def increment_counter(self, metric_name: str, **labels):
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).inc()

    def set_gauge(self, metric_name: str, value: float, **labels):
        if metric_name in self._metrics:
            self._metrics[metric_name].labels(**labels).set(value)


def get_metrics_collector(service_name: str, registry: Optional[CollectorRegistry] = None) -> MetricsCollector:
    """Get a metrics collector for a service."""
    return MetricsCollector(service_name, registry)
