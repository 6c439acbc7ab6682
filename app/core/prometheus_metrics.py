import logging
from prometheus_client import Counter, Histogram, Info, generate_latest
from prometheus_client.core import CollectorRegistry

logger = logging.getLogger(__name__)

# Prometheus Registry
REGISTRY = CollectorRegistry()

service_requests_total = Counter(
    'jam_service_requests_total',
    'Total service method calls',
    ['status', 'service', 'method'],
    registry=REGISTRY
)

service_duration_seconds = Histogram(
    'jam_service_duration_seconds',
    'Service method duration in seconds',
    ['service', 'method'],
    buckets=[0.01, 0.05, 0.1, 0.5, 1.0, 2.0, 5.0],
    registry=REGISTRY
)

# Business Metrics
vehicle_events_total = Counter(
    'jam_vehicle_events_total',
    'Vehicle lifecycle events',
    ['event'],
    registry=REGISTRY
)

business_rule_rejections_total = Counter(
    'jam_business_rule_rejections_total',
    'Requests rejected by a business rule',
    ['rule'],
    registry=REGISTRY
)

slug_collisions_total = Counter(
    'jam_slug_collisions_total',
    'Slug collisions resolved by appending a counter',
    registry=REGISTRY
)

system_info = Info(
    'jam_catalog_info',
    'System information',
    registry=REGISTRY
)


class PrometheusMetricsCollector:
    """Thin facade over the catalog metrics so services never touch label names"""

    def __init__(self):
        system_info.info({
            'version': '1.0.0',
            'service': 'jam-catalog'
        })

    def record_service_call(self, service_name: str, method_name: str, duration_seconds: float, success: bool):
        status = 'success' if success else 'error'
        service_requests_total.labels(status=status, service=service_name, method=method_name).inc()
        service_duration_seconds.labels(service=service_name, method=method_name).observe(duration_seconds)

    def record_vehicle_event(self, event: str):
        vehicle_events_total.labels(event=event).inc()

    def record_rejection(self, rule: str):
        business_rule_rejections_total.labels(rule=rule).inc()

    def record_slug_collision(self, count: int = 1):
        slug_collisions_total.inc(count)

    def get_prometheus_metrics(self) -> bytes:
        return generate_latest(REGISTRY)


prometheus_collector = PrometheusMetricsCollector()
