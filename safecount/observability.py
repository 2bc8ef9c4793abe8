from prometheus_client import Counter, Histogram, generate_latest, CONTENT_TYPE_LATEST
from pythonjsonlogger import jsonlogger
import logging
import os
from flask import Response

# Basic metrics
HTTP_REQUESTS = Counter('http_requests_total', 'HTTP requests', ['method', 'endpoint', 'status'])
HTTP_LATENCY = Histogram('http_request_duration_seconds', 'HTTP request latency', ['endpoint'])

# Domain-specific metrics
COUNTER_INCREMENTS = Counter('counter_increments_total', 'Increments issued by workloads', ['strategy'])
WORKLOAD_LOST_UPDATES = Counter('workload_lost_updates_total', 'Increments lost by a workload run', ['strategy'])
PUBSUB_ADMIN_CALLS = Counter('pubsub_admin_calls_total', 'Pub/sub admin operations', ['op', 'outcome'])


def configure_logging(level=None):
    if level is None:
        level = os.environ.get("APP_LOG_LEVEL", "INFO").upper()
    handler = logging.StreamHandler()
    formatter = jsonlogger.JsonFormatter('%(asctime)s %(levelname)s %(name)s %(message)s')
    handler.setFormatter(formatter)
    root = logging.getLogger()
    # Avoid adding duplicate handlers
    if not any(isinstance(h, logging.StreamHandler) for h in root.handlers):
        root.addHandler(handler)
    root.setLevel(level)


def metrics_endpoint():
    """Return a Flask Response with current Prometheus metrics."""
    data = generate_latest()
    return Response(data, mimetype=CONTENT_TYPE_LATEST)
