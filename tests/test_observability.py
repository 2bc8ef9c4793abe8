import logging

from safecount.app import create_app
from safecount.counters import SafeCounter, run_increments
from safecount.observability import configure_logging


def test_metrics_endpoint_exposes_domain_metrics():
    app = create_app()
    client = app.test_client()
    run_increments(SafeCounter(), total=5, workers=2)
    client.post("/topics/metrics-topic")

    resp = client.get("/metrics")

    assert resp.status_code == 200
    text = resp.get_data(as_text=True)
    assert 'counter_increments_total{strategy="lock"}' in text
    assert "pubsub_admin_calls_total" in text
    assert "http_requests_total" in text


def test_configure_logging_does_not_duplicate_handlers():
    configure_logging()
    before = len(logging.getLogger().handlers)
    configure_logging()

    assert len(logging.getLogger().handlers) == before


def test_configure_logging_reads_level_from_env(monkeypatch):
    monkeypatch.setenv("APP_LOG_LEVEL", "debug")
    root = logging.getLogger()
    previous = root.level
    try:
        configure_logging()
        assert root.level == logging.DEBUG
    finally:
        root.setLevel(previous)
