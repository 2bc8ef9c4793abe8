from __future__ import annotations

import logging
import os
import time

from flask import Flask, g, jsonify, request
from werkzeug.exceptions import BadRequest, HTTPException

from .counters import SafeCounter, get_counts, incr, run_increments
from .observability import HTTP_LATENCY, HTTP_REQUESTS, configure_logging, metrics_endpoint
from .pubsub.routes import bp as pubsub_bp

logger = logging.getLogger(__name__)

MAX_LOAD_TOTAL = 100_000
MAX_LOAD_WORKERS = 64


def create_app() -> Flask:
    configure_logging()
    app = Flask(__name__)
    app.secret_key = os.environ.get("APP_SECRET_KEY", "dev-insecure-secret")

    initial = int(os.environ.get("APP_COUNTER_INITIAL", "0"))
    app.extensions["safe_counter"] = SafeCounter(initial)
    app.register_blueprint(pubsub_bp)

    def counter() -> SafeCounter:
        return app.extensions["safe_counter"]

    @app.before_request
    def _start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def _record_request(response):
        endpoint = request.endpoint or "unknown"
        HTTP_REQUESTS.labels(request.method, endpoint, response.status_code).inc()
        started = g.get("request_started")
        if started is not None:
            HTTP_LATENCY.labels(endpoint).observe(time.perf_counter() - started)
        incr(f"requests.{endpoint}")
        return response

    @app.get("/health")
    def health():
        return jsonify({"status": "ok"})

    @app.get("/metrics")
    def metrics():
        return metrics_endpoint()

    @app.get("/counter")
    def counter_value():
        return jsonify({"value": counter().snapshot()})

    @app.post("/counter/increment")
    def counter_increment():
        return jsonify({"value": counter().increment()})

    @app.post("/counter/load")
    def counter_load():
        """Run a concurrent workload against a fresh counter and report it"""
        data = request.get_json(silent=True) or {}
        try:
            total = int(data.get("total", 40))
            workers = int(data.get("workers", 20))
            start = int(data.get("initial", 0))
        except (TypeError, ValueError):
            raise BadRequest("total, workers and initial must be integers")
        if not 0 <= total <= MAX_LOAD_TOTAL:
            raise BadRequest(f"total must be between 0 and {MAX_LOAD_TOTAL}")
        if not 1 <= workers <= MAX_LOAD_WORKERS:
            raise BadRequest(f"workers must be between 1 and {MAX_LOAD_WORKERS}")
        run = run_increments(SafeCounter(start), total, workers)
        logger.info("Load run finished", extra=run.to_dict())
        return jsonify(run.to_dict())

    @app.get("/counter/registry")
    def counter_registry():
        return jsonify(get_counts())

    # JSON error handler: return consistent JSON with {error, details}
    @app.errorhandler(HTTPException)
    def json_error_handler(err):
        payload = {"error": err.name, "details": err.description}
        return jsonify(payload), err.code

    return app


if __name__ == "__main__":
    app = create_app()
    app.run(debug=True, host="127.0.0.1", port=int(os.environ.get("PORT", "5000")))
