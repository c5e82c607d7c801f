# scamguard/monitoring.py
"""
Centralized monitoring: Prometheus metrics, structured JSON logging, optional Sentry.

Env vars:
- PROMETHEUS_ENABLED (default: true)
- SENTRY_DSN (optional)
- LOG_AS_JSON (default: true)
- LOG_LEVEL (default: INFO)
- ENVIRONMENT (default: development)
"""

import os
import logging
import time
from typing import Tuple

import sentry_sdk
from prometheus_client import (
    Counter, Histogram,
    generate_latest, CONTENT_TYPE_LATEST, REGISTRY,
)
from pythonjsonlogger import jsonlogger

# --- ENV flags
PROMETHEUS_ENABLED = os.getenv("PROMETHEUS_ENABLED", "true").lower() in ("1", "true", "yes")
SENTRY_DSN = os.getenv("SENTRY_DSN", None)
LOG_AS_JSON = os.getenv("LOG_AS_JSON", "true").lower() in ("1", "true", "yes")
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")


# --- Logger setup
def setup_logger(name: str = "scamguard", level: int = None) -> logging.Logger:
    level = logging.getLevelName(os.getenv("LOG_LEVEL", "INFO")) if level is None else level
    logger = logging.getLogger(name)
    logger.setLevel(level)
    if not logger.handlers:
        handler = logging.StreamHandler()
        if LOG_AS_JSON:
            fmt = jsonlogger.JsonFormatter(
                "%(asctime)s %(levelname)s %(name)s %(message)s"
            )
            handler.setFormatter(fmt)
        logger.addHandler(handler)
    return logger


logger = setup_logger()

# --- Sentry (optional)
if SENTRY_DSN:
    sentry_sdk.init(dsn=SENTRY_DSN, environment=ENVIRONMENT)
    logger.info("Sentry initialized")


# --- Prometheus metrics
REQUEST_COUNT = Counter(
    "scamguard_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status"],
)

REQUEST_LATENCY = Histogram(
    "scamguard_request_latency_seconds",
    "Request latency in seconds",
    ["endpoint"],
)

COMPLETION_COUNTER = Counter(
    "scamguard_completion_calls_total",
    "Completion service calls",
    ["endpoint", "outcome"],
)

COMPLETION_LATENCY = Histogram(
    "scamguard_completion_latency_seconds",
    "Completion service latency",
    ["endpoint"],
)

STRUCTURED_PARSE_COUNTER = Counter(
    "scamguard_structured_parse_total",
    "Structured response parse attempts",
    ["outcome"],
)

AUDIT_WRITES = Counter(
    "scamguard_audit_writes_total",
    "Audit row writes",
    ["collection", "outcome"],
)


# --- Helper wrappers (never crash the app)
def observe_request(start_ts: float, endpoint: str, method: str, status: str):
    try:
        REQUEST_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        REQUEST_COUNT.labels(method=method, endpoint=endpoint, status=status).inc()
    except Exception:
        pass


def observe_completion(start_ts: float, endpoint: str, outcome: str):
    try:
        COMPLETION_LATENCY.labels(endpoint=endpoint).observe(time.time() - start_ts)
        COMPLETION_COUNTER.labels(endpoint=endpoint, outcome=outcome).inc()
    except Exception:
        pass


def inc_structured_parse(outcome: str):
    try:
        STRUCTURED_PARSE_COUNTER.labels(outcome=outcome).inc()
    except Exception:
        pass


def inc_audit_write(collection: str, outcome: str):
    try:
        AUDIT_WRITES.labels(collection=collection, outcome=outcome).inc()
    except Exception:
        pass


def prometheus_metrics_response() -> Tuple[bytes, str]:
    """Return (body_bytes, content_type) for Prometheus scrape."""
    try:
        return generate_latest(REGISTRY), CONTENT_TYPE_LATEST
    except Exception:
        return b"", CONTENT_TYPE_LATEST
