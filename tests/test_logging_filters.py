"""Tests for sensitive data filtering in logs."""

from __future__ import annotations

import json
import logging
from io import StringIO

from cnpj_finder.core.logging import (
    JsonFormatter,
    RequestIdFilter,
    SensitiveDataFilter,
    clear_request_id,
    hash_identifier,
    set_request_id,
)


def _capture(name: str) -> tuple[logging.Logger, StringIO]:
    logger = logging.getLogger(name)
    logger.setLevel(logging.INFO)
    logger.handlers.clear()
    logger.propagate = False

    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(RequestIdFilter())
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    logger.addHandler(handler)
    return logger, stream


def test_sensitive_filter_redacts_client_addresses():
    """Ensure client addresses never reach the log output."""
    logger, stream = _capture("test_redaction")

    logger.info(
        "rate_limit.exceeded",
        extra={
            "client_ip": "203.0.113.7",
            "x-forwarded-for": "203.0.113.7, 10.0.0.1",
            "family": "ip",
        },
    )

    output = stream.getvalue()

    assert "203.0.113.7" not in output
    assert "[REDACTED]" in output
    assert '"family": "ip"' in output


def test_sensitive_filter_redacts_upstream_body():
    """Ensure raw upstream bodies are redacted."""
    logger, stream = _capture("test_upstream_redaction")

    logger.warning(
        "registry.error_status",
        extra={"upstream_body": "<html>backend stack trace</html>", "upstream_status": 502},
    )

    output = stream.getvalue()

    assert "backend stack trace" not in output
    assert "[REDACTED]" in output
    assert "502" in output


def test_sensitive_filter_allows_safe_fields():
    """Verify safe fields pass through unmodified."""
    logger, stream = _capture("test_safe_fields")

    logger.info(
        "lookup.completed",
        extra={
            "request_id": "req-123",
            "cnpj": "12345678000195",
            "cache_size": 1,
            "duration_ms": 150.5,
        },
    )

    output = stream.getvalue()

    assert "req-123" in output
    assert "12345678000195" in output
    assert "150.5" in output
    assert "[REDACTED]" not in output


def test_sensitive_filter_redacts_nested_dicts():
    """Ensure nested sensitive fields are redacted."""
    logger, stream = _capture("test_nested")

    logger.info(
        "nested_event",
        extra={
            "headers": {
                "X-Real-IP": "198.51.100.9",
                "user-agent": "pytest",
            },
        },
    )

    output = stream.getvalue()

    assert "198.51.100.9" not in output
    assert "[REDACTED]" in output
    assert "pytest" in output


def test_json_formatter_keeps_accents_readable():
    """Portuguese messages are written as UTF-8, not escaped."""
    logger, stream = _capture("test_utf8")

    logger.warning("app_error_handled", extra={"error_message": "Empresa não encontrada"})

    payload = json.loads(stream.getvalue())
    assert "Empresa não encontrada" in stream.getvalue()
    assert payload["level"] == "warning"
    assert payload["message"] == "app_error_handled"


def test_request_id_is_attached_from_context():
    logger, stream = _capture("test_request_id")

    set_request_id("ctx-req-42")
    try:
        logger.info("lookup.requested")
    finally:
        clear_request_id()

    assert json.loads(stream.getvalue())["request_id"] == "ctx-req-42"


def test_hash_identifier_is_stable_and_short():
    first = hash_identifier("203.0.113.7")

    assert first == hash_identifier("203.0.113.7")
    assert first != hash_identifier("203.0.113.8")
    assert len(first) == 16
    assert len(hash_identifier("203.0.113.7", length=8)) == 8


def test_rate_limit_logs_hash_client_address():
    from fastapi.testclient import TestClient

    from cnpj_finder.core.app_factory import create_app
    from conftest import FakeRegistryClient

    client = TestClient(create_app(registry_client=FakeRegistryClient()))
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.addFilter(SensitiveDataFilter())
    handler.setFormatter(JsonFormatter())
    rate_limit_logger = logging.getLogger("cnpj_finder.core.rate_limit")
    rate_limit_logger.addHandler(handler)
    try:
        for _ in range(11):
            client.get("/api/cnpj", headers={"X-Forwarded-For": "203.0.113.77"})
    finally:
        rate_limit_logger.removeHandler(handler)

    output = stream.getvalue()

    assert "rate_limit.exceeded" in output
    assert "203.0.113.77" not in output
    assert hash_identifier("203.0.113.77") in output
