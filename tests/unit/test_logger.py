"""Unit tests for the logging utility."""

from __future__ import annotations

import json
import logging

from persistent_login.core.logger import JSONFormatter, configure_logging


def test_configure_logging_sets_level() -> None:
    """``configure_logging`` should set the root logger level."""

    # Act
    configure_logging("DEBUG")

    # Assert
    assert logging.getLogger().level == logging.DEBUG

    configure_logging("WARNING")


def test_json_formatter_keeps_only_known_extras() -> None:
    record = logging.LogRecord("pl", logging.INFO, __file__, 1, "rotated", None, None)
    record.user_id = 42
    record.series = "must-not-leak"

    payload = json.loads(JSONFormatter().format(record))

    assert payload["message"] == "rotated"
    assert payload["user_id"] == 42
    assert "series" not in payload


def test_request_id_is_echoed(client) -> None:
    response = client.get("/api/v1/auth/whoami", headers={"X-Request-ID": "req-123"})

    assert response.headers["X-Request-ID"]
    assert response.get_json()["request_id"] == response.headers["X-Request-ID"]


def test_inbound_request_id_is_reused(client) -> None:
    response = client.get("/api/v1/auth/whoami", headers={"X-Correlation-ID": "abc-123"})

    assert response.headers["X-Request-ID"] == "abc-123"


def test_malformed_inbound_request_id_is_replaced(client) -> None:
    response = client.get("/api/v1/auth/whoami", headers={"X-Request-ID": "bad id; forged"})

    assert response.headers["X-Request-ID"] != "bad id; forged"
    assert len(response.headers["X-Request-ID"]) == 36
