"""Tests for the JSON log formatter and context logger."""

import json
import logging

from src.shared.infrastructure.logging import CustomJsonFormatter, get_context_logger


def _format(record_extra: dict) -> dict:
    formatter = CustomJsonFormatter("%(name)s %(levelname)s %(message)s")
    formatter.environment = "test"
    record = logging.LogRecord("complaints", logging.INFO, __file__, 1, "Complaint assigned", None, None)
    for key, value in record_extra.items():
        setattr(record, key, value)
    return json.loads(formatter.format(record))


def test_formatter_adds_context_and_environment():
    data = _format({"correlation_id": "abc", "tenant_id": "campus-north"})
    assert data["message"] == "Complaint assigned"
    assert data["correlation_id"] == "abc"
    assert data["tenant_id"] == "campus-north"
    assert data["environment"] == "test"
    assert "timestamp" in data


def test_formatter_redacts_sensitive_keys():
    data = _format({"api_key": "sk-123", "authorization": "Bearer x"})
    assert data["api_key"] == "***REDACTED***"
    assert data["authorization"] == "***REDACTED***"


def test_context_logger_keeps_call_extras(caplog):
    logger = get_context_logger("complaints.test", correlation_id="abc", tenant_id="campus-north")
    with caplog.at_level(logging.INFO, logger="complaints.test"):
        logger.info("Complaint assigned", extra={"complaint_id": "c-1"})

    [record] = caplog.records
    assert record.correlation_id == "abc"
    assert record.complaint_id == "c-1"
