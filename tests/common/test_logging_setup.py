from __future__ import annotations

import json
import logging

import pytest

from selectel_storage.common.logging import JsonFormatter, mask_headers, setup_logging


@pytest.fixture
def restore_package_logger():
    logger = logging.getLogger("selectel_storage")
    saved = (logger.level, logger.propagate, list(logger.handlers))
    yield logger
    logger.setLevel(saved[0])
    logger.propagate = saved[1]
    logger.handlers[:] = saved[2]


def test_json_formatter_merges_extra():
    record = logging.LogRecord(
        "selectel_storage.test", logging.INFO, __file__, 1, "storage request", None, None
    )
    record.extra = {"operation": "delete_object", "status": 204}

    payload = json.loads(JsonFormatter().format(record))

    assert payload == {
        "level": "INFO",
        "logger": "selectel_storage.test",
        "message": "storage request",
        "operation": "delete_object",
        "status": 204,
    }


def test_mask_headers_hides_credentials():
    masked = mask_headers(
        {
            "X-Auth-User": "user",
            "X-Auth-Key": "pw",
            "x-auth-token": "tok",
            "X-Object-Meta-Link-Key": "abc",
            "X-Object-Meta-Color": "red",
        }
    )

    assert masked == {
        "X-Auth-User": "user",
        "X-Auth-Key": "***",
        "x-auth-token": "***",
        "X-Object-Meta-Link-Key": "***",
        "X-Object-Meta-Color": "red",
    }


def test_setup_logging_configures_package_logger(restore_package_logger):
    setup_logging("DEBUG")

    logger = restore_package_logger
    assert logger.level == logging.DEBUG
    assert logger.propagate is False
    assert any(isinstance(h.formatter, JsonFormatter) for h in logger.handlers)


def test_setup_logging_defaults_to_configured_level(restore_package_logger, monkeypatch):
    monkeypatch.setenv("LOG_LEVEL", "warning")

    setup_logging()

    assert restore_package_logger.level == logging.WARNING
