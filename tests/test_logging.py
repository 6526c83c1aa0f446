"""Tests for structured logging setup."""

import json

from hmacguard.common.logging import get_logger, setup_logging


def test_json_logs(capsys):
    """JSON mode renders one event per line with bound fields."""
    setup_logging("DEBUG", json_logs=True)
    logger = get_logger("hmacguard.test")

    logger.warning("HMAC verification failed", reason="missing_header", path="/")

    line = capsys.readouterr().out.strip().splitlines()[-1]
    event = json.loads(line)
    assert event["event"] == "HMAC verification failed"
    assert event["reason"] == "missing_header"
    assert event["level"] == "warning"
    assert event["logger"] == "hmacguard.test"


def test_level_filtering(capsys):
    """Events below the configured level are dropped."""
    setup_logging("WARNING", json_logs=True)
    logger = get_logger("hmacguard.test.level")

    logger.debug("Signed response", size=1)

    assert capsys.readouterr().out == ""
