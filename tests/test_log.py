"""Tests for logging setup."""

import json

from loguru import logger

from repograph.log import configure_logging


def test_level_filters_messages(capsys):
    configure_logging("warning")

    logger.info("hidden")
    logger.warning("shown")

    err = capsys.readouterr().err
    assert "shown" in err
    assert "hidden" not in err


def test_json_format(capsys):
    configure_logging("INFO", json_format=True)

    logger.info("walk finished")

    record = json.loads(capsys.readouterr().err.strip().splitlines()[-1])
    assert record["record"]["message"] == "walk finished"
