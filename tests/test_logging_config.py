"""Tests for the logging setup."""

import logging

from edinet_engine.logging_config import parse_level_overrides, setup_logging


class TestParseLevelOverrides:
    def test_pairs(self):
        assert parse_level_overrides("edinet_engine.edinet=debug, edinet_engine.pipeline=WARNING") == {
            "edinet_engine.edinet": "DEBUG",
            "edinet_engine.pipeline": "WARNING",
        }

    def test_malformed_pairs_ignored(self):
        assert parse_level_overrides("") == {}
        assert parse_level_overrides("edinet_engine.edinet,=DEBUG,x=LOUD") == {}


class TestSetupLogging:
    def teardown_method(self):
        setup_logging("INFO", overrides="")

    def test_engine_and_quiet_loggers(self):
        setup_logging("DEBUG", overrides="")

        assert logging.getLogger("edinet_engine").level == logging.DEBUG
        assert logging.getLogger("edinet_engine.edinet").getEffectiveLevel() == logging.DEBUG
        assert logging.getLogger("httpx").level == logging.WARNING
        assert logging.getLogger("httpx").propagate is False

    def test_module_override(self):
        setup_logging("INFO", overrides="edinet_engine.edinet=WARNING")

        assert logging.getLogger("edinet_engine.edinet").level == logging.WARNING
        assert logging.getLogger("edinet_engine.pipeline").getEffectiveLevel() == logging.INFO
