"""Tests for logger helpers"""

import logging

from dnsdog.utils.logger import _apply_module_levels, _normalize_module_name, parse_module_levels


class TestModuleLevels:

    def test_parse(self):
        assert parse_module_levels("watcher=debug, cache=INFO,,bogus") == {
            "watcher": "DEBUG",
            "cache": "INFO",
        }

    def test_normalize(self):
        assert _normalize_module_name("statsd") == "dnsdog.metrics"
        assert _normalize_module_name("codes") == "dnsdog.codes"
        assert _normalize_module_name("traffic.*") == "dnsdog.traffic"
        assert _normalize_module_name("urllib3") == "urllib3"

    def test_apply_from_env(self, monkeypatch):
        monkeypatch.setenv("DNSDOG_LOG_LEVELS", "cache=WARNING,watcher=NOPE")
        _apply_module_levels(None)
        assert logging.getLogger("dnsdog.cache").level == logging.WARNING
        logging.getLogger("dnsdog.cache").setLevel(logging.NOTSET)
