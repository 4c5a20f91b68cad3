"""Tests for structlog configuration."""

import logging

import structlog

from baseline_scan.core.logging import configure_structlog


class TestConfigureStructlog:
    def test_debug_uses_console_renderer(self):
        configure_structlog(debug=True)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)
        assert logging.getLogger().level == logging.DEBUG

    def test_production_uses_json_renderer(self):
        configure_structlog(debug=False)
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert logging.getLogger().level == logging.INFO

    def test_json_output(self, capsys):
        configure_structlog(debug=False)
        structlog.get_logger().info("scan_complete", findings=3)
        err = capsys.readouterr().err
        assert '"event": "scan_complete"' in err
        assert '"findings": 3' in err

    def test_debug_defaults_to_settings(self, monkeypatch, tmp_path):
        monkeypatch.chdir(tmp_path)
        monkeypatch.setenv("BASELINE_SCAN_DEBUG", "true")
        configure_structlog()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.dev.ConsoleRenderer)

        monkeypatch.setenv("BASELINE_SCAN_DEBUG", "false")
        configure_structlog()
        processors = structlog.get_config()["processors"]
        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
