"""
Tests for the logging module.

Tests verify:
- JSON output carries the event name and service metadata
- LogContext binds and unbinds scoped keys
- Events below the configured level are suppressed
"""

import json

import structlog

from quilldoc.logging import LogContext, bind_context, configure_logging, get_logger, unbind_context


def _json_lines(text: str) -> list[dict]:
    return [json.loads(line) for line in text.splitlines() if line.strip()]


class TestConfigureLogging:
    """JSON and level configuration."""

    def test_json_output_to_stderr(self, capsys):
        configure_logging(level="INFO", json_format=True)
        get_logger("quilldoc.test").info("build.started", source_dir="docs")

        captured = capsys.readouterr()
        assert captured.out == ""
        (event,) = _json_lines(captured.err)
        assert event["event"] == "build.started"
        assert event["source_dir"] == "docs"
        assert event["service"] == "quilldoc"
        assert event["level"] == "info"
        assert "timestamp" in event

    def test_debug_suppressed_at_info(self, capsys):
        configure_logging(level="INFO", json_format=True)
        logger = get_logger("quilldoc.test")
        logger.debug("render.page_written", uri="index.html")
        logger.warning("scan.import_failed", module="m")

        events = _json_lines(capsys.readouterr().err)
        assert [e["event"] for e in events] == ["scan.import_failed"]

    def test_without_timestamp(self, capsys):
        configure_logging(level="INFO", json_format=True, add_timestamp=False)
        get_logger().info("tree.built")
        (event,) = _json_lines(capsys.readouterr().err)
        assert "timestamp" not in event


class TestContext:
    """Scoped context binding."""

    def teardown_method(self):
        structlog.contextvars.clear_contextvars()

    def test_log_context_binds_and_clears(self, capsys):
        configure_logging(level="INFO", json_format=True)
        logger = get_logger("quilldoc.test")
        with LogContext(project="Sample"):
            logger.info("build.started")
        logger.info("build.finished")

        started, finished = _json_lines(capsys.readouterr().err)
        assert started["project"] == "Sample"
        assert "project" not in finished

    def test_bind_and_unbind(self, capsys):
        configure_logging(level="INFO", json_format=True)
        bind_context(docname="usage")
        get_logger().info("tree.warning")
        unbind_context("docname")
        get_logger().info("tree.built")

        first, second = _json_lines(capsys.readouterr().err)
        assert first["docname"] == "usage"
        assert "docname" not in second
