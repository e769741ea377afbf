"""Tests for logging_utils module."""

from __future__ import annotations

import io

from loguru import logger

from task_tracker.logging_utils import configure_logging, pretty


class TestPretty:
    def test_dict(self):
        assert pretty({"a": 1}, indent=None) == '{"a": 1}'

    def test_falls_back_to_default_str(self):
        class Odd:
            def __str__(self) -> str:
                return "odd"

        assert pretty({"x": Odd()}, indent=None) == '{"x": "odd"}'

    def test_circular_reference_falls_back_to_str(self):
        data: dict = {}
        data["self"] = data
        assert pretty(data) == str(data)


def test_configure_logging_respects_level(monkeypatch):
    stream = io.StringIO()
    monkeypatch.setattr("sys.stderr", stream)
    configure_logging("warning")
    logger.info("hidden message")
    logger.warning("visible message")
    output = stream.getvalue()
    assert "visible message" in output
    assert "hidden message" not in output
    logger.remove()
