"""Tests for the JSON log formatter and SeriesAdapter."""

import json
import logging
import sys

from serieskeeper.utils.logging_config import JSONFormatter, SeriesAdapter, get_logger


def make_record(msg="hello", **extra):
    record = logging.LogRecord("serieskeeper.test", logging.INFO, __file__, 1, msg, None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class RecordingHandler(logging.Handler):
    def __init__(self):
        super().__init__()
        self.records = []

    def emit(self, record):
        self.records.append(record)


class TestJSONFormatter:

    def test_base_fields(self):
        entry = json.loads(JSONFormatter().format(make_record()))
        assert entry["level"] == "INFO"
        assert entry["logger"] == "serieskeeper.test"
        assert entry["message"] == "hello"
        assert "ts" in entry

    def test_known_extras_included(self):
        entry = json.loads(JSONFormatter().format(make_record(
            tool="validate_scene_against_knowledge", character_id=7, metadata={"chapter_id": 5},
        )))
        assert entry["tool"] == "validate_scene_against_knowledge"
        assert entry["character_id"] == 7
        assert entry["metadata"] == {"chapter_id": 5}

    def test_unknown_and_null_extras_dropped(self):
        entry = json.loads(JSONFormatter().format(make_record(mood="grim", series_id=None)))
        assert "mood" not in entry
        assert "series_id" not in entry

    def test_exception_included(self):
        try:
            raise RuntimeError("boom")
        except RuntimeError:
            record = logging.LogRecord("serieskeeper.test", logging.ERROR, __file__, 1, "failed", None, sys.exc_info())
        entry = json.loads(JSONFormatter().format(record))
        assert "RuntimeError: boom" in entry["exception"]

    def test_knowledge_fields_are_top_level(self):
        entry = json.loads(JSONFormatter().format(make_record(
            chapter_id=9, knowledge_item="the vault code", knowledge_state="knows",
        )))
        assert entry["chapter_id"] == 9
        assert entry["knowledge_item"] == "the vault code"
        assert entry["knowledge_state"] == "knows"
        assert "metadata" not in entry


class TestLoggers:

    def test_names_are_namespaced(self):
        assert get_logger("routes").name == "serieskeeper.routes"
        assert get_logger("serieskeeper.ws").name == "serieskeeper.ws"

    def test_series_adapter_injects_series_id(self):
        logger = get_logger("serieskeeper.test.adapter")
        handler = RecordingHandler()
        logger.addHandler(handler)
        try:
            SeriesAdapter(logger, series_id=3).warning("boundary check", extra={"tool": "get_character_knowledge_state"})
        finally:
            logger.removeHandler(handler)

        [record] = handler.records
        assert record.series_id == 3
        assert record.tool == "get_character_knowledge_state"
