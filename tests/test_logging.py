"""Unit tests for csv_ingest/logging/logger.py."""

import json
import logging
import sys

from csv_ingest.logging.logger import (
    PACKAGE_LOGGER,
    JSONFormatter,
    _request_id,
    configure_logging,
    get_logger,
    request_id_ctx,
)


class TestJSONFormatter:
    """Tests for the JSONFormatter class."""

    def _make_record(self, msg="test message", level=logging.INFO, name="test.module"):
        logger = logging.getLogger(name)
        return logger.makeRecord(
            name=name,
            level=level,
            fn="test.py",
            lno=1,
            msg=msg,
            args=(),
            exc_info=None,
        )

    def test_contains_required_fields(self):
        fmt = JSONFormatter()
        record = self._make_record(msg="hello world", name="csv_ingest.ingestion.pipeline")
        parsed = json.loads(fmt.format(record))
        assert "timestamp" in parsed
        assert parsed["level"] == "INFO"
        assert parsed["module"] == "csv_ingest.ingestion.pipeline"
        assert parsed["message"] == "hello world"

    def test_extra_context_fields(self):
        fmt = JSONFormatter()
        record = self._make_record()
        record.table = "berkas_verifikasi"
        record.upload_filename = "berkas.csv"
        parsed = json.loads(fmt.format(record))
        assert parsed["table"] == "berkas_verifikasi"
        assert parsed["upload_filename"] == "berkas.csv"

    def test_request_id_included_when_set(self):
        fmt = JSONFormatter()
        with request_id_ctx("req-42"):
            parsed = json.loads(fmt.format(self._make_record()))
        assert parsed["request_id"] == "req-42"

    def test_request_id_absent_when_not_set(self):
        _request_id.set(None)
        parsed = json.loads(JSONFormatter().format(self._make_record()))
        assert "request_id" not in parsed

    def test_exception_info_included(self):
        fmt = JSONFormatter()
        try:
            raise ValueError("boom")
        except ValueError:
            record = self._make_record()
            record.exc_info = sys.exc_info()
        parsed = json.loads(fmt.format(record))
        assert "ValueError" in parsed["exception"]

    def test_non_serializable_extra_falls_back_to_str(self):
        fmt = JSONFormatter()
        record = self._make_record()
        record.columns = {"a", "b"}
        parsed = json.loads(fmt.format(record))
        assert isinstance(parsed["columns"], str)


class TestRequestID:
    def test_context_manager_sets_and_resets(self):
        _request_id.set(None)
        with request_id_ctx("ctx-123") as rid:
            assert rid == "ctx-123"
            assert _request_id.get() == "ctx-123"
        assert _request_id.get() is None

    def test_auto_generate(self):
        with request_id_ctx() as rid:
            assert len(rid) == 16

    def test_nested_contexts_restore_outer(self):
        with request_id_ctx("outer"):
            with request_id_ctx("inner"):
                assert _request_id.get() == "inner"
            assert _request_id.get() == "outer"


class TestGetLogger:
    def test_returns_logger(self):
        logger = get_logger("test.module")
        assert isinstance(logger, logging.Logger)
        assert logger.name == "test.module"

    def test_no_duplicate_handlers(self):
        name = "test.no_dup"
        logging.getLogger(name).handlers.clear()
        count1 = len(get_logger(name).handlers)
        count2 = len(get_logger(name).handlers)
        assert count1 == count2 == 1

    def test_explicit_level(self):
        logger = get_logger("test.level", "DEBUG")
        assert logger.level == logging.DEBUG

    def test_configure_logging_targets_package_logger(self):
        logger = configure_logging("WARNING")
        assert logger.name == PACKAGE_LOGGER
        assert logger.propagate is False
        assert any(isinstance(h.formatter, JSONFormatter) for h in logger.handlers)

    def test_log_output_is_json(self, capsys):
        name = "test.output_json"
        logging.getLogger(name).handlers.clear()

        logger = get_logger(name, "INFO")
        logger.info("hello from test", extra={"table": "t1"})

        parsed = json.loads(capsys.readouterr().out.strip())
        assert parsed["message"] == "hello from test"
        assert parsed["table"] == "t1"
