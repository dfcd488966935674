"""
Tests for logging filters and context.
"""
import logging

from classboard.config.logging_config import LogContext, SensitiveDataFilter


def make_record(msg, *args):
    return logging.LogRecord("classboard.test", logging.INFO, __file__, 1, msg, args, None)


class TestSensitiveDataFilter:

    def test_redacts_api_key(self):
        record = make_record("Connecting with apikey=%s", "super-secret-key")

        assert SensitiveDataFilter().filter(record) is True
        assert record.getMessage() == "Connecting with apikey=***REDACTED***"

    def test_redacts_bearer_token(self):
        record = make_record("Authorization: Bearer abc.def.ghi")

        SensitiveDataFilter().filter(record)

        assert "abc.def.ghi" not in record.getMessage()

    def test_leaves_plain_messages(self):
        record = make_record("Accepted %s submission", "message")

        SensitiveDataFilter().filter(record)

        assert record.args == ("message",)
        assert record.getMessage() == "Accepted message submission"


class TestLogContext:

    def test_adds_fields_inside_context(self):
        with LogContext(identity="1.2.3.4", kind="upload"):
            record = logging.getLogRecordFactory()("x", logging.INFO, __file__, 1, "msg", (), None)

        assert record.identity == "1.2.3.4"
        assert record.kind == "upload"

    def test_restores_factory(self):
        original = logging.getLogRecordFactory()

        with LogContext(identity="1.2.3.4"):
            pass

        assert logging.getLogRecordFactory() is original
