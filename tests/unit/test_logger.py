import logging

import pytest

from bookworker.logging.logger import Log, _ContextFormatter


def _record(**extra: object) -> logging.LogRecord:
    record = logging.makeLogRecord({"msg": "Job finished", "levelname": "INFO"})
    for key, value in extra.items():
        setattr(record, key, value)
    return record


class TestContextFormatter:
    def test_plain_message_without_context(self) -> None:
        formatter = _ContextFormatter("%(message)s")
        assert formatter.format(_record()) == "Job finished"

    def test_context_appended_sorted(self) -> None:
        formatter = _ContextFormatter("%(message)s")
        assert formatter.format(_record(user_id=42, job_id="abc")) == (
            "Job finished | job_id=abc user_id=42"
        )


class TestLog:
    def test_keyword_context_reaches_record(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.INFO, logger="bookworker"):
            Log.info("Job finished", user_id=42)

        assert caplog.records[-1].user_id == 42
        assert caplog.records[-1].getMessage() == "Job finished"
