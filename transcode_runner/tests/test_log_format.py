"""Unit tests for transcode_runner.log_format module."""

import logging

from transcode_runner.log_format import format_log
from transcode_runner.log_format import logging_level
from transcode_runner.log_format import parse_canonical_log
from transcode_runner.log_format import wrap_container_log


def test_basic_format():
    assert format_log("supervisor", "attempt", "INFO", "hello") == "[supervisor/attempt][INFO] hello"


def test_level_normalization():
    assert format_log("supervisor", "none", "warn", "msg") == "[supervisor/none][WARN] msg"
    assert format_log("supervisor", "none", "bogus", "msg") == "[supervisor/none][INFO] msg"


def test_nested_headers_stripped():
    line = format_log("supervisor", "none", "INFO", "[runner/kill][WARN] [a/b][INFO] real message")
    assert line == "[supervisor/none][INFO] real message"


def test_empty_after_strip():
    assert format_log("supervisor", "none", "INFO", "[runner/kill][INFO] ") == ""


def test_parse_round_trip():
    assert parse_canonical_log("[supervisor/retry][WARN] retrying") == (
        "supervisor",
        "retry",
        "WARN",
        "retrying",
    )
    assert parse_canonical_log("plain text") is None


def test_wrap_container_log():
    assert wrap_container_log("job-1", "stderr", "upload failed\n") == "[job-1/stderr][WARN] upload failed"
    assert wrap_container_log("job-1", "stdout", "[workflow/pack][INFO] ok") == "[workflow/pack][INFO] ok"


def test_logging_level():
    assert logging_level("[supervisor/task][ERROR] boom") == logging.ERROR
    assert logging_level("[supervisor/task][WARN] hmm") == logging.WARNING
    assert logging_level("not canonical") == logging.INFO
