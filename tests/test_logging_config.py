import json
import logging

from pagehub.logging_config import StructuredFormatter, set_trace_id, trace_id_from_header


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord("pagehub.view", logging.INFO, __file__, 10, "Logged in", None, None)
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_formatter_emits_json_with_extra_fields():
    set_trace_id(None)

    output = json.loads(StructuredFormatter().format(make_record(uid="uid-1")))

    assert output["severity"] == "INFO"
    assert output["message"] == "Logged in"
    assert output["logger"] == "pagehub.view"
    assert output["uid"] == "uid-1"
    assert output["timestamp"].endswith("Z")
    assert "logging.googleapis.com/trace" not in output


def test_formatter_includes_trace_id():
    set_trace_id("projects/growmar/traces/abc")
    try:
        output = json.loads(StructuredFormatter().format(make_record()))
    finally:
        set_trace_id(None)

    assert output["logging.googleapis.com/trace"] == "projects/growmar/traces/abc"


def test_trace_id_from_header():
    assert trace_id_from_header("abc123/456;o=1", "growmar") == "projects/growmar/traces/abc123"
    assert trace_id_from_header("abc123/456;o=1", None) == "abc123"
    assert trace_id_from_header(None, "growmar") is None
    assert trace_id_from_header("", "growmar") is None
