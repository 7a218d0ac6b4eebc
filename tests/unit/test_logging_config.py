"""Unit tests for log formatters."""

import json
import logging

from survey_data.logging_config import DevelopmentFormatter, JSONFormatter


def make_record(**extra) -> logging.LogRecord:
    record = logging.LogRecord(
        "survey_data.services.repository", logging.WARNING, __file__, 10,
        "create %s rejected", ("Answer",), None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_json_formatter_includes_extra_context():
    output = json.loads(JSONFormatter().format(make_record(table="answers", entity_id=3)))

    assert output["message"] == "create Answer rejected"
    assert output["level"] == "WARNING"
    assert output["table"] == "answers"
    assert output["entity_id"] == 3
    assert "args" not in output


def test_development_formatter_appends_known_context():
    output = DevelopmentFormatter().format(make_record(user_id=9, client_ip="10.0.0.1"))

    assert "create Answer rejected" in output
    assert "[user_id=9]" in output
    assert "client_ip" not in output
