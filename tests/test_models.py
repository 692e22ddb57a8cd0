"""Tests for element record validation at the page boundary."""

import pytest
from pydantic import ValidationError

from locator_extractor.models.element import ElementRecord, Framework, TEXT_MAX_LENGTH
from locator_extractor.models.messages import LogEvent, StartCommand


def test_payload_is_coerced_into_schema():
    record = ElementRecord.from_page(
        {
            "captureId": "abc-1",
            "tag": "BUTTON",
            "id": "",
            "class": "btn primary",
            "text": "  Sign in  ",
            "attributes": {"tabindex": 0, "disabled": None},
            "framework": "Svelte",
            "css": None,
            "unexpected": "ignored",
        }
    )
    assert record.tag == "button"
    assert record.id is None
    assert record.class_ == "btn primary"
    assert record.text == "Sign in"
    assert record.attributes == {"tabindex": "0", "disabled": ""}
    assert record.framework is Framework.UNKNOWN
    assert record.css == ""
    assert not hasattr(record, "unexpected")


def test_text_is_truncated():
    record = ElementRecord.from_page({"tag": "p", "text": "x" * 1000})
    assert len(record.text) == TEXT_MAX_LENGTH


@pytest.mark.parametrize("payload", [{}, {"tag": ""}, {"tag": None}])
def test_payload_without_tag_is_rejected(payload):
    with pytest.raises(ValidationError):
        ElementRecord.from_page(payload)


def test_controller_fields_from_page_are_discarded():
    record = ElementRecord.from_page(
        {
            "tag": "a",
            "pageUrl": "https://evil.example",
            "timestamp": "1999-01-01T00:00:00Z",
            "advanced": {"zIndex": "99"},
        }
    )
    assert record.pageUrl is None
    assert record.timestamp is None
    assert record.advanced is None


def test_stamp_is_set_once():
    record = ElementRecord.from_page({"tag": "a"})
    record.stamp("https://app.com/one")
    first = record.timestamp
    record.stamp("https://app.com/two")

    assert record.is_stamped
    assert record.pageUrl == "https://app.com/one"
    assert record.timestamp == first
    assert first.endswith("Z")


def test_to_output_uses_page_key_names():
    record = ElementRecord.from_page({"tag": "div", "class": "card"})
    data = record.to_output()
    assert data["class"] == "card"
    assert "class_" not in data
    assert "advanced" not in data
    assert data["framework"] == "Unknown"


def test_log_event_gets_utc_timestamp():
    event = LogEvent(level="SUCCESS", message="done")
    assert event.timestamp.endswith("Z")


def test_log_event_rejects_unknown_level():
    with pytest.raises(ValidationError):
        LogEvent(level="TRACE", message="x")


def test_start_command_replaces_existing_by_default():
    command = StartCommand(url="https://app.com", filter="button,.primary")
    assert command.replace_existing is True
    assert command.filter == "button,.primary"
