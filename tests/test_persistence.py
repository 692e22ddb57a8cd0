"""Tests for deduplication and atomic output writing."""

import asyncio
import json
import re
from datetime import datetime, timezone
from unittest.mock import patch

import pytest

from locator_extractor.exceptions import PersistenceError
from locator_extractor.models.element import ElementRecord
from locator_extractor.persistence import (
    PROMPT_SEPARATOR,
    ResultWriter,
    atomic_write,
    dedup_key,
    deduplicate,
    get_timestamp,
    sanitize_token,
)


def make_record(**fields):
    data = {"tag": "button", "id": "go", "css": "#go", "xpath": "/html[1]/body[1]/button[1]"}
    data.update(fields)
    record = ElementRecord.from_page(data)
    record.stamp("https://app.com/")
    return record


def test_dedup_keeps_first_of_records_differing_only_by_timestamp():
    first = make_record()
    second = make_record()
    second.timestamp = "2030-01-01T00:00:00Z"

    unique = deduplicate([first, second])

    assert unique == [first]
    assert unique[0].timestamp == first.timestamp


def test_dedup_key_is_case_insensitive_and_handles_missing_parts():
    record = ElementRecord.from_page({"tag": "DIV", "css": "DIV.Card"})
    assert dedup_key(record) == "|div|||div.card|"


def test_dedup_preserves_first_seen_order():
    a = make_record(id="a", css="#a")
    b = make_record(id="b", css="#b")
    assert deduplicate([b, a, b, a]) == [b, a]


def test_timestamp_format():
    ts = get_timestamp(datetime(2025, 10, 21, 8, 42, 31, tzinfo=timezone.utc))
    assert ts == "2025-10-21_08-42-31"
    assert re.fullmatch(r"\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}", get_timestamp())


def test_sanitize_token():
    assert sanitize_token("../play wright!") == "playwright"
    assert sanitize_token("robot_fw-2") == "robot_fw-2"
    assert sanitize_token("///") == "playwright"


@pytest.mark.asyncio
async def test_atomic_write_replaces_destination(tmp_path):
    target = tmp_path / "out.json"
    target.write_text("old")

    await atomic_write(target, "new")

    assert target.read_text() == "new"
    assert list(tmp_path.glob("*.tmp")) == []


@pytest.mark.asyncio
async def test_interrupted_write_keeps_previous_version(tmp_path):
    """A failure before the rename leaves the old file intact and no temp file."""
    target = tmp_path / "out.json"
    target.write_text("previous complete version")

    with patch("aiofiles.os.replace", side_effect=OSError("disk full")):
        with pytest.raises(PersistenceError) as exc_info:
            await atomic_write(target, "partial")

    assert target.read_text() == "previous complete version"
    assert list(tmp_path.glob("*.tmp")) == []
    assert exc_info.value.code == "write_failed"
    assert "disk full" in exc_info.value.detail


@pytest.mark.asyncio
async def test_interrupted_first_write_leaves_destination_absent(tmp_path):
    target = tmp_path / "fresh.json"

    with patch("aiofiles.os.replace", side_effect=OSError("boom")):
        with pytest.raises(PersistenceError):
            await atomic_write(target, "data")

    assert not target.exists()
    assert list(tmp_path.iterdir()) == []


@pytest.mark.asyncio
async def test_result_writer_writes_json_and_prompts(tmp_path):
    out_dir = tmp_path / "nested" / "output"
    visible = make_record()
    hidden = make_record(id=None, css="[data-test=\"panel\"]", tag="div", hidden=True)

    writer = ResultWriter(out_dir)
    result = await writer.write([visible, hidden], ["prompt one", "prompt two"], "cypress")

    assert (result.total, result.visible, result.hidden) == (2, 1, 1)
    json_path = out_dir / result.json_path.split("/")[-1]
    assert re.fullmatch(r"locators_\d{4}-\d{2}-\d{2}_\d{2}-\d{2}-\d{2}\.json", json_path.name)

    data = json.loads(json_path.read_text())
    assert [item["tag"] for item in data] == ["button", "div"]
    assert data[1]["hidden"] is True

    prompt_file = out_dir / result.prompt_path.split("/")[-1]
    assert prompt_file.name.startswith("copilot_prompts_cypress_")
    assert prompt_file.read_text() == "prompt one" + PROMPT_SEPARATOR + "prompt two"


@pytest.mark.asyncio
async def test_result_writer_skips_prompt_file_without_prompts(tmp_path):
    result = await ResultWriter(tmp_path, json_prefix="inv").write([make_record()])
    assert result.prompt_path is None
    assert [p.name.startswith("inv_") for p in tmp_path.iterdir()] == [True]


@pytest.mark.asyncio
async def test_concurrent_writes_to_one_path_all_succeed(tmp_path):
    target = tmp_path / "locators.json"
    payloads = [json.dumps({"writer": i, "pad": "x" * 50000}) for i in range(8)]

    await asyncio.gather(*(atomic_write(target, p) for p in payloads))

    assert target.read_text() in payloads
    assert list(tmp_path.glob("*.tmp")) == []


@pytest.mark.asyncio
async def test_same_second_saves_get_distinct_files(tmp_path):
    writer = ResultWriter(tmp_path)
    fixed = "2025-10-21_08-42-31"

    with patch("locator_extractor.persistence.get_timestamp", return_value=fixed):
        first = await writer.write([make_record()], ["p1"], "playwright")
        second = await writer.write([make_record(id="other")], ["p2"], "playwright")

    assert first.json_path != second.json_path
    assert second.json_path.endswith(f"locators_{fixed}_2.json")
    assert second.prompt_path.endswith(f"copilot_prompts_playwright_{fixed}_2.txt")
    assert json.loads(open(first.json_path).read())[0]["id"] == "go"
    assert json.loads(open(second.json_path).read())[0]["id"] == "other"
