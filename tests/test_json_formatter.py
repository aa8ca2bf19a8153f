"""Tests for the canonical JSON encoding."""

import json
import os
from pathlib import Path

from happylog.json_formatter import ErrorLike, JSONFormatter, Ordinary
from happylog.log_levels import LEVEL_ERROR, LEVEL_INFO, LEVEL_WARN


def _fail():
    raise ConnectionRefusedError("conn refused")


def test_format_writes_one_json_object_with_bookkeeping_fields_first():
    line = JSONFormatter("svc").format(LEVEL_WARN, "careful", ["b", 2, "a", "x"])

    assert "\n" not in line
    data = json.loads(line)
    assert list(data) == ["_t", "_p", "_n", "_l", "_m", "b", "a"]
    assert data["_p"] == os.getpid()
    assert data["_n"] == "svc"
    assert data["_l"] == "WRN"
    assert data["_m"] == "careful"
    assert data["b"] == 2


def test_name_can_be_overridden_per_call():
    data = json.loads(JSONFormatter("svc").format(LEVEL_INFO, "m", [], name="other"))
    assert data["_n"] == "other"


def test_non_string_key_is_stored_under_bad_key():
    data = json.loads(JSONFormatter("svc").format(LEVEL_INFO, "m", ["a", 1, 3.5, "v"]))
    assert data["BADKEY_AT_INDEX_2"] == "v"


def test_odd_arguments_store_imbalance_sentinel_once():
    line = JSONFormatter("svc").format(LEVEL_INFO, "m", ["a", 1, "dangling"])

    data = json.loads(line)
    assert data["_IMBALANCE_AT_INDEX_2"] == "dangling"
    assert line.count("_IMBALANCE") == 1


def test_values_that_are_not_json_are_written_as_text():
    data = json.loads(JSONFormatter("svc").format(LEVEL_INFO, "m", ["path", Path("/tmp/x")]))
    assert data["path"] == "/tmp/x"


def test_values_json_cannot_encode_are_written_as_repr():
    loop = []
    loop.append(loop)
    formatter = JSONFormatter("svc")

    data = json.loads(formatter.format(LEVEL_INFO, "m", ["d", {(1, 2): 3}, "loop", loop, "ok", [1]]))
    entry = formatter.log_entry(LEVEL_INFO, "m", ["loop", loop])

    assert data["d"] == "{(1, 2): 3}"
    assert data["loop"] == "[[...]]"
    assert data["ok"] == [1]
    assert entry["loop"] == Ordinary("[[...]]")


def test_log_entry_tags_plain_values():
    entry = JSONFormatter("svc").log_entry(LEVEL_INFO, "m", ["n", 3, "tags", ["a", "b"]])

    assert entry["n"] == Ordinary(3)
    assert entry["tags"] == Ordinary(["a", "b"])
    assert entry["_m"] == Ordinary("m")
    assert entry["tags"].text() == '["a", "b"]'


def test_log_entry_tags_raised_exceptions_with_their_traceback():
    try:
        _fail()
    except ConnectionRefusedError as e:
        error = e

    entry = JSONFormatter("svc").log_entry(LEVEL_ERROR, "db failed", ["err", error])
    value = entry["err"]

    assert isinstance(value, ErrorLike)
    assert value.message == "conn refused"
    assert "in _fail" in value.stack
    assert 'raise ConnectionRefusedError("conn refused")' in value.stack
    assert value.text().startswith("conn refused\n")


def test_log_entry_uses_current_stack_for_exceptions_never_raised():
    entry = JSONFormatter("svc").log_entry(LEVEL_ERROR, "m", ["err", ValueError("bad")])
    value = entry["err"]

    assert value.message == "bad"
    assert "test_json_formatter.py" in value.stack
    assert os.path.join("happylog", "json_formatter.py") not in value.stack
