"""Tests for key validation and key ordering."""

import pytest
from structlog.testing import capture_logs

from happylog.errors import ComplexKeyError, ReservedKeyError
from happylog.keys import RESERVED_KEYS, is_reserved_key
from happylog.validation import ordered_keys, validate_keys


def test_valid_keys_pass():
    with capture_logs() as logs:
        assert validate_keys(["a", 1, "user_id", 2, "naïve", 3]) == []
    assert logs == []


def test_non_string_key_is_reported_and_skipped():
    with capture_logs() as logs:
        skipped = validate_keys(["a", 1, 42, "x"])

    assert skipped == [2]
    assert len(logs) == 1
    assert logs[0]["log_level"] == "error"
    assert logs[0]["event"] == "Key is not a string."
    assert logs[0]["index"] == "args[2]"


@pytest.mark.parametrize("key", sorted(RESERVED_KEYS))
def test_reserved_key_is_fatal(key):
    with capture_logs() as logs, pytest.raises(ReservedKeyError) as exc_info:
        validate_keys(["a", 1, key, 2])

    assert exc_info.value.key == key
    assert logs[0]["log_level"] == "critical"


def test_trailing_unmatched_key_is_validated():
    with pytest.raises(ReservedKeyError):
        validate_keys(["a", 1, "_m"])


@pytest.mark.parametrize("key", ['say "hi"', "tab\there", "back\\slash", "new\nline"])
def test_key_needing_escapes_is_rejected(key):
    with pytest.raises(ComplexKeyError) as exc_info:
        validate_keys([key, 1])
    assert exc_info.value.key == key


def test_is_reserved_key_rejects_non_strings():
    with pytest.raises(TypeError):
        is_reserved_key(3)


def test_ordered_keys_keep_call_order():
    assert ordered_keys(["zeta", 1, "alpha", 2, "mid", 3]) == ["zeta", "alpha", "mid"]


def test_ordered_keys_skip_non_string_empty_and_repeated_keys():
    assert ordered_keys(["a", 1, 7, 2, "", 3, "a", 4, "b", 5]) == ["a", "b"]


def test_ordered_keys_end_with_imbalance_sentinel():
    assert ordered_keys(["a", 1, "b", 2, "dangling"]) == ["a", "b", "_IMBALANCE_AT_INDEX_4"]
