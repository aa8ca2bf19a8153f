"""Tests for the terminal formatter."""

from concurrent.futures import ThreadPoolExecutor

import pytest
from colorama import Fore, Style

from happylog import (
    ComplexKeyError,
    ConsoleHandlerConfig,
    HappyDevFormatter,
    ReservedKeyError,
)
from happylog.log_levels import LEVEL_DEBUG, LEVEL_ERROR, LEVEL_INFO, LEVEL_WARN

TIMESTAMP_WIDTH = len("2026-01-01 00:00:00")


def _without_timestamp(rendered: str) -> str:
    return rendered[TIMESTAMP_WIDTH:]


def test_fields_render_inline_in_call_order(formatter):
    out = formatter.format(LEVEL_DEBUG, "ok", ["a", "apple", "o", "orange"])

    assert out.count("\n") == 1
    assert _without_timestamp(out) == " DBG app ok a: apple o: orange\n"


def test_keys_and_values_use_theme_colors():
    config = ConsoleHandlerConfig(theme="key=red,value=green,DBG=blue,misc=yellow", max_col=200)
    out = HappyDevFormatter("app", config).format(LEVEL_DEBUG, "ok", ["a", "apple", "o", "orange"])

    reset = Style.RESET_ALL
    assert out.startswith(Fore.YELLOW)
    assert f" {Fore.BLUE}DBG{reset}" in out
    assert f" {Fore.YELLOW}app{reset}" in out
    assert f" {Fore.BLUE}ok{reset}" in out
    assert f" {Fore.RED}a: {reset}{Fore.GREEN}apple{reset}" in out
    assert f" {Fore.RED}o: {reset}{Fore.GREEN}orange{reset}" in out
    assert out.endswith("\n")


def test_fields_wrap_at_max_column():
    config = ConsoleHandlerConfig(colors=False, max_col=40)
    args = [item for n in range(8) for item in (f"key{n}", f"value{n}")]

    lines = HappyDevFormatter("app", config).format(LEVEL_INFO, "msg", args).splitlines()

    assert len(lines) > 1
    assert all(len(line) <= 40 for line in lines)
    assert all(line.startswith("  key") for line in lines[1:])
    assert " ".join(line.strip() for line in lines).endswith("key7: value7")


@pytest.mark.parametrize(("extra_room", "expected"), [
    (0, " INF app m k: v\n"),
    (-1, " INF app m\n  k: v\n"),
])
def test_field_ending_exactly_at_max_column_stays_inline(extra_room, expected):
    header = TIMESTAMP_WIDTH + len(" INF app m")
    config = ConsoleHandlerConfig(colors=False, max_col=header + len(" k: v") + extra_room)

    out = HappyDevFormatter("app", config).format(LEVEL_INFO, "m", ["k", "v"])

    assert _without_timestamp(out) == expected


def test_values_json_cannot_encode_render_as_repr(formatter):
    loop = []
    loop.append(loop)

    out = formatter.format(LEVEL_INFO, "m", ["d", {(1, 2): 3}, "loop", loop, "n", 1])

    assert _without_timestamp(out) == " INF app m d: {(1, 2): 3} loop: [[...]] n: 1\n"


def test_pretty_mode_puts_every_keyed_field_on_its_own_line():
    config = ConsoleHandlerConfig(colors=False, pretty=True, max_col=200)

    out = HappyDevFormatter("app", config).format(LEVEL_INFO, "ok", ["a", "apple", "o", "orange"])

    lines = out.splitlines()
    assert _without_timestamp(lines[0]) == " INF app ok"
    assert lines[1:] == ["  a: apple", "  o: orange"]


def test_value_whitespace_is_trimmed(formatter):
    out = formatter.format(LEVEL_INFO, "ok", ["a", "\n  padded  \n"])
    assert out.endswith(" a: padded\n")


def test_non_string_values_render_as_json(formatter):
    out = formatter.format(LEVEL_INFO, "ok", ["flag", True, "items", [1, 2], "none", None])
    assert out.endswith(" flag: true items: [1, 2] none: null\n")


def test_rendering_is_deterministic_apart_from_timestamp(formatter):
    args = ["a", 1, "b", {"nested": "value"}, "c", "text"]

    first = formatter.format(LEVEL_INFO, "same", args)
    second = formatter.format(LEVEL_INFO, "same", args)

    assert _without_timestamp(first) == _without_timestamp(second)


def test_imbalanced_arguments_render_sentinel_once(formatter):
    out = formatter.format(LEVEL_INFO, "odd", ["a", 1, "dangling"])

    assert out.count("_IMBALANCE_AT_INDEX_2: dangling") == 1
    assert out.endswith("\n")


def test_non_string_key_is_skipped(formatter):
    out = formatter.format(LEVEL_INFO, "m", ["a", 1, 5, "skipped-value"])

    assert " a: 1" in out
    assert "skipped-value" not in out


def test_reserved_key_is_fatal_and_renders_nothing(formatter):
    with pytest.raises(ReservedKeyError):
        formatter.format(LEVEL_INFO, "m", ["a", 1, "_t", "clash"])


def test_complex_key_aborts_the_record(formatter):
    with pytest.raises(ComplexKeyError):
        formatter.format(LEVEL_INFO, "m", ['quoted "key"', 1])


def test_logger_name_can_be_overridden(formatter):
    out = formatter.format(LEVEL_INFO, "m", [], name="worker")
    assert _without_timestamp(out) == " INF worker m\n"


def test_render_returns_bytes(formatter):
    out = formatter.render(LEVEL_INFO, "héllo", ["k", "v"])

    assert isinstance(out, bytes)
    assert out.decode("utf-8").endswith(" INF app héllo k: v\n")


def test_warning_appends_call_site_on_its_own_line(formatter):
    out = formatter.format(LEVEL_WARN, "careful", ["a", 1])

    lines = out.splitlines()
    assert len(lines) == 2
    assert _without_timestamp(lines[0]) == " WRN app careful a: 1"
    assert "test_happy_formatter.py:" in lines[1]
    assert lines[1].endswith('out = formatter.format(LEVEL_WARN, "careful", ["a", 1])')
    assert out.endswith("\n") and not out.endswith("\n\n")


def test_error_renders_error_field_and_call_chain(formatter):
    try:
        raise ConnectionRefusedError("conn refused")
    except ConnectionRefusedError as e:
        error = e

    out = formatter.format(LEVEL_ERROR, "db failed", ["err", error])

    positions = [
        out.index(" ERR "),
        out.index(" app "),
        out.index(" db failed"),
        out.index("err: conn refused\n"),
        out.index('raise ConnectionRefusedError("conn refused")'),
        out.index('out = formatter.format(LEVEL_ERROR, "db failed", ["err", error])'),
    ]
    assert positions == sorted(positions)
    assert out.endswith("\n") and not out.endswith("\n\n")


def test_error_context_uses_error_color():
    config = ConsoleHandlerConfig(theme="ERR=red,source=yellow", max_col=200)

    out = HappyDevFormatter("app", config).format(LEVEL_ERROR, "boom")

    first_line, context = out.split("\n", 1)
    assert f" {Fore.RED}ERR{Style.RESET_ALL}" in first_line
    assert context.startswith(Fore.RED)
    assert Fore.YELLOW in context
    assert out.endswith(f"{Style.RESET_ALL}\n")


def test_concurrent_renders_do_not_interfere(formatter):
    def render(n):
        return formatter.format(LEVEL_INFO, f"msg{n}", ["n", n, "pad", "x" * (n % 7)])

    with ThreadPoolExecutor(max_workers=8) as pool:
        outputs = list(pool.map(render, range(200)))

    for n, out in enumerate(outputs):
        assert _without_timestamp(out) == f" INF app msg{n} n: {n} pad: {'x' * (n % 7)}\n"
