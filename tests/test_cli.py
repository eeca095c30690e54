import re

import pytest

from statusbar.cli import ARGS, MAXLEN, UNKNOWN_STR, VERSION, Arg, main, parse_args, render_status


def _const(value):
    return lambda _argument: value


def test_render_joins_components_in_order():
    args = [Arg(_const("a"), "[%s]"), Arg(_const("b"), "<%s>")]
    assert render_status(args, "n/a", 100) == "[a]<b>"


def test_render_uses_unknown_for_missing_value():
    args = [Arg(_const(None), "x=%s;")]
    assert render_status(args, "n/a", 100) == "x=n/a;"


def test_render_passes_argument_to_function():
    args = [Arg(lambda argument: argument.upper(), "%s", "eth0")]
    assert render_status(args, "?", 100) == "ETH0"


def test_render_handles_percent_escape():
    args = [Arg(_const("42"), "Bat: %s%%")]
    assert render_status(args, UNKNOWN_STR, MAXLEN) == "Bat: 42%"


def test_render_truncates_and_stops(capsys):
    args = [Arg(_const("abcdef"), "%s"), Arg(_const("zzz"), "%s")]
    result = render_status(args, "?", 5)
    assert result == "abcd"
    assert len(result) == 5 - 1
    assert "Output truncated" in capsys.readouterr().err


def test_render_fits_exactly_below_limit():
    args = [Arg(_const("abcd"), "%s"), Arg(_const("e"), "%s")]
    result = render_status(args, "?", 6)
    assert result == "abcde"


def test_render_empty_args():
    assert render_status([], "?", 10) == ""


def test_default_config_datetime_renders_time():
    assert ARGS[0].argument == "BAT0"
    last = ARGS[-1]
    assert last.argument == "%l:%M %p"
    result = render_status([last], UNKNOWN_STR, MAXLEN)
    prefix, suffix = last.fmt.split("%s")
    assert result.startswith(prefix)
    assert result.endswith(suffix)
    middle = result[len(prefix):len(result) - len(suffix)]
    assert re.fullmatch(r"[ \d]\d:\d\d .*", middle)


@pytest.mark.parametrize(
    "argv, expected",
    [
        ([], (False, False)),
        (["-s"], (True, False)),
        (["-1"], (True, True)),
        (["-s1"], (True, True)),
        (["--"], (False, False)),
        (["-s", "--"], (True, False)),
    ],
)
def test_parse_args_flags(argv, expected):
    assert parse_args(argv) == expected


@pytest.mark.parametrize("argv", [["-x"], ["foo"], ["-"], ["--", "x"], ["-s", "extra"]])
def test_parse_args_usage(argv, capsys):
    with pytest.raises(SystemExit) as info:
        parse_args(argv)
    assert info.value.code == 1
    assert "usage:" in capsys.readouterr().err


def test_parse_args_version(capsys):
    with pytest.raises(SystemExit) as info:
        parse_args(["-v"])
    assert info.value.code == 1
    assert VERSION in capsys.readouterr().err


def test_main_once_prints_single_line(capsys):
    assert main(["-1"]) == 0
    out = capsys.readouterr().out
    assert out.count("\n") == 1
    assert "Bat: " in out
    assert "CPU: " in out


def test_main_rejects_operand():
    with pytest.raises(SystemExit) as info:
        main(["operand"])
    assert info.value.code == 1