"""Tests for :mod:`fpath.value`."""
from __future__ import annotations

import io
import os

import pytest

from fpath.path import Path
from fpath.value import Value, ValueMap, load_value_map


def load(text: str, sep: str = "=", **kwargs: object) -> ValueMap:
    kwargs.setdefault("env", {})
    return load_value_map(io.StringIO(text), sep, **kwargs)  # type: ignore[arg-type]


def test_value_decoders_fall_back_to_zero() -> None:
    assert Value("42").int() == 42
    assert Value("-7").int() == -7
    assert Value("4.2").int() == 0
    assert Value(" 42").int() == 0
    assert Value("1.5").float() == 1.5
    assert Value("abc").float() == 0.0
    assert Value("true").bool() is True
    assert Value("T").bool() is True
    assert Value("0").bool() is False
    assert Value("yes").bool() is False


def test_value_float_rejects_loose_spellings() -> None:
    assert Value("1e3").float() == 1000.0
    assert Value("-.5").float() == -0.5
    assert Value("Inf").float() == float("inf")
    assert Value(" 1.5").float() == 0.0
    assert Value("1_0").float() == 0.0
    assert Value("1.5\n").float() == 0.0
    with pytest.raises(ValueError):
        Value("1_000.0").float(strict=True)


def test_value_strict_decoders_raise() -> None:
    with pytest.raises(ValueError):
        Value("x").int(strict=True)
    with pytest.raises(ValueError):
        Value("x").float(strict=True)
    with pytest.raises(ValueError):
        Value("yes").bool(strict=True)
    assert Value("0").int(strict=True) == 0
    assert Value("False").bool(strict=True) is False


def test_value_path_rewraps_text() -> None:
    assert Value("/srv/data").path() == Path("/srv/data")
    assert Value("").path() == Path("")


@pytest.mark.parametrize(
    ("text", "sep", "expected"),
    [
        ("1", " ", ["1"]),
        ("1 2", " ", ["1", "2"]),
        ("", " ", []),
        ("a,,b", ",", ["a", "", "b"]),
        ("a,b,", ",", ["a", "b"]),
        ("a::b::c", "::", ["a", "b", "c"]),
        ("a.b", ".", ["a", "b"]),
        ("abc", "", ["abc"]),
    ],
)
def test_value_array(text: str, sep: str, expected: list[str]) -> None:
    assert Value(text).array(sep) == [Value(item) for item in expected]


def test_loader_parses_pairs_with_separator() -> None:
    values = load("User:alice\n", ":")
    assert values == {"User": Value("alice")}


def test_loader_skips_comments_short_and_invalid_lines() -> None:
    text = "\n".join(
        [
            "",
            "a:",
            "# Key: hidden",
            "// Other: hidden",
            "no separator here",
            "a:b",
            "  Name :  padded value  ",
        ]
    )
    values = load(text, ":")
    assert values.strings() == {"a": "b", "Name": "padded value"}


def test_loader_keeps_last_duplicate_and_splits_on_first_separator() -> None:
    values = load("key=one\nkey=two\nurl=http://host/?q=1\n")
    assert values["key"] == Value("two")
    assert values["url"] == Value("http://host/?q=1")


def test_loader_accepts_bytes_and_crlf() -> None:
    values = load_value_map(io.BytesIO(b"Name=caf\xc3\xa9\r\nEmpty=  \r\n"), "=", env={})
    assert values["Name"] == Value("café")
    assert values.get("Empty") == Value("")
    assert values.get("Missing") is None


def test_loader_expands_from_previous_keys_then_env() -> None:
    env = {"SHELL_DIR": "/usr/bin", "Home": "/ignored"}
    text = "Home=/root\nPath=${Home}/bin\nTools=$SHELL_DIR:${Unknown}x\n"
    values = load(text, expand_vars=True, env=env)
    assert values["Path"] == Value("/root/bin")
    assert values["Tools"] == Value("/usr/bin:x")


def test_loader_forward_references_are_unresolved() -> None:
    values = load("First=${Second}!\nSecond=value\n", expand_vars=True)
    assert values["First"] == Value("!")


def test_loader_without_expansion_keeps_tokens() -> None:
    values = load("Home=/root\nPath=${Home}/bin\n")
    assert values["Path"] == Value("${Home}/bin")


def test_loader_unquote() -> None:
    text = "\n".join(
        [
            'Greeting="hello\\tworld"',
            "Raw=`C:\\temp`",
            'Broken="unterminated',
            'Joined="a" "b"',
            "Doubled='it''s'",
            'Triple="""x"""',
            "Plain=bare words",
        ]
    )
    values = load(text, unquote=True)
    assert values["Greeting"] == Value("hello\tworld")
    assert values["Raw"] == Value("C:\\temp")
    assert values["Broken"] == Value('"unterminated')
    assert values["Joined"] == Value('"a" "b"')
    assert values["Doubled"] == Value("'it''s'")
    assert values["Triple"] == Value('"""x"""')
    assert values["Plain"] == Value("bare words")


def test_loader_exports_into_injected_environment() -> None:
    env: dict[str, str] = {"BASE": "/opt"}
    values = load("APP_HOME=$BASE/app\nAPP_BIN=${APP_HOME}/bin\n", expand_vars=True, set_env=True, env=env)
    assert env["APP_HOME"] == "/opt/app"
    assert env["APP_BIN"] == "/opt/app/bin"
    assert values.strings() == {"APP_HOME": "/opt/app", "APP_BIN": "/opt/app/bin"}


def test_loader_defaults_to_process_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("FPATH_TEST_EXPORT", "placeholder")
    monkeypatch.setenv("FPATH_TEST_BASE", "/data")

    load_value_map(
        io.StringIO("FPATH_TEST_EXPORT=${FPATH_TEST_BASE}/cache\n"),
        expand_vars=True,
        set_env=True,
    )
    assert os.environ["FPATH_TEST_EXPORT"] == "/data/cache"


def test_loader_keeps_pairs_the_environment_rejects(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("FPATH_TEST_AFTER", raising=False)
    monkeypatch.delenv("FPATH_TEST_NUL", raising=False)

    values = load_value_map(
        io.StringIO('A=B:1\nFPATH_TEST_NUL:"a\\x00b"\nFPATH_TEST_AFTER:2\n'),
        ":",
        unquote=True,
        set_env=True,
    )

    assert values.strings() == {"A=B": "1", "FPATH_TEST_NUL": "a\x00b", "FPATH_TEST_AFTER": "2"}
    assert os.environ["FPATH_TEST_AFTER"] == "2"
    assert "FPATH_TEST_NUL" not in os.environ
