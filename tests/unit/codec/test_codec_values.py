from __future__ import annotations

import json

import pytest

from kce.core.codec.values import (
    any_to_string,
    coerce_to_bool,
    normalize_kube_value_types,
    string_to_any,
)


@pytest.mark.parametrize(
    "value, expected",
    [
        (None, ""),
        ("plain", "plain"),
        (True, "true"),
        (False, "false"),
        (6443, "6443"),
        (1.5, "1.5"),
    ],
)
def test_any_to_string_scalars(value, expected):
    assert any_to_string(value) == expected


def test_any_to_string_nested_is_indented_json():
    text = any_to_string({"b": [1, 2], "a": "x"})
    assert json.loads(text) == {"a": "x", "b": [1, 2]}
    assert text.startswith("{\n  \"a\"")


def test_string_to_any_booleans_for_any_key():
    assert string_to_any(" TRUE ", "whatever") is True
    assert string_to_any("false", "whatever") is False


def test_string_to_any_boolean_words_only_for_boolean_keys():
    assert string_to_any("yes", "insecure-skip-tls-verify") is True
    assert string_to_any("0", "provideClusterInfo") is False
    assert string_to_any("yes", "namespace") == "yes"
    assert string_to_any("0", "namespace") == "0"


def test_string_to_any_blank_is_empty_string():
    assert string_to_any("   ", "token") == ""


def test_string_to_any_parses_json_and_normalizes_nested_booleans():
    text = json.dumps({"command": "aws", "provideClusterInfo": 0, "args": ["a"]})
    value = string_to_any(text, "exec")
    assert value == {"command": "aws", "provideClusterInfo": False, "args": ["a"]}


def test_string_to_any_keeps_broken_json_as_text():
    assert string_to_any("{not json", "exec") == "{not json"


def test_string_to_any_keeps_original_spacing_of_plain_text():
    assert string_to_any(" https://x ", "server") == " https://x "


@pytest.mark.parametrize(
    "value, expected",
    [
        (True, True),
        (1, True),
        (0, False),
        (2, None),
        ("On", True),
        ("off", False),
        ("maybe", None),
        (None, None),
    ],
)
def test_coerce_to_bool(value, expected):
    assert coerce_to_bool(value) is expected


def test_normalize_only_touches_boolean_keys():
    data = {
        "exec": {"provideClusterInfo": "true", "env": [{"name": "X", "value": "1"}]},
        "disable-compression": 1,
        "port": 1,
    }
    out = normalize_kube_value_types(data)
    assert out["exec"]["provideClusterInfo"] is True
    assert out["disable-compression"] is True
    assert out["port"] == 1
    assert out["exec"]["env"][0]["value"] == "1"
