from __future__ import annotations

import yaml

from helpers.kubeconfigs import FIXTURE_YAML
from kce.core.codec.document import parse_document
from kce.core.codec.workspace import (
    ANNOTATION_PREFIX,
    build_workspace_yaml,
    has_annotations,
    parse_export_flags,
    parse_workspace,
)
from kce.core.entity import EntityKind


def _hidden_doc():
    doc = parse_document(FIXTURE_YAML)
    doc.contexts[1].include_in_export = False
    doc.users[0].include_in_export = False
    return doc


def test_every_item_gets_an_annotation():
    text = build_workspace_yaml(_hidden_doc())
    assert text.count(ANNOTATION_PREFIX) == 6
    assert has_annotations(text)


def test_annotations_are_yaml_comments():
    text = build_workspace_yaml(_hidden_doc())
    assert yaml.safe_load(text) == yaml.safe_load(text.replace(f"{ANNOTATION_PREFIX}false", ""))


def test_flags_round_trip_by_position():
    text = build_workspace_yaml(_hidden_doc())
    flags = parse_export_flags(text)

    assert flags[EntityKind.CONTEXT] == [True, False]
    assert flags[EntityKind.CLUSTER] == [True, True]
    assert flags[EntityKind.USER] == [False, True]


def test_parse_workspace_restores_visibility():
    doc = parse_workspace(build_workspace_yaml(_hidden_doc()))
    assert [c.include_in_export for c in doc.contexts] == [True, False]
    assert [u.include_in_export for u in doc.users] == [False, True]


def test_plain_kubeconfig_parses_all_visible():
    doc = parse_workspace(FIXTURE_YAML)
    assert not has_annotations(FIXTURE_YAML)
    assert all(c.include_in_export for c in doc.contexts)


def test_unannotated_items_default_to_visible():
    text = (
        "contexts:\n"
        f"{ANNOTATION_PREFIX}false\n"
        "- name: a\n"
        "  context: {}\n"
        "- name: b\n"
        "  context: {}\n"
    )
    assert parse_export_flags(text)[EntityKind.CONTEXT] == [False, True]


def test_annotation_values_accept_truthy_words():
    text = f"users:\n{ANNOTATION_PREFIX}Yes\n- name: a\n{ANNOTATION_PREFIX}no\n- name: b\n"
    assert parse_export_flags(text)[EntityKind.USER] == [True, False]


def test_sequence_items_outside_sections_are_ignored():
    text = "extensions:\n- name: e\ncontexts:\n- name: a\n"
    flags = parse_export_flags(text)
    assert flags[EntityKind.CONTEXT] == [True]
    assert flags[EntityKind.CLUSTER] == []
