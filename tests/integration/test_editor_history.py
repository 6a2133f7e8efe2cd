from __future__ import annotations

import asyncio

import pytest

from helpers.io_utils import load_yaml, names, write_kubeconfig
from helpers.kubeconfigs import CASCADE_YAML, FIXTURE_YAML
from kce.core.codec.workspace import build_workspace_yaml
from kce.core.editor import KubeconfigEditor
from kce.core.entity import EntityKind
from kce.core.exceptions import VersionNotFoundError
from kce.core.history.lineage import sibling_history_dir
from kce.core.history.store import VersionStore


def _id(editor: KubeconfigEditor, kind: EntityKind, name: str) -> str:
    return editor.document.find(kind, name).id


def test_undo_redo_restore_exact_states(loaded):
    before = build_workspace_yaml(loaded.document)
    loaded.delete_entity(EntityKind.CONTEXT, _id(loaded, EntityKind.CONTEXT, "ctx-2"), cascade=True)
    after = build_workspace_yaml(loaded.document)
    assert loaded.can_undo and loaded.has_unsaved_changes

    assert loaded.undo() is True
    assert build_workspace_yaml(loaded.document) == before
    assert loaded.can_redo

    assert loaded.redo() is True
    assert build_workspace_yaml(loaded.document) == after
    assert not loaded.can_redo


def test_undo_at_baseline_is_a_no_op(loaded):
    assert loaded.undo() is False
    assert loaded.redo() is False
    assert not loaded.has_unsaved_changes


def test_undo_preserves_visibility_flags(loaded):
    loaded.toggle_export(EntityKind.USER, _id(loaded, EntityKind.USER, "user-b"))
    loaded.add_context()
    loaded.undo()
    assert loaded.document.find(EntityKind.USER, "user-b").include_in_export is False
    assert loaded.document.find(EntityKind.CONTEXT, "context-1") is None


def test_unchanged_register_edit_is_ignored(loaded):
    assert loaded.register_edit("noop") is False
    assert not loaded.can_undo


def test_edits_refresh_draft_and_changelog(loaded):
    loaded.set_field(EntityKind.CLUSTER, _id(loaded, EntityKind.CLUSTER, "cluster-a"), "server", "https://new:6443")

    draft = loaded.layout.draft_path.read_text(encoding="utf-8")
    assert "https://new:6443" in draft
    log = loaded.layout.changelog_path.read_text(encoding="utf-8")
    assert "reason=load" in log
    assert "reason=set-field" in log
    assert "+     server: https://new:6443" in log


def test_rollback_to_previous_saved_version(loaded, fixture_path):
    original = build_workspace_yaml(loaded.document)
    loaded.delete_entity(EntityKind.CONTEXT, _id(loaded, EntityKind.CONTEXT, "ctx-2"))
    loaded.save()

    versions = loaded.list_saved_versions()
    assert [v.reason for v in versions] == ["save", "initial-load"]

    target = loaded.rollback_to_previous_saved_version()
    assert target.reason == "initial-load"
    assert build_workspace_yaml(loaded.document) == original
    assert loaded.has_unsaved_changes
    assert not loaded.can_undo
    assert "Rolled back to version" in loaded.status_message
    assert [c["name"] for c in load_yaml(fixture_path)["contexts"]] == ["ctx-1"]


def test_rollback_with_single_version_uses_it(loaded):
    loaded.add_user()
    only = loaded.rollback_to_previous_saved_version()
    assert only.reason == "initial-load"
    assert loaded.document.find(EntityKind.USER, "user-1") is None


def test_rollback_by_id_and_unknown_id(loaded):
    version = loaded.list_saved_versions()[0]
    loaded.add_cluster()
    loaded.rollback_to_version(version.id)
    assert loaded.document.find(EntityKind.CLUSTER, "cluster-1") is None

    with pytest.raises(VersionNotFoundError):
        loaded.rollback_to_version("0" * 64)


def test_rollback_without_versions(editor):
    with pytest.raises(VersionNotFoundError):
        editor.rollback_to_previous_saved_version()


def test_histories_of_different_files_stay_apart(work_dir):
    path_a = write_kubeconfig(work_dir / "a", "config", FIXTURE_YAML)
    path_b = write_kubeconfig(work_dir / "b", "config", CASCADE_YAML)

    editor_a = KubeconfigEditor()
    editor_a.load(path_a)
    editor_a.add_cluster()
    editor_a.save()

    editor_b = KubeconfigEditor()
    editor_b.load(path_b)

    ids_a = {v.id for v in editor_a.list_saved_versions()}
    ids_b = {v.id for v in editor_b.list_saved_versions()}
    assert len(ids_a) == 2
    assert len(ids_b) == 1
    assert not ids_a & ids_b

    with pytest.raises(VersionNotFoundError):
        editor_b.rollback_to_version(next(iter(ids_a)))


def test_sibling_lineage_is_migrated_on_load(editor, fixture_path):
    legacy = VersionStore(sibling_history_dir(fixture_path))
    old = legacy.put_version(FIXTURE_YAML.replace("ctx-2", "ctx-old"), "save")

    editor.load(fixture_path)

    versions = editor.list_saved_versions()
    assert old.id in {v.id for v in versions}
    editor.rollback_to_version(old.id)
    assert names(editor.document.contexts) == ["ctx-1", "ctx-old"]


def test_async_listing_matches_sync_listing(loaded):
    loaded.save()
    listed = asyncio.run(loaded.list_saved_versions_async())
    assert [v.id for v in listed] == [v.id for v in loaded.list_saved_versions()]
    assert len(listed) == 2
