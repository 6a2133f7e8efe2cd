from __future__ import annotations

import pytest
import yaml

from helpers.io_utils import load_yaml, names, write_kubeconfig
from helpers.kubeconfigs import FIXTURE_YAML
from kce.core.codec.workspace import ANNOTATION_PREFIX, build_workspace_yaml
from kce.core.codec.document import parse_document
from kce.core.diagnostics.validation import (
    MESSAGE_EXTERNAL_OK,
    MESSAGE_OK,
    ExternalStatus,
    ExternalValidationResult,
)
from kce.core.editor import KubeconfigEditor
from kce.core.entity import EntityKind
from kce.core.exceptions import MalformedDocumentError, PreconditionError, ValidationError
from kce.core.history.lineage import canonical_store, path_identity
from kce.core.session import StorageLayout


class FakeValidator:
    def __init__(self, status: ExternalStatus, message: str = "") -> None:
        self.status = status
        self.message = message

    def validate(self, text: str) -> ExternalValidationResult:
        return ExternalValidationResult(self.status, self.message)


def _context_id(editor: KubeconfigEditor, name: str) -> str:
    return editor.document.find(EntityKind.CONTEXT, name).id


def test_new_editor_starts_unsaved(editor):
    assert editor.session_key.startswith("unsaved-")
    assert editor.current_path is None
    assert not editor.has_unsaved_changes
    assert editor.validation_message == MESSAGE_OK
    assert editor.draft_path is not None and editor.draft_path.exists()


def test_load_creates_workspace_and_initial_version(loaded, fixture_path):
    layout = StorageLayout(path_identity(fixture_path), fixture_path)

    assert loaded.session_key == path_identity(fixture_path)
    assert names(loaded.document.contexts) == ["ctx-1", "ctx-2"]
    assert layout.workspace_path.exists()
    assert ANNOTATION_PREFIX in layout.workspace_path.read_text(encoding="utf-8")
    assert "workspace created" in loaded.status_message
    assert not loaded.has_unsaved_changes
    assert not loaded.can_undo

    versions = canonical_store(loaded.session_key).list_versions()
    assert [v.reason for v in versions] == ["initial-load"]


def test_second_load_reuses_workspace(loaded, fixture_path):
    again = KubeconfigEditor()
    again.load(fixture_path)
    assert "(workspace: " in again.status_message
    assert len(canonical_store(again.session_key).list_versions()) == 1


def test_save_round_trips_unchanged_document(loaded, fixture_path):
    result = loaded.save()

    assert result.path == fixture_path
    assert load_yaml(fixture_path) == yaml.safe_load(FIXTURE_YAML)
    assert loaded.status_message == f"Saved: {fixture_path}"
    assert loaded.validation_message == MESSAGE_OK
    assert result.version is not None and result.version.reason == "save"


def test_hidden_context_is_excluded_from_file_but_kept_in_workspace(loaded, fixture_path):
    assert loaded.toggle_export(EntityKind.CONTEXT, _context_id(loaded, "ctx-2")) is False
    result = loaded.save()

    saved = load_yaml(fixture_path)
    assert [c["name"] for c in saved["contexts"]] == ["ctx-1"]
    assert [c["name"] for c in saved["clusters"]] == ["cluster-a"]
    assert [u["name"] for u in saved["users"]] == ["user-a"]
    assert result.projection.dropped_contexts == 1
    assert "Excluded: contexts 1, clusters 1, users 1" in loaded.status_message

    reopened = KubeconfigEditor()
    reopened.load(fixture_path)
    assert names(reopened.document.contexts) == ["ctx-1", "ctx-2"]
    assert reopened.document.find(EntityKind.CONTEXT, "ctx-2").include_in_export is False


def test_hiding_current_context_moves_current(loaded, fixture_path):
    loaded.toggle_export(EntityKind.CONTEXT, _context_id(loaded, "ctx-1"))
    assert loaded.document.current_context == "ctx-2"

    loaded.save()
    assert load_yaml(fixture_path)["current-context"] == "ctx-2"


def test_showing_context_adopts_empty_current(loaded):
    ctx = _context_id(loaded, "ctx-2")
    loaded.toggle_export(EntityKind.CONTEXT, ctx)
    loaded.set_current_context("")
    assert loaded.toggle_export(EntityKind.CONTEXT, ctx) is True
    assert loaded.document.current_context == "ctx-2"


def test_workspace_recovered_from_history(loaded, fixture_path):
    loaded.toggle_export(EntityKind.CONTEXT, _context_id(loaded, "ctx-2"))
    loaded.save()
    loaded.layout.workspace_path.unlink()

    reopened = KubeconfigEditor()
    reopened.load(fixture_path)

    assert "recovered from history" in reopened.status_message
    assert names(reopened.document.contexts) == ["ctx-1", "ctx-2"]
    assert reopened.document.find(EntityKind.CONTEXT, "ctx-2").include_in_export is False
    assert reopened.layout.workspace_path.exists()


def test_detached_store_restores_hidden_entities(editor, fixture_path):
    layout = StorageLayout(path_identity(fixture_path), fixture_path)
    layout.detached_store_path.parent.mkdir(parents=True)
    layout.detached_store_path.write_text(
        "kind: DetachedStore\n"
        "contexts:\n"
        "  - name: parked\n"
        "    export-enabled: false\n"
        "    context: {cluster: cluster-a, user: user-a}\n",
        encoding="utf-8",
    )

    editor.load(fixture_path)

    parked = editor.document.find(EntityKind.CONTEXT, "parked")
    assert parked is not None and parked.include_in_export is False


def test_legacy_sidecar_is_migrated(editor, fixture_path):
    doc = parse_document(FIXTURE_YAML)
    doc.users[1].include_in_export = False
    legacy = fixture_path.parent / f".{fixture_path.name}.kce.yaml"
    legacy.write_text(build_workspace_yaml(doc), encoding="utf-8")

    editor.load(fixture_path)

    assert editor.document.find(EntityKind.USER, "user-b").include_in_export is False
    assert not legacy.exists()
    assert editor.layout.workspace_path.exists()


def test_load_rejects_malformed_file(editor, work_dir):
    path = write_kubeconfig(work_dir, "broken", "- not a mapping\n")
    with pytest.raises(MalformedDocumentError):
        editor.load(path)
    assert editor.current_path is None


def test_load_missing_file(editor, work_dir):
    with pytest.raises(FileNotFoundError):
        editor.load(work_dir / "absent")


def test_load_default_if_exists(editor, tmp_path):
    assert editor.load_default_if_exists() is False
    assert "not found" in editor.status_message

    default = write_kubeconfig(tmp_path / "home" / ".kube", "config", FIXTURE_YAML)
    assert editor.load_default_if_exists() is True
    assert editor.current_path == default
    assert editor.load_default_if_exists() is False


def test_save_without_path_on_new_document(editor):
    with pytest.raises(PreconditionError):
        editor.save()


def test_rejected_save_leaves_file_untouched(fixture_path):
    editor = KubeconfigEditor(external_validator=FakeValidator(ExternalStatus.FAILED, "boom"))
    editor.load(fixture_path)
    editor.add_cluster()

    with pytest.raises(ValidationError):
        editor.save()
    assert fixture_path.read_text(encoding="utf-8") == FIXTURE_YAML
    assert editor.has_unsaved_changes


def test_external_validator_note_is_reported(fixture_path):
    editor = KubeconfigEditor(external_validator=FakeValidator(ExternalStatus.OK))
    editor.load(fixture_path)
    result = editor.save()
    assert result.validation_note == MESSAGE_EXTERNAL_OK
    assert editor.validation_message == MESSAGE_EXTERNAL_OK


def test_save_as_new_session_moves_storage(editor, work_dir):
    old_layout = editor.layout
    assert old_layout.changelog_path.exists()
    editor.add_cluster()

    target = work_dir / "fresh-config"
    editor.save(target)

    assert editor.session_key == path_identity(target)
    assert editor.current_path == target
    assert not old_layout.changelog_path.exists()
    assert editor.layout.changelog_path.exists()
    assert editor.layout.workspace_path.exists()
    assert [v.reason for v in editor.list_saved_versions()] == ["save"]
    assert not editor.has_unsaved_changes


def test_activate_context_and_save(loaded, fixture_path):
    loaded.activate_context_and_save(_context_id(loaded, "ctx-2"))
    assert load_yaml(fixture_path)["current-context"] == "ctx-2"
    assert "Activated context 'ctx-2'" in loaded.status_message


def test_activate_on_new_document_writes_default_path(editor, tmp_path):
    editor.activate_context_and_save(editor.document.contexts[0].id)
    default = tmp_path / "home" / ".kube" / "config"
    assert load_yaml(default)["current-context"] == "new-context"


def test_activate_errors(loaded):
    with pytest.raises(PreconditionError):
        loaded.activate_context_and_save(None)
    with pytest.raises(PreconditionError):
        loaded.activate_context_and_save("missing")


def test_export_selected_contexts(loaded, work_dir):
    target = work_dir / "exported.yaml"
    projection = loaded.export_contexts({_context_id(loaded, "ctx-2")}, target)

    exported = load_yaml(target)
    assert names(projection.contexts) == ["ctx-2"]
    assert [c["name"] for c in exported["clusters"]] == ["cluster-b"]
    assert exported["current-context"] == "ctx-2"


def test_backup_copies_current_file(loaded, fixture_path):
    backup = loaded.backup()
    assert backup.parent == fixture_path.parent
    assert backup.name.startswith("config.backup.")
    assert backup.suffix == ".yml"
    assert ":" not in backup.name
    assert backup.read_text(encoding="utf-8") == FIXTURE_YAML


def test_backup_requires_a_file(editor):
    with pytest.raises(PreconditionError):
        editor.backup()
