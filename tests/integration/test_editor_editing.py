from __future__ import annotations

import json

import pytest

from helpers.io_utils import load_yaml, names
from helpers.kubeconfigs import FIXTURE_YAML, MERGE_SOURCE_YAML, MERGE_TARGET_YAML
from kce.core.diagnostics.validation import MESSAGE_OFF, MESSAGE_OK
from kce.core.editor import KubeconfigEditor
from kce.core.entity import EntityKind
from kce.core.exceptions import EntityExistsError, EntityNotFoundError, PreconditionError


def _id(editor: KubeconfigEditor, kind: EntityKind, name: str) -> str:
    return editor.document.find(kind, name).id


def test_add_entities_use_numbered_names(loaded):
    cluster = loaded.add_cluster()
    user = loaded.add_user()
    context = loaded.add_context()

    assert (cluster.name, user.name, context.name) == ("cluster-1", "user-1", "context-1")
    assert context.field_value("cluster") == "cluster-a"
    assert context.field_value("user") == "user-a"
    assert loaded.status_message == "Context added: context-1"
    assert len(loaded._history) == 4


def test_add_context_to_empty_document_becomes_current(editor):
    editor.delete_contexts({c.id for c in editor.document.contexts})
    context = editor.add_context()
    assert editor.document.current_context == context.name


def test_add_eks_context_through_editor(loaded):
    added = loaded.add_aws_eks_context(
        cluster_arn="arn:aws:eks:us-east-1:1:cluster/demo",
        endpoint="https://demo.eks",
        region="us-east-1",
        aws_profile="dev",
    )
    exec_cfg = json.loads(added.user.field_value("exec"))
    assert exec_cfg["env"] == [{"name": "AWS_PROFILE", "value": "dev"}]
    assert loaded.status_message == "AWS EKS context added: demo-1"
    assert loaded.warning_for(EntityKind.CONTEXT, added.context.id) is None


def test_bulk_delete_reports_counts(loaded):
    result = loaded.delete_contexts({c.id for c in loaded.document.contexts}, cascade=True)
    assert (result.contexts, result.clusters, result.users) == (2, 2, 2)
    assert loaded.status_message == "Deleted: contexts 2, clusters 2, users 2"
    assert loaded.document.current_context == ""


def test_delete_entity_status_names_the_entity(loaded):
    loaded.delete_entity("cluster", _id(loaded, EntityKind.CLUSTER, "cluster-b"), cascade=True)
    assert loaded.status_message == "Cluster deleted (cascade): cluster-b"
    assert names(loaded.document.contexts) == ["ctx-1"]


def test_delete_unknown_entity(loaded):
    with pytest.raises(EntityNotFoundError):
        loaded.delete_entity(EntityKind.USER, "nope")
    assert not loaded.can_undo


def test_rename_everywhere_through_editor(loaded, fixture_path):
    assert loaded.rename_cluster_everywhere("cluster-a", "primary") is True
    assert loaded.rename_user_everywhere("user-a", "user-a") is False
    assert loaded.rename_context_everywhere("ctx-1", "main") is True
    loaded.save()

    saved = load_yaml(fixture_path)
    assert saved["current-context"] == "main"
    assert saved["contexts"][0]["context"]["cluster"] == "primary"

    with pytest.raises(EntityExistsError):
        loaded.rename_user_everywhere("user-a", "user-b")


def test_field_editing(loaded):
    user_id = _id(loaded, EntityKind.USER, "user-a")
    loaded.set_field(EntityKind.USER, user_id, " client-key-data ", "a2V5")
    assert loaded.document.get(EntityKind.USER, user_id).field_value("client-key-data") == "a2V5"

    assert loaded.remove_field(EntityKind.USER, user_id, "token") is True
    assert loaded.remove_field(EntityKind.USER, user_id, "token") is False

    with pytest.raises(PreconditionError):
        loaded.set_field(EntityKind.USER, user_id, "  ", "x")
    with pytest.raises(EntityNotFoundError):
        loaded.set_field(EntityKind.USER, "nope", "k", "v")


def test_merge_import_through_editor(loaded):
    result = loaded.merge_import_text(FIXTURE_YAML)
    assert len(result.contexts) == 2
    assert loaded.status_message == "Imported: contexts 2, clusters 2, users 2"
    assert loaded.undo() is True
    assert names(loaded.document.contexts) == ["ctx-1", "ctx-2"]


def test_normalize_does_not_touch_live_document(loaded):
    before = [c.fields[:] for c in loaded.document.clusters]
    text = loaded.normalize_import_text(FIXTURE_YAML, "10.9.9.9", "lab")
    assert "https://10.9.9.9:6443" in text
    assert "lab-ctx-1" in text
    assert [c.fields for c in loaded.document.clusters] == before
    assert not loaded.has_unsaved_changes


def test_context_merge_preview_flow(editor, work_dir):
    path = work_dir / "target"
    path.write_text(MERGE_TARGET_YAML, encoding="utf-8")
    editor.load(path)
    dev_id = _id(editor, EntityKind.CONTEXT, "dev")

    preview = editor.build_context_merge_preview(MERGE_SOURCE_YAML, dev_id)
    assert editor.apply_context_merge_preview(dev_id, preview, set()) == 0
    assert editor.status_message == "Nothing to apply: no changes selected"
    assert not editor.has_unsaved_changes

    applied = editor.apply_context_merge_preview(dev_id, preview, {"user|dev-user|token"})
    assert applied == 1
    assert editor.status_message == "Merge applied: 1 change(s)"
    assert editor.document.find(EntityKind.USER, "dev-user").field_value("token") == "new-token"


def test_relations_and_warnings(loaded):
    assert names(loaded.contexts_linked_to_cluster("cluster-a")) == ["ctx-1"]
    assert names(loaded.contexts_linked_to_user("user-b")) == ["ctx-2"]
    assert names(loaded.users_linked_to_cluster("cluster-b")) == ["user-b"]
    assert names(loaded.clusters_linked_to_user("user-a")) == ["cluster-a"]
    assert all(not found for found in loaded.warnings().values())

    orphan = loaded.add_cluster()
    assert loaded.warning_for(EntityKind.CLUSTER, orphan.id) == "Cluster is not used in any context"
    assert loaded.warnings()[EntityKind.CLUSTER] == {orphan.id: "Cluster is not used in any context"}


def test_background_validation_toggle(loaded):
    assert loaded.validation_message == MESSAGE_OK
    loaded.set_background_validation(False)
    assert loaded.validation_message == MESSAGE_OFF
    loaded.add_user()
    assert loaded.validation_message == MESSAGE_OFF
    loaded.set_background_validation(True)
    assert loaded.validation_message == MESSAGE_OK


def test_background_validation_disabled_by_config(monkeypatch, fixture_path):
    monkeypatch.setenv("KCE_validation__background", "false")
    editor = KubeconfigEditor()
    editor.load(fixture_path)
    assert editor.validation_message == MESSAGE_OFF
    assert editor.validate_current() == MESSAGE_OK
