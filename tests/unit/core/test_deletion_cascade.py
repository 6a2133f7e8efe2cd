from __future__ import annotations

import pytest

from helpers.io_utils import names
from helpers.kubeconfigs import CASCADE_YAML
from kce.core.codec.document import parse_document, serialize_document
from kce.core.deletion import delete_entities, delete_entity
from kce.core.entity import EntityKind
from kce.core.exceptions import EmptySelectionError, EntityNotFoundError


@pytest.fixture()
def doc():
    return parse_document(CASCADE_YAML)


def _id(document, kind, name):
    return document.find(kind, name).id


def test_context_delete_without_cascade_keeps_referenced_entities(doc):
    result = delete_entity(doc, EntityKind.CONTEXT, _id(doc, EntityKind.CONTEXT, "ctx-only"), cascade=False)

    assert (result.contexts, result.clusters, result.users) == (1, 0, 0)
    assert "cluster-only" in doc.names(EntityKind.CLUSTER)
    assert "user-only" in doc.names(EntityKind.USER)


def test_context_cascade_prunes_orphaned_cluster_and_user(doc):
    result = delete_entity(doc, EntityKind.CONTEXT, _id(doc, EntityKind.CONTEXT, "ctx-only"), cascade=True)

    assert (result.contexts, result.clusters, result.users) == (1, 1, 1)
    assert result.total == 3
    assert names(doc.clusters) == ["cluster-shared"]
    assert names(doc.users) == ["user-shared"]


def test_context_cascade_keeps_entities_still_in_use(doc):
    result = delete_entity(doc, EntityKind.CONTEXT, _id(doc, EntityKind.CONTEXT, "ctx-shared"), cascade=True)

    assert (result.contexts, result.clusters, result.users) == (1, 0, 0)
    assert "cluster-shared" in doc.names(EntityKind.CLUSTER)
    assert "user-shared" in doc.names(EntityKind.USER)


def test_deleting_current_context_moves_current_to_first_remaining(doc):
    delete_entity(doc, EntityKind.CONTEXT, _id(doc, EntityKind.CONTEXT, "ctx-shared"), cascade=False)
    assert doc.current_context == "ctx-only"


def test_deleting_every_context_clears_current(doc):
    delete_entities(doc, EntityKind.CONTEXT, {c.id for c in doc.contexts}, cascade=False)
    assert doc.contexts == []
    assert doc.current_context == ""


def test_cluster_cascade_removes_dependents_and_their_users(doc):
    result = delete_entity(doc, EntityKind.CLUSTER, _id(doc, EntityKind.CLUSTER, "cluster-shared"), cascade=True)

    assert (result.contexts, result.clusters, result.users) == (2, 1, 1)
    assert names(doc.contexts) == ["ctx-only"]
    assert names(doc.users) == ["user-only"]
    assert doc.current_context == "ctx-only"


def test_cluster_delete_without_cascade_leaves_dangling_context(doc):
    result = delete_entity(doc, EntityKind.CLUSTER, _id(doc, EntityKind.CLUSTER, "cluster-only"), cascade=False)

    assert (result.contexts, result.clusters, result.users) == (0, 1, 0)
    assert doc.find(EntityKind.CONTEXT, "ctx-only").field_value("cluster") == "cluster-only"


def test_user_cascade_mirrors_cluster_cascade(doc):
    result = delete_entity(doc, EntityKind.USER, _id(doc, EntityKind.USER, "user-only"), cascade=True)

    assert (result.contexts, result.clusters, result.users) == (1, 1, 1)
    assert names(doc.contexts) == ["ctx-shared", "ctx-shared-2"]
    assert names(doc.clusters) == ["cluster-shared"]


@pytest.mark.parametrize(
    "kind, name",
    [
        (EntityKind.CONTEXT, "ctx-shared"),
        (EntityKind.CLUSTER, "cluster-shared"),
        (EntityKind.USER, "user-only"),
    ],
)
@pytest.mark.parametrize("cascade", [False, True])
def test_single_delete_matches_bulk_delete_of_one(kind, name, cascade):
    single = parse_document(CASCADE_YAML)
    bulk = parse_document(CASCADE_YAML)

    single_result = delete_entity(single, kind, _id(single, kind, name), cascade=cascade)
    bulk_result = delete_entities(bulk, kind, {_id(bulk, kind, name)}, cascade=cascade)

    assert single_result == bulk_result
    assert serialize_document(single) == serialize_document(bulk)


def test_empty_selection_is_rejected(doc):
    with pytest.raises(EmptySelectionError):
        delete_entities(doc, EntityKind.USER, set(), cascade=True)


def test_unknown_id_is_rejected(doc):
    with pytest.raises(EntityNotFoundError):
        delete_entity(doc, "cluster", "no-such-id", cascade=False)
