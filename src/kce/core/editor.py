"""The editing coordinator: single owner of the live kubeconfig document.

``KubeconfigEditor`` ties the engines together. Every mutation runs
synchronously against ``editor.document``, then records an undo snapshot,
appends to the change log and refreshes the draft. Durable side effects
(canonical file, workspace sidecar, version lineage, drafts) are written only
by load, save, rollback and the explicit export/backup calls.

Typical use::

    editor = KubeconfigEditor()
    editor.load("~/.kube/config")
    editor.delete_entity("context", editor.document.contexts[0].id, cascade=True)
    editor.save()
"""
from __future__ import annotations

import asyncio
import logging
import shutil
from dataclasses import dataclass
from pathlib import Path
from typing import AbstractSet, Dict, List, Optional, Union

from kce.core.codec.workspace import build_workspace_yaml, has_annotations, parse_workspace
from kce.core.config.domains import PathsConfig, ValidationConfig
from kce.core.deletion import DeletionResult, delete_entities, delete_entity
from kce.core.diagnostics.validation import (
    MESSAGE_OFF,
    MESSAGE_OK,
    ExternalValidator,
    default_external_validator,
    validate_before_save,
    validate_document,
)
from kce.core.diagnostics.warnings import collect_warnings, entity_warning
from kce.core.eks import EksEntities, add_aws_eks_context
from kce.core.entity import Document, Entity, EntityId, EntityKind
from kce.core.exceptions import (
    EntityNotFoundError,
    KceError,
    MalformedDocumentError,
    PreconditionError,
    StorageError,
    VersionNotFoundError,
)
from kce.core.export import ExportProjection, build_export_yaml, project_for_export, select_for_export
from kce.core.history import (
    SavedVersion,
    Snapshot,
    UndoStack,
    append_entry,
    candidate_stores,
    canonical_store,
    collect_saved_versions,
    find_version_content,
    latest_snapshot,
    migrate_legacy_lineage,
    path_identity,
)
from kce.core.merge import (
    ContextMergePreview,
    ImportResult,
    apply_context_merge_preview,
    build_context_merge_preview,
    merge_import,
    normalize_import_text,
)
from kce.core.naming import rename_everywhere, unique_name
from kce.core.references import (
    clusters_linked_to_user,
    contexts_linked_to_cluster,
    contexts_linked_to_user,
    users_linked_to_cluster,
)
from kce.core.session import (
    StorageLayout,
    migrate_session_storage,
    new_unsaved_key,
    restore_detached_store,
)
from kce.core.stdlib_logging import configure_from_config
from kce.core.utils.io import LockTimeoutError, ensure_directory, read_text, write_text
from kce.core.utils.time import filename_timestamp

logger = logging.getLogger(__name__)

PathArg = Union[str, Path]


@dataclass(frozen=True)
class SaveResult:
    path: Path
    projection: ExportProjection
    validation_note: Optional[str] = None
    version: Optional[SavedVersion] = None


class KubeconfigEditor:
    """Owns one document and its editing session.

    Attributes:
        document: The live document. Mutate it through the editor methods so
            that history, drafts and validation stay in sync.
        current_path: Kubeconfig file the document was loaded from or saved to.
        session_key: Storage key of the session (``file-...`` or ``unsaved-...``).
        status_message: Human-readable outcome of the last operation.
        validation_message: Result of the last background or save-time validation.
        has_unsaved_changes: True after any edit, undo, redo or rollback until save.
        draft_path: Where the latest workspace text was written.
    """

    def __init__(self, *, external_validator: Optional[ExternalValidator] = None) -> None:
        configure_from_config()
        cfg = ValidationConfig()
        self.background_validation_enabled: bool = cfg.background
        self.external_validator: Optional[ExternalValidator] = (
            external_validator if external_validator is not None else default_external_validator()
        )
        self.document: Document = Document()
        self.current_path: Optional[Path] = None
        self.session_key: str = new_unsaved_key()
        self.status_message: str = ""
        self.validation_message: str = MESSAGE_OFF
        self.has_unsaved_changes: bool = False
        self.draft_path: Optional[Path] = None
        self._history = UndoStack()
        self.new_empty()

    # ------------------------------------------------------------------
    # Session storage
    # ------------------------------------------------------------------
    @property
    def layout(self) -> StorageLayout:
        return StorageLayout(self.session_key, self.current_path)

    @property
    def can_undo(self) -> bool:
        return self._history.can_undo

    @property
    def can_redo(self) -> bool:
        return self._history.can_redo

    def _write_draft(self, text: str) -> None:
        path = self.layout.draft_path
        try:
            write_text(path, text)
        except OSError as exc:
            logger.warning("Cannot write draft %s: %s", path, exc)
            return
        self.draft_path = path

    def _write_workspace(self, text: str) -> Path:
        path = self.layout.workspace_path
        try:
            write_text(path, text)
        except OSError as exc:
            raise StorageError(f"Cannot write workspace {path}: {exc}", path=str(path)) from exc
        return path

    def _record_version(self, text: str, reason: str) -> Optional[SavedVersion]:
        """Append a durable version; a failure is logged and recovered on next load."""
        try:
            return canonical_store(self.session_key).put_version(text, reason)
        except (StorageError, LockTimeoutError) as exc:
            logger.warning("Version append failed for %s: %s", self.session_key, exc)
            return None

    def _ensure_initial_version(self, text: str, reason: str) -> Optional[SavedVersion]:
        if not canonical_store(self.session_key).is_empty():
            return None
        return self._record_version(text, reason)

    def _version_candidates(self):
        return candidate_stores(self.session_key, self.current_path)

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------
    def _reset_history(self, reason: str) -> None:
        text = build_workspace_yaml(self.document)
        self._history.reset(text, reason)
        append_entry(self.layout.changelog_path, reason, None, text)

    def register_edit(self, reason: str = "edit") -> bool:
        """Snapshot the document after an edit.

        Returns False when the document is unchanged since the last snapshot.
        """
        text = build_workspace_yaml(self.document)
        previous = self._history.register(text, reason)
        if previous is None:
            return False
        self.has_unsaved_changes = True
        append_entry(self.layout.changelog_path, reason, previous.text, text)
        self._write_draft(text)
        return True

    def _edited(self, reason: str, status: Optional[str] = None) -> None:
        if status is not None:
            self.status_message = status
        self.register_edit(reason)
        self._trigger_background_validation()

    def _apply_snapshot(self, snapshot: Snapshot, reason: str) -> bool:
        try:
            self.document = parse_workspace(snapshot.text)
        except MalformedDocumentError as exc:
            logger.warning("Cannot apply %s snapshot: %s", reason, exc)
            self.status_message = f"{reason.capitalize()} failed: {exc}"
            return False
        self.has_unsaved_changes = True
        self.status_message = "Undid last change" if reason == "undo" else "Redid last change"
        self._write_draft(snapshot.text)
        append_entry(self.layout.changelog_path, reason, None, snapshot.text)
        self._trigger_background_validation()
        return True

    def undo(self) -> bool:
        """Return to the previous snapshot; False at the baseline."""
        snapshot = self._history.undo()
        if snapshot is None:
            return False
        return self._apply_snapshot(snapshot, "undo")

    def redo(self) -> bool:
        snapshot = self._history.redo()
        if snapshot is None:
            return False
        return self._apply_snapshot(snapshot, "redo")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------
    def new_empty(self) -> None:
        """Start an unsaved session with a bound context/cluster/user skeleton."""
        self.session_key = new_unsaved_key()
        self.current_path = None
        self.document = Document.new_empty()
        text = build_workspace_yaml(self.document)
        self._write_draft(text)
        self._reset_history("new-empty")
        self.has_unsaved_changes = False
        self._trigger_background_validation()
        self.status_message = "Created a new in-memory kubeconfig"

    def load(self, path: PathArg) -> None:
        """Load a kubeconfig and its workspace metadata.

        Visibility flags come from, in order: the workspace sidecar, the
        legacy sidecar next to the file, the newest durable version (when it
        carries annotations or no detached store exists), else the legacy
        detached store is merged in.

        Raises:
            FileNotFoundError: Neither a sidecar nor the file exists.
            MalformedDocumentError: The text is not a kubeconfig mapping.
            StorageError: The workspace sidecar cannot be written.
        """
        target = Path(path).expanduser()
        layout = StorageLayout(path_identity(target), target)
        workspace_exists = layout.workspace_path.exists()
        legacy_workspace = layout.legacy_workspace_path
        legacy_exists = legacy_workspace is not None and legacy_workspace.exists()
        detached_exists = layout.detached_store_path.exists()

        recovered: Optional[str] = None
        if not workspace_exists:
            recovered = latest_snapshot(candidate_stores(layout.session_key, target))
        use_recovered = recovered is not None and (has_annotations(recovered) or not detached_exists)

        if workspace_exists:
            source = layout.workspace_path
        elif legacy_exists and legacy_workspace is not None:
            source = legacy_workspace
        else:
            source = target
        text = recovered if use_recovered and recovered is not None else read_text(source)

        document = parse_workspace(text)
        if not (workspace_exists or legacy_exists or use_recovered):
            restore_detached_store(document, layout)

        self.document = document
        self.session_key = layout.session_key
        self.current_path = target

        workspace_text = build_workspace_yaml(self.document)
        if not workspace_exists:
            self._write_workspace(workspace_text)
            if legacy_exists and legacy_workspace is not None:
                try:
                    legacy_workspace.unlink()
                except OSError as exc:
                    logger.warning("Cannot remove legacy workspace %s: %s", legacy_workspace, exc)
        self._write_draft(workspace_text)
        migrate_legacy_lineage(self.session_key, target)
        self._ensure_initial_version(workspace_text, "initial-load")
        self._reset_history("load")
        self.has_unsaved_changes = False
        self._trigger_background_validation()

        workspace_name = layout.workspace_path.name
        if workspace_exists:
            self.status_message = f"Loaded: {target} (workspace: {workspace_name})"
        elif use_recovered:
            self.status_message = f"Loaded: {target} (workspace recovered from history: {workspace_name})"
        else:
            self.status_message = f"Loaded: {target} (workspace created: {workspace_name})"
        logger.info("Loaded %s as %s", target, self.session_key)

    def load_default_if_exists(self) -> bool:
        """Load ``paths.default_kubeconfig`` when nothing is open yet.

        Failures end up in ``status_message`` instead of being raised.
        """
        if self.current_path is not None:
            return False
        default = PathsConfig().default_kubeconfig
        if not default.exists():
            self.status_message = f"Default kubeconfig not found: {default}"
            return False
        try:
            self.load(default)
        except (KceError, OSError) as exc:
            logger.warning("Cannot load default kubeconfig %s: %s", default, exc)
            self.status_message = f"Cannot load default kubeconfig: {exc}"
            return False
        return True

    def save(self, path: Optional[PathArg] = None) -> SaveResult:
        """Write the export projection to ``path`` (default: the current file).

        Raises:
            PreconditionError: No path given and nothing loaded.
            ValidationError: Lint or the external validator rejected the text;
                nothing is written.
            StorageError: The workspace sidecar cannot be written (the
                kubeconfig itself is already saved at that point).
        """
        if path is not None:
            target = Path(path).expanduser()
        elif self.current_path is not None:
            target = self.current_path
        else:
            raise PreconditionError("Choose where to save the kubeconfig")

        old_key = self.session_key
        new_key = path_identity(target)
        projection = project_for_export(self.document)
        if projection.current_context != self.document.current_context:
            self.document.current_context = projection.current_context

        text = build_export_yaml(self.document, projection)
        note = validate_before_save(text, self.external_validator)
        write_text(target, text)

        self.current_path = target
        if old_key != new_key:
            migrate_session_storage(old_key, new_key)
            self.session_key = new_key

        workspace_text = build_workspace_yaml(self.document)
        self._write_workspace(workspace_text)
        self._write_draft(workspace_text)
        version = self._record_version(workspace_text, "save")
        self.has_unsaved_changes = False
        self.validation_message = note or MESSAGE_OK

        if projection.has_drops:
            self.status_message = (
                f"Saved: {target}. Excluded: contexts {projection.dropped_contexts}, "
                f"clusters {projection.dropped_clusters}, users {projection.dropped_users}"
            )
        else:
            self.status_message = f"Saved: {target}"
        logger.info("Saved %s (%d contexts)", target, len(projection.contexts))
        return SaveResult(path=target, projection=projection, validation_note=note, version=version)

    def backup(self) -> Path:
        """Copy the current file to ``<stem>.backup.<timestamp>.yml`` next to it."""
        if self.current_path is None:
            raise PreconditionError("Open a kubeconfig file first")
        stamp = filename_timestamp()
        source = self.current_path
        destination = source.with_name(f"{source.stem}.backup.{stamp}.yml")
        shutil.copy2(source, destination)
        self.status_message = f"Backup created: {destination.name}"
        return destination

    def activate_context_and_save(self, context_id: Optional[EntityId]) -> SaveResult:
        """Make a context current and save right away."""
        if context_id is None:
            raise PreconditionError("Select a context")
        context = self.document.get(EntityKind.CONTEXT, context_id)
        if context is None:
            raise EntityNotFoundError("Context not found", entity_type="context", entity_id=context_id)

        self.document.current_context = context.name
        target = self.current_path or PathsConfig().default_kubeconfig
        ensure_directory(target.parent)
        result = self.save(target)
        self.status_message = f"Activated context '{context.name}' and saved {target}"
        return result

    def export_contexts(self, ids: AbstractSet[EntityId], path: PathArg) -> ExportProjection:
        """Write the selected contexts and everything they reference to ``path``."""
        projection = select_for_export(self.document, ids)
        target = Path(path).expanduser()
        write_text(target, build_export_yaml(self.document, projection))
        self.status_message = f"Exported contexts: {len(projection.contexts)} -> {target}"
        return projection

    # ------------------------------------------------------------------
    # Adding
    # ------------------------------------------------------------------
    def add_context(self) -> Entity:
        """New ``context-N`` bound to the first cluster and first user."""
        doc = self.document
        item = Entity.create(
            unique_name("context", doc.contexts),
            [
                ("cluster", doc.clusters[0].name if doc.clusters else ""),
                ("user", doc.users[0].name if doc.users else ""),
            ],
        )
        doc.contexts.append(item)
        if not doc.current_context:
            doc.current_context = item.name
        self._edited("add-context", f"Context added: {item.name}")
        return item

    def add_cluster(self) -> Entity:
        item = Entity.create(unique_name("cluster", self.document.clusters), [("server", "")])
        self.document.clusters.append(item)
        self._edited("add-cluster", f"Cluster added: {item.name}")
        return item

    def add_user(self) -> Entity:
        item = Entity.create(unique_name("user", self.document.users), [("token", "")])
        self.document.users.append(item)
        self._edited("add-user", f"User added: {item.name}")
        return item

    def add_aws_eks_context(
        self,
        *,
        cluster_arn: str,
        endpoint: str,
        region: str,
        context_name: str = "",
        certificate_authority_data: str = "",
        aws_profile: str = "",
    ) -> EksEntities:
        added = add_aws_eks_context(
            self.document,
            cluster_arn=cluster_arn,
            endpoint=endpoint,
            region=region,
            context_name=context_name,
            certificate_authority_data=certificate_authority_data,
            aws_profile=aws_profile,
        )
        self._edited("add-eks-context", f"AWS EKS context added: {added.context.name}")
        return added

    # ------------------------------------------------------------------
    # Deleting and renaming
    # ------------------------------------------------------------------
    def delete_entity(self, kind: EntityKind, entity_id: EntityId, *, cascade: bool = False) -> DeletionResult:
        kind = EntityKind.parse(kind)
        entity = self.document.get(kind, entity_id)
        name = entity.name if entity is not None else entity_id
        result = delete_entity(self.document, kind, entity_id, cascade=cascade)
        suffix = " (cascade)" if cascade else ""
        self._edited(f"delete-{kind.value}", f"{kind.label} deleted{suffix}: {name}")
        return result

    def delete_entities(
        self, kind: EntityKind, ids: AbstractSet[EntityId], *, cascade: bool = False
    ) -> DeletionResult:
        kind = EntityKind.parse(kind)
        result = delete_entities(self.document, kind, ids, cascade=cascade)
        self._edited(
            f"delete-{kind.collection}",
            f"Deleted: contexts {result.contexts}, clusters {result.clusters}, users {result.users}",
        )
        return result

    def delete_contexts(self, ids: AbstractSet[EntityId], *, cascade: bool = False) -> DeletionResult:
        return self.delete_entities(EntityKind.CONTEXT, ids, cascade=cascade)

    def delete_clusters(self, ids: AbstractSet[EntityId], *, cascade: bool = False) -> DeletionResult:
        return self.delete_entities(EntityKind.CLUSTER, ids, cascade=cascade)

    def delete_users(self, ids: AbstractSet[EntityId], *, cascade: bool = False) -> DeletionResult:
        return self.delete_entities(EntityKind.USER, ids, cascade=cascade)

    def rename_everywhere(self, kind: EntityKind, old_name: str, new_name: str) -> bool:
        kind = EntityKind.parse(kind)
        if not rename_everywhere(self.document, kind, old_name, new_name):
            return False
        self._edited(
            f"rename-{kind.value}",
            f"{kind.label} renamed: {old_name.strip()} -> {new_name.strip()}",
        )
        return True

    def rename_cluster_everywhere(self, old_name: str, new_name: str) -> bool:
        return self.rename_everywhere(EntityKind.CLUSTER, old_name, new_name)

    def rename_user_everywhere(self, old_name: str, new_name: str) -> bool:
        return self.rename_everywhere(EntityKind.USER, old_name, new_name)

    def rename_context_everywhere(self, old_name: str, new_name: str) -> bool:
        return self.rename_everywhere(EntityKind.CONTEXT, old_name, new_name)

    # ------------------------------------------------------------------
    # Field editing and visibility
    # ------------------------------------------------------------------
    def _require(self, kind: EntityKind, entity_id: EntityId) -> Entity:
        kind = EntityKind.parse(kind)
        entity = self.document.get(kind, entity_id)
        if entity is None:
            raise EntityNotFoundError(f"{kind.label} not found", entity_type=kind.value, entity_id=entity_id)
        return entity

    def set_field(self, kind: EntityKind, entity_id: EntityId, key: str, value: str) -> None:
        clean_key = key.strip()
        if not clean_key:
            raise PreconditionError("Field key must not be empty")
        self._require(kind, entity_id).set_field(clean_key, value)
        self._edited("set-field")

    def remove_field(self, kind: EntityKind, entity_id: EntityId, key: str) -> bool:
        removed = self._require(kind, entity_id).remove_field(key)
        if removed:
            self._edited("remove-field")
        return removed

    def set_current_context(self, name: str) -> None:
        self.document.current_context = name.strip()
        self._edited("set-current-context")

    def toggle_export(self, kind: EntityKind, entity_id: EntityId) -> bool:
        """Flip an entity's visibility; returns the new flag.

        Hiding the current context moves current-context to the first other
        visible context. Showing a context while current-context is empty
        makes it current.
        """
        kind = EntityKind.parse(kind)
        entity = self._require(kind, entity_id)
        was_included = entity.include_in_export
        entity.include_in_export = not was_included

        doc = self.document
        if kind is EntityKind.CONTEXT:
            if was_included and doc.current_context == entity.name:
                doc.current_context = next(
                    (c.name for c in doc.contexts if c.include_in_export and c.id != entity.id), ""
                )
            elif not was_included and not doc.current_context:
                doc.current_context = entity.name
        self._edited(f"toggle-export-{kind.value}")
        return entity.include_in_export

    # ------------------------------------------------------------------
    # Merge and import
    # ------------------------------------------------------------------
    def merge_import_text(self, text: str) -> ImportResult:
        result = merge_import(self.document, text)
        self._edited(
            "merge-import",
            f"Imported: contexts {len(result.contexts)}, clusters {len(result.clusters)}, users {len(result.users)}",
        )
        return result

    def normalize_import_text(self, text: str, server_host_replacement: str = "", name_prefix: str = "") -> str:
        """Rewrite foreign text before import; the live document is untouched."""
        return normalize_import_text(text, server_host_replacement, name_prefix)

    def build_context_merge_preview(
        self,
        import_text: str,
        into_context_id: EntityId,
        imported_context_name: Optional[str] = None,
    ) -> ContextMergePreview:
        return build_context_merge_preview(self.document, import_text, into_context_id, imported_context_name)

    def apply_context_merge_preview(
        self,
        into_context_id: EntityId,
        preview: ContextMergePreview,
        selected_change_ids: AbstractSet[str],
    ) -> int:
        if not selected_change_ids:
            self.status_message = "Nothing to apply: no changes selected"
            return 0
        applied = apply_context_merge_preview(self.document, into_context_id, preview, selected_change_ids)
        self._edited("merge-context", f"Merge applied: {applied} change(s)")
        return applied

    # ------------------------------------------------------------------
    # Relations and diagnostics
    # ------------------------------------------------------------------
    def contexts_linked_to_cluster(self, cluster_name: str) -> List[Entity]:
        return contexts_linked_to_cluster(self.document, cluster_name)

    def contexts_linked_to_user(self, user_name: str) -> List[Entity]:
        return contexts_linked_to_user(self.document, user_name)

    def users_linked_to_cluster(self, cluster_name: str) -> List[Entity]:
        return users_linked_to_cluster(self.document, cluster_name)

    def clusters_linked_to_user(self, user_name: str) -> List[Entity]:
        return clusters_linked_to_user(self.document, user_name)

    def warning_for(self, kind: EntityKind, entity_id: EntityId) -> Optional[str]:
        kind = EntityKind.parse(kind)
        return entity_warning(self.document, kind, self._require(kind, entity_id))

    def warnings(self) -> Dict[EntityKind, Dict[EntityId, str]]:
        return collect_warnings(self.document)

    def set_background_validation(self, enabled: bool) -> None:
        self.background_validation_enabled = enabled
        if enabled:
            self.validate_current()
        else:
            self.validation_message = MESSAGE_OFF

    def validate_current(self) -> str:
        self.validation_message = validate_document(self.document)
        return self.validation_message

    def _trigger_background_validation(self) -> None:
        if self.background_validation_enabled:
            self.validate_current()

    # ------------------------------------------------------------------
    # Durable versions
    # ------------------------------------------------------------------
    def list_saved_versions(self) -> List[SavedVersion]:
        """Versions of this document across all lineages, newest first."""
        return collect_saved_versions(self._version_candidates())

    async def list_saved_versions_async(self) -> List[SavedVersion]:
        """Same as :meth:`list_saved_versions`, collected in a worker thread."""
        stores = self._version_candidates()
        return await asyncio.to_thread(collect_saved_versions, stores)

    def rollback_to_version(self, version: Union[SavedVersion, str]) -> None:
        """Replace the document with a saved version.

        The undo baseline is reset to that state and the document is marked
        unsaved; rollback never writes the kubeconfig itself.

        Raises:
            VersionNotFoundError: No lineage of this document holds the version.
        """
        version_id = version.id if isinstance(version, SavedVersion) else str(version)
        content = find_version_content(self._version_candidates(), version_id)
        if content is None:
            raise VersionNotFoundError(
                "Version not found in the history of this kubeconfig", version_id=version_id
            )

        self.document = parse_workspace(content)
        self._write_draft(content)
        self._reset_history(f"rollback-{version_id}")
        self.has_unsaved_changes = True
        self._trigger_background_validation()
        label = version.display_name if isinstance(version, SavedVersion) else version_id[:7]
        self.status_message = f"Rolled back to version: {label}"
        logger.info("Rolled back %s to %s", self.session_key, version_id[:7])

    def rollback_to_previous_saved_version(self) -> SavedVersion:
        """Roll back to the second-newest version, or the only one."""
        versions = self.list_saved_versions()
        if not versions:
            raise VersionNotFoundError("No saved versions to roll back to")
        target = versions[1] if len(versions) > 1 else versions[0]
        self.rollback_to_version(target)
        return target


__all__ = ["KubeconfigEditor", "SaveResult"]
