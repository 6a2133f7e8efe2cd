from __future__ import annotations

from typing import Any, Dict, Iterable, Mapping


class KceError(Exception):
    """Base exception for the kubeconfig editing engine."""

    context: Dict[str, Any]

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        super().__init__(message)
        if context is not None:
            # Store a shallow copy to avoid accidental mutation.
            self.context = dict(context)
        else:
            self.context = {}

    def to_json_error(self) -> Dict[str, Any]:
        """Return a JSON-serializable error payload."""
        return {
            "message": str(self),
            "code": self.__class__.__name__,
            "context": self.context,
        }


class MalformedDocumentError(KceError, ValueError):
    """Raised when a kubeconfig text cannot be parsed or its root is not a mapping."""

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        KceError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class PreconditionError(KceError, ValueError):
    """Raised when an operation is called in a state where it cannot run.

    The live document is never modified when this is raised.
    """

    def __init__(self, message: str = "", *, context: Mapping[str, Any] | None = None) -> None:
        KceError.__init__(self, message, context=context)
        ValueError.__init__(self, message)


class EntityNotFoundError(PreconditionError, LookupError):
    """Raised when a context, cluster or user cannot be found."""

    def __init__(
        self,
        message: str = "Entity not found",
        *,
        entity_type: str | None = None,
        entity_id: str | None = None,
        name: str | None = None,
    ) -> None:
        ctx: Dict[str, Any] = {}
        if entity_type:
            ctx["entity_type"] = entity_type
        if entity_id:
            ctx["entity_id"] = entity_id
        if name:
            ctx["name"] = name
        super().__init__(message, context=ctx)
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.name = name


class EntityExistsError(PreconditionError):
    """Raised when a rename target already names another entity."""

    def __init__(self, message: str = "Entity already exists", *, entity_type: str | None = None, name: str | None = None) -> None:
        ctx: Dict[str, Any] = {}
        if entity_type:
            ctx["entity_type"] = entity_type
        if name:
            ctx["name"] = name
        super().__init__(message, context=ctx)
        self.entity_type = entity_type
        self.name = name


class EmptyNameError(PreconditionError):
    """Raised when an old/new name is blank."""


class EmptySelectionError(PreconditionError):
    """Raised when a bulk operation receives no ids."""


class NoContextsError(PreconditionError):
    """Raised when an imported document carries no contexts to merge from."""


class MissingReferencesError(PreconditionError):
    """Raised when selected contexts reference clusters/users that do not exist."""

    def __init__(
        self,
        message: str = "",
        *,
        missing_clusters: Iterable[str] = (),
        missing_users: Iterable[str] = (),
    ) -> None:
        self.missing_clusters = sorted(missing_clusters)
        self.missing_users = sorted(missing_users)
        if not message:
            parts = []
            if self.missing_clusters:
                parts.append(f"clusters: {', '.join(self.missing_clusters)}")
            if self.missing_users:
                parts.append(f"users: {', '.join(self.missing_users)}")
            message = f"Export impossible, missing references: {'; '.join(parts)}"
        super().__init__(
            message,
            context={"missing_clusters": self.missing_clusters, "missing_users": self.missing_users},
        )


class ValidationError(KceError):
    """Raised when structural or external validation of a document fails at save time."""


class VersionNotFoundError(KceError, LookupError):
    """Raised when a saved version cannot be located in any lineage."""

    def __init__(self, message: str = "", *, version_id: str | None = None) -> None:
        KceError.__init__(self, message, context={"version_id": version_id} if version_id else None)
        LookupError.__init__(self, message)
        self.version_id = version_id


class StorageError(KceError, OSError):
    """Raised when an auxiliary store (workspace, drafts, history) cannot be written."""

    def __init__(self, message: str = "", *, path: str | None = None, context: Mapping[str, Any] | None = None) -> None:
        ctx = dict(context or {})
        if path:
            ctx["path"] = path
        KceError.__init__(self, message, context=ctx)
        OSError.__init__(self, message)


__all__ = [
    "KceError",
    "MalformedDocumentError",
    "PreconditionError",
    "EntityNotFoundError",
    "EntityExistsError",
    "EmptyNameError",
    "EmptySelectionError",
    "NoContextsError",
    "MissingReferencesError",
    "ValidationError",
    "VersionNotFoundError",
    "StorageError",
]
