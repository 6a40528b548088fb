"""Core data types for the smash application."""

from typing import Any, Dict, List, Optional, TypedDict  # noqa: UP035


class _FirestoreDocumentBase(TypedDict):
    id: str


class FirestoreDocument(_FirestoreDocumentBase, total=False):
    """Generic Firestore document structure."""

    createdAt: Any
    updatedAt: Any


class OperationResult(TypedDict, total=False):
    """Result envelope returned by every engine entry point."""

    success: bool
    error: Optional[str]
    code: int
    progressed: bool
    status: str
    tournament: Dict[str, Any]  # noqa: UP006
    matches: List[Dict[str, Any]]  # noqa: UP006
