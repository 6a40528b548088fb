"""Document-store access for tournament documents."""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING, Any, Optional, Protocol, cast

from firebase_admin import firestore

from smash.core.constants import TOURNAMENTS_COLLECTION
from smash.errors import ConcurrentUpdateError, NotFoundError

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client
    from google.cloud.firestore_v1.document import DocumentReference
    from google.cloud.firestore_v1.transaction import Transaction

    from .models import Tournament


class TournamentStore(Protocol):
    """What the engine needs from a document store."""

    def get(self, tournament_id: str) -> Optional[Tournament]:
        """Return the tournament or None when it does not exist."""

    def put(
        self,
        tournament_id: str,
        update: dict[str, Any],
        resets: Iterable[str] = (),
        expected_version: Optional[int] = None,
    ) -> None:
        """Merge a sparse field map into the stored tournament."""


def clean_update(update: dict[str, Any], resets: Iterable[str] = ()) -> dict[str, Any]:
    """Omit ``None`` fields unless they are explicitly being reset."""
    allowed = set(resets)
    return {k: v for k, v in update.items() if v is not None or k in allowed}


def _versioned_update(
    transaction: Transaction,
    ref: DocumentReference,
    update: dict[str, Any],
    expected_version: int,
) -> None:
    """Apply ``update`` only if the stored version still matches."""
    snapshot = cast(Any, ref.get(transaction=transaction))
    if not snapshot.exists:
        raise NotFoundError("Tournament not found.")
    current = (snapshot.to_dict() or {}).get("version", 0)
    if current != expected_version:
        raise ConcurrentUpdateError()
    transaction.update(ref, {**update, "version": current + 1})


class FirestoreTournamentStore:
    """Reads and merges tournament documents in Cloud Firestore."""

    def __init__(self, db: Client | None = None) -> None:
        """Bind the store to a Firestore client."""
        self.db = db if db is not None else firestore.client()

    def _ref(self, tournament_id: str) -> DocumentReference:
        return self.db.collection(TOURNAMENTS_COLLECTION).document(tournament_id)

    def get(self, tournament_id: str) -> Optional[Tournament]:
        """Fetch a tournament document with its id folded in."""
        doc = cast(Any, self._ref(tournament_id).get())
        if not doc.exists:
            return None
        data = cast(dict[str, Any], doc.to_dict() or {})
        data["id"] = doc.id
        return cast("Tournament", data)

    def put(
        self,
        tournament_id: str,
        update: dict[str, Any],
        resets: Iterable[str] = (),
        expected_version: Optional[int] = None,
    ) -> None:
        """Merge ``update`` into the document.

        With ``expected_version`` the write runs in a transaction and is
        rejected with ``ConcurrentUpdateError`` if another client wrote
        first.

        Raises:
            NotFoundError: If the tournament does not exist.
        """
        ref = self._ref(tournament_id)
        data = clean_update(update, resets)
        data.pop("id", None)

        if expected_version is not None:
            transaction = self.db.transaction()
            firestore.transactional(_versioned_update)(
                transaction, ref, data, expected_version
            )
            return

        if not cast(Any, ref.get()).exists:
            raise NotFoundError("Tournament not found.")
        ref.update(data)
