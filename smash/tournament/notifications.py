"""Participant notifications for tournament events."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Optional, Protocol, TypedDict, cast

from firebase_admin import firestore

from smash.core.constants import (
    NOTIFICATION_SETTINGS_DOC,
    NOTIFICATIONS_COLLECTION,
    SETTINGS_COLLECTION,
    USERS_COLLECTION,
)

if TYPE_CHECKING:
    from google.cloud.firestore_v1.client import Client


class Notification(TypedDict, total=False):
    """Payload delivered to each user."""

    type: str
    action: str
    title: str
    message: str
    metadata: dict[str, Any]


class Notifier(Protocol):
    """Fire-and-forget notification dispatch."""

    def notify_users(self, user_ids: list[str], notification: Notification) -> int:
        """Deliver ``notification`` to each user; never raises."""


DEFAULT_SETTINGS = {
    "allNotifications": True,
    "tournamentNotifications": True,
    "teamNotifications": True,
    "matchNotifications": True,
}

CATEGORY_SETTINGS = {
    "tournament": "tournamentNotifications",
    "team": "teamNotifications",
    "match": "matchNotifications",
}


class FirestoreNotifier:
    """Writes notifications into each user's notifications sub-collection."""

    def __init__(self, db: Client | None = None) -> None:
        """Bind the notifier to a Firestore client."""
        self.db = db if db is not None else firestore.client()

    def _settings(self, user_id: str) -> dict[str, Any]:
        doc = cast(
            Any,
            self.db.collection(USERS_COLLECTION)
            .document(user_id)
            .collection(SETTINGS_COLLECTION)
            .document(NOTIFICATION_SETTINGS_DOC)
            .get(),
        )
        if not doc.exists:
            return dict(DEFAULT_SETTINGS)
        return {**DEFAULT_SETTINGS, **(doc.to_dict() or {})}

    def _is_enabled(self, user_id: str, category: Optional[str]) -> bool:
        settings = self._settings(user_id)
        if not settings.get("allNotifications", True):
            return False
        key = CATEGORY_SETTINGS.get(category or "")
        if key is None:
            return False
        return bool(settings.get(key, True))

    def notify_users(self, user_ids: list[str], notification: Notification) -> int:
        """Deliver to every distinct user, honoring their settings.

        A notification whose ``type`` has no settings category is dropped.
        Returns the number of notifications written.
        """
        delivered = 0
        for user_id in dict.fromkeys(uid for uid in user_ids if uid):
            try:
                if not self._is_enabled(user_id, notification.get("type")):
                    logging.info(
                        f"Notification {notification.get('action')} blocked by "
                        f"settings for user {user_id}"
                    )
                    continue
                self.db.collection(USERS_COLLECTION).document(user_id).collection(
                    NOTIFICATIONS_COLLECTION
                ).add({
                    **notification,
                    "userId": user_id,
                    "read": False,
                    "createdAt": firestore.SERVER_TIMESTAMP,
                })
                delivered += 1
            except Exception as e:
                logging.error(f"Notification failed for user {user_id}: {e}")
        return delivered
