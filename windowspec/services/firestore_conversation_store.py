"""Firestore-backed conversation store.

One document per user in the conversations collection:

    /conversations/{userId}
        specification: map   (partial window specification)
        lastActivity:  timestamp
        context:       map   (named slots, e.g. pendingClarification)
"""

import os
from typing import Any, Dict, Optional
from datetime import datetime
import structlog

import firebase_admin
from firebase_admin import firestore

from windowspec.config.errors import ErrorCode, StorageError
from windowspec.config.settings import settings
from windowspec.services.conversation_store import ConversationStore, maybe_await

logger = structlog.get_logger()


def _ensure_firebase_app() -> None:
    """Initialize the default Firebase app once per process."""
    if settings.is_emulator_mode:
        os.environ.setdefault("FIRESTORE_EMULATOR_HOST", settings.firestore_emulator_host)

    if not firebase_admin._apps:
        options = {"projectId": settings.firebase_project_id} if settings.firebase_project_id else None
        firebase_admin.initialize_app(options=options)
        logger.info(
            "firebase_app_initialized",
            project_id=settings.firebase_project_id,
            emulator=settings.is_emulator_mode,
        )


class FirestoreConversationStore(ConversationStore):
    """Conversation store on Firestore.

    Note: Firebase Admin SDK for Python is synchronous. Methods are
    marked async for interface compatibility but operations are sync.
    """

    FIELD_SPECIFICATION = "specification"
    FIELD_LAST_ACTIVITY = "lastActivity"
    FIELD_CONTEXT = "context"
    FIELD_UPDATED_AT = "updatedAt"

    def __init__(self, db=None, collection: Optional[str] = None):
        """Initialize FirestoreConversationStore.

        Args:
            db: Optional Firestore client. If not provided, uses default.
            collection: Collection name; defaults to settings.
        """
        self._db = db
        self.collection = collection or settings.conversations_collection

    @property
    def db(self):
        """Get Firestore client (lazy initialization)."""
        if self._db is None:
            _ensure_firebase_app()
            self._db = firestore.client()
        return self._db

    def _doc_ref(self, user_id: str):
        return self.db.collection(self.collection).document(user_id)

    async def _read(self, user_id: str, operation: str) -> Optional[Dict[str, Any]]:
        try:
            doc = await maybe_await(self._doc_ref(user_id).get())
            if doc.exists:
                return doc.to_dict() or {}
            return None
        except Exception as e:
            logger.error("firestore_read_failed", user_id=user_id, operation=operation, error=str(e))
            raise StorageError(
                code=ErrorCode.STORAGE_READ_FAILED,
                message=f"Failed to read conversation: {str(e)}",
                user_id=user_id,
                operation=operation,
            )

    async def _write(self, user_id: str, operation: str, data: Dict[str, Any], merge: Any = True) -> None:
        try:
            await maybe_await(self._doc_ref(user_id).set(data, merge=merge))
            logger.debug("conversation_written", user_id=user_id, operation=operation)
        except Exception as e:
            logger.error("firestore_write_failed", user_id=user_id, operation=operation, error=str(e))
            raise StorageError(
                code=ErrorCode.STORAGE_WRITE_FAILED,
                message=f"Failed to write conversation: {str(e)}",
                user_id=user_id,
                operation=operation,
            )

    async def get_partial_specification(self, user_id: str) -> Optional[Dict[str, Any]]:
        data = await self._read(user_id, "get_partial_specification")
        if data is None:
            return None
        return data.get(self.FIELD_SPECIFICATION)

    async def save_partial_specification(self, user_id: str, specification: Dict[str, Any]) -> None:
        # Field-path merge replaces the whole map instead of deep-merging it
        await self._write(
            user_id,
            "save_partial_specification",
            {
                self.FIELD_SPECIFICATION: dict(specification),
                self.FIELD_UPDATED_AT: firestore.SERVER_TIMESTAMP,
            },
            merge=[self.FIELD_SPECIFICATION, self.FIELD_UPDATED_AT],
        )

    async def get_last_activity_time(self, user_id: str) -> Optional[datetime]:
        data = await self._read(user_id, "get_last_activity_time")
        if data is None:
            return None
        return data.get(self.FIELD_LAST_ACTIVITY)

    async def update_last_activity(self, user_id: str) -> None:
        await self._write(
            user_id,
            "update_last_activity",
            {self.FIELD_LAST_ACTIVITY: firestore.SERVER_TIMESTAMP},
        )

    async def clear_partial_specification(self, user_id: str) -> None:
        await self._write(
            user_id,
            "clear_partial_specification",
            {self.FIELD_SPECIFICATION: firestore.DELETE_FIELD},
        )

    async def set_conversation_context(self, user_id: str, key: str, value: Any) -> None:
        if value is None:
            await self._write(
                user_id,
                "clear_conversation_context_key",
                {self.FIELD_CONTEXT: {key: firestore.DELETE_FIELD}},
            )
            return
        await self._write(
            user_id,
            "set_conversation_context",
            {self.FIELD_CONTEXT: {key: value}},
            merge=[f"{self.FIELD_CONTEXT}.{key}"],
        )

    async def get_conversation_context(self, user_id: str, key: str) -> Any:
        data = await self._read(user_id, "get_conversation_context")
        if data is None:
            return None
        return (data.get(self.FIELD_CONTEXT) or {}).get(key)

    async def clear_conversation_context(self, user_id: str) -> None:
        await self._write(
            user_id,
            "clear_conversation_context",
            {self.FIELD_CONTEXT: firestore.DELETE_FIELD},
        )
