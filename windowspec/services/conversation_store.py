"""Conversation storage.

The engine persists two things per conversation: the partial
specification (the source of truth) and a small context map of named slots.
The ``pendingClarification`` slot holds at most one clarification.

Store methods may be sync or async; callers go through ``maybe_await``.
"""

import inspect
from abc import ABC, abstractmethod
from copy import deepcopy
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional

import structlog

from windowspec.config.settings import settings

logger = structlog.get_logger()

PENDING_CLARIFICATION_KEY = "pendingClarification"
VALIDATION_STATE_KEY = "validation_state"


async def maybe_await(result: Any) -> Any:
    """Await result if it is awaitable (supports sync stores and AsyncMock)."""
    if inspect.isawaitable(result):
        return await result
    return result


class ConversationStore(ABC):
    """Persistence contract used by the conversation services."""

    @abstractmethod
    async def get_partial_specification(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Return the stored specification, or None if there is none."""

    @abstractmethod
    async def save_partial_specification(self, user_id: str, specification: Dict[str, Any]) -> None:
        """Replace the stored specification."""

    @abstractmethod
    async def get_last_activity_time(self, user_id: str) -> Optional[datetime]:
        """Return the last activity timestamp, or None."""

    @abstractmethod
    async def update_last_activity(self, user_id: str) -> None:
        """Record activity now."""

    @abstractmethod
    async def clear_partial_specification(self, user_id: str) -> None:
        """Delete the stored specification."""

    @abstractmethod
    async def set_conversation_context(self, user_id: str, key: str, value: Any) -> None:
        """Set a context slot; None clears it."""

    @abstractmethod
    async def get_conversation_context(self, user_id: str, key: str) -> Any:
        """Return a context slot value, or None."""

    @abstractmethod
    async def clear_conversation_context(self, user_id: str) -> None:
        """Delete every context slot."""


@dataclass
class ConversationRecord:
    """In-memory state of one conversation."""

    specification: Optional[Dict[str, Any]] = None
    last_activity: Optional[datetime] = None
    context: Dict[str, Any] = field(default_factory=dict)


class InMemoryConversationStore(ConversationStore):
    """Dict-backed store for local runs and tests."""

    def __init__(self):
        self.records: Dict[str, ConversationRecord] = {}

    def _record(self, user_id: str) -> ConversationRecord:
        return self.records.setdefault(user_id, ConversationRecord())

    async def get_partial_specification(self, user_id: str) -> Optional[Dict[str, Any]]:
        record = self.records.get(user_id)
        if record is None or record.specification is None:
            return None
        return deepcopy(record.specification)

    async def save_partial_specification(self, user_id: str, specification: Dict[str, Any]) -> None:
        self._record(user_id).specification = deepcopy(specification)

    async def get_last_activity_time(self, user_id: str) -> Optional[datetime]:
        record = self.records.get(user_id)
        return record.last_activity if record else None

    async def update_last_activity(self, user_id: str) -> None:
        self._record(user_id).last_activity = datetime.now(timezone.utc)

    async def clear_partial_specification(self, user_id: str) -> None:
        if user_id in self.records:
            self.records[user_id].specification = None

    async def set_conversation_context(self, user_id: str, key: str, value: Any) -> None:
        context = self._record(user_id).context
        if value is None:
            context.pop(key, None)
        else:
            context[key] = deepcopy(value)

    async def get_conversation_context(self, user_id: str, key: str) -> Any:
        record = self.records.get(user_id)
        if record is None:
            return None
        return deepcopy(record.context.get(key))

    async def clear_conversation_context(self, user_id: str) -> None:
        if user_id in self.records:
            self.records[user_id].context = {}


def create_conversation_store() -> ConversationStore:
    """Build the store selected by CONVERSATION_STORE.

    Raises:
        ValueError: If the settings hold an unsupported value.
    """
    settings.validate()
    if settings.conversation_store == "memory":
        return InMemoryConversationStore()

    from windowspec.services.firestore_conversation_store import FirestoreConversationStore
    return FirestoreConversationStore()
