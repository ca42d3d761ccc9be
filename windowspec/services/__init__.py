"""Conversation services for the window spec engine."""

from windowspec.services.ambiguity_detector import AmbiguityDetector
from windowspec.services.clarification_service import ClarificationService
from windowspec.services.conversation_flow_service import ConversationFlowService
from windowspec.services.conversation_store import (
    ConversationStore,
    InMemoryConversationStore,
    create_conversation_store,
)
from windowspec.services.question_generator import QuestionGenerator

__all__ = [
    "AmbiguityDetector",
    "ClarificationService",
    "ConversationFlowService",
    "ConversationStore",
    "InMemoryConversationStore",
    "create_conversation_store",
    "QuestionGenerator",
]
