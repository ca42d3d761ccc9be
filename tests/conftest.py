"""Pytest configuration and shared fixtures for window spec engine tests."""

import os
import sys
import pytest
from unittest.mock import AsyncMock, MagicMock


# ============================================================================
# Ensure local imports work (windowspec/)
# ============================================================================
PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))
if PROJECT_ROOT not in sys.path:
    sys.path.insert(0, PROJECT_ROOT)


# ============================================================================
# Firebase Mocks
# ============================================================================

@pytest.fixture
def mock_firestore_client():
    """Mock Firestore client."""
    client = MagicMock()

    collection_mock = MagicMock()
    document_mock = MagicMock()

    # Set up chain: client.collection().document()
    client.collection.return_value = collection_mock
    collection_mock.document.return_value = document_mock

    document_mock.get = AsyncMock(return_value=MagicMock(
        exists=True,
        id="user-1",
        to_dict=lambda: {"specification": {"width": 36}}
    ))
    document_mock.set = AsyncMock()

    return client


@pytest.fixture
def firestore_store(mock_firestore_client):
    """FirestoreConversationStore with mocked client."""
    from windowspec.services.firestore_conversation_store import FirestoreConversationStore

    return FirestoreConversationStore(db=mock_firestore_client, collection="conversations")


# ============================================================================
# Service Fixtures
# ============================================================================

@pytest.fixture
def memory_store():
    """Fresh in-memory conversation store."""
    from windowspec.services.conversation_store import InMemoryConversationStore

    return InMemoryConversationStore()


@pytest.fixture
def validator():
    from windowspec.validators.specification_validator import SpecificationValidator

    return SpecificationValidator()


@pytest.fixture
def detector():
    from windowspec.services.ambiguity_detector import AmbiguityDetector

    return AmbiguityDetector()


@pytest.fixture
def clarification_service(memory_store, detector):
    from windowspec.services.clarification_service import ClarificationService

    return ClarificationService(memory_store, detector)


@pytest.fixture
def flow_service(memory_store):
    """ConversationFlowService wired to the in-memory store."""
    from windowspec.services.conversation_flow_service import ConversationFlowService

    return ConversationFlowService(conversation_store=memory_store, expiration_days=30)


# ============================================================================
# Sample Data Fixtures
# ============================================================================

@pytest.fixture
def sample_user_id():
    """Sample conversation identifier."""
    return "user-test-12345"


@pytest.fixture
def complete_spec():
    """Specification with every field valid."""
    return {
        "width": 36,
        "height": 48,
        "operation_type": "casement",
        "glass_type": "clear",
        "pane_count": 2,
        "has_low_e": True,
        "has_argon": True,
        "frame_material": "vinyl",
        "grid_type": "none",
    }


@pytest.fixture
def critical_only_spec():
    """Specification with only the critical fields."""
    return {"width": 36, "height": 48, "operation_type": "casement"}
