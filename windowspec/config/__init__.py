"""Window spec engine configuration.

This package contains:
- settings: Environment variables and configuration
- errors: Custom exceptions and error codes
- catalog: Immutable field and vague-term tables
"""

from windowspec.config.settings import settings
from windowspec.config.errors import ConversationError, StorageError, ErrorCode

__all__ = [
    "settings",
    "ConversationError",
    "StorageError",
    "ErrorCode",
]
