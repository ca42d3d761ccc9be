"""Window spec engine error handling.

Custom exceptions and error codes. Validation problems and unresolved
ambiguities are reported as data, not exceptions; these types cover
collaborator failures only.
"""

from typing import Optional, Dict, Any


# Error Codes
class ErrorCode:
    """Error code constants."""

    # Storage Errors (1xxx)
    STORAGE_READ_FAILED = "STORAGE_READ_FAILED"
    STORAGE_WRITE_FAILED = "STORAGE_WRITE_FAILED"

    # Flow Errors (2xxx)
    FLOW_FAILED = "FLOW_FAILED"
    CLARIFICATION_FAILED = "CLARIFICATION_FAILED"


class ConversationError(Exception):
    """Base exception for conversation engine errors.

    Attributes:
        code: Error code from ErrorCode constants
        message: Human-readable error message
        details: Additional error context
    """

    def __init__(
        self,
        code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None
    ):
        super().__init__(message)
        self.code = code
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        """Convert error to dictionary for structured logging.

        Returns:
            Dictionary with code, message, and details.
        """
        return {
            "code": self.code,
            "message": self.message,
            "details": self.details
        }

    def __repr__(self) -> str:
        return f"ConversationError(code={self.code!r}, message={self.message!r})"


class StorageError(ConversationError):
    """Persistence-specific error."""

    def __init__(
        self,
        code: str,
        message: str,
        user_id: str,
        operation: str,
        details: Optional[Dict] = None
    ):
        super().__init__(
            code=code,
            message=message,
            details={**(details or {}), "user_id": user_id, "operation": operation}
        )
        self.user_id = user_id
        self.operation = operation
