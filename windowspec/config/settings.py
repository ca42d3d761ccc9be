"""Window spec engine configuration settings.

Loads configuration from environment variables with sensible defaults.
"""

import os
from typing import Optional
from dataclasses import dataclass, field
from dotenv import load_dotenv

# Load .env file for non-secret configuration (emulator hosts, backend choice, etc.)
load_dotenv()


@dataclass
class Settings:
    """Application settings loaded from environment variables."""

    # Conversation lifecycle
    conversation_expiration_days: int = field(
        default_factory=lambda: int(os.getenv("CONVERSATION_EXPIRATION_DAYS", "30"))
    )

    # Persistence backend: "firestore" or "memory"
    conversation_store: str = field(
        default_factory=lambda: os.getenv("CONVERSATION_STORE", "firestore").lower()
    )
    conversations_collection: str = field(
        default_factory=lambda: os.getenv("CONVERSATIONS_COLLECTION", "conversations")
    )

    # Firebase Configuration
    firebase_project_id: Optional[str] = field(default_factory=lambda: os.getenv("FIREBASE_PROJECT_ID"))
    use_firebase_emulators: bool = field(default_factory=lambda: os.getenv("USE_FIREBASE_EMULATORS", "false").lower() == "true")
    firestore_emulator_host: str = field(default_factory=lambda: os.getenv("FIRESTORE_EMULATOR_HOST", "localhost:8081"))

    # Logging
    log_level: str = field(default_factory=lambda: os.getenv("LOG_LEVEL", "INFO"))

    @property
    def expiration_window_seconds(self) -> int:
        """Conversation expiration window in seconds."""
        return self.conversation_expiration_days * 24 * 60 * 60

    def validate(self) -> None:
        """Validate settings are consistent.

        Raises:
            ValueError: If a setting holds an unsupported value.
        """
        if self.conversation_store not in ("firestore", "memory"):
            raise ValueError(f"Unsupported CONVERSATION_STORE: {self.conversation_store}")
        if self.conversation_expiration_days <= 0:
            raise ValueError("CONVERSATION_EXPIRATION_DAYS must be positive")

    @property
    def is_emulator_mode(self) -> bool:
        """Check if running in emulator mode."""
        return self.use_firebase_emulators


# Singleton settings instance
settings = Settings()
