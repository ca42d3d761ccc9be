"""Specification models.

Field definitions, per-field validation issues and the derived
ValidationResult. A specification itself is a plain dict of field name to
raw value; it is the only persisted source of truth.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Callable, Dict, List, Optional

Specification = Dict[str, Any]


class FieldPriority(int, Enum):
    """Priority tiers (lower number = more urgent)."""

    CRITICAL = 1
    IMPORTANT = 2
    EFFICIENCY = 3
    OPTIONAL = 4


class FieldAction(str, Enum):
    """What the caller should do about a field."""

    COLLECT = "collect"
    CORRECT = "correct"


def is_present(value: Any) -> bool:
    """Return True when a raw value counts as provided.

    ``None`` and empty strings are absent; ``False`` and ``0`` are present.
    """
    if value is None:
        return False
    if isinstance(value, str) and value.strip() == "":
        return False
    return True


def to_number(value: Any) -> Optional[float]:
    """Coerce a raw value to float, or None when it is not numeric."""
    if isinstance(value, bool) or value is None:
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


@dataclass(frozen=True)
class FieldDefinition:
    """Static definition of one specification field."""

    name: str
    label: str
    priority: int
    value_type: str
    validator: Callable[[Any], bool]
    default: Any = None

    def is_valid(self, value: Any) -> bool:
        """Run the field's validator; a raising validator counts as invalid."""
        try:
            return bool(self.validator(value))
        except (TypeError, ValueError, AttributeError):
            return False


@dataclass
class FieldIssue:
    """A field that is missing, invalid or complete."""

    field: str
    label: str
    priority: int
    value_type: str
    value: Any = None
    default: Any = None
    action: Optional[str] = None


@dataclass
class ConsistencyWarning:
    """Non-blocking cross-field note."""

    type: str
    message: str
    severity: str = "warning"


@dataclass
class ValidationResult:
    """Result of validating a specification."""

    missing: List[FieldIssue] = field(default_factory=list)
    invalid: List[FieldIssue] = field(default_factory=list)
    warnings: List[ConsistencyWarning] = field(default_factory=list)
    complete: List[FieldIssue] = field(default_factory=list)
    is_valid: bool = False
    can_generate_quote: bool = False
    completion_percentage: int = 0
