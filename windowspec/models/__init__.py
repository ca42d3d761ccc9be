"""Data models for the window spec engine."""

from windowspec.models.specification import (
    ConsistencyWarning,
    FieldAction,
    FieldDefinition,
    FieldIssue,
    FieldPriority,
    Specification,
    ValidationResult,
    is_present,
    to_number,
)
from windowspec.models.ambiguity import (
    Ambiguity,
    AmbiguityType,
    AmbiguousTerm,
    BaseAmbiguity,
    ClarificationRequest,
    ClarificationResult,
    ClarificationState,
    FrameAmbiguity,
    GlassAmbiguity,
    OperationAmbiguity,
    PendingClarification,
    SizeAmbiguity,
    parse_ambiguity,
)
from windowspec.models.flow_outcome import FlowOutcome, FlowStep, OutcomeType, QuoteOption

__all__ = [
    "ConsistencyWarning",
    "FieldAction",
    "FieldDefinition",
    "FieldIssue",
    "FieldPriority",
    "Specification",
    "ValidationResult",
    "is_present",
    "to_number",
    "Ambiguity",
    "AmbiguityType",
    "AmbiguousTerm",
    "BaseAmbiguity",
    "ClarificationRequest",
    "ClarificationResult",
    "ClarificationState",
    "FrameAmbiguity",
    "GlassAmbiguity",
    "OperationAmbiguity",
    "PendingClarification",
    "SizeAmbiguity",
    "parse_ambiguity",
    "FlowOutcome",
    "FlowStep",
    "OutcomeType",
    "QuoteOption",
]
