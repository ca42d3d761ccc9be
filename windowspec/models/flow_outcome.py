"""Conversation flow outcome models.

The discriminated result returned to the message-handling boundary for
every turn.
"""

from enum import Enum
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from windowspec.models.ambiguity import Ambiguity
from windowspec.models.specification import FieldIssue, ValidationResult


class OutcomeType(str, Enum):
    """Terminal outcome of a turn."""

    COLLECT_INFORMATION = "COLLECT_INFORMATION"
    OFFER_QUOTE_WITH_DEFAULTS = "OFFER_QUOTE_WITH_DEFAULTS"
    GENERATE_QUOTE = "GENERATE_QUOTE"
    NEEDS_CLARIFICATION = "NEEDS_CLARIFICATION"
    ERROR = "ERROR"


class FlowStep(str, Enum):
    """Internal steps of a turn, used in log events."""

    CHECK_PENDING_CLARIFICATION = "check_pending_clarification"
    PROCESS_CLARIFICATION_RESPONSE = "process_clarification_response"
    DETECT_NEW_AMBIGUITY = "detect_new_ambiguity"
    EMIT_CLARIFICATION = "emit_clarification"
    MERGE_AND_VALIDATE = "merge_and_validate"
    DETERMINE_NEXT_STEP = "determine_next_step"


class QuoteOption(str, Enum):
    """Choices offered with OFFER_QUOTE_WITH_DEFAULTS."""

    GENERATE_QUOTE = "generate_quote"
    PROVIDE_MORE_DETAILS = "provide_more_details"


class FlowOutcome(BaseModel):
    """Result of processing one conversational turn."""

    type: OutcomeType = Field(description="Terminal outcome of the turn")
    message: str = Field(description="Text to send to the user")
    requires_input: bool = Field(
        default=True,
        alias="requiresInput",
        description="Whether the user must reply before anything else happens"
    )
    specs: Optional[Dict[str, Any]] = Field(
        default=None,
        description="Specification (with defaults when offered)"
    )
    next_field: Optional[FieldIssue] = Field(
        default=None,
        alias="nextField",
        description="Field the question asks about"
    )
    ambiguity: Optional[Ambiguity] = Field(
        default=None,
        description="Ambiguity awaiting clarification"
    )
    validation: Optional[ValidationResult] = Field(
        default=None,
        description="Validation of the current specification"
    )
    options: List[str] = Field(default_factory=list)
    resolved_fields: List[str] = Field(default_factory=list, alias="resolvedFields")
    resumed: bool = Field(default=False, description="Returning-user turn")
    applied_defaults: List[str] = Field(
        default_factory=list,
        alias="appliedDefaults",
        description="Fields filled from defaults on an expired conversation"
    )
    user_supplied_fields: List[str] = Field(
        default_factory=list,
        alias="userSuppliedFields",
        description="Fields the user provided before expiry"
    )

    class Config:
        populate_by_name = True
        use_enum_values = True
