"""Ambiguity models.

An ambiguity is a tagged union on ``type``: each category carries only the
resolution data relevant to it (a suggested size, an option set, or a named
default). Parsing from stored dicts goes through ``parse_ambiguity``.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Tuple, Union

from pydantic import BaseModel, Field, TypeAdapter
from pydantic import ValidationError as PydanticValidationError


class AmbiguityType(str, Enum):
    """Ambiguity categories."""

    SIZE = "size"
    OPERATION = "operation"
    GLASS = "glass"
    FRAME = "frame"


class ClarificationState(str, Enum):
    """Clarification state per conversation."""

    IDLE = "idle"
    AWAITING_RESPONSE = "awaiting_response"


@dataclass(frozen=True)
class AmbiguousTerm:
    """One row of the vague-term table."""

    term: str
    clarify: str
    confidence: float
    suggestion: Optional[str] = None
    options: Tuple[str, ...] = ()
    default: Optional[str] = None


class BaseAmbiguity(BaseModel):
    """Fields shared by all ambiguity categories."""

    term: str = Field(min_length=1, description="Matched surface term")
    confidence: float = Field(ge=0.0, le=1.0, description="Confidence score (0-1)")
    clarify_message: str = Field(
        min_length=1,
        alias="clarifyMessage",
        description="Human-readable clarification prompt"
    )

    class Config:
        populate_by_name = True


class SizeAmbiguity(BaseAmbiguity):
    """Vague size term with a suggested WxH value."""

    type: Literal["size"] = "size"
    suggestion: str = Field(description="Suggested size, e.g. '36x48'")


class OperationAmbiguity(BaseAmbiguity):
    """Vague operation term with an optional set of offered options."""

    type: Literal["operation"] = "operation"
    options: List[str] = Field(default_factory=list, description="Offered operation types")


class GlassAmbiguity(BaseAmbiguity):
    """Vague glass term resolving to a named default bundle."""

    type: Literal["glass"] = "glass"
    default_bundle: str = Field(
        alias="default",
        description="Default glass bundle, e.g. 'Double pane with Low-E & Argon'"
    )


class FrameAmbiguity(BaseAmbiguity):
    """Vague frame term resolving to a default material."""

    type: Literal["frame"] = "frame"
    default_material: str = Field(alias="default", description="Default frame material")


Ambiguity = Annotated[
    Union[SizeAmbiguity, OperationAmbiguity, GlassAmbiguity, FrameAmbiguity],
    Field(discriminator="type"),
]

_ambiguity_adapter = TypeAdapter(Ambiguity)


def parse_ambiguity(data: Any) -> Optional[BaseAmbiguity]:
    """Parse a stored or caller-supplied ambiguity.

    Returns:
        The typed ambiguity, or None when the data is malformed.
    """
    if isinstance(data, BaseAmbiguity):
        return data
    if not isinstance(data, dict):
        return None
    try:
        return _ambiguity_adapter.validate_python(data)
    except PydanticValidationError:
        return None


class PendingClarification(BaseModel):
    """The single outstanding clarification of a conversation."""

    ambiguity: Ambiguity
    created_at: datetime = Field(alias="createdAt")
    id: str = Field(description="Clarification identifier")

    class Config:
        populate_by_name = True


class ClarificationRequest(BaseModel):
    """A clarification chosen from this turn's ambiguities."""

    ambiguity: Ambiguity
    message: str
    clarification_id: str = Field(alias="clarificationId")
    expecting_clarification: bool = Field(default=True, alias="expectingClarification")

    class Config:
        populate_by_name = True


class ClarificationResult(BaseModel):
    """Outcome of interpreting a reply to a pending clarification."""

    resolved: bool = False
    skipped: bool = False
    partial: bool = False
    needs_help: bool = False
    retry: bool = False
    error: bool = False
    error_code: Optional[str] = None
    updated_spec: Dict[str, Any] = Field(default_factory=dict)
    resolved_fields: List[str] = Field(default_factory=list)
    follow_up: Dict[str, Any] = Field(
        default_factory=dict,
        description="Sentinel results that need a follow-up (never merged)"
    )
    message: str = ""
