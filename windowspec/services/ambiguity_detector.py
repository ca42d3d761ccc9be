"""Ambiguity detection and resolution.

Detects vague terms ("standard", "regular", "energy efficient") in a user
message and resolves the user's reply to a clarification into concrete
specification fields. Matching is lexical, whole-word and
case-insensitive; all lookups go through the immutable tables in
``windowspec.config.catalog``.
"""

import re
from functools import lru_cache
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import structlog

from windowspec.config.catalog import (
    AGREEMENT_PHRASES,
    CATEGORY_TARGET_FIELDS,
    DEFAULT_AMBIGUITY_TERMS,
    FRAME_MATERIALS,
    NEGATIVE_OPERATION,
    OPERATION_DESCRIPTIONS,
    OPERATION_NEGATIONS,
    OPERATION_SYNONYMS,
    OPERATION_TYPES,
    REJECTION_PHRASES,
    SKIP_PHRASES,
)
from windowspec.models.ambiguity import (
    AmbiguityType,
    AmbiguousTerm,
    BaseAmbiguity,
    FrameAmbiguity,
    GlassAmbiguity,
    OperationAmbiguity,
    SizeAmbiguity,
    parse_ambiguity,
)
from windowspec.models.specification import is_present
from windowspec.utils.conversation_logger import message_preview

logger = structlog.get_logger()

Resolution = Dict[str, Any]

# Sentinel keys a resolution may carry instead of concrete fields
AMBIGUOUS_DIMENSION = "ambiguous_dimension"
NEEDS_DIFFERENT_GLASS = "needs_different_glass"
NEEDS_DIFFERENT_FRAME = "needs_different_frame"
SENTINEL_KEYS = frozenset({AMBIGUOUS_DIMENSION, NEEDS_DIFFERENT_GLASS, NEEDS_DIFFERENT_FRAME})

_NUMBER = r"(\d+(?:\.\d+)?)"
_DIMENSION_PAIR = re.compile(
    _NUMBER + r"\s*(?:\"|''|inches|inch|in)?\s*(?:wide|w)?\s*(?:x|×|by)\s*" + _NUMBER,
    re.IGNORECASE,
)
_ANY_NUMBER = re.compile(_NUMBER)


@lru_cache(maxsize=512)
def _term_pattern(term: str) -> "re.Pattern[str]":
    words = [re.escape(word) for word in term.split()]
    return re.compile(r"\b" + r"\s+".join(words) + r"\b", re.IGNORECASE)


def contains_term(text: str, term: str) -> bool:
    """Whole-word, case-insensitive match of ``term`` in ``text``."""
    if not text or not term:
        return False
    return _term_pattern(term).search(_normalize(text)) is not None


def _normalize(text: str) -> str:
    return text.replace("’", "'").replace("‘", "'")


def _contains_any(text: str, phrases: Sequence[str]) -> bool:
    return any(contains_term(text, phrase) for phrase in phrases)


def _is_rejection(text: str) -> bool:
    return _contains_any(text, REJECTION_PHRASES)


def _is_agreement(text: str) -> bool:
    """Agreement phrase present and no rejection phrase."""
    return _contains_any(text, AGREEMENT_PHRASES) and not _is_rejection(text)


def _to_number(raw: str) -> Union[int, float]:
    value = float(raw)
    return int(value) if value.is_integer() else value


def parse_dimensions(text: str) -> Optional[Tuple[Union[int, float], Union[int, float]]]:
    """Parse an explicit ``WxH`` / ``W by H`` pair."""
    match = _DIMENSION_PAIR.search(text or "")
    if not match:
        return None
    return _to_number(match.group(1)), _to_number(match.group(2))


def extract_numbers(text: str) -> List[Union[int, float]]:
    """Every number in the text, in order."""
    return [_to_number(raw) for raw in _ANY_NUMBER.findall(text or "")]


class AmbiguityDetector:
    """Detects vague window terms and resolves clarification replies."""

    def __init__(
        self,
        terms: Mapping[AmbiguityType, Tuple[AmbiguousTerm, ...]] = DEFAULT_AMBIGUITY_TERMS,
        target_fields: Mapping[AmbiguityType, Tuple[str, ...]] = CATEGORY_TARGET_FIELDS,
    ):
        """Initialize AmbiguityDetector.

        Args:
            terms: Vague-term table per category, in detection order.
            target_fields: Fields that settle each category.
        """
        self.terms = terms
        self.target_fields = target_fields
        self._resolvers: Dict[str, Callable[[Any, str], Optional[Resolution]]] = {
            AmbiguityType.SIZE.value: self._resolve_size,
            AmbiguityType.OPERATION.value: self._resolve_operation,
            AmbiguityType.GLASS.value: self._resolve_glass,
            AmbiguityType.FRAME.value: self._resolve_frame,
        }

    # -------------------------------------------------------------------------
    # Detection
    # -------------------------------------------------------------------------

    def detect(self, message: Optional[str], current_spec: Optional[Mapping[str, Any]] = None) -> List[BaseAmbiguity]:
        """Detect ambiguous terms in a message.

        Args:
            message: The user's message text.
            current_spec: Current specification; settled categories are skipped.

        Returns:
            Ambiguities sorted by descending confidence (stable).
        """
        if not message or not isinstance(message, str):
            return []
        current_spec = current_spec if isinstance(current_spec, Mapping) else {}

        ambiguities: List[BaseAmbiguity] = []
        for category, rows in self.terms.items():
            if self.is_category_settled(category, current_spec):
                continue
            for row in rows:
                if contains_term(message, row.term):
                    ambiguities.append(self._build(category, row))

        ambiguities.sort(key=lambda ambiguity: -ambiguity.confidence)

        if ambiguities:
            logger.debug(
                "ambiguities_detected",
                message_preview=message_preview(message),
                ambiguity_count=len(ambiguities),
                types=[ambiguity.type for ambiguity in ambiguities],
            )

        return ambiguities

    def is_category_settled(self, category: AmbiguityType, current_spec: Mapping[str, Any]) -> bool:
        """Whether the specification already holds the category's target field(s)."""
        fields = self.target_fields.get(category, ())
        if not fields:
            return False
        present = [is_present(current_spec.get(name)) for name in fields]
        if category == AmbiguityType.SIZE:
            return all(present)
        return any(present)

    def _build(self, category: AmbiguityType, row: AmbiguousTerm) -> BaseAmbiguity:
        common = {"term": row.term, "confidence": row.confidence, "clarify_message": row.clarify}
        if category == AmbiguityType.SIZE:
            return SizeAmbiguity(suggestion=row.suggestion, **common)
        if category == AmbiguityType.OPERATION:
            return OperationAmbiguity(options=list(row.options), **common)
        if category == AmbiguityType.GLASS:
            return GlassAmbiguity(default_bundle=row.default, **common)
        return FrameAmbiguity(default_material=row.default, **common)

    # -------------------------------------------------------------------------
    # Resolution
    # -------------------------------------------------------------------------

    def resolve_ambiguity(self, ambiguity: Any, user_response: Optional[str]) -> Optional[Resolution]:
        """Resolve an ambiguity from the user's reply.

        Args:
            ambiguity: Typed ambiguity or its stored dict form.
            user_response: The user's reply.

        Returns:
            Partial specification fields, or None when not resolved.
        """
        parsed = parse_ambiguity(ambiguity)
        if parsed is None:
            logger.warning("malformed_ambiguity_not_resolved", ambiguity_kind=type(ambiguity).__name__)
            return None
        if not user_response or not isinstance(user_response, str):
            return None

        resolver = self._resolvers.get(parsed.type)
        if resolver is None:
            logger.warning("unknown_ambiguity_type", type=parsed.type, term=parsed.term)
            return None
        return resolver(parsed, _normalize(user_response))

    def _resolve_size(self, ambiguity: SizeAmbiguity, response: str) -> Optional[Resolution]:
        explicit = parse_dimensions(response)
        if explicit:
            width, height = explicit
            return {"width": width, "height": height}

        if _is_rejection(response):
            return None

        if _is_agreement(response):
            suggested = parse_dimensions(ambiguity.suggestion)
            if suggested:
                width, height = suggested
                return {"width": width, "height": height}
            return None

        numbers = extract_numbers(response)
        if len(numbers) == 1:
            # Width or height is unknown; the caller follows up
            return {AMBIGUOUS_DIMENSION: numbers[0]}

        return None

    def _resolve_operation(self, ambiguity: OperationAmbiguity, response: str) -> Optional[Resolution]:
        if _contains_any(response, OPERATION_NEGATIONS):
            return {"operation_type": NEGATIVE_OPERATION}

        for option in ambiguity.options:
            if contains_term(response, option):
                return {"operation_type": option.lower()}

        for phrase, operation in OPERATION_SYNONYMS.items():
            if contains_term(response, phrase):
                return {"operation_type": operation}

        for operation in OPERATION_TYPES:
            if contains_term(response, operation):
                return {"operation_type": operation}

        for phrase, operation in OPERATION_DESCRIPTIONS.items():
            if contains_term(response, phrase):
                return {"operation_type": operation}

        return None

    def _resolve_glass(self, ambiguity: GlassAmbiguity, response: str) -> Optional[Resolution]:
        # An uncertain reply is neither agreement nor rejection
        if _contains_any(response, SKIP_PHRASES):
            return None
        if _is_rejection(response):
            return {NEEDS_DIFFERENT_GLASS: True}
        if _is_agreement(response):
            return self.parse_glass_default(ambiguity.default_bundle)
        return None

    def _resolve_frame(self, ambiguity: FrameAmbiguity, response: str) -> Optional[Resolution]:
        if _contains_any(response, SKIP_PHRASES):
            return None
        for material in FRAME_MATERIALS:
            if contains_term(response, material):
                return {"frame_material": material}
        if _is_rejection(response):
            return {NEEDS_DIFFERENT_FRAME: True}
        if _is_agreement(response):
            return {"frame_material": ambiguity.default_material}
        return None

    def parse_glass_default(self, description: str) -> Resolution:
        """Expand a named glass bundle into its concrete fields."""
        lowered = (description or "").lower()
        return {
            "glass_type": "clear",
            "pane_count": 3 if "triple" in lowered else 2,
            "has_low_e": "low-e" in lowered,
            "has_argon": "argon" in lowered,
        }

    def get_most_confident_ambiguity(self, ambiguities: Optional[Sequence[BaseAmbiguity]]) -> Optional[BaseAmbiguity]:
        """First entry of an already-sorted list, or None."""
        if not ambiguities:
            return None
        return ambiguities[0]
