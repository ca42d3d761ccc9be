"""Window specification catalog.

Immutable configuration data: field definitions with their priorities and
validators, the vague-term table per ambiguity category, and the keyword
tables used to resolve clarification replies. Services receive these
through their constructors.
"""

from types import MappingProxyType
from typing import Any, Mapping, Tuple

from windowspec.models.ambiguity import AmbiguityType, AmbiguousTerm
from windowspec.models.specification import FieldDefinition, to_number

# =============================================================================
# VOCABULARIES
# =============================================================================

OPERATION_TYPES: Tuple[str, ...] = ("fixed", "hung", "slider", "casement", "awning", "hopper")
GLASS_TYPES: Tuple[str, ...] = ("clear", "tinted", "low_e", "tempered")
PANE_COUNTS: Tuple[int, ...] = (1, 2, 3)
FRAME_MATERIALS: Tuple[str, ...] = ("vinyl", "wood", "aluminum", "fiberglass")
GRID_TYPES: Tuple[str, ...] = ("none", "colonial", "prairie", "diamond")

MAX_DIMENSION_INCHES = 120


# =============================================================================
# FIELD VALIDATORS
# =============================================================================


def _valid_dimension(value: Any) -> bool:
    number = to_number(value)
    return number is not None and 0 < number <= MAX_DIMENSION_INCHES


def _one_of(choices: Tuple[str, ...]):
    def check(value: Any) -> bool:
        return isinstance(value, str) and value.strip().lower() in choices
    return check


def _valid_pane_count(value: Any) -> bool:
    number = to_number(value)
    return number is not None and number.is_integer() and int(number) in PANE_COUNTS


def _is_boolean(value: Any) -> bool:
    return isinstance(value, bool)


DEFAULT_FIELD_DEFINITIONS: Tuple[FieldDefinition, ...] = (
    # Critical fields - must have for any quote
    FieldDefinition("width", "Width", 1, "number", _valid_dimension),
    FieldDefinition("height", "Height", 1, "number", _valid_dimension),
    FieldDefinition("operation_type", "Operation Type", 1, "string", _one_of(OPERATION_TYPES)),
    # Important fields - needed for accurate quote
    FieldDefinition("glass_type", "Glass Type", 2, "string", _one_of(GLASS_TYPES)),
    FieldDefinition("pane_count", "Pane Count", 2, "number", _valid_pane_count),
    # Energy efficiency fields - derived defaults
    FieldDefinition("has_low_e", "Low-E Coating", 3, "boolean", _is_boolean),
    FieldDefinition("has_argon", "Argon Fill", 3, "boolean", _is_boolean),
    # Optional fields with defaults
    FieldDefinition("frame_material", "Frame Material", 4, "string", _one_of(FRAME_MATERIALS), default="vinyl"),
    FieldDefinition("grid_type", "Grid Type", 4, "string", _one_of(GRID_TYPES), default="none"),
)


# =============================================================================
# AMBIGUOUS TERMS
# =============================================================================

_SIZE_TERMS = (
    AmbiguousTerm("small", "By small, do you mean around 24x36 inches?", 0.7, suggestion="24x36"),
    AmbiguousTerm("medium", "Medium typically means 36x48 inches. Is that about right?", 0.8, suggestion="36x48"),
    AmbiguousTerm("large", "For large windows, do you mean around 48x60 inches?", 0.7, suggestion="48x60"),
    AmbiguousTerm("standard", "Standard windows are often 36x48 inches. Is that correct?", 0.6, suggestion="36x48"),
    AmbiguousTerm("regular", "By regular size, do you mean around 36x48 inches?", 0.5, suggestion="36x48"),
    AmbiguousTerm("normal", "For a normal sized window, would 36x48 inches be about right?", 0.5, suggestion="36x48"),
    AmbiguousTerm("typical", "A typical window is often 36x48 inches. Does that sound right?", 0.6, suggestion="36x48"),
)

_OPERATION_TERMS = (
    AmbiguousTerm(
        "regular",
        "By regular window, do you mean fixed (non-opening) or casement (crank-out)?",
        0.6,
        options=("Fixed", "Casement"),
    ),
    AmbiguousTerm("normal", "For a normal window, would you prefer fixed or casement?", 0.5, options=("Fixed", "Casement")),
    AmbiguousTerm("basic", "Basic windows can be fixed or casement. Which do you prefer?", 0.7, options=("Fixed", "Casement")),
    AmbiguousTerm(
        "standard",
        "What type of window operation do you need? Fixed, Hung, Slider, Casement, or Awning?",
        0.4,
    ),
    AmbiguousTerm("typical", "Typical windows are often fixed or hung. Which would you prefer?", 0.6, options=("Fixed", "Hung")),
)

_GLASS_TERMS = (
    AmbiguousTerm(
        "standard",
        "Standard glass includes Low-E coating and argon fill. Is that good?",
        0.8,
        default="Double pane with Low-E & Argon",
    ),
    AmbiguousTerm("regular", "Regular glass is double-pane clear. Is that what you need?", 0.7, default="Double pane"),
    AmbiguousTerm("normal", "Normal glass is typically double-pane. Is that what you want?", 0.6, default="Double pane"),
    AmbiguousTerm(
        "good",
        "Our good option is double-pane with Low-E and argon. Sound good?",
        0.9,
        default="Double pane with Low-E & Argon",
    ),
    AmbiguousTerm(
        "better",
        "Our better option is double-pane with Low-E and argon. Would you like that?",
        0.9,
        default="Double pane with Low-E & Argon",
    ),
    AmbiguousTerm(
        "best",
        "Our best efficiency is triple-pane with Low-E and argon. Would you like that?",
        0.9,
        default="Triple pane with Low-E & Argon",
    ),
    AmbiguousTerm(
        "energy efficient",
        "For energy efficiency, I recommend double-pane with Low-E and argon. Is that good?",
        0.8,
        default="Double pane with Low-E & Argon",
    ),
    AmbiguousTerm(
        "efficient",
        "For efficiency, double-pane with Low-E and argon is great. Sound good?",
        0.8,
        default="Double pane with Low-E & Argon",
    ),
)

_FRAME_TERMS = (
    AmbiguousTerm("standard", "Standard frames are vinyl. Is that what you want?", 0.8, default="vinyl"),
    AmbiguousTerm("regular", "Regular frames are typically vinyl. Is that okay?", 0.7, default="vinyl"),
    AmbiguousTerm("basic", "Basic frames are vinyl. Would that work?", 0.8, default="vinyl"),
    AmbiguousTerm("cheap", "The most economical option is vinyl frames. Is that what you want?", 0.9, default="vinyl"),
    AmbiguousTerm("expensive", "Premium frames are typically wood. Is that what you're looking for?", 0.7, default="wood"),
)

# Detection order is the declaration order of this mapping
DEFAULT_AMBIGUITY_TERMS: Mapping[AmbiguityType, Tuple[AmbiguousTerm, ...]] = MappingProxyType({
    AmbiguityType.SIZE: _SIZE_TERMS,
    AmbiguityType.OPERATION: _OPERATION_TERMS,
    AmbiguityType.GLASS: _GLASS_TERMS,
    AmbiguityType.FRAME: _FRAME_TERMS,
})

# Fields whose presence settles a category. Size needs every listed field,
# the other categories are settled by any one of them.
CATEGORY_TARGET_FIELDS: Mapping[AmbiguityType, Tuple[str, ...]] = MappingProxyType({
    AmbiguityType.SIZE: ("width", "height"),
    AmbiguityType.OPERATION: ("operation_type",),
    AmbiguityType.GLASS: ("glass_type", "pane_count"),
    AmbiguityType.FRAME: ("frame_material",),
})

# Fields an answer to a category's clarification may fill. A reply that
# brings values for any other field abandons the pending clarification.
CATEGORY_ANSWER_FIELDS: Mapping[str, Tuple[str, ...]] = MappingProxyType({
    AmbiguityType.SIZE.value: ("width", "height"),
    AmbiguityType.OPERATION.value: ("operation_type",),
    AmbiguityType.GLASS.value: ("glass_type", "pane_count", "has_low_e", "has_argon"),
    AmbiguityType.FRAME.value: ("frame_material",),
})

# Clarification tie-break order (lower = asked first)
CATEGORY_PRIORITY: Mapping[str, int] = MappingProxyType({
    AmbiguityType.OPERATION.value: 1,
    AmbiguityType.SIZE.value: 2,
    AmbiguityType.GLASS.value: 3,
    AmbiguityType.FRAME.value: 4,
})


# =============================================================================
# REPLY KEYWORD TABLES
# =============================================================================

AGREEMENT_PHRASES: Tuple[str, ...] = (
    "yes", "yeah", "yep", "yup", "sure", "correct", "right", "exactly",
    "that works", "sounds good", "sound good", "ok", "okay", "perfect",
    "good", "great", "fine",
)

# A reply containing any of these is never read as agreement ("that's not good")
REJECTION_PHRASES: Tuple[str, ...] = (
    "no", "nope", "nah", "not really", "different", "something else",
    "don't want", "do not want", "no thanks", "not good", "not right",
    "not correct", "wrong", "isn't", "that's not", "not what",
)

HELP_PHRASES: Tuple[str, ...] = ("help", "explain", "what", "options", "difference")

SKIP_PHRASES: Tuple[str, ...] = (
    "skip", "later", "don't know", "dont know", "not sure", "no idea", "unsure", "dunno",
)

# Checked before any option token: "doesn't open" must not read as an opening type
OPERATION_NEGATIONS: Tuple[str, ...] = (
    "doesn't open", "does not open", "don't open", "do not open", "won't open",
    "no opening", "not opening", "never opens",
)

OPERATION_SYNONYMS: Mapping[str, str] = MappingProxyType({
    "double hung": "hung",
    "single hung": "hung",
    "sliding": "slider",
    "slide": "slider",
    "picture": "fixed",
    "crank out": "casement",
})

OPERATION_DESCRIPTIONS: Mapping[str, str] = MappingProxyType({
    "crank": "casement",
    "cranks": "casement",
    "cranks out": "casement",
    "handle": "casement",
    "up and down": "hung",
    "slides up": "hung",
    "side to side": "slider",
    "left and right": "slider",
    "sideways": "slider",
    "hinged at the top": "awning",
    "hinges at the top": "awning",
    "hinged at the bottom": "hopper",
    "tilts in": "hopper",
})

# Fixed operation is always the negative option
NEGATIVE_OPERATION = "fixed"
