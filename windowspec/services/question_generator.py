"""Question templating.

Turns the next missing or invalid field into a question, using what is
already known about the window to make it specific.
"""

from typing import Any, Dict, List, Mapping, Optional, Sequence

from windowspec.config.catalog import MAX_DIMENSION_INCHES
from windowspec.models.specification import FieldAction, FieldIssue, FieldPriority, is_present, to_number

# Users who have given this many fields get the short form of a question
DETAILED_QUESTION_THRESHOLD = 3

PANE_DESCRIPTIONS = {1: "single", 2: "double", 3: "triple"}

SIMPLE_QUESTIONS: Dict[str, str] = {
    "width": "What is the width of your window in inches?",
    "height": "What is the height of your window in inches?",
    "operation_type": "How does your window open?",
    "glass_type": "What type of glass would you like?",
    "pane_count": "Would you like single, double, or triple pane glass?",
    "has_low_e": "Would you like Low-E coating for energy efficiency?",
    "has_argon": "Would you like argon gas fill for better insulation?",
    "frame_material": "What frame material would you prefer?",
    "grid_type": "Would you like any decorative grids on your window?",
}

DETAILED_QUESTIONS: Dict[str, str] = {
    "width": "I need the width of your window. Please measure from the inside frame edge to edge in inches.",
    "height": "I need the height of your window. Please measure from the inside frame, top to bottom in inches.",
    "operation_type": (
        "How does your window operate? For example:\n"
        "• Fixed (doesn't open)\n"
        "• Hung (slides up and down)\n"
        "• Slider (slides left and right)\n"
        "• Casement (cranks outward)\n"
        "• Awning (hinges at top, opens outward)"
    ),
    "glass_type": (
        "What type of glass do you prefer?\n"
        "• Clear glass (standard)\n"
        "• Tinted glass (reduces glare)\n"
        "• Low-E glass (energy efficient)\n"
        "• Tempered glass (safety glass)"
    ),
    "pane_count": (
        "How many panes of glass would you like?\n"
        "• Single pane (basic, less insulation)\n"
        "• Double pane (standard, good insulation)\n"
        "• Triple pane (premium, best insulation)"
    ),
    "has_low_e": "Low-E coating improves energy efficiency by reflecting heat. Would you like Low-E coating on your glass?",
    "has_argon": "Argon gas between glass panes provides better insulation than regular air. Would you like argon fill?",
    "frame_material": (
        "What frame material would you like?\n"
        "• Vinyl (maintenance-free, affordable)\n"
        "• Wood (traditional, paintable)\n"
        "• Aluminum (durable, slim profile)\n"
        "• Fiberglass (premium, very durable)"
    ),
    "grid_type": (
        "What style of window grids would you like?\n"
        "• None (clean, modern look)\n"
        "• Colonial (traditional rectangles)\n"
        "• Prairie (geometric pattern)\n"
        "• Diamond (diagonal pattern)"
    ),
}

# Short forms for users who already know the process
BRIEF_QUESTIONS: Dict[str, str] = {
    "width": "What is the width of your window? For example, a typical bedroom window might be 36 inches wide.",
    "height": "What is the height of your window? For example, a typical window might be 48 inches tall.",
    "pane_count": "For energy efficiency, would you prefer double pane or triple pane glass?",
    "frame_material": (
        "What frame material fits your needs - vinyl (economical), wood (traditional), "
        "aluminum (durable), or fiberglass (premium)?"
    ),
    "grid_type": (
        "For the finishing touch, would you like decorative grids? "
        "This is optional - you can choose none for a clean look."
    ),
}

CORRECTION_QUESTIONS: Dict[str, str] = {
    "width": "I need the width as a number in inches. For example, '36' for a 36-inch wide window.",
    "height": "I need the height as a number in inches. For example, '48' for a 48-inch tall window.",
    "operation_type": "I didn't recognize that window type. Please choose from: fixed, hung, slider, casement, or awning.",
    "glass_type": "Please choose from these glass types: clear, tinted, Low-E, or tempered.",
    "pane_count": "Please specify single pane (1), double pane (2), or triple pane (3).",
}

TOO_LARGE_QUESTIONS: Dict[str, str] = {
    "width": (
        "That width seems quite large. Could you double-check the measurement? "
        f"Windows are typically under {MAX_DIMENSION_INCHES} inches wide."
    ),
    "height": (
        "That height seems quite large. Could you double-check the measurement? "
        f"Windows are typically under {MAX_DIMENSION_INCHES} inches tall."
    ),
}


def _pane_description(pane_count: Any) -> str:
    number = to_number(pane_count)
    if number is not None and number.is_integer() and int(number) in PANE_DESCRIPTIONS:
        return PANE_DESCRIPTIONS[int(number)]
    return str(pane_count)


class QuestionGenerator:
    """Generates context-aware questions and progress messages."""

    def generate_question(
        self,
        field: FieldIssue,
        current_spec: Optional[Mapping[str, Any]] = None,
        action: Optional[str] = FieldAction.COLLECT.value,
    ) -> str:
        """Generate a question for a missing or invalid field.

        Args:
            field: Field issue from SpecificationValidator.
            current_spec: Current specification.
            action: 'collect' for missing fields, 'correct' for invalid ones.

        Returns:
            Question text (never empty).
        """
        current_spec = current_spec or {}
        if action == FieldAction.CORRECT.value:
            return self.generate_correction_question(field)
        return self.generate_collection_question(field, current_spec)

    def generate_collection_question(self, field: FieldIssue, current_spec: Mapping[str, Any]) -> str:
        name = field.field
        if name not in SIMPLE_QUESTIONS:
            return f"Could you please provide the {field.label.lower()}?"

        detailed = self.should_use_detailed_question(current_spec)
        width = current_spec.get("width")
        height = current_spec.get("height")

        if name == "width" and is_present(height):
            return f"You mentioned your window is {height} inches tall. What is the width in inches?"
        if name == "height" and is_present(width):
            return f"You mentioned your window is {width} inches wide. What is the height in inches?"
        if name == "operation_type" and is_present(width) and is_present(height):
            return (
                f"For a {width}x{height} inch window, how does it open? "
                "Is it fixed, hung, slider, casement, or awning?"
            )
        if name in ("glass_type", "has_low_e") and is_present(current_spec.get("pane_count")):
            panes = _pane_description(current_spec["pane_count"])
            if name == "glass_type":
                return f"For {panes}-pane glass, what type would you like - clear, tinted, Low-E, or tempered?"
            return f"For your {panes}-pane window, would you like Low-E coating for better energy efficiency?"
        if name == "has_argon" and isinstance(current_spec.get("has_low_e"), bool):
            if current_spec["has_low_e"]:
                return "Since you want Low-E coating, would you also like argon gas fill for maximum efficiency?"
            return "Would you like argon gas fill between the glass panes for better insulation?"

        if detailed:
            return DETAILED_QUESTIONS[name]
        return BRIEF_QUESTIONS.get(name, SIMPLE_QUESTIONS[name])

    def generate_correction_question(self, field: FieldIssue) -> str:
        name = field.field
        if name in TOO_LARGE_QUESTIONS:
            value = to_number(field.value)
            if value is not None and value > MAX_DIMENSION_INCHES:
                return TOO_LARGE_QUESTIONS[name]
        if name in CORRECTION_QUESTIONS:
            return CORRECTION_QUESTIONS[name]
        return f"The {field.label.lower()} you provided isn't valid. Could you please provide it again?"

    def should_use_detailed_question(self, current_spec: Mapping[str, Any]) -> bool:
        """New users get the detailed form of a question."""
        provided = sum(1 for value in current_spec.values() if is_present(value))
        return provided < DETAILED_QUESTION_THRESHOLD

    def generate_summary_question(self, missing_fields: Sequence[FieldIssue], current_spec: Mapping[str, Any]) -> str:
        """Single question covering several missing fields."""
        if not missing_fields:
            return "Great! I have all the information I need."

        critical = [issue for issue in missing_fields if issue.priority == FieldPriority.CRITICAL]
        dimensions = [issue for issue in critical if issue.field in ("width", "height")]
        if len(dimensions) == 2:
            return (
                "I need the dimensions of your window. What are the width and height in inches? "
                "For example: '36 inches wide by 48 inches tall'."
            )

        first = critical[0] if critical else missing_fields[0]
        return self.generate_question(first, current_spec, FieldAction.COLLECT.value)

    def generate_progress_message(self, completion_percentage: int, missing_fields: Optional[List[FieldIssue]] = None) -> str:
        """Encouraging message about how far along the user is."""
        if completion_percentage >= 90:
            return "We're almost done! Just a couple more details."
        if completion_percentage >= 70:
            return "Great progress! We're getting close."
        if completion_percentage >= 50:
            return "Good! We're about halfway through gathering your window details."
        if completion_percentage >= 25:
            return "Thanks for those details! Let's continue."
        return "Let's gather some information about your window."
