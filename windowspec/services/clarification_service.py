"""Clarification service.

Owns the single pending clarification of a conversation:

    IDLE --(ambiguity detected)--> AWAITING_RESPONSE
    AWAITING_RESPONSE --(resolved | skipped | extracted)--> IDLE
    AWAITING_RESPONSE --(unresolved reply that brings another field)--> IDLE
    AWAITING_RESPONSE --(help | unclear reply)--> AWAITING_RESPONSE

Unresolved replies go through a fallback ladder (help, skip, best-effort
extraction, simplified re-ask) instead of raising.
"""

import re
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence
from uuid import uuid4

import structlog

from windowspec.config.catalog import (
    CATEGORY_ANSWER_FIELDS,
    CATEGORY_PRIORITY,
    FRAME_MATERIALS,
    HELP_PHRASES,
    OPERATION_TYPES,
    SKIP_PHRASES,
)
from windowspec.config.errors import ErrorCode
from windowspec.models.ambiguity import (
    AmbiguityType,
    BaseAmbiguity,
    ClarificationRequest,
    ClarificationResult,
    ClarificationState,
    PendingClarification,
    parse_ambiguity,
)
from windowspec.models.specification import is_present
from windowspec.services.ambiguity_detector import (
    AMBIGUOUS_DIMENSION,
    NEEDS_DIFFERENT_FRAME,
    NEEDS_DIFFERENT_GLASS,
    SENTINEL_KEYS,
    AmbiguityDetector,
    contains_term,
    extract_numbers,
)
from windowspec.services.conversation_store import (
    PENDING_CLARIFICATION_KEY,
    ConversationStore,
    maybe_await,
)

logger = structlog.get_logger()

UNKNOWN_CATEGORY_PRIORITY = 5

SKIP_ACKNOWLEDGEMENT = "No problem! We can continue with the other details and come back to this later if needed."
EXTRACTION_ACKNOWLEDGEMENT = "Got it! I've noted that information."
RETRY_MESSAGE = "I'm having trouble understanding your response. Could you please try again?"

HELP_MESSAGES: Dict[str, str] = {
    AmbiguityType.SIZE.value: (
        "I need the exact dimensions of your window in inches. You can measure from the inside frame, "
        "width first, then height. For example: \"36 inches wide by 48 inches tall\" or \"36x48\"."
    ),
    AmbiguityType.OPERATION.value: (
        "I need to know how your window opens:\n"
        "• Fixed - doesn't open\n"
        "• Hung - slides up and down\n"
        "• Slider - slides left and right\n"
        "• Casement - cranks outward\n"
        "• Awning - hinges at top, opens outward"
    ),
    AmbiguityType.GLASS.value: (
        "For glass options:\n"
        "• Single pane - basic, less insulation\n"
        "• Double pane - standard insulation\n"
        "• Triple pane - best insulation\n"
        "• Low-E coating - reflects heat for energy efficiency\n"
        "• Argon gas - better insulation between panes"
    ),
    AmbiguityType.FRAME.value: (
        "Frame material options:\n"
        "• Vinyl - maintenance-free, affordable\n"
        "• Wood - traditional, paintable\n"
        "• Aluminum - durable, slim profile\n"
        "• Fiberglass - premium, very durable"
    ),
}

SIMPLIFIED_QUESTIONS: Dict[str, str] = {
    AmbiguityType.SIZE.value: "What are the width and height of your window in inches?",
    AmbiguityType.OPERATION.value: "Does your window open? If so, how does it open?",
    AmbiguityType.GLASS.value: "Would you like single, double, or triple pane glass?",
    AmbiguityType.FRAME.value: "What material would you like for the frame?",
}


class ClarificationService:
    """Generates clarification requests and interprets the replies."""

    def __init__(
        self,
        conversation_store: ConversationStore,
        ambiguity_detector: Optional[AmbiguityDetector] = None,
        category_priority: Mapping[str, int] = CATEGORY_PRIORITY,
        answer_fields: Mapping[str, Sequence[str]] = CATEGORY_ANSWER_FIELDS,
    ):
        """Initialize ClarificationService.

        Args:
            conversation_store: Store holding the pending-clarification slot.
            ambiguity_detector: Optional detector instance.
            category_priority: Category tie-break order (lower asks first).
            answer_fields: Fields each category's answer may fill.
        """
        self.store = conversation_store
        self.ambiguity_detector = ambiguity_detector or AmbiguityDetector()
        self.category_priority = category_priority
        self.answer_fields = answer_fields

    # -------------------------------------------------------------------------
    # Request generation
    # -------------------------------------------------------------------------

    def generate_clarification_request(
        self,
        ambiguities: Optional[Sequence[Any]],
        current_spec: Optional[Mapping[str, Any]] = None,
    ) -> Optional[ClarificationRequest]:
        """Pick one ambiguity and phrase the clarification.

        Args:
            ambiguities: Detector output (typed or dict form).
            current_spec: Current specification, used for the context prefix.

        Returns:
            ClarificationRequest, or None when nothing valid was given.
        """
        ambiguity = self.prioritize_ambiguities(ambiguities)
        if ambiguity is None:
            return None

        return ClarificationRequest(
            ambiguity=ambiguity,
            message=self.generate_contextual_clarification(ambiguity, current_spec or {}),
            clarification_id=self.generate_clarification_id(ambiguity),
        )

    def prioritize_ambiguities(self, ambiguities: Optional[Sequence[Any]]) -> Optional[BaseAmbiguity]:
        """Highest-priority category first, then highest confidence."""
        if not ambiguities:
            return None

        valid = [parsed for parsed in (parse_ambiguity(item) for item in ambiguities) if parsed is not None]
        if not valid:
            return None

        valid.sort(key=lambda ambiguity: (
            self.category_priority.get(ambiguity.type, UNKNOWN_CATEGORY_PRIORITY),
            -ambiguity.confidence,
        ))
        return valid[0]

    def generate_contextual_clarification(self, ambiguity: BaseAmbiguity, current_spec: Mapping[str, Any]) -> str:
        """Prefix the clarify message with what is already known."""
        prefix = ""
        width = current_spec.get("width")
        height = current_spec.get("height")
        if is_present(width) and is_present(height):
            prefix = f"For your {width}x{height} inch window, "
        elif any(is_present(value) for value in current_spec.values()):
            prefix = "For your window, "
        return prefix + ambiguity.clarify_message

    def generate_clarification_id(self, ambiguity: BaseAmbiguity) -> str:
        term = re.sub(r"[^a-z0-9]", "", (ambiguity.term or "term").lower())
        return f"clarify_{ambiguity.type}_{term}_{uuid4().hex[:8]}"

    # -------------------------------------------------------------------------
    # Reply handling
    # -------------------------------------------------------------------------

    async def process_user_clarification(
        self,
        user_id: str,
        user_response: str,
        pending_ambiguity: Any,
        current_spec: Optional[Mapping[str, Any]] = None,
    ) -> ClarificationResult:
        """Interpret the user's reply to the pending clarification.

        Args:
            user_id: Conversation identifier.
            user_response: The user's reply.
            pending_ambiguity: The ambiguity awaiting clarification.
            current_spec: Current specification.

        Returns:
            ClarificationResult; ``resolved`` means the pending slot was cleared.
        """
        current_spec = dict(current_spec or {})
        ambiguity = parse_ambiguity(pending_ambiguity)

        try:
            if ambiguity is None:
                # Unreadable pending entry: drop it rather than re-asking forever
                logger.warning("pending_clarification_malformed", user_id=user_id)
                await self.clear_pending_clarification(user_id)
                return ClarificationResult(
                    resolved=True,
                    skipped=True,
                    updated_spec=current_spec,
                    message=SKIP_ACKNOWLEDGEMENT,
                )

            resolved = self.ambiguity_detector.resolve_ambiguity(ambiguity, user_response)
            if resolved:
                fields = {key: value for key, value in resolved.items() if key not in SENTINEL_KEYS}
                follow_up = {key: value for key, value in resolved.items() if key in SENTINEL_KEYS}
                updated_spec = {**current_spec, **fields}

                if fields:
                    await maybe_await(self.store.save_partial_specification(user_id, updated_spec))
                await self.clear_pending_clarification(user_id)

                logger.info(
                    "clarification_resolved",
                    user_id=user_id,
                    ambiguity_type=ambiguity.type,
                    term=ambiguity.term,
                    resolved_fields=sorted(fields),
                    follow_up=sorted(follow_up),
                )
                return ClarificationResult(
                    resolved=True,
                    updated_spec=updated_spec,
                    resolved_fields=list(fields),
                    follow_up=follow_up,
                    message=self.generate_resolution_confirmation(ambiguity, resolved),
                )

            return await self._handle_unresolved(user_id, user_response, ambiguity, current_spec)

        except Exception as e:
            logger.error(
                "clarification_processing_failed",
                user_id=user_id,
                error_code=ErrorCode.CLARIFICATION_FAILED,
                ambiguity_type=getattr(ambiguity, "type", None),
                error=str(e),
            )
            return ClarificationResult(
                resolved=False,
                error=True,
                error_code=ErrorCode.CLARIFICATION_FAILED,
                message=RETRY_MESSAGE,
            )

    async def _handle_unresolved(
        self,
        user_id: str,
        user_response: str,
        ambiguity: BaseAmbiguity,
        current_spec: Dict[str, Any],
    ) -> ClarificationResult:
        response = user_response or ""

        if any(contains_term(response, phrase) for phrase in HELP_PHRASES):
            logger.info("clarification_help_requested", user_id=user_id, ambiguity_type=ambiguity.type)
            return ClarificationResult(
                resolved=False,
                needs_help=True,
                message=self.generate_help_message(ambiguity),
            )

        if any(contains_term(response, phrase) for phrase in SKIP_PHRASES):
            await self.clear_pending_clarification(user_id)
            logger.info("clarification_skipped", user_id=user_id, ambiguity_type=ambiguity.type)
            return ClarificationResult(
                resolved=True,
                skipped=True,
                updated_spec=current_spec,
                message=SKIP_ACKNOWLEDGEMENT,
            )

        extracted = self.try_extract_information(response, ambiguity)
        if extracted:
            updated_spec = {**current_spec, **extracted}
            await maybe_await(self.store.save_partial_specification(user_id, updated_spec))
            await self.clear_pending_clarification(user_id)
            logger.info(
                "clarification_extracted",
                user_id=user_id,
                ambiguity_type=ambiguity.type,
                resolved_fields=sorted(extracted),
            )
            return ClarificationResult(
                resolved=True,
                partial=True,
                updated_spec=updated_spec,
                resolved_fields=list(extracted),
                message=EXTRACTION_ACKNOWLEDGEMENT,
            )

        logger.info("clarification_retry", user_id=user_id, ambiguity_type=ambiguity.type)
        return ClarificationResult(
            resolved=False,
            retry=True,
            message=self.generate_simplified_clarification(ambiguity),
        )

    def abandoned_fields(
        self,
        ambiguity: BaseAmbiguity,
        extracted_fields: Optional[Mapping[str, Any]],
    ) -> List[str]:
        """Extracted fields the pending clarification's answer cannot fill.

        A non-empty result means the user moved on to another field.
        """
        related = self.answer_fields.get(ambiguity.type, ())
        return [
            name
            for name, value in (extracted_fields or {}).items()
            if is_present(value) and name not in related
        ]

    def try_extract_information(self, user_response: str, ambiguity: BaseAmbiguity) -> Optional[Dict[str, Any]]:
        """Best-effort extraction from a reply the resolver did not accept.

        Keywords match as plain substrings here ("casements", "vinyl-clad").
        """
        lowered = (user_response or "").lower()

        if ambiguity.type == AmbiguityType.SIZE:
            numbers = extract_numbers(lowered)
            if len(numbers) >= 2:
                return {"width": numbers[0], "height": numbers[1]}

        if ambiguity.type == AmbiguityType.OPERATION:
            for keyword in OPERATION_TYPES:
                if keyword in lowered:
                    return {"operation_type": keyword}

        if ambiguity.type == AmbiguityType.FRAME:
            for keyword in FRAME_MATERIALS:
                if keyword in lowered:
                    return {"frame_material": keyword}

        return None

    def generate_help_message(self, ambiguity: BaseAmbiguity) -> str:
        return HELP_MESSAGES.get(
            ambiguity.type,
            "I can help explain the options. What would you like to know more about?",
        )

    def generate_simplified_clarification(self, ambiguity: BaseAmbiguity) -> str:
        return SIMPLIFIED_QUESTIONS.get(
            ambiguity.type,
            f"Could you please clarify what you mean by \"{ambiguity.term}\"?",
        )

    def generate_resolution_confirmation(self, ambiguity: BaseAmbiguity, resolved: Mapping[str, Any]) -> str:
        """Confirmation text for a resolved clarification."""
        if ambiguity.type == AmbiguityType.SIZE:
            if is_present(resolved.get("width")) and is_present(resolved.get("height")):
                return f"Perfect! I've got your window size as {resolved['width']}x{resolved['height']} inches."
            if AMBIGUOUS_DIMENSION in resolved:
                return (
                    f"I've noted {resolved[AMBIGUOUS_DIMENSION]} inches, "
                    "but I'll still need both the width and the height."
                )

        if ambiguity.type == AmbiguityType.OPERATION and resolved.get("operation_type"):
            return f"Great! I've noted that you want a {resolved['operation_type']} window."

        if ambiguity.type == AmbiguityType.GLASS:
            if resolved.get(NEEDS_DIFFERENT_GLASS):
                return "No problem, we'll pick a different glass option."
            if resolved.get("pane_count"):
                extras: List[str] = []
                if resolved.get("has_low_e"):
                    extras.append("Low-E coating")
                if resolved.get("has_argon"):
                    extras.append("argon fill")
                extras_text = f" with {' and '.join(extras)}" if extras else ""
                return f"Excellent! I've got {resolved['pane_count']}-pane glass{extras_text}."

        if ambiguity.type == AmbiguityType.FRAME:
            if resolved.get(NEEDS_DIFFERENT_FRAME):
                return "No problem, we'll pick a different frame material."
            if resolved.get("frame_material"):
                return f"Perfect! I've noted {resolved['frame_material']} frame material."

        return "Got it! I've updated your specifications."

    # -------------------------------------------------------------------------
    # Pending-clarification slot
    # -------------------------------------------------------------------------

    async def save_pending_clarification(
        self,
        user_id: str,
        ambiguity: BaseAmbiguity,
        clarification_id: Optional[str] = None,
    ) -> PendingClarification:
        """Store ``ambiguity`` as the conversation's only pending clarification.

        Raises:
            Whatever the store raises; the orchestrator converts it.
        """
        pending = PendingClarification(
            ambiguity=ambiguity,
            created_at=datetime.now(timezone.utc),
            id=clarification_id or self.generate_clarification_id(ambiguity),
        )
        await maybe_await(self.store.set_conversation_context(
            user_id,
            PENDING_CLARIFICATION_KEY,
            pending.model_dump(mode="json"),
        ))
        logger.debug(
            "pending_clarification_saved",
            user_id=user_id,
            ambiguity_type=ambiguity.type,
            term=ambiguity.term,
            clarification_id=pending.id,
        )
        return pending

    async def get_pending_clarification(self, user_id: str) -> Optional[PendingClarification]:
        """Read the pending slot; storage failures and bad data read as None."""
        try:
            raw = await maybe_await(self.store.get_conversation_context(user_id, PENDING_CLARIFICATION_KEY))
        except Exception as e:
            logger.warning("pending_clarification_read_failed", user_id=user_id, error=str(e))
            return None

        if not raw:
            return None
        if isinstance(raw, PendingClarification):
            return raw
        try:
            return PendingClarification.model_validate(raw)
        except Exception as e:
            logger.warning("pending_clarification_unreadable", user_id=user_id, error=str(e)[:200])
            return None

    async def clear_pending_clarification(self, user_id: str) -> None:
        await maybe_await(self.store.set_conversation_context(user_id, PENDING_CLARIFICATION_KEY, None))
        logger.debug("pending_clarification_cleared", user_id=user_id)

    async def get_state(self, user_id: str) -> ClarificationState:
        pending = await self.get_pending_clarification(user_id)
        return ClarificationState.AWAITING_RESPONSE if pending else ClarificationState.IDLE
