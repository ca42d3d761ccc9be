"""Conversation flow orchestration.

Decides, for every incoming message, whether the conversation needs a
clarification, more information, a quote offer with defaults, or is ready
for a quote.

Flow per message:
1. Pending clarification? Interpret the message as its answer.
2. Otherwise detect ambiguities; any hit becomes the single pending
   clarification and the turn ends without merging fields.
3. Merge extracted fields and persist before anything else can fail.
4. Validate and derive the next step.

Unexpected collaborator failures become an ERROR outcome; nothing is
raised to the caller.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, List, Mapping, Optional

import structlog

from windowspec.config.settings import settings
from windowspec.models.flow_outcome import FlowOutcome, FlowStep, OutcomeType, QuoteOption
from windowspec.models.specification import Specification, ValidationResult, is_present
from windowspec.models.ambiguity import ClarificationResult
from windowspec.services.ambiguity_detector import AmbiguityDetector
from windowspec.services.clarification_service import ClarificationService
from windowspec.services.conversation_store import (
    VALIDATION_STATE_KEY,
    ConversationStore,
    create_conversation_store,
    maybe_await,
)
from windowspec.services.question_generator import QuestionGenerator
from windowspec.utils.conversation_logger import (
    log_turn_error,
    log_turn_outcome,
    log_turn_start,
    summarize_spec,
)
from windowspec.validators.specification_validator import SpecificationValidator

logger = structlog.get_logger()

GENERIC_ERROR_MESSAGE = "I'm having trouble processing that. Could you please try again?"
RETURNING_ERROR_MESSAGE = (
    "Welcome back! Let's start fresh with your window quote. What type of window are you looking for?"
)
READY_MESSAGE = "Perfect! I have all the information needed. Let me generate your window quote."
INCOMPLETE_ERROR_MESSAGE = (
    "I'm having trouble determining what information I need. "
    "Let's start over. What type of window are you looking for?"
)


def _format_value(value: Any) -> str:
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


class ConversationFlowService:
    """Orchestrates one conversational turn at a time.

    Turns for the same user are expected to be serialized by the caller;
    the service holds no per-conversation state of its own.
    """

    def __init__(
        self,
        conversation_store: Optional[ConversationStore] = None,
        question_generator: Optional[QuestionGenerator] = None,
        specification_validator: Optional[SpecificationValidator] = None,
        ambiguity_detector: Optional[AmbiguityDetector] = None,
        clarification_service: Optional[ClarificationService] = None,
        expiration_days: Optional[int] = None,
        clock: Optional[Callable[[], datetime]] = None,
    ):
        """Initialize ConversationFlowService.

        Args:
            conversation_store: Optional store; defaults to the configured backend.
            question_generator: Optional question templating collaborator.
            specification_validator: Optional validator instance.
            ambiguity_detector: Optional detector instance.
            clarification_service: Optional clarification service.
            expiration_days: Conversation expiration window; defaults to settings.
            clock: Returns the current UTC time.
        """
        self.store = conversation_store or create_conversation_store()
        self.question_generator = question_generator or QuestionGenerator()
        self.validator = specification_validator or SpecificationValidator()
        self.ambiguity_detector = ambiguity_detector or AmbiguityDetector()
        self.clarification_service = clarification_service or ClarificationService(
            self.store, self.ambiguity_detector
        )

        days = settings.conversation_expiration_days if expiration_days is None else expiration_days
        self.expiration_window = timedelta(days=days)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # -------------------------------------------------------------------------
    # Entry points
    # -------------------------------------------------------------------------

    async def process_user_message(
        self,
        user_id: str,
        message: str,
        extracted_fields: Optional[Dict[str, Any]] = None,
    ) -> FlowOutcome:
        """Process a user message and determine the next step.

        Args:
            user_id: Conversation identifier.
            message: The user's raw message.
            extracted_fields: Fields extracted from the message upstream.

        Returns:
            FlowOutcome for this turn.
        """
        log_turn_start(user_id, message, extracted_fields)
        try:
            outcome = await self._process_turn(user_id, message, extracted_fields or {})
        except Exception as e:
            log_turn_error(user_id, "process_user_message", e, message)
            outcome = FlowOutcome(type=OutcomeType.ERROR, message=GENERIC_ERROR_MESSAGE, requires_input=True)

        log_turn_outcome(user_id, outcome.type, outcome.requires_input)
        return outcome

    async def handle_returning_user(self, user_id: str) -> FlowOutcome:
        """Resume a conversation, applying defaults if it has expired.

        Args:
            user_id: Conversation identifier.

        Returns:
            FlowOutcome for the resumed conversation (``resumed`` is True).
        """
        try:
            current_spec = await self.get_current_specification(user_id)
            last_activity = await self._get_last_activity(user_id)

            if self.is_conversation_expired(last_activity):
                outcome = await self._handle_expired_conversation(user_id, current_spec)
            else:
                validation = self.validator.validate(current_spec)
                next_step = await self.determine_next_step(current_spec, validation)
                welcome = self.generate_welcome_back_message(validation)
                outcome = next_step.model_copy(update={
                    "message": f"{welcome}\n\n{next_step.message}",
                    "resumed": True,
                })

        except Exception as e:
            log_turn_error(user_id, "handle_returning_user", e)
            outcome = FlowOutcome(type=OutcomeType.ERROR, message=RETURNING_ERROR_MESSAGE, requires_input=True)

        log_turn_outcome(user_id, outcome.type, outcome.requires_input, resumed=outcome.resumed)
        return outcome

    async def clear_conversation_state(self, user_id: str) -> bool:
        """Forget the specification and every context slot of a conversation."""
        try:
            await maybe_await(self.store.clear_partial_specification(user_id))
            await maybe_await(self.store.clear_conversation_context(user_id))
            logger.info("conversation_state_cleared", user_id=user_id)
            return True
        except Exception as e:
            log_turn_error(user_id, "clear_conversation_state", e)
            return False

    # -------------------------------------------------------------------------
    # Turn processing
    # -------------------------------------------------------------------------

    async def _process_turn(self, user_id: str, message: str, extracted_fields: Dict[str, Any]) -> FlowOutcome:
        logger.debug("flow_step", user_id=user_id, step=FlowStep.CHECK_PENDING_CLARIFICATION.value)
        pending = await self.clarification_service.get_pending_clarification(user_id)

        if pending:
            logger.debug("flow_step", user_id=user_id, step=FlowStep.PROCESS_CLARIFICATION_RESPONSE.value)
            current_spec = await self.get_current_specification(user_id)
            result = await self.clarification_service.process_user_clarification(
                user_id, message, pending.ambiguity, current_spec
            )
            if result.error:
                return FlowOutcome(type=OutcomeType.ERROR, message=GENERIC_ERROR_MESSAGE, requires_input=True)
            if result.resolved:
                return await self._continue_after_clarification(user_id, result)

            moved_on = self.clarification_service.abandoned_fields(pending.ambiguity, extracted_fields)
            if not moved_on:
                return FlowOutcome(
                    type=OutcomeType.NEEDS_CLARIFICATION,
                    message=result.message,
                    ambiguity=pending.ambiguity,
                    requires_input=True,
                )

            # The user moved on: drop the question and take what they gave
            await self.clarification_service.clear_pending_clarification(user_id)
            logger.info(
                "clarification_abandoned",
                user_id=user_id,
                ambiguity_type=pending.ambiguity.type,
                fields=sorted(moved_on),
            )
            return await self._merge_and_validate(user_id, current_spec, extracted_fields)

        logger.debug("flow_step", user_id=user_id, step=FlowStep.DETECT_NEW_AMBIGUITY.value)
        current_spec = await self.get_current_specification(user_id)
        ambiguities = self.ambiguity_detector.detect(message, current_spec)

        if ambiguities:
            request = self.clarification_service.generate_clarification_request(ambiguities, current_spec)
            if request:
                logger.debug("flow_step", user_id=user_id, step=FlowStep.EMIT_CLARIFICATION.value)
                await self.clarification_service.save_pending_clarification(
                    user_id, request.ambiguity, request.clarification_id
                )
                await self._touch(user_id)
                logger.info(
                    "clarification_requested",
                    user_id=user_id,
                    ambiguity_type=request.ambiguity.type,
                    term=request.ambiguity.term,
                    detected=len(ambiguities),
                )
                return FlowOutcome(
                    type=OutcomeType.NEEDS_CLARIFICATION,
                    message=request.message,
                    ambiguity=request.ambiguity,
                    requires_input=True,
                )

        return await self._merge_and_validate(user_id, current_spec, extracted_fields)

    async def _merge_and_validate(
        self, user_id: str, current_spec: Specification, extracted_fields: Dict[str, Any]
    ) -> FlowOutcome:
        logger.debug("flow_step", user_id=user_id, step=FlowStep.MERGE_AND_VALIDATE.value)
        new_values = {key: value for key, value in extracted_fields.items() if value is not None}
        merged_spec = {**current_spec, **new_values}
        validation = await self.save_progress(user_id, merged_spec)

        return await self.determine_next_step(merged_spec, validation)

    async def _continue_after_clarification(self, user_id: str, result: ClarificationResult) -> FlowOutcome:
        spec = dict(result.updated_spec)
        validation = await self.save_progress(user_id, spec)
        next_step = await self.determine_next_step(spec, validation)

        confirmation = result.message or "Thank you for clarifying!"
        return next_step.model_copy(update={
            "message": f"{confirmation}\n\n{next_step.message}",
            "resolved_fields": list(result.resolved_fields),
        })

    async def save_progress(self, user_id: str, spec: Specification) -> ValidationResult:
        """Persist the specification, then record activity and validation state.

        The specification write propagates failures; the bookkeeping writes
        after it are best-effort.
        """
        await maybe_await(self.store.save_partial_specification(user_id, spec))
        validation = self.validator.validate(spec)
        await self._touch(user_id)

        try:
            await maybe_await(self.store.set_conversation_context(user_id, VALIDATION_STATE_KEY, {
                "canGenerateQuote": validation.can_generate_quote,
                "completionPercentage": validation.completion_percentage,
                "missingFields": len(validation.missing),
                "timestamp": self._clock().isoformat(),
            }))
        except Exception as e:
            logger.warning("validation_state_save_failed", user_id=user_id, error=str(e))

        logger.info(
            "conversation_progress_saved",
            user_id=user_id,
            completion_percentage=validation.completion_percentage,
            can_generate_quote=validation.can_generate_quote,
            spec=summarize_spec(spec),
        )
        return validation

    async def determine_next_step(self, spec: Specification, validation: ValidationResult) -> FlowOutcome:
        """Map a validation result to the turn's outcome."""
        logger.debug("flow_step", step=FlowStep.DETERMINE_NEXT_STEP.value)

        if validation.is_valid:
            return FlowOutcome(
                type=OutcomeType.GENERATE_QUOTE,
                message=READY_MESSAGE,
                specs=dict(spec),
                validation=validation,
                requires_input=False,
            )

        if validation.can_generate_quote:
            spec_with_defaults = self.validator.apply_defaults(spec)
            return FlowOutcome(
                type=OutcomeType.OFFER_QUOTE_WITH_DEFAULTS,
                message=self.generate_defaults_offer_message(spec, spec_with_defaults),
                specs=spec_with_defaults,
                validation=validation,
                requires_input=True,
                options=[QuoteOption.GENERATE_QUOTE.value, QuoteOption.PROVIDE_MORE_DETAILS.value],
            )

        next_field = self.validator.get_next_missing_field(validation)
        if next_field is None:
            return FlowOutcome(type=OutcomeType.ERROR, message=INCOMPLETE_ERROR_MESSAGE, requires_input=True)

        question = await maybe_await(
            self.question_generator.generate_question(next_field, spec, next_field.action)
        )
        progress = await maybe_await(
            self.question_generator.generate_progress_message(validation.completion_percentage, validation.missing)
        )
        return FlowOutcome(
            type=OutcomeType.COLLECT_INFORMATION,
            message=f"{progress}\n\n{question}",
            next_field=next_field,
            validation=validation,
            requires_input=True,
        )

    # -------------------------------------------------------------------------
    # Returning users
    # -------------------------------------------------------------------------

    async def _handle_expired_conversation(self, user_id: str, current_spec: Specification) -> FlowOutcome:
        spec_with_defaults = self.validator.apply_defaults(current_spec)
        await maybe_await(self.store.save_partial_specification(user_id, spec_with_defaults))
        await self._touch(user_id)

        validation = self.validator.validate(spec_with_defaults)
        applied = self.defaulted_fields(current_spec, spec_with_defaults)
        user_supplied = [name for name, value in current_spec.items() if is_present(value)]

        logger.info(
            "expired_conversation_defaults_applied",
            user_id=user_id,
            applied_defaults=applied,
            user_supplied=user_supplied,
            can_generate_quote=validation.can_generate_quote,
        )

        follow_up = (
            "I can generate a quote with these specifications, or you can update any details."
            if validation.can_generate_quote
            else "Let's complete the remaining information needed for your quote."
        )
        welcome = (
            "Welcome back! I found your previous window quote request from a while ago.\n\n"
            "Since some time has passed, I've applied our standard defaults for any missing information:\n"
            f"{self.format_applied_defaults(applied, spec_with_defaults)}\n\n"
            f"{follow_up}"
        )

        next_step = await self.determine_next_step(spec_with_defaults, validation)
        return next_step.model_copy(update={
            "message": f"{welcome}\n\n{next_step.message}",
            "resumed": True,
            "applied_defaults": applied,
            "user_supplied_fields": user_supplied,
        })

    def is_conversation_expired(self, last_activity: Any) -> bool:
        """Whether more than the expiration window has passed since ``last_activity``."""
        last = _as_utc_datetime(last_activity)
        if last is None:
            return False
        return self._clock() - last > self.expiration_window

    def generate_welcome_back_message(self, validation: ValidationResult) -> str:
        percent = validation.completion_percentage
        if percent >= 90:
            return "Welcome back! You're almost done with your window quote - just a few more details needed."
        if percent >= 70:
            return "Welcome back! You've provided most of the information for your window quote. Let's finish up."
        if percent >= 50:
            return "Welcome back! You're about halfway through your window quote. Let's continue where we left off."
        if percent > 0:
            return (
                "Welcome back! I have some information from our previous conversation. "
                "Let's continue with your window quote."
            )
        return "Welcome back! Let's continue with your window quote."

    def generate_defaults_offer_message(self, spec: Specification, spec_with_defaults: Specification) -> str:
        applied = self.defaulted_fields(spec, spec_with_defaults)
        if not applied:
            return "I have enough information to generate your quote! Would you like me to proceed?"

        options = ", ".join(
            f"{self._label(name)}: {_format_value(spec_with_defaults[name])}" for name in applied
        )
        return (
            f"I can generate a quote now using these standard options: {options}.\n\n"
            "Would you like me to generate the quote, or would you prefer to specify these details yourself?"
        )

    def defaulted_fields(self, original: Mapping[str, Any], with_defaults: Mapping[str, Any]) -> List[str]:
        """Fields present only because defaults were applied, in catalog order."""
        return [
            definition.name
            for definition in self.validator.field_definitions
            if not is_present(original.get(definition.name)) and is_present(with_defaults.get(definition.name))
        ]

    def format_applied_defaults(self, applied: List[str], spec_with_defaults: Mapping[str, Any]) -> str:
        if not applied:
            return "• Standard energy-efficient options"
        return "\n".join(
            f"• {self._label(name)}: {_format_value(spec_with_defaults[name])}" for name in applied
        )

    # -------------------------------------------------------------------------
    # Collaborator access
    # -------------------------------------------------------------------------

    async def get_current_specification(self, user_id: str) -> Specification:
        """Stored specification, or an empty one when unavailable."""
        try:
            spec = await maybe_await(self.store.get_partial_specification(user_id))
        except Exception as e:
            logger.warning("specification_read_failed", user_id=user_id, error=str(e))
            return {}
        return dict(spec) if isinstance(spec, Mapping) else {}

    async def _get_last_activity(self, user_id: str) -> Any:
        try:
            return await maybe_await(self.store.get_last_activity_time(user_id))
        except Exception as e:
            logger.warning("last_activity_read_failed", user_id=user_id, error=str(e))
            return None

    async def _touch(self, user_id: str) -> None:
        try:
            await maybe_await(self.store.update_last_activity(user_id))
        except Exception as e:
            logger.warning("last_activity_update_failed", user_id=user_id, error=str(e))

    def _label(self, name: str) -> str:
        definition = self.validator.get_field(name)
        return definition.label if definition else name


def _as_utc_datetime(value: Any) -> Optional[datetime]:
    """Normalize a stored timestamp (datetime, ISO string, epoch ms)."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, (int, float)):
        parsed = datetime.fromtimestamp(value / 1000, tz=timezone.utc)
    elif isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            logger.warning("last_activity_unparseable", value=value[:40])
            return None
    else:
        return None

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
