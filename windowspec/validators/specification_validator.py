"""Window specification validation.

Validates a partially-filled specification against the priority-tiered
field catalog, picks the next field to ask about, and applies defaults.
Every method is pure and total: malformed values are reported as
``invalid`` entries, never raised.
"""

import math
from typing import Any, Dict, List, Mapping, Optional, Sequence

import structlog

from windowspec.config.catalog import DEFAULT_FIELD_DEFINITIONS
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

logger = structlog.get_logger()

MAX_ASPECT_RATIO = 3
MAX_SLIDER_HEIGHT = 60


class SpecificationValidator:
    """Validates window specifications against a field catalog."""

    def __init__(self, field_definitions: Sequence[FieldDefinition] = DEFAULT_FIELD_DEFINITIONS):
        """Initialize SpecificationValidator.

        Args:
            field_definitions: Field catalog in declaration order.
        """
        self.field_definitions = tuple(field_definitions)
        self._by_name = {definition.name: definition for definition in self.field_definitions}

    def get_field(self, name: str) -> Optional[FieldDefinition]:
        """Look up a field definition by name."""
        return self._by_name.get(name)

    def validate(self, spec: Optional[Mapping[str, Any]]) -> ValidationResult:
        """Validate a specification and classify every defined field.

        Args:
            spec: Field name to raw value mapping (may be empty or None).

        Returns:
            ValidationResult with missing/invalid sorted by priority.
        """
        spec = spec if isinstance(spec, Mapping) else {}
        missing: List[FieldIssue] = []
        invalid: List[FieldIssue] = []
        complete: List[FieldIssue] = []

        for definition in self.field_definitions:
            value = spec.get(definition.name)
            issue = FieldIssue(
                field=definition.name,
                label=definition.label,
                priority=definition.priority,
                value_type=definition.value_type,
                default=definition.default,
            )
            if not is_present(value):
                missing.append(issue)
            elif not definition.is_valid(value):
                issue.value = value
                invalid.append(issue)
            else:
                issue.value = value
                complete.append(issue)

        # sorted() is stable, so ties keep declaration order
        missing = sorted(missing, key=lambda issue: issue.priority)
        invalid = sorted(invalid, key=lambda issue: issue.priority)

        return ValidationResult(
            missing=missing,
            invalid=invalid,
            warnings=self.check_logical_consistency(spec),
            complete=complete,
            is_valid=not missing and not invalid,
            can_generate_quote=self._can_generate_quote(missing, invalid),
            completion_percentage=self._completion_percentage(len(complete)),
        )

    def check_logical_consistency(self, spec: Mapping[str, Any]) -> List[ConsistencyWarning]:
        """Run cross-field checks and return non-blocking warnings."""
        warnings: List[ConsistencyWarning] = []

        pane_count = to_number(spec.get("pane_count"))
        if pane_count == 1 and (spec.get("has_low_e") is True or spec.get("has_argon") is True):
            warnings.append(ConsistencyWarning(
                type="logical_inconsistency",
                message="Single pane windows typically do not have Low-E coating or argon fill",
                severity="warning",
            ))

        width = to_number(spec.get("width"))
        height = to_number(spec.get("height"))
        if width and height and width > 0 and height > 0:
            if width > height * MAX_ASPECT_RATIO:
                warnings.append(ConsistencyWarning(
                    type="unusual_dimensions",
                    message="Window is unusually wide relative to height",
                    severity="info",
                ))
            if height > width * MAX_ASPECT_RATIO:
                warnings.append(ConsistencyWarning(
                    type="unusual_dimensions",
                    message="Window is unusually tall relative to width",
                    severity="info",
                ))

        operation = spec.get("operation_type")
        if isinstance(operation, str) and operation.strip().lower() == "slider":
            if height is not None and height > MAX_SLIDER_HEIGHT:
                warnings.append(ConsistencyWarning(
                    type="operation_dimension_mismatch",
                    message="Slider windows are typically not recommended for heights over 60 inches",
                    severity="warning",
                ))

        return warnings

    def get_next_missing_field(self, result: ValidationResult) -> Optional[FieldIssue]:
        """Return the field to address next, or None when complete.

        Invalid fields take precedence over missing ones.
        """
        if result.invalid:
            return _with_action(result.invalid[0], FieldAction.CORRECT)
        if result.missing:
            return _with_action(result.missing[0], FieldAction.COLLECT)
        return None

    def apply_defaults(self, spec: Optional[Mapping[str, Any]]) -> Specification:
        """Return a copy of ``spec`` with defaults filled for absent fields.

        Present values, including False and 0, are never overwritten.
        """
        spec_with_defaults: Dict[str, Any] = dict(spec or {})

        for definition in self.field_definitions:
            if definition.default is not None and not is_present(spec_with_defaults.get(definition.name)):
                spec_with_defaults[definition.name] = definition.default
                logger.debug(
                    "default_applied",
                    field=definition.name,
                    default_value=definition.default,
                )

        # Efficiency options default on for multi-pane glass only
        pane_count = to_number(spec_with_defaults.get("pane_count"))
        multi_pane = pane_count is not None and pane_count >= 2
        for name in ("has_low_e", "has_argon"):
            if name in self._by_name and not is_present(spec_with_defaults.get(name)):
                spec_with_defaults[name] = multi_pane

        return spec_with_defaults

    def get_validation_summary(self, result: ValidationResult) -> str:
        """Human-readable summary of a validation result."""
        if result.is_valid:
            return "All specifications are complete and valid."

        parts = []
        if result.invalid:
            parts.append(f"{len(result.invalid)} field(s) need correction")
        if result.missing:
            parts.append(f"{len(result.missing)} field(s) are missing")
        if result.can_generate_quote:
            parts.append("Quote can be generated with defaults")
        else:
            parts.append("More information needed for quote")

        return ", ".join(parts) + "."

    def _can_generate_quote(self, missing: List[FieldIssue], invalid: List[FieldIssue]) -> bool:
        if invalid:
            return False
        # Priority 2+ gaps can be filled by defaults
        return not any(issue.priority == FieldPriority.CRITICAL for issue in missing)

    def _completion_percentage(self, complete_count: int) -> int:
        total = len(self.field_definitions)
        if total == 0:
            return 100
        # Round half up
        return int(math.floor(complete_count / total * 100 + 0.5))


def _with_action(issue: FieldIssue, action: FieldAction) -> FieldIssue:
    return FieldIssue(
        field=issue.field,
        label=issue.label,
        priority=issue.priority,
        value_type=issue.value_type,
        value=issue.value,
        default=issue.default,
        action=action.value,
    )
