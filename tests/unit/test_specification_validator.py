"""Unit tests for SpecificationValidator."""

import pytest

from windowspec.models.specification import FieldAction, FieldDefinition, FieldPriority
from windowspec.validators.specification_validator import SpecificationValidator


class TestValidate:
    """Tests for validate()."""

    def test_empty_spec(self, validator):
        """Empty spec: everything missing, nothing complete."""
        result = validator.validate({})

        assert result.completion_percentage == 0
        assert result.is_valid is False
        assert result.can_generate_quote is False
        assert len(result.missing) == 9
        assert result.invalid == []
        assert result.complete == []

    def test_none_and_non_mapping_spec(self, validator):
        """Malformed input is treated as empty."""
        assert validator.validate(None).completion_percentage == 0
        assert len(validator.validate("width=36").missing) == 9

    def test_critical_only(self, validator, critical_only_spec):
        """Critical fields alone allow a quote with defaults."""
        result = validator.validate(critical_only_spec)

        assert result.completion_percentage == 33
        assert result.can_generate_quote is True
        assert result.is_valid is False
        assert [issue.field for issue in result.complete] == ["width", "height", "operation_type"]

    def test_complete_spec(self, validator, complete_spec):
        """All fields valid."""
        result = validator.validate(complete_spec)

        assert result.is_valid is True
        assert result.can_generate_quote is True
        assert result.completion_percentage == 100
        assert result.missing == []

    def test_missing_sorted_by_priority(self, validator):
        """Missing fields are ordered by priority, ties in declaration order."""
        result = validator.validate({"frame_material": "wood"})

        priorities = [issue.priority for issue in result.missing]
        assert priorities == sorted(priorities)
        assert [issue.field for issue in result.missing[:3]] == ["width", "height", "operation_type"]
        assert result.missing[-1].field == "grid_type"

    def test_invalid_values_reported(self, validator):
        """Out-of-range and unknown values land in invalid."""
        result = validator.validate({
            "width": 500,
            "height": "tall",
            "operation_type": "revolving",
            "pane_count": 4,
        })

        invalid = {issue.field: issue.value for issue in result.invalid}
        assert invalid == {"width": 500, "height": "tall", "operation_type": "revolving", "pane_count": 4}
        assert result.can_generate_quote is False

    def test_invalid_blocks_quote_even_for_optional_field(self, validator, critical_only_spec):
        """Any invalid field prevents quoting."""
        result = validator.validate({**critical_only_spec, "grid_type": "plaid"})

        assert result.can_generate_quote is False

    def test_false_and_zero_are_present(self, validator):
        """False is a value; 0 is a present (but invalid) dimension."""
        result = validator.validate({"has_low_e": False, "width": 0})

        assert "has_low_e" in [issue.field for issue in result.complete]
        assert "width" in [issue.field for issue in result.invalid]

    def test_blank_string_is_missing(self, validator):
        """Blank strings count as absent."""
        result = validator.validate({"operation_type": "   "})

        assert "operation_type" in [issue.field for issue in result.missing]

    def test_idempotent(self, validator, critical_only_spec):
        """Validating twice gives the same result."""
        first = validator.validate(critical_only_spec)
        second = validator.validate(critical_only_spec)

        assert first == second

    def test_does_not_mutate_input(self, validator, critical_only_spec):
        snapshot = dict(critical_only_spec)
        validator.validate(critical_only_spec)
        assert critical_only_spec == snapshot

    def test_rounding_half_up(self):
        """Completion percentage rounds half up."""
        definitions = [
            FieldDefinition(name, name.title(), 1, "number", lambda value: True)
            for name in ("a", "b", "c", "d", "e", "f", "g", "h")
        ]
        validator = SpecificationValidator(definitions)

        # 1/8 = 12.5%
        assert validator.validate({"a": 1}).completion_percentage == 13


class TestConsistency:
    """Tests for check_logical_consistency()."""

    def test_single_pane_with_low_e(self, validator):
        warnings = validator.check_logical_consistency({"pane_count": 1, "has_low_e": True})

        assert [warning.type for warning in warnings] == ["logical_inconsistency"]
        assert warnings[0].severity == "warning"

    def test_unusual_aspect_ratio(self, validator):
        warnings = validator.check_logical_consistency({"width": 100, "height": 20})

        assert warnings[0].type == "unusual_dimensions"
        assert warnings[0].severity == "info"

    def test_tall_slider(self, validator):
        warnings = validator.check_logical_consistency({"operation_type": "slider", "width": 40, "height": 72})

        assert [warning.type for warning in warnings] == ["operation_dimension_mismatch"]

    def test_warnings_do_not_affect_validity(self, validator, complete_spec):
        """Warnings never change is_valid."""
        result = validator.validate({**complete_spec, "pane_count": 1})

        assert result.warnings
        assert result.is_valid is True


class TestNextMissingField:
    """Tests for get_next_missing_field()."""

    def test_invalid_before_missing(self, validator):
        """An invalid field is corrected before anything is collected."""
        result = validator.validate({"grid_type": "plaid"})
        next_field = validator.get_next_missing_field(result)

        assert next_field.field == "grid_type"
        assert next_field.action == FieldAction.CORRECT.value

    def test_first_missing_is_critical(self, validator):
        result = validator.validate({"frame_material": "wood"})
        next_field = validator.get_next_missing_field(result)

        assert next_field.field == "width"
        assert next_field.priority == FieldPriority.CRITICAL
        assert next_field.action == FieldAction.COLLECT.value

    def test_does_not_mutate_result(self, validator):
        result = validator.validate({})
        validator.get_next_missing_field(result)

        assert result.missing[0].action is None

    def test_complete_returns_none(self, validator, complete_spec):
        assert validator.get_next_missing_field(validator.validate(complete_spec)) is None


class TestApplyDefaults:
    """Tests for apply_defaults()."""

    def test_defaults_fill_absent_fields(self, validator, critical_only_spec):
        result = validator.apply_defaults(critical_only_spec)

        assert result["frame_material"] == "vinyl"
        assert result["grid_type"] == "none"
        assert result["has_low_e"] is False
        assert result["has_argon"] is False
        assert "glass_type" not in result

    def test_multi_pane_turns_efficiency_on(self, validator):
        result = validator.apply_defaults({"pane_count": 3})

        assert result["has_low_e"] is True
        assert result["has_argon"] is True

    def test_never_overwrites_present_values(self, validator):
        """False and explicit choices survive."""
        spec = {"pane_count": 2, "has_low_e": False, "frame_material": "wood"}
        result = validator.apply_defaults(spec)

        assert result["has_low_e"] is False
        assert result["has_argon"] is True
        assert result["frame_material"] == "wood"

    def test_input_not_mutated(self, validator, critical_only_spec):
        snapshot = dict(critical_only_spec)
        validator.apply_defaults(critical_only_spec)
        assert critical_only_spec == snapshot

    @pytest.mark.parametrize("spec", [None, {}])
    def test_empty_input(self, validator, spec):
        result = validator.apply_defaults(spec)
        assert result["frame_material"] == "vinyl"


class TestValidationSummary:
    """Tests for get_validation_summary()."""

    def test_complete(self, validator, complete_spec):
        summary = validator.get_validation_summary(validator.validate(complete_spec))
        assert summary == "All specifications are complete and valid."

    def test_quote_with_defaults(self, validator, critical_only_spec):
        summary = validator.get_validation_summary(validator.validate(critical_only_spec))
        assert summary == "6 field(s) are missing, Quote can be generated with defaults."
