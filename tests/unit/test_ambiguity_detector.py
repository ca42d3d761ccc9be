"""Unit tests for AmbiguityDetector."""

import pytest

from windowspec.models.ambiguity import (
    AmbiguityType,
    FrameAmbiguity,
    GlassAmbiguity,
    OperationAmbiguity,
    SizeAmbiguity,
)
from windowspec.services.ambiguity_detector import (
    AMBIGUOUS_DIMENSION,
    NEEDS_DIFFERENT_FRAME,
    NEEDS_DIFFERENT_GLASS,
    contains_term,
    extract_numbers,
    parse_dimensions,
)


@pytest.fixture
def size_ambiguity():
    return SizeAmbiguity(
        term="medium",
        confidence=0.8,
        clarify_message="Medium typically means 36x48 inches. Is that about right?",
        suggestion="36x48",
    )


@pytest.fixture
def operation_ambiguity():
    return OperationAmbiguity(
        term="regular",
        confidence=0.6,
        clarify_message="By regular window, do you mean fixed or casement?",
        options=["Fixed", "Casement"],
    )


@pytest.fixture
def glass_ambiguity():
    return GlassAmbiguity(
        term="standard",
        confidence=0.8,
        clarify_message="Standard glass includes Low-E coating and argon fill. Is that good?",
        default_bundle="Double pane with Low-E & Argon",
    )


@pytest.fixture
def frame_ambiguity():
    return FrameAmbiguity(
        term="standard",
        confidence=0.8,
        clarify_message="Standard frames are vinyl. Is that what you want?",
        default_material="vinyl",
    )


class TestTextHelpers:
    """Tests for the module-level matching helpers."""

    @pytest.mark.parametrize("text", ["standard", "A Standard window", "standard."])
    def test_whole_word_match(self, text):
        assert contains_term(text, "standard") is True

    @pytest.mark.parametrize("text", ["nonstandard", "standards", "substandard sizes"])
    def test_substring_does_not_match(self, text):
        assert contains_term(text, "standard") is False

    def test_multi_word_term(self):
        assert contains_term("I want it Energy   Efficient", "energy efficient") is True

    def test_curly_apostrophe(self):
        assert contains_term("it doesn’t open", "doesn't open") is True

    @pytest.mark.parametrize("text,expected", [
        ("36x48", (36, 48)),
        ("30 X 60", (30, 60)),
        ("24 by 36", (24, 36)),
        ("36 inches wide by 48", (36, 48)),
        ("35.5x48", (35.5, 48)),
    ])
    def test_parse_dimensions(self, text, expected):
        assert parse_dimensions(text) == expected

    def test_parse_dimensions_requires_pair(self):
        assert parse_dimensions("about 36 inches") is None

    def test_extract_numbers(self):
        assert extract_numbers("36 wide and 48.5 tall") == [36, 48.5]


class TestDetect:
    """Tests for detect()."""

    def test_standard_window(self, detector):
        """'standard' matches every category."""
        ambiguities = detector.detect("I want a standard window")

        types = {ambiguity.type for ambiguity in ambiguities}
        assert types == {"size", "operation", "glass", "frame"}
        confidences = [ambiguity.confidence for ambiguity in ambiguities]
        assert confidences == sorted(confidences, reverse=True)

    def test_ties_keep_detection_order(self, detector):
        """Equal confidences stay in category declaration order."""
        ambiguities = detector.detect("I want a standard window")

        assert [ambiguity.type for ambiguity in ambiguities[:2]] == ["glass", "frame"]

    def test_nonstandard_not_detected(self, detector):
        assert detector.detect("a nonstandard size with standards compliance") == []

    def test_empty_and_non_string(self, detector):
        assert detector.detect("") == []
        assert detector.detect(None) == []
        assert detector.detect(42) == []

    def test_size_skipped_when_dimensions_known(self, detector):
        ambiguities = detector.detect("a medium window", {"width": 36, "height": 48})
        assert ambiguities == []

    def test_size_detected_when_only_width_known(self, detector):
        ambiguities = detector.detect("a medium window", {"width": 36})
        assert [ambiguity.type for ambiguity in ambiguities] == ["size"]

    def test_glass_skipped_when_pane_count_known(self, detector):
        ambiguities = detector.detect("energy efficient please", {"pane_count": 2})
        assert ambiguities == []

    def test_detected_variants_carry_resolution_data(self, detector):
        ambiguities = detector.detect("a basic window")

        by_type = {ambiguity.type: ambiguity for ambiguity in ambiguities}
        assert by_type["operation"].options == ["Fixed", "Casement"]
        assert by_type["frame"].default_material == "vinyl"

    def test_most_confident(self, detector):
        ambiguities = detector.detect("cheap and energy efficient")

        best = detector.get_most_confident_ambiguity(ambiguities)
        assert best.term == "cheap"
        assert detector.get_most_confident_ambiguity([]) is None


class TestResolveSize:
    """Tests for size resolution."""

    def test_agreement_uses_suggestion(self, detector, size_ambiguity):
        assert detector.resolve_ambiguity(size_ambiguity, "yes that's right") == {"width": 36, "height": 48}

    def test_explicit_pair_wins(self, detector, size_ambiguity):
        assert detector.resolve_ambiguity(size_ambiguity, "actually 30x60") == {"width": 30, "height": 60}

    def test_explicit_pair_beats_agreement(self, detector, size_ambiguity):
        assert detector.resolve_ambiguity(size_ambiguity, "yes, but 30 by 50") == {"width": 30, "height": 50}

    def test_single_number_is_ambiguous(self, detector, size_ambiguity):
        assert detector.resolve_ambiguity(size_ambiguity, "it's 40") == {AMBIGUOUS_DIMENSION: 40}

    def test_unrelated_reply(self, detector, size_ambiguity):
        assert detector.resolve_ambiguity(size_ambiguity, "hmm") is None

    @pytest.mark.parametrize("reply", ["no, that's not right", "that's wrong", "nope", "not really"])
    def test_rejection_is_unresolved(self, detector, size_ambiguity, reply):
        """Negated agreement never selects the suggested size."""
        assert detector.resolve_ambiguity(size_ambiguity, reply) is None

    @pytest.mark.parametrize("reply", ["yes that's right", "sounds good", "ok"])
    def test_plain_agreement(self, detector, size_ambiguity, reply):
        assert detector.resolve_ambiguity(size_ambiguity, reply) == {"width": 36, "height": 48}


class TestResolveOperation:
    """Tests for operation resolution."""

    def test_offered_option(self, detector, operation_ambiguity):
        assert detector.resolve_ambiguity(operation_ambiguity, "Casement") == {"operation_type": "casement"}

    def test_negation_checked_first(self, detector, operation_ambiguity):
        """'doesn't open' must not read as an opening type."""
        result = detector.resolve_ambiguity(operation_ambiguity, "it doesn't open, not a casement")
        assert result == {"operation_type": "fixed"}

    @pytest.mark.parametrize("reply,expected", [
        ("a double hung one", "hung"),
        ("sliding please", "slider"),
        ("an awning", "awning"),
        ("it has a crank", "casement"),
        ("it goes up and down", "hung"),
        ("side to side", "slider"),
    ])
    def test_synonyms_and_descriptions(self, detector, operation_ambiguity, reply, expected):
        assert detector.resolve_ambiguity(operation_ambiguity, reply) == {"operation_type": expected}

    def test_unrecognized(self, detector, operation_ambiguity):
        assert detector.resolve_ambiguity(operation_ambiguity, "the usual kind") is None


class TestResolveGlass:
    """Tests for glass resolution."""

    def test_agreement_expands_bundle(self, detector, glass_ambiguity):
        result = detector.resolve_ambiguity(glass_ambiguity, "sounds good")

        assert result == {"glass_type": "clear", "pane_count": 2, "has_low_e": True, "has_argon": True}

    def test_rejection(self, detector, glass_ambiguity):
        assert detector.resolve_ambiguity(glass_ambiguity, "no thanks") == {NEEDS_DIFFERENT_GLASS: True}

    @pytest.mark.parametrize("reply", [
        "that's not good",
        "that’s not good",
        "not right for me",
        "that isn't what I need",
        "something else",
    ])
    def test_negated_agreement_is_rejection(self, detector, glass_ambiguity, reply):
        assert detector.resolve_ambiguity(glass_ambiguity, reply) == {NEEDS_DIFFERENT_GLASS: True}

    def test_uncertain_reply_unresolved(self, detector, glass_ambiguity):
        assert detector.resolve_ambiguity(glass_ambiguity, "not sure") is None

    def test_parse_glass_default(self, detector):
        assert detector.parse_glass_default("Triple pane with Low-E & Argon")["pane_count"] == 3
        assert detector.parse_glass_default("Double pane") == {
            "glass_type": "clear",
            "pane_count": 2,
            "has_low_e": False,
            "has_argon": False,
        }


class TestResolveFrame:
    """Tests for frame resolution."""

    def test_named_material(self, detector, frame_ambiguity):
        assert detector.resolve_ambiguity(frame_ambiguity, "No, I want wood") == {"frame_material": "wood"}

    def test_agreement_uses_default(self, detector, frame_ambiguity):
        assert detector.resolve_ambiguity(frame_ambiguity, "yes") == {"frame_material": "vinyl"}

    def test_rejection(self, detector, frame_ambiguity):
        assert detector.resolve_ambiguity(frame_ambiguity, "nope") == {NEEDS_DIFFERENT_FRAME: True}

    @pytest.mark.parametrize("reply", ["not what I want", "that's not okay", "wrong, sorry"])
    def test_negated_agreement_is_rejection(self, detector, frame_ambiguity, reply):
        assert detector.resolve_ambiguity(frame_ambiguity, reply) == {NEEDS_DIFFERENT_FRAME: True}


class TestResolveInputs:
    """Malformed inputs never raise."""

    def test_dict_form_is_accepted(self, detector):
        stored = {
            "type": "frame",
            "term": "cheap",
            "confidence": 0.9,
            "clarifyMessage": "The most economical option is vinyl frames.",
            "default": "vinyl",
        }
        assert detector.resolve_ambiguity(stored, "ok") == {"frame_material": "vinyl"}

    @pytest.mark.parametrize("ambiguity", [None, {}, {"type": "color", "term": "x"}, "size"])
    def test_malformed_ambiguity(self, detector, ambiguity):
        assert detector.resolve_ambiguity(ambiguity, "yes") is None

    def test_empty_response(self, detector, size_ambiguity):
        assert detector.resolve_ambiguity(size_ambiguity, "") is None
        assert detector.resolve_ambiguity(size_ambiguity, None) is None

    def test_type_enum_matches(self, size_ambiguity):
        assert size_ambiguity.type == AmbiguityType.SIZE
