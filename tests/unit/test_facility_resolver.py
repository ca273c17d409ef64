"""
Unit tests for facility_resolver.py - free text to catalog facility.

Tests coverage:
- Direct matches on id and display name
- Aliases and misspellings (paddle, padle, left field, bikes)
- Generic type keywords (tennis, soccer)
- Precedence direct > alias > type
- Word boundaries and minimum reverse-match length
- Span offsets used to mask names before time parsing
"""

import pytest

from agent.utils.facility_resolver import resolve_facility


class TestDirectMatch:
    """Test id and display name matching."""

    def test_display_name(self):
        result = resolve_facility("Book Tennis Court 2 at 5pm")

        assert result.facility_id == "tennis-2"
        assert result.strategy == "direct"
        assert result.span == (5, 19)

    def test_facility_id(self):
        assert resolve_facility("newfield-half-b tomorrow").facility_id == "newfield-half-b"

    def test_text_inside_display_name(self):
        """A short message found inside a name resolves to that facility."""
        assert resolve_facility("tennis court").facility_id == "tennis-1"

    def test_short_text_does_not_reverse_match(self):
        """'a' is inside many names but below the minimum length."""
        assert resolve_facility("a") is None


class TestAliases:
    """Test misspellings and synonyms."""

    @pytest.mark.parametrize("text", ["paddle", "Padel", "PADLE", "paddel tomorrow", "padl at 6"])
    def test_padel_variants(self, text):
        assert resolve_facility(text).facility_id == "padel"

    def test_left_field(self):
        result = resolve_facility("left field at 6pm")

        assert result.facility_id == "newfield-half-a"
        assert result.strategy == "alias"

    def test_right_side(self):
        assert resolve_facility("the right side please").facility_id == "newfield-half-b"

    def test_football_sala(self):
        assert resolve_facility("football sala friday").facility_id == "futsal"

    def test_bikes(self):
        assert resolve_facility("rent bikes tomorrow").facility_id == "bicycles"

    def test_alias_needs_word_boundary(self):
        """'sala' inside 'salad' is not futsal."""
        assert resolve_facility("i want a salad") is None


class TestTypeKeywords:
    """Test generic keywords when nothing more specific matched."""

    def test_tennis_picks_first_court(self):
        result = resolve_facility("book tennis tomorrow")

        assert result.facility_id == "tennis-1"
        assert result.strategy == "type"

    @pytest.mark.parametrize("text", ["soccer tomorrow", "play football at 5"])
    def test_field_keywords_fall_back_to_half_a(self, text):
        assert resolve_facility(text).facility_id == "newfield-half-a"

    def test_basketball(self):
        assert resolve_facility("Basketball tomorrow").facility_id == "basketball"


class TestNoMatch:
    @pytest.mark.parametrize("text", ["hello", "", "   ", None, "what are your prices?"])
    def test_nothing_resolved(self, text):
        assert resolve_facility(text) is None
