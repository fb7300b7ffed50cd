"""Unit tests for the legacy regex order parser."""
import sys
from pathlib import Path

# Add backend to path
sys.path.insert(0, str(Path(__file__).parent.parent / "backend"))

import pytest
from services.order_parser import (
    COMPLETE_SCORE,
    INCOMPLETE_SCORE,
    KeywordStrategy,
    ParsedOrder,
    SummaryBlockStrategy,
    is_affirmation,
    parse_order_from_response,
    to_extraction_result,
)

SUMMARY_REPLY = """Great, here is your order 👍

**Summary:**
- Site: Riverside Tower
- Material: ready-mix concrete
- Quantity: 12 m³
- Needed for: 15/01/2025 at 14:00

Can you confirm this summary? Reply 'ok'."""


class TestSummaryBlockStrategy:
    """Test suite for the label-prefixed summary strategy."""

    def test_extracts_all_fields(self):
        parsed = SummaryBlockStrategy().extract(SUMMARY_REPLY.replace("**", ""))

        assert parsed.site == "Riverside Tower"
        assert parsed.material == "ready-mix concrete"
        assert parsed.quantity == "12"
        assert parsed.unit == "m3"
        assert parsed.date == "15/01/2025"
        assert parsed.time == "14:00"
        assert parsed.is_complete

    def test_no_summary_returns_empty(self):
        parsed = SummaryBlockStrategy().extract("Which site is the delivery for?")
        assert parsed == ParsedOrder()

    def test_invalid_date_is_not_extracted(self):
        parsed = SummaryBlockStrategy().extract("- Needed for: 32/13/2025 at 14:00")

        assert parsed.date is None
        assert parsed.time == "14:00"


class TestKeywordStrategy:
    """Test suite for the loose keyword strategy."""

    def test_keywords_anywhere(self):
        text = "OK so that's site Harbour View, 3 tons of gravel on 02/02/2025 at 7h30"
        parsed = KeywordStrategy().extract(text)

        assert parsed.site == "Harbour View"
        assert parsed.material is None
        assert parsed.quantity == "3"
        assert parsed.unit == "tons"
        assert parsed.date == "02/02/2025"
        assert parsed.time == "7:30"

    def test_iso_date_is_normalized(self):
        parsed = KeywordStrategy().extract("Delivery on 2025-03-10 please")
        assert parsed.date == "10/03/2025"


class TestParseOrderFromResponse:
    """Test suite for the merged strategy cascade."""

    def test_summary_reply_is_complete(self):
        parsed = parse_order_from_response(SUMMARY_REPLY, "ok")

        assert parsed.is_complete
        assert parsed.site == "Riverside Tower"

    def test_first_non_empty_wins(self):
        """Test that the summary strategy's value is kept over a later match."""
        reply = "- Site: North Yard\nThe site manager will sign."
        parsed = parse_order_from_response(reply)

        assert parsed.site == "North Yard"

    def test_user_message_fills_missing_fields(self):
        """Test that fields absent from the reply are recovered from the user's text."""
        reply = "- Site: North Yard\n- Material: sand"
        parsed = parse_order_from_response(reply, "5 m3 for 20/05/2025 at 09:00")

        assert parsed.quantity == "5"
        assert parsed.unit == "m3"
        assert parsed.date == "20/05/2025"
        assert parsed.time == "09:00"
        assert parsed.is_complete

    def test_question_reply_is_incomplete(self):
        parsed = parse_order_from_response("For which date and time do you need it?", "hello")
        assert not parsed.is_complete


class TestAffirmation:
    """Test suite for confirmation detection in the user's message."""

    @pytest.mark.parametrize("text", ["ok", "OK!", "Yes please", "that's correct", "Exactly", "oui", "c'est bon"])
    def test_affirmations(self, text):
        assert is_affirmation(text) is True

    @pytest.mark.parametrize("text", ["no", "wait, change the date", "book it tomorrow", ""])
    def test_non_affirmations(self, text):
        assert is_affirmation(text) is False


class TestToExtractionResult:
    """Test suite for projecting parsed orders onto ExtractionResult."""

    def test_complete_confirmed(self):
        parsed = parse_order_from_response(SUMMARY_REPLY, "ok")
        result = to_extraction_result(parsed, "ok")

        assert result.site == "Riverside Tower"
        assert len(result.materials) == 1
        assert result.materials[0].unit == "m3"
        assert result.completeness == COMPLETE_SCORE
        assert result.confirmed is True

    def test_incomplete_unconfirmed(self):
        result = to_extraction_result(ParsedOrder(site="North Yard"), "hmm")

        assert result.materials == []
        assert result.completeness == INCOMPLETE_SCORE
        assert result.confirmed is False


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
