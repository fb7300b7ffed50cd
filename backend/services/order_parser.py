"""
Regex-based order parsing for the legacy fallback path.

When the dual-agent path fails, the single legacy reply is expected to end
with a human-readable summary block. This module approximates the structured
fields from that text with an ordered list of strategies:

1. SummaryBlockStrategy: label-prefixed summary lines ("Site: ...")
2. KeywordStrategy: looser "keyword anywhere" patterns

Each strategy returns a partial ParsedOrder; results are merged field by
field, first non-empty value wins. Confirmation is read from the user's own
message, never from the reply.
"""
import logging
import re
from dataclasses import dataclass, fields
from typing import List, Optional, Pattern

from models.order import DeliveryInfo, ExtractionResult, Material
from services.order_validation import standardize_unit, validate_date, validate_time, VALID_UNITS

logger = logging.getLogger(__name__)

COMPLETE_SCORE = 0.9
INCOMPLETE_SCORE = 0.5

UNIT_ALTERNATION = r"m3|m³|m2|m²|kg|tonnes?|tons?|bags?|sacs?|pallets?|palettes?|litres?|liters?|cm|m|l"

AFFIRMATION_WORDS = [
    "yes", "yep", "yeah", "ok", "okay", "confirm", "confirmed", "correct",
    "exactly", "right", "perfect", "sure", "that's it", "good to go",
    "oui", "d'accord", "parfait", "validé", "confirmé", "c'est bon", "exact",
]


@dataclass
class ParsedOrder:
    """Fields recovered from free text. None means not found."""
    site: Optional[str] = None
    material: Optional[str] = None
    quantity: Optional[str] = None
    unit: Optional[str] = None
    date: Optional[str] = None
    time: Optional[str] = None

    def merge(self, other: "ParsedOrder") -> None:
        """Fill fields still missing here from another result."""
        for item in fields(self):
            if not getattr(self, item.name) and getattr(other, item.name):
                setattr(self, item.name, getattr(other, item.name))

    @property
    def is_complete(self) -> bool:
        return all(getattr(self, item.name) for item in fields(self))


def _clean_markdown(text: str) -> str:
    return text.replace("**", "").replace("*", "").replace("__", "").strip()


def _normalize_date(value: str) -> Optional[str]:
    """Accept DD/MM/YYYY or YYYY-MM-DD; return a valid DD/MM/YYYY or None."""
    value = value.strip()
    iso = re.match(r"^(\d{4})-(\d{2})-(\d{2})$", value)
    if iso:
        year, month, day = iso.groups()
        value = f"{day}/{month}/{year}"
    return value if validate_date(value) else None


def _normalize_time(value: str) -> Optional[str]:
    """Accept HH:MM or HHhMM; return a valid HH:MM or None."""
    value = value.strip().lower().replace("h", ":")
    return value if validate_time(value) else None


def _normalize_unit(value: str) -> Optional[str]:
    unit = standardize_unit(value)
    return unit if unit in VALID_UNITS else None


def _normalize_quantity(value: str) -> Optional[str]:
    value = value.strip().replace(" ", "")
    return value or None


class ParsingStrategy:
    """Base class: one way of reading order fields out of text."""

    name = "base"

    def extract(self, text: str) -> ParsedOrder:
        raise NotImplementedError

    @staticmethod
    def _search(pattern: Pattern, text: str, group: int = 1) -> Optional[str]:
        match = pattern.search(text)
        if not match:
            return None
        value = match.group(group)
        return value.strip() if value else None


class SummaryBlockStrategy(ParsingStrategy):
    """Label-prefixed lines as produced by the legacy prompt's summary."""

    name = "summary_block"

    SITE = re.compile(r"^\s*-?\s*(?:site|chantier)\s*:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE)
    MATERIAL = re.compile(r"^\s*-?\s*(?:material|matériau|materiau)\s*:\s*(.+?)\s*$", re.IGNORECASE | re.MULTILINE)
    QUANTITY = re.compile(
        rf"^\s*-?\s*(?:quantity|quantité|quantite)[^:\n]*:\s*(\d[\d\s]*(?:[.,]\d+)?)\s*({UNIT_ALTERNATION})\b",
        re.IGNORECASE | re.MULTILINE
    )
    NEEDED_FOR = re.compile(
        r"^\s*-?\s*(?:needed for|needed on|delivery|besoin pour)[^:\n]*:\s*(.+?)\s*$",
        re.IGNORECASE | re.MULTILINE
    )
    DATE = re.compile(r"(\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{2}-\d{2})")
    TIME = re.compile(r"\b(\d{1,2}[:h]\d{2})\b", re.IGNORECASE)

    def extract(self, text: str) -> ParsedOrder:
        result = ParsedOrder(
            site=self._search(self.SITE, text),
            material=self._search(self.MATERIAL, text)
        )

        quantity_match = self.QUANTITY.search(text)
        if quantity_match:
            result.quantity = _normalize_quantity(quantity_match.group(1))
            result.unit = _normalize_unit(quantity_match.group(2))

        needed_for = self._search(self.NEEDED_FOR, text)
        if needed_for:
            date_value = self._search(self.DATE, needed_for)
            time_value = self._search(self.TIME, needed_for)
            result.date = _normalize_date(date_value) if date_value else None
            result.time = _normalize_time(time_value) if time_value else None

        return result


class KeywordStrategy(ParsingStrategy):
    """Looser patterns that look for keywords anywhere in the text."""

    name = "keyword"

    SITE = re.compile(r"\b(?:site|chantier|location)\b(?:\s*:\s*|\s+)([^\n.,!?]+)", re.IGNORECASE)
    MATERIAL = re.compile(r"\b(?:material|product|matériau|materiau)\b(?:\s*:\s*|\s+)([^\n.,!?]+)", re.IGNORECASE)
    QUANTITY = re.compile(rf"(\d+(?:[.,]\d+)?)\s*({UNIT_ALTERNATION})\b", re.IGNORECASE)
    DATE = re.compile(r"(\d{1,2}/\d{1,2}/\d{4}|\d{4}-\d{2}-\d{2})")
    TIME = re.compile(r"(?:\bat\b|\bà\b|\btime\b|\bheure\b)?\s*:?\s*\b(\d{1,2}[:h]\d{2})\b", re.IGNORECASE)

    def extract(self, text: str) -> ParsedOrder:
        result = ParsedOrder(
            site=self._search(self.SITE, text),
            material=self._search(self.MATERIAL, text)
        )

        quantity_match = self.QUANTITY.search(text)
        if quantity_match:
            result.quantity = _normalize_quantity(quantity_match.group(1))
            result.unit = _normalize_unit(quantity_match.group(2))

        date_value = self._search(self.DATE, text)
        if date_value:
            result.date = _normalize_date(date_value)

        time_value = self._search(self.TIME, text)
        if time_value:
            result.time = _normalize_time(time_value)

        return result


DEFAULT_STRATEGIES: List[ParsingStrategy] = [SummaryBlockStrategy(), KeywordStrategy()]


def is_affirmation(user_text: str) -> bool:
    """True if the user's message contains an affirmation word."""
    text = user_text.lower()
    return any(
        re.search(rf"(?<!\w){re.escape(word)}(?!\w)", text)
        for word in AFFIRMATION_WORDS
    )


def parse_order_from_response(
    response: str,
    user_text: str = "",
    strategies: Optional[List[ParsingStrategy]] = None
) -> ParsedOrder:
    """
    Recover order fields from a legacy reply, then from the user's message.

    Args:
        response: Free-text assistant reply
        user_text: The user's message, used as a last-resort source
        strategies: Ordered strategies (defaults to summary then keyword)

    Returns:
        Merged ParsedOrder
    """
    strategies = strategies if strategies is not None else DEFAULT_STRATEGIES
    sources = [_clean_markdown(response)]
    if user_text.strip():
        sources.append(_clean_markdown(user_text))

    parsed = ParsedOrder()
    for source in sources:
        for strategy in strategies:
            if parsed.is_complete:
                break
            parsed.merge(strategy.extract(source))

    logger.info(f"Order parsed from legacy response: {parsed}, complete={parsed.is_complete}")
    return parsed


def to_extraction_result(parsed: ParsedOrder, user_text: str) -> ExtractionResult:
    """Project a ParsedOrder onto the ExtractionResult shape used downstream."""
    materials = []
    if parsed.material:
        materials.append(Material(name=parsed.material, quantity=parsed.quantity or "", unit=parsed.unit or ""))

    return ExtractionResult(
        site=parsed.site,
        materials=materials,
        delivery=DeliveryInfo(date=parsed.date, time=parsed.time),
        completeness=COMPLETE_SCORE if parsed.is_complete else INCOMPLETE_SCORE,
        confirmed=is_affirmation(user_text)
    )
