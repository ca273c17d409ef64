"""
Facility Name Resolver.

Maps free text ("book paddle tomorrow", "left field at 6pm") to exactly one
entry of the facility catalog. Matching is deterministic, with this precedence:

    1. direct  - facility id or display name found in the text, or the text
                 found inside a display name ("tennis court")
    2. alias   - known misspellings and synonyms ("paddle" -> padel)
    3. type    - generic keyword for a facility type ("tennis" -> first
                 tennis court), only when nothing more specific matched

Ties are broken by catalog order. There is no edit-distance matching: a
misspelling only resolves if it is listed in FACILITY_ALIASES.
"""

import logging
import re
from dataclasses import dataclass

from database.catalog import FACILITIES, Facility, get_facility

logger = logging.getLogger(__name__)

# Shortest input allowed to match "inside" a display name ("court" but not "a")
MIN_REVERSE_MATCH_LENGTH = 3

FACILITY_ALIASES: dict[str, tuple[str, ...]] = {
    "padel": ("paddle", "paddel", "padle", "padl"),
    "futsal": ("football sala", "sala"),
    "basketball": ("basket ball", "basket"),
    "bicycles": ("bicycle", "bikes", "bike"),
    "newfield-half-a": ("field a", "half a", "left side", "left field", "field left"),
    "newfield-half-b": ("field b", "half b", "right side", "right field", "field right"),
}

# Generic keywords -> facility type; first facility of that type wins
TYPE_KEYWORDS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("tennis",), "tennis"),
    (("padel", "paddle", "paddel"), "padel"),
    (("futsal",), "futsal"),
    (("soccer", "football", "field"), "half-field-a"),
    (("basket",), "basketball"),
    (("bike", "bicycle"), "bicycles"),
)


@dataclass(frozen=True)
class FacilityMatch:
    """Resolved facility plus the part of the message that named it."""

    facility: Facility
    strategy: str  # "direct", "alias" or "type"
    span: tuple[int, int]

    @property
    def facility_id(self) -> str:
        return self.facility.id


def _normalize(text: str) -> str:
    return " ".join(text.lower().split())


def _direct_match(text: str) -> FacilityMatch | None:
    normalized = _normalize(text)

    for facility in FACILITIES:
        for needle in (facility.id, facility.name.lower()):
            position = text.find(needle)
            if position >= 0:
                return FacilityMatch(facility, "direct", (position, position + len(needle)))

        if len(normalized) >= MIN_REVERSE_MATCH_LENGTH and normalized in facility.name.lower():
            return FacilityMatch(facility, "direct", (0, len(text)))

    return None


def _alias_match(text: str) -> FacilityMatch | None:
    for facility_id, aliases in FACILITY_ALIASES.items():
        for alias in aliases:
            match = re.search(rf"\b{re.escape(alias)}\b", text)
            if match:
                facility = get_facility(facility_id)
                if facility:
                    return FacilityMatch(facility, "alias", match.span())
    return None


def _type_match(text: str) -> FacilityMatch | None:
    for keywords, facility_type in TYPE_KEYWORDS:
        for keyword in keywords:
            position = text.find(keyword)
            if position < 0:
                continue
            for facility in FACILITIES:
                if facility.type == facility_type:
                    return FacilityMatch(facility, "type", (position, position + len(keyword)))
    return None


def resolve_facility(text: str | None) -> FacilityMatch | None:
    """
    Resolve a message to one catalog facility.

    Matching is case-insensitive; span offsets refer to the original message
    (lower-casing keeps string length for the catalog's ASCII vocabulary).

    Examples:
        >>> resolve_facility("PADLE tomorrow").facility.id
        'padel'
        >>> resolve_facility("tennis please").facility.id
        'tennis-1'
        >>> resolve_facility("hello") is None
        True
    """
    if not text or not text.strip():
        return None

    lowered = text.lower()

    for matcher in (_direct_match, _alias_match, _type_match):
        result = matcher(lowered)
        if result:
            logger.debug(
                f"Resolved facility '{result.facility.id}' via {result.strategy}",
                extra={"facility_id": result.facility.id},
            )
            return result

    return None
