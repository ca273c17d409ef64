"""
Date and time extraction from free-form English chat messages.

Recovers an ISO date ("2025-12-12") and a 24-hour clock time ("17:00") from
messages such as "book padel on 12th December at 5pm" or "tomorrow 15h30".

Dates are resolved by an ordered list of pure strategies. Each strategy looks
at the whole message and returns a DateMatch (ISO date + strategy name + the
character span it consumed) or None; the first hit wins:

    1. numeric   - "2025-12-12", "12/12/2025", "12-12-2025"
    2. natural   - "12th December", "the 13th of May 2026", "Dec 12, 2025"
    3. relative  - "today", "tomorrow", "day after tomorrow"
    4. weekday   - "friday" (next occurrence, never today)

Times are found by scanning clock-shaped numeric tokens. Digits belonging to a
date (or to any span the caller asks to ignore, e.g. "Tennis Court 2") are
masked first so they are never read as hours.
"""

import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

# Default reference time zone (campus in Ifrane, Morocco)
CASABLANCA_TZ = ZoneInfo("Africa/Casablanca")


@dataclass(frozen=True)
class DateMatch:
    """A resolved calendar date and where it came from."""

    iso_date: str
    strategy: str
    span: tuple[int, int]


@dataclass(frozen=True)
class TimeCandidate:
    """A clock time guess with the provenance used to rank it."""

    time: str
    has_explicit_meridian: bool
    has_explicit_separator: bool
    source_offset: int


@dataclass(frozen=True)
class TemporalResult:
    date: DateMatch | None = None
    time: str | None = None
    time_range: list[str] = field(default_factory=list)

    @property
    def iso_date(self) -> str | None:
        return self.date.iso_date if self.date else None

    @property
    def effective_time(self) -> str | None:
        """Single time, or the start of a range when only a range was found."""
        if self.time:
            return self.time
        return self.time_range[0] if self.time_range else None


DateStrategy = Callable[[str, date], DateMatch | None]


def today_in(timezone: ZoneInfo = CASABLANCA_TZ) -> date:
    return datetime.now(timezone).date()


# ============================================================================
# Date strategies
# ============================================================================

MONTHS = {
    "january": 1, "jan": 1,
    "february": 2, "feb": 2,
    "march": 3, "mar": 3,
    "april": 4, "apr": 4,
    "may": 5,
    "june": 6, "jun": 6,
    "july": 7, "jul": 7,
    "august": 8, "aug": 8,
    "september": 9, "sept": 9, "sep": 9,
    "october": 10, "oct": 10,
    "november": 11, "nov": 11,
    "december": 12, "dec": 12,
}

WEEKDAYS = {
    "monday": 0,
    "tuesday": 1,
    "wednesday": 2,
    "thursday": 3,
    "friday": 4,
    "saturday": 5,
    "sunday": 6,
}

# Longest names first so "september" wins over "sep"
_MONTH_ALT = "|".join(sorted(MONTHS, key=len, reverse=True))

_NUMERIC_DATE = re.compile(
    r"\b(?:(?P<iso_y>\d{4})-(?P<iso_m>\d{2})-(?P<iso_d>\d{2})"
    r"|(?P<d>\d{1,2})[/-](?P<m>\d{1,2})[/-](?P<y>\d{4}))\b"
)

_DAY_MONTH = re.compile(
    rf"\b(?P<day>\d{{1,2}})(?P<ordinal>st|nd|rd|th)?\s+(?P<article>of\s+)?(?P<month>{_MONTH_ALT})\b\.?"
    r"(?:,?\s+(?P<year>\d{4})\b)?",
    re.IGNORECASE,
)

_MONTH_DAY = re.compile(
    rf"\b(?P<month>{_MONTH_ALT})\.?\s+(?P<article>the\s+)?(?P<day>\d{{1,2}})(?P<ordinal>st|nd|rd|th)?\b"
    r"(?:,?\s+(?P<year>\d{4})\b)?",
    re.IGNORECASE,
)

# "may" is also a verb ("5 may work"): only read as a month when the phrase
# carries an ordinal, "of"/"the" or a year.
_AMBIGUOUS_MONTHS = {"may"}

_RELATIVE = re.compile(r"\b(?:(?P<after>day after tomorrow)|(?P<tomorrow>tomorrow)|(?P<today>today|tonight))\b", re.IGNORECASE)

_WEEKDAY = re.compile(rf"\b(?P<weekday>{'|'.join(WEEKDAYS)})\b", re.IGNORECASE)


def _safe_date(year: int, month: int, day: int) -> date | None:
    try:
        return date(year, month, day)
    except ValueError:
        return None


def _natural_date_matches(pattern: re.Pattern[str], text: str) -> Iterable[re.Match[str]]:
    for match in pattern.finditer(text):
        if match.group("month").lower() in _AMBIGUOUS_MONTHS and not (
            match.group("ordinal") or match.group("article") or match.group("year")
        ):
            continue
        yield match


def parse_numeric_date(text: str, today: date) -> DateMatch | None:
    """YYYY-MM-DD, DD/MM/YYYY or DD-MM-YYYY; impossible dates are ignored."""
    for match in _NUMERIC_DATE.finditer(text):
        if match.group("iso_y"):
            parsed = _safe_date(int(match.group("iso_y")), int(match.group("iso_m")), int(match.group("iso_d")))
        else:
            parsed = _safe_date(int(match.group("y")), int(match.group("m")), int(match.group("d")))
        if parsed:
            return DateMatch(parsed.isoformat(), "numeric", match.span())
    return None


def parse_natural_date(text: str, today: date) -> DateMatch | None:
    """
    "12th December [2025]" or "December 12[th] [2025]".

    Without a year the current year is assumed, rolled to next year when the
    day has already passed. "May" needs an ordinal, "of"/"the" or a year
    ("5 may work" is not a date, "5th May" is).
    """
    for pattern in (_DAY_MONTH, _MONTH_DAY):
        match = next(iter(_natural_date_matches(pattern, text)), None)
        if not match:
            continue

        month = MONTHS[match.group("month").lower()]
        day = int(match.group("day"))
        explicit_year = match.group("year")

        if explicit_year:
            parsed = _safe_date(int(explicit_year), month, day)
        else:
            parsed = _safe_date(today.year, month, day)
            if parsed and parsed < today:
                parsed = _safe_date(today.year + 1, month, day)

        if parsed:
            return DateMatch(parsed.isoformat(), "natural", match.span())
    return None


def parse_relative_date(text: str, today: date) -> DateMatch | None:
    match = _RELATIVE.search(text)
    if not match:
        return None

    if match.group("after"):
        offset = 2
    elif match.group("tomorrow"):
        offset = 1
    else:
        offset = 0
    return DateMatch((today + timedelta(days=offset)).isoformat(), "relative", match.span())


def parse_weekday(text: str, today: date) -> DateMatch | None:
    """
    Weekday name -> next occurrence.

    Rules:
        - weekday later this week -> this week
        - weekday already passed (or today) -> next week
    """
    match = _WEEKDAY.search(text)
    if not match:
        return None

    target = WEEKDAYS[match.group("weekday").lower()]
    days_ahead = (target - today.weekday()) % 7 or 7
    return DateMatch((today + timedelta(days=days_ahead)).isoformat(), "weekday", match.span())


DATE_STRATEGIES: tuple[DateStrategy, ...] = (
    parse_numeric_date,
    parse_natural_date,
    parse_relative_date,
    parse_weekday,
)


def resolve_date(
    text: str,
    today: date | None = None,
    strategies: Sequence[DateStrategy] = DATE_STRATEGIES,
) -> DateMatch | None:
    """
    Run the date strategies in order and return the first hit.

    Args:
        text: Raw user message
        today: Reference day (default: today in Africa/Casablanca)
        strategies: Ordered strategies, overridable for tests

    Example:
        >>> resolve_date("12th December 2025").iso_date
        '2025-12-12'
    """
    if today is None:
        today = today_in()

    for strategy in strategies:
        result = strategy(text, today)
        if result is not None:
            return result
    return None


# ============================================================================
# Time extraction
# ============================================================================

_TIME_KEYWORDS = (
    (re.compile(r"\bnoon\b", re.IGNORECASE), "12:00"),
    (re.compile(r"\bmidnight\b", re.IGNORECASE), "00:00"),
)

_TIME_TOKEN = re.compile(
    r"""
    (?<![\d_:/.])(?<![a-z]-)           # not glued to an id or another number
    (?P<hour>\d{1,2})
    (?:(?P<sep>[:h.]|\s)(?P<minute>\d{2}))?
    (?![\d/])
    (?P<h_suffix>h(?![a-z]))?          # "15h"
    (?:\s*(?P<meridian>[ap]\.?\s?m\b\.?))?
    """,
    re.IGNORECASE | re.VERBOSE,
)

MAX_RANGE_TIMES = 2


def mask_spans(text: str, spans: Iterable[tuple[int, int]]) -> str:
    """Blank out spans with spaces, keeping every other offset intact."""
    chars = list(text)
    for start, end in spans:
        for index in range(max(start, 0), min(end, len(chars))):
            chars[index] = " "
    return "".join(chars)


def _date_spans(text: str) -> list[tuple[int, int]]:
    spans = [m.span() for m in _NUMERIC_DATE.finditer(text)]
    spans += [m.span() for m in _natural_date_matches(_DAY_MONTH, text)]
    spans += [m.span() for m in _natural_date_matches(_MONTH_DAY, text)]
    return spans


def scan_time_candidates(
    text: str,
    ignore_spans: Iterable[tuple[int, int]] = (),
) -> list[TimeCandidate]:
    """
    Collect every valid clock-time token, in order of appearance.

    Discard rules:
        - bare number directly followed by a letter ("13th") -> skipped
        - number glued to a preceding letter ("court2") -> skipped unless
          am/pm follows ("at5pm")
        - decimal numbers ("2.5 hours") -> skipped
        - hour > 23 or minute > 59 -> skipped
    Separators: ":", "h", "." or a space ("17:30", "17h30", "5.30pm").
    Normalisation: "pm" adds 12 to hours below 12, "12 am" becomes 00.
    """
    masked = mask_spans(text, [*_date_spans(text), *ignore_spans])
    candidates: list[TimeCandidate] = []

    for match in _TIME_TOKEN.finditer(masked):
        meridian = match.group("meridian")
        meridian = meridian.lower().replace(".", "").replace(" ", "") if meridian else None
        has_separator = bool(match.group("minute") or match.group("h_suffix"))

        prev_char = masked[match.start() - 1] if match.start() > 0 else ""
        if not meridian and prev_char.isalpha():
            continue

        next_chars = masked[match.end():match.end() + 2]
        if not meridian and not has_separator and next_chars[:1].isalpha():
            continue
        if next_chars[:1] == "." and next_chars[1:].isdigit():
            continue

        hour = int(match.group("hour"))
        minute = int(match.group("minute") or 0)

        if meridian == "pm" and hour < 12:
            hour += 12
        if meridian == "am" and hour == 12:
            hour = 0

        if hour > 23 or minute > 59:
            continue

        candidates.append(
            TimeCandidate(
                time=f"{hour:02d}:{minute:02d}",
                has_explicit_meridian=meridian is not None,
                has_explicit_separator=has_separator,
                source_offset=match.start(),
            )
        )

    return candidates


def parse_time(text: str, ignore_spans: Iterable[tuple[int, int]] = ()) -> str | None:
    """
    Best single clock time in the message as "HH:MM".

    "noon"/"midnight" win outright; otherwise the first candidate with an
    explicit am/pm, otherwise the earliest candidate.

    Example:
        >>> parse_time("meet at 5, call me at 3pm")
        '15:00'
    """
    for pattern, value in _TIME_KEYWORDS:
        if pattern.search(text):
            return value

    candidates = scan_time_candidates(text, ignore_spans)
    if not candidates:
        return None

    for candidate in candidates:
        if candidate.has_explicit_meridian:
            return candidate.time
    return candidates[0].time


def parse_time_range(text: str, ignore_spans: Iterable[tuple[int, int]] = ()) -> list[str]:
    """Up to two times in order of appearance ("from 16:00 to 18h")."""
    candidates = scan_time_candidates(text, ignore_spans)
    return [candidate.time for candidate in candidates[:MAX_RANGE_TIMES]]


def extract_temporal(
    text: str,
    today: date | None = None,
    ignore_spans: Iterable[tuple[int, int]] = (),
) -> TemporalResult:
    """Resolve date, best time and time range from one message."""
    ignore = list(ignore_spans)
    return TemporalResult(
        date=resolve_date(text, today),
        time=parse_time(text, ignore),
        time_range=parse_time_range(text, ignore),
    )


def time_to_minutes(value: str) -> int:
    """"HH:MM" -> minutes since midnight."""
    hours, _, minutes = value.partition(":")
    return int(hours) * 60 + int(minutes or 0)


def minutes_to_time(value: int) -> str:
    return f"{value // 60:02d}:{value % 60:02d}"
