"""
Free-text time language heuristics.

Everything regex-based about reading times lives here so the slot logic in
``availability`` never touches raw user text. The classification is
best-effort: it recognises the common shapes ("6pm", "7:30", "evening",
"later than 6") and nothing more.

Usage:
    pref = parse_time_preference("later than 6")
    # TimePreference(kind=VAGUE, relation=AFTER, hour=18, period=None)
"""

import re
from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional

# Hours 1-12 mentioned without am/pm are read as PM in a scheduling context.
EVENING_COERCION_RANGE = range(1, 13)

_SPECIFIC_RES = (
    re.compile(r"^\d{1,2}\s*(am|pm|:\d{2})$", re.IGNORECASE),
    re.compile(r"^\d{1,2}:\d{2}\s*(am|pm)?$", re.IGNORECASE),
)
_CLOCK_RE = re.compile(r"(\d{1,2})(?::(\d{2}))?\s*(am|pm)?", re.IGNORECASE)
_PERIOD_WORDS_RE = re.compile(r"morning|evening|afternoon|night", re.IGNORECASE)
_MERIDIEM_RE = re.compile(r"(\d\s*|\b)(am|pm)\b|:", re.IGNORECASE)
_RELATIVE_WORD_RE = re.compile(r"later|after|before|earlier|around|about", re.IGNORECASE)
_BARE_HOUR_RE = re.compile(r"^\d{1,2}$")

_AFTER_RE = re.compile(r"\b(?:later|after)\s*(?:than)?\s*(\d{1,2})\s*(am|pm)?", re.IGNORECASE)
_BEFORE_RE = re.compile(r"\b(?:earlier|before)\s*(?:than)?\s*(\d{1,2})\s*(am|pm)?", re.IGNORECASE)
_AROUND_RE = re.compile(r"\b(?:around|about|at)\s*(\d{1,2})\s*(am|pm)?", re.IGNORECASE)

_REJECTION_RE = re.compile(
    r"\blater\b|\btoo early\b|\btoo late\b|\bcan[’']?t do\b|\bdoesn[’']?t work\b"
    r"|\bdon[’']?t work\b|\bnone of those\b|\bother\b|\balternative",
    re.IGNORECASE,
)
_WANTS_LATER_RE = re.compile(r"\blater\b|\btoo early\b|\bafter\b", re.IGNORECASE)
_WANTS_EARLIER_RE = re.compile(r"\bearlier\b|\btoo late\b|\bbefore\b", re.IGNORECASE)
_MENTIONED_HOUR_RE = re.compile(r"\b(\d{1,2})(?::\d{2})?\s*(am|pm)?\b", re.IGNORECASE)
_SKIP_DAY_RE = re.compile(
    r"\b(?:not|skip|except|no)\s+(?:on\s+)?"
    r"(monday|tuesday|wednesday|thursday|friday|saturday|sunday)s?\b",
    re.IGNORECASE,
)


class TimeKind(str, Enum):
    """Tri-state classification of a captured time value."""

    NONE = "none"
    VAGUE = "vague"
    SPECIFIC = "specific"


class TimeRelation(str, Enum):
    AFTER = "after"
    BEFORE = "before"
    AROUND = "around"


class DayPeriod(str, Enum):
    MORNING = "morning"
    AFTERNOON = "afternoon"
    EVENING = "evening"


@dataclass(frozen=True)
class TimePreference:
    """Parsed time language. ``hour`` is always 24h when set."""

    kind: TimeKind
    period: Optional[DayPeriod] = None
    relation: Optional[TimeRelation] = None
    hour: Optional[int] = None
    raw: str = ""

    @property
    def has_preference(self) -> bool:
        return self.kind != TimeKind.NONE


@dataclass(frozen=True)
class Renegotiation:
    """How the last user message reacts to previously offered slots."""

    is_rejection: bool
    wants_later: bool = False
    wants_earlier: bool = False
    mentioned_hour: Optional[int] = None
    meridiem: Optional[str] = None
    skip_days: tuple[str, ...] = ()


def _clean(value: Any) -> str:
    if value is None:
        return ""
    text = str(value).strip()
    return "" if text.lower() == "null" else text


def to_24h(hour: int, meridiem: Optional[str] = None) -> int:
    """Normalize a mentioned hour to 24h form.

    Explicit am/pm is honoured. Without one, hours 1-12 are assumed to be
    PM (``6 -> 18``), so ``12`` becomes ``24`` and falls past closing time.
    """
    if meridiem:
        meridiem = meridiem.lower()
        if meridiem == "am":
            return 0 if hour == 12 else hour
        return hour if hour >= 12 else hour + 12
    if hour in EVENING_COERCION_RANGE:
        return hour + 12
    return hour


def classify_time_value(value: Any) -> TimeKind:
    """SPECIFIC for clock times ("6pm", "18:00"), VAGUE for preferences, else NONE."""
    text = _clean(value).lower()
    if not text:
        return TimeKind.NONE
    if any(pattern.match(text) for pattern in _SPECIFIC_RES):
        return TimeKind.SPECIFIC
    if _PERIOD_WORDS_RE.search(text) or _MERIDIEM_RE.search(text):
        return TimeKind.VAGUE
    if _RELATIVE_WORD_RE.search(text) and re.search(r"\d", text):
        return TimeKind.VAGUE
    if _BARE_HOUR_RE.match(text):
        return TimeKind.VAGUE
    return TimeKind.NONE


def _period_from_words(text: str) -> Optional[DayPeriod]:
    if "night" in text or "evening" in text or "after work" in text:
        return DayPeriod.EVENING
    if "morning" in text or "early" in text:
        return DayPeriod.MORNING
    if "afternoon" in text or "lunch" in text:
        return DayPeriod.AFTERNOON
    if re.search(r"\d\s*pm\b|\bpm\b", text):
        return DayPeriod.EVENING
    if re.search(r"\d\s*am\b|\bam\b", text):
        return DayPeriod.MORNING
    return None


def period_for_hour(hour: int) -> DayPeriod:
    if hour < 12:
        return DayPeriod.MORNING
    if hour < 17:
        return DayPeriod.AFTERNOON
    return DayPeriod.EVENING


def parse_clock_hour(value: str) -> Optional[int]:
    """Hour of a clock string: "6pm" -> 18, "10am" -> 10, "18:00" -> 18."""
    match = _CLOCK_RE.search(value)
    if not match:
        return None
    hour = int(match.group(1))
    meridiem = match.group(3)
    if meridiem:
        return to_24h(hour, meridiem)
    return hour


def parse_time_preference(value: Any) -> TimePreference:
    """Parse a captured time value into kind, period, relation and 24h hour."""
    raw = _clean(value)
    text = raw.lower()
    kind = classify_time_value(text)
    if kind == TimeKind.NONE:
        return TimePreference(kind=kind, raw=raw)

    if kind == TimeKind.SPECIFIC:
        hour = parse_clock_hour(text)
        period = period_for_hour(hour) if hour is not None else None
        return TimePreference(kind=kind, period=period, hour=hour, raw=raw)

    for relation, pattern in (
        (TimeRelation.AFTER, _AFTER_RE),
        (TimeRelation.BEFORE, _BEFORE_RE),
        (TimeRelation.AROUND, _AROUND_RE),
    ):
        match = pattern.search(text)
        if match:
            hour = to_24h(int(match.group(1)), match.group(2))
            return TimePreference(
                kind=kind,
                period=_period_from_words(text),
                relation=relation,
                hour=hour,
                raw=raw,
            )

    hour = to_24h(int(text)) if _BARE_HOUR_RE.match(text) else None
    return TimePreference(kind=kind, period=_period_from_words(text), hour=hour, raw=raw)


def detect_renegotiation(message: Optional[str], detected_intent: Optional[str] = None) -> Renegotiation:
    """Read rejection / "later" / "earlier" language and any mentioned hour."""
    text = (message or "").lower()
    is_rejection = detected_intent == "objection" or bool(_REJECTION_RE.search(text))
    hour_match = _MENTIONED_HOUR_RE.search(text)
    mentioned_hour = int(hour_match.group(1)) if hour_match else None
    meridiem = hour_match.group(2) if hour_match else None
    return Renegotiation(
        is_rejection=is_rejection,
        wants_later=bool(_WANTS_LATER_RE.search(text)),
        wants_earlier=bool(_WANTS_EARLIER_RE.search(text)),
        mentioned_hour=mentioned_hour,
        meridiem=meridiem,
        skip_days=tuple(day.lower() for day in _SKIP_DAY_RE.findall(text)),
    )
