"""
Field-level validity predicates and human-readable labels.

A captured value only counts once it passes its field's predicate: a
preferred date must look like a weekday or a numeric date, a preferred time
must be a clock time rather than "evening", and so on. Fields without a
dedicated predicate are valid when non-empty.
"""

import re
from typing import Any, Callable, Optional

from convo_engine.scheduling.time_preference import TimeKind, classify_time_value
from convo_engine.utils import normalize_phone

MIN_NAME_LENGTH = 2
MIN_PHONE_DIGITS = 7
MAX_PHONE_DIGITS = 15

# Asked for implicitly (extracted alongside another field), never directly.
AUTO_EXTRACTED_FIELDS: frozenset[str] = frozenset({"motivationCategories"})

# Asked for when convenient but never block goal completion.
OPTIONAL_FIELDS: frozenset[str] = frozenset({"bodyFatPercentage"})

FIELD_LABELS: dict[str, str] = {
    "firstName": "first name",
    "lastName": "last name",
    "email": "email address",
    "phone": "phone number",
    "preferredDate": "preferred date",
    "preferredTime": "preferred time",
    "primaryGoal": "main goal",
    "fitnessGoals": "fitness goals",
    "motivationReason": "motivation",
    "timeline": "timeline",
    "height": "height",
    "weight": "weight",
    "heightWeight": "height and weight",
    "bodyFatPercentage": "body fat percentage",
    "injuries": "injuries",
    "medicalConditions": "medical conditions",
    "physicalLimitations": "physical limitations or injuries",
    "doctorClearance": "doctor clearance",
}

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")
_DAY_TOKENS = ("mon", "tue", "wed", "thu", "fri", "sat", "sun", "today", "tomorrow", "next")
_NUMERIC_DATE_RE = re.compile(r"\d{1,2}[/-]\d{1,2}")
_ORDINAL_DATE_RE = re.compile(r"\d+(st|nd|rd|th)\b")
_CAMEL_BOUNDARY_RE = re.compile(r"([A-Z])")


def unwrap_value(value: Any) -> Any:
    """Unwrap ``{"value": x}`` envelopes produced by LLM extraction."""
    if isinstance(value, dict) and "value" in value:
        return value["value"]
    return value


def _present(value: Any) -> Optional[str]:
    value = unwrap_value(value)
    if value is None:
        return None
    text = str(value).strip()
    if not text or text.lower() in ("null", "none_captured", "undefined"):
        return None
    return text


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value.strip()))


def is_valid_phone(value: str) -> bool:
    digits = normalize_phone(value).lstrip("+")
    return MIN_PHONE_DIGITS <= len(digits) <= MAX_PHONE_DIGITS


def is_valid_name(value: str) -> bool:
    return len(value.strip()) >= MIN_NAME_LENGTH


def is_date_like(value: str) -> bool:
    """Weekday names, relative days, ``5/12`` style dates and ordinals like ``10th``."""
    lower = value.lower()
    if any(token in lower for token in _DAY_TOKENS):
        return True
    return bool(_NUMERIC_DATE_RE.search(lower) or _ORDINAL_DATE_RE.search(lower))


def is_specific_time(value: str) -> bool:
    return classify_time_value(value) == TimeKind.SPECIFIC


FIELD_VALIDATORS: dict[str, Callable[[str], bool]] = {
    "email": is_valid_email,
    "phone": is_valid_phone,
    "firstName": is_valid_name,
    "lastName": is_valid_name,
    "preferredDate": is_date_like,
    "preferredTime": is_specific_time,
}


def is_field_valid(field_name: str, value: Any) -> bool:
    """True when ``value`` is present and satisfies the field's predicate."""
    text = _present(value)
    if text is None:
        return False
    validator = FIELD_VALIDATORS.get(field_name)
    return validator(text) if validator else True


def captured_text(fields_captured: dict[str, Any], field_name: str) -> Optional[str]:
    """The captured value as display text, or None when absent."""
    return _present(fields_captured.get(field_name))


def humanize_field_name(field_name: str) -> str:
    """``firstName`` -> "first name"; unknown camelCase names are split into words."""
    if field_name in FIELD_LABELS:
        return FIELD_LABELS[field_name]
    return _CAMEL_BOUNDARY_RE.sub(r" \1", field_name).replace("_", " ").lower().strip()


def natural_join(labels: list[str]) -> str:
    """"a", "a and b", "a, b, and c"."""
    if not labels:
        return ""
    if len(labels) == 1:
        return labels[0]
    if len(labels) == 2:
        return f"{labels[0]} and {labels[1]}"
    return f"{', '.join(labels[:-1])}, and {labels[-1]}"
