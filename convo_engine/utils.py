"""Shared utilities used across the conversation engine."""

import random
import re
import string
import time
from datetime import datetime, timezone
from typing import Optional

_ID_ALPHABET = string.ascii_lowercase + string.digits


def normalize_phone(value: str) -> str:
    """Normalize a phone number by stripping everything except digits and a leading +.

    Examples:
        >>> normalize_phone("0412 345 678")
        '0412345678'
        >>> normalize_phone("+1 (415) 555-0100")
        '+14155550100'
    """
    value = value.strip()
    if value.startswith("+"):
        return "+" + re.sub(r"[^\d]", "", value[1:])
    return re.sub(r"[^\d]", "", value)


def generate_agent_message_id(
    prefix: str = "agent", rng: Optional[random.Random] = None
) -> str:
    """Build an outbound message id like ``agent-1718000000000-k3j9x0a2b``.

    The ``agent-`` prefix is one of the markers the router uses to
    recognise bot-authored messages.
    """
    rng = rng or random
    suffix = "".join(rng.choice(_ID_ALPHABET) for _ in range(9))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a Z suffix."""
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def parse_iso(value: str) -> Optional[datetime]:
    """Parse an ISO-8601 timestamp, returning None when it is not one."""
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (ValueError, AttributeError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
