"""
Time window predicate for record correlation.

Two timestamps describe the same occasion when they are at most
``window_minutes`` apart in elapsed time. Unparsable timestamps never match.
"""

from datetime import datetime, timezone

from config.settings import config, validate_window_minutes


def parse_timestamp(text) -> datetime | None:
    """
    Parse an ISO-8601 timestamp into an aware UTC datetime.

    Accepts the ISO-8601 forms read by ``datetime.fromisoformat`` on Python
    3.11+, including fractional seconds of any length and '+HH' offsets.
    A trailing 'Z' and explicit offsets are honoured; naive timestamps are
    taken as UTC.

    Args:
        text: Timestamp text

    Returns:
        Aware datetime, or None if the text is empty or cannot be parsed
    """
    if not text or not isinstance(text, str):
        return None
    raw = text.strip()
    if raw.endswith(("Z", "z")):
        raw = raw[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(raw)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def minutes_between(first: datetime, second: datetime) -> float:
    """Absolute elapsed time between two aware datetimes, in minutes."""
    return abs((first - second).total_seconds()) / 60


def within_window(
    time_a, time_b, window_minutes: float | None = None
) -> bool:
    """
    Decide whether two timestamps fall within the same time window.

    Args:
        time_a: First timestamp text
        time_b: Second timestamp text
        window_minutes: Maximum allowed difference in minutes. If None, uses
            config.CORRELATION_WINDOW_MINUTES

    Returns:
        True iff both parse and are at most window_minutes apart

    Raises:
        CorrelationConfigError: If the window is negative, not finite or not a number
    """
    if window_minutes is None:
        window_minutes = config.CORRELATION_WINDOW_MINUTES
    window_minutes = validate_window_minutes(window_minutes)

    first = parse_timestamp(time_a)
    if first is None:
        return False
    second = parse_timestamp(time_b)
    if second is None:
        return False
    return minutes_between(first, second) <= window_minutes
