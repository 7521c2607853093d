"""
kvcache — Expiration Policy

Sentinels and TTL computation for the three ways an entry can expire:
default duration, sliding window, absolute instant.
"""

from datetime import UTC, datetime, timedelta

# Passed as the sliding window to mean "use the absolute expiration instead"
NO_SLIDING_EXPIRATION = timedelta(0)

# Passed as the absolute instant to mean "never expires"
INFINITE_ABSOLUTE_EXPIRATION = datetime.max.replace(tzinfo=UTC)


def utcnow() -> datetime:
    return datetime.now(UTC)


def as_utc(moment: datetime) -> datetime:
    """Treat naive datetimes as UTC; convert aware ones to UTC."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=UTC)
    return moment.astimezone(UTC)


def is_infinite(absolute_expiration: datetime) -> bool:
    """
    True for ``datetime.max`` in any timezone, and for any instant whose UTC
    equivalent lies beyond ``datetime.max``.
    """
    if absolute_expiration.replace(tzinfo=None) == datetime.max:
        return True
    try:
        return as_utc(absolute_expiration) == INFINITE_ABSOLUTE_EXPIRATION
    except OverflowError:
        return True


def default_ttl(seconds: int | float) -> timedelta | None:
    """Default expiration for ``add``; zero or negative means never expires."""
    if seconds <= 0:
        return None
    return timedelta(seconds=seconds)


def ttl_until(absolute_expiration: datetime, now: datetime | None = None) -> timedelta | None:
    """
    TTL for an absolute expiration.

    Args:
        absolute_expiration: Instant at which the entry expires
        now: Reference time (defaults to current UTC time)

    Returns:
        None for INFINITE_ABSOLUTE_EXPIRATION (never expires), otherwise
        ``absolute_expiration - now``, which may be zero or negative when
        the instant is already in the past
    """
    if is_infinite(absolute_expiration):
        return None
    return as_utc(absolute_expiration) - (now or utcnow())
