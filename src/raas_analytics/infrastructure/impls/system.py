"""Default implementations of infrastructure abstractions."""

from datetime import UTC, datetime, timedelta

from raas_analytics.infrastructure.ports.system import IClock


class SystemClock(IClock):
    """Default implementation using system time."""

    def utcnow(self) -> datetime:
        return datetime.now(UTC)


class FixedClock(IClock):
    """Clock pinned to a given instant. Used by tests and replayed builds."""

    def __init__(self, instant: datetime):
        if instant.tzinfo is None:
            instant = instant.replace(tzinfo=UTC)
        self.instant = instant

    def utcnow(self) -> datetime:
        return self.instant

    def advance(self, **delta) -> None:
        """Move the clock forward, e.g. ``advance(hours=6)``."""
        self.instant = self.instant + timedelta(**delta)
