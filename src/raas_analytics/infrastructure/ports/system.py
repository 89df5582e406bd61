"""System infrastructure port definitions."""

from abc import ABC, abstractmethod
from datetime import date, datetime


class IClock(ABC):
    """Abstract interface for clock operations."""

    @abstractmethod
    def utcnow(self) -> datetime:
        """Get current UTC time (timezone-aware)."""
        ...

    def now_ms(self) -> int:
        """Current UTC time as epoch milliseconds."""
        return int(self.utcnow().timestamp() * 1000)

    def today(self) -> date:
        """Current UTC calendar day."""
        return self.utcnow().date()
