"""Explicit fetch outcomes.

Per-chain fetches return ``Ok`` or ``Err`` instead of raising, so a batch can
be joined with ``asyncio.gather`` and inspected chain by chain.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

from raas_analytics.shared.enums import ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T

    @property
    def is_ok(self) -> bool:
        return True


@dataclass(frozen=True)
class Err:
    kind: ErrorKind
    message: str

    @property
    def is_ok(self) -> bool:
        return False


FetchResult = Ok[T] | Err
