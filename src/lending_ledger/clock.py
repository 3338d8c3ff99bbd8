"""
Time sources for the Lending Ledger.

The ledger never calls ``datetime.now()`` itself. It is handed a clock and
reads it exactly once per operation, so every rule evaluated inside one
operation (overdue checks, fines, timestamps) sees the same instant. Tests
drive time with a ``FrozenClock``.
"""

from collections.abc import Callable
from datetime import datetime, timedelta
from typing import TypeAlias

Clock: TypeAlias = Callable[[], datetime]


class SystemClock:
    """Wall-clock time (naive local datetimes)."""

    def __call__(self) -> datetime:
        return datetime.now()


class FrozenClock:
    """
    A clock that only moves when told to.

    ```python
    clock = FrozenClock(datetime(2024, 1, 1))
    clock.advance(days=20)
    ```
    """

    def __init__(self, start: datetime | None = None):
        self.current = start or datetime(2024, 1, 1, 9, 0, 0)

    def __call__(self) -> datetime:
        return self.current

    def advance(self, delta: timedelta | None = None, **kwargs: float) -> datetime:
        """Move the clock forward by ``delta`` or by ``timedelta(**kwargs)``."""
        self.current += delta if delta is not None else timedelta(**kwargs)
        return self.current

    def set(self, moment: datetime) -> None:
        self.current = moment
