"""Error kinds raised by the earnings core."""
from __future__ import annotations

from typing import Any

from sqlalchemy.exc import SQLAlchemyError

# Storage errors are never wrapped; callers catch the driver-level hierarchy directly.
StoreFailure = SQLAlchemyError


class BullseyeError(Exception):
    """Base class for domain errors."""


class MalformedFiscalPeriod(BullseyeError, ValueError):
    """Provider fiscal-period string did not match ``YYYY-Qn``."""

    def __init__(self, raw: Any) -> None:
        super().__init__(f"Malformed fiscal period: {raw!r}")
        self.raw = raw


class MalformedDate(BullseyeError, ValueError):
    """Period-ending date string could not be parsed."""

    def __init__(self, raw: Any) -> None:
        super().__init__(f"Malformed period-ending date: {raw!r}")
        self.raw = raw


class NotFound(BullseyeError, LookupError):
    """A store lookup returned no rows."""
