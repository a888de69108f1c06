"""Exception types raised by SHED."""

from typing import Optional


class ShedError(Exception):
    """Base class for all SHED failures."""


class DataFormatError(ShedError, ValueError):
    """A table column or cell cannot be interpreted.

    `row` is the 0-based position of the offending record in input order and
    `field` the record attribute that failed, when known.
    """

    def __init__(self, message: str, *, row: Optional[int] = None, field: Optional[str] = None):
        self.row = row
        self.field = field
        if row is not None:
            message = f"row {row}: {message}"
        super().__init__(message)


class InvalidArgumentError(ShedError, ValueError):
    """A caller passed a value outside the accepted range (e.g. top-N <= 0)."""
