"""Exception types raised by the finance core.

Aggregation helpers never raise on empty or partially missing data; these
exceptions are reserved for malformed input caught at record construction
and for lookups of entities that do not exist.
"""

from __future__ import annotations

from typing import Any, Optional

ERROR_MESSAGES = {
    'VALIDATION_ERROR': 'Please check your input and try again.',
    'NOT_FOUND': 'The requested item could not be found.',
    'ACCOUNT_NOT_FOUND': 'Account not found.',
    'UNKNOWN_ERROR': 'An unexpected error occurred.',
}


class FinanceError(Exception):
    """Base class for all errors raised by :mod:`finance_core`."""

    code = 'UNKNOWN_ERROR'

    def __init__(self, message: Optional[str] = None, *, code: Optional[str] = None, details: Any = None):
        self.code = code or self.code
        self.details = details
        super().__init__(message or ERROR_MESSAGES.get(self.code, ERROR_MESSAGES['UNKNOWN_ERROR']))


class ValidationError(FinanceError, ValueError):
    """Input failed validation at the boundary of the core."""

    code = 'VALIDATION_ERROR'


class NotFoundError(FinanceError, LookupError):
    """A budget, account or transaction id did not resolve."""

    code = 'NOT_FOUND'
