"""
Ledger exceptions

Every failure the ledger surfaces to its callers derives from LedgerError.
Missing pricing data is not an error: the cost calculator degrades it to a
zero contribution.
"""


class LedgerError(Exception):
    """Base exception for booking ledger errors"""
    pass


class NotFoundError(LedgerError):
    """Program, booking, pricing or payment missing or owned by another account"""
    pass


class ConflictError(LedgerError):
    """Duplicate booking or a bulk request touching bookings the caller does not own"""
    pass


class ValidationError(LedgerError):
    """Malformed input, or a package selection missing where one is required"""

    def __init__(self, message, errors=None):
        super().__init__(message)
        self.errors = errors or {}
