"""Ledger error taxonomy.

Every error carries a human-readable ``message`` that is safe to return to
the caller and a short machine-readable ``code``. The API layer maps each
class to one HTTP status in ``warunku.main``.
"""


class LedgerError(Exception):
    """Base class for recoverable request-level errors."""

    code = "ledger-error"

    def __init__(self, message: str, code: str | None = None):
        super().__init__(message)
        self.message = message
        if code is not None:
            self.code = code


class NotFoundError(LedgerError):
    """A referenced customer, product or debt record does not exist."""

    code = "not-found"


class InvalidInputError(LedgerError):
    """Malformed or out-of-range input (unit, price, quantity, amount, date, id)."""

    code = "invalid-input"


class ConflictError(LedgerError):
    """The operation would break a cross-record rule or lost a write race."""

    code = "conflict"
