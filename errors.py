"""Error types raised by the ledger, debt and reminder engine."""


class FinanceError(Exception):
    """Base class for engine errors shown to the user."""


class FormValidationError(FinanceError):
    """A required field is missing or a value is not acceptable."""


class ScheduleRejection(FinanceError):
    """The monthly payment can never amortize the debt."""

    def __init__(self, reason: str):
        super().__init__(reason)
        self.reason = reason


class PersistenceFailure(FinanceError):
    """The snapshot store could not read or write a record."""
