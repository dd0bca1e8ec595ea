from __future__ import annotations


class LedgerError(Exception):
    """Base class for errors that are reported back to the chat verbatim."""


class InvalidSyntaxError(LedgerError):
    pass


class GrammarError(InvalidSyntaxError):
    pass


class UnknownReferenceError(LedgerError):
    pass


class ConflictError(LedgerError):
    pass


class AllocationError(LedgerError):
    pass


class OverpaidError(AllocationError):
    pass


class UnderpaidError(AllocationError):
    pass


class NegativeRemainderError(AllocationError):
    pass


class DuplicateRegistrationError(LedgerError):
    pass


class NotFoundError(LedgerError):
    pass


class StoreUnavailableError(LedgerError):
    def __init__(self, message: str = "cannot query the database, please try again later") -> None:
        super().__init__(message)
