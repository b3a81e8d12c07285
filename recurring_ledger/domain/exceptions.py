"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class InvalidScheduleError(DomainException):
    """Recurrence frequency or day-of-month is malformed"""

    pass


class LedgerStoreError(DomainException):
    """A ledger write could not be applied (missing row, failed update)"""

    pass


class UnknownJobError(DomainException):
    """No batch job is registered under the requested name"""

    pass
