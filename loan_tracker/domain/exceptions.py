"""Domain-specific exceptions"""


class DomainException(Exception):
    """Base exception for domain layer"""

    pass


class StoreUnavailable(DomainException):
    """Installment or session store failed to read or write"""

    pass


class CorruptSequence(DomainException):
    """Installment numbers are not the contiguous run 1..N"""

    pass


class InstallmentNotFound(DomainException):
    """No installment with the requested id"""

    pass


class InvalidTransition(DomainException):
    """Pay/unpay request the sequencer does not allow"""

    def __init__(self, message: str, reason: str | None = None):
        super().__init__(message)
        self.reason = reason


class ConcurrentUpdateError(InvalidTransition):
    """Installment paid state changed between read and write"""

    def __init__(self, message: str):
        super().__init__(message, reason="conflict")


class PinVerificationUnavailable(DomainException):
    """PIN verification round-trip did not complete"""

    pass
