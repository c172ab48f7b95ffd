from __future__ import annotations


class TransferServiceError(Exception):
    """Base class for transfer level exceptions."""


class InvalidConfigurationError(TransferServiceError):
    """Raised when a part or chunk size is rejected before any network call."""


class SourceNotFoundError(TransferServiceError):
    """Raised when the object or file to transfer from does not exist."""


class TransferError(TransferServiceError):
    """Raised when opening a session, moving a part or reading a range fails."""

    def __init__(self, message: str, *, part_number: int | None = None) -> None:
        super().__init__(message)
        self.part_number = part_number


class FinalizationError(TransferServiceError):
    """Raised when completing a session fails after every part succeeded."""


class AbortError(TransferServiceError):
    """Failure of a best-effort abort; logged, never raised to callers."""
