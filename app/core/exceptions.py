# core/exceptions.py
"""
Error taxonomy for the Glacier CLI.

Adapters translate SDK failures into ServiceError at the integration
boundary; services wrap those into the flow-specific errors below.
"""

from typing import List, Optional


class GlacierCliError(Exception):
    """Base class for every error raised by this application."""

    def __init__(self, message: str):
        self.message = message
        super().__init__(self.message)


class ConfigurationError(GlacierCliError):
    """Missing credentials or invalid command line arguments."""
    pass


class ServiceError(GlacierCliError):
    """An AWS request failed."""

    def __init__(
        self,
        message: str,
        status: Optional[int] = None,
        code: Optional[str] = None,
    ):
        self.status = status
        self.code = code
        super().__init__(message)

    def __str__(self) -> str:
        if self.code:
            return f"{self.message} [{self.code}, HTTP {self.status}]"
        return self.message


class TransferError(GlacierCliError):
    """Raised when an upload, download or delete of an archive fails."""
    pass


class ProvisioningError(GlacierCliError):
    """Raised when the notification queue or topic cannot be set up."""
    pass


class SubmissionError(GlacierCliError):
    """Raised when Glacier rejects a job request."""
    pass


class RetrievalError(GlacierCliError):
    """Raised when a job fails, cannot be awaited, or its output cannot be fetched."""
    pass


class MalformedNotificationError(GlacierCliError):
    """Raised when a queue message is not a Glacier job notification."""
    pass


class TeardownError(GlacierCliError):
    """
    Raised after every teardown step was attempted and at least one failed.

    `failures` holds one human readable line per failed step, including the
    identifier of the resource that may have been leaked.
    """

    def __init__(self, failures: List[str]):
        self.failures = failures
        super().__init__("Teardown incomplete: " + "; ".join(failures))
