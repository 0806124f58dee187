"""Error taxonomy for the pricing pipeline."""
from typing import Optional


class MileageHawkError(Exception):
    """Base class for all pipeline errors."""


class SourceError(MileageHawkError):
    """An external data source answered with a non-2xx status or a malformed payload."""

    def __init__(self, message: str, status_code: int, body: str = ""):
        super().__init__(message)
        self.status_code = status_code
        self.body = body


class ConfigurationError(MileageHawkError):
    """A credential or setting required by an operation is missing."""

    def __init__(self, message: str, setting: Optional[str] = None):
        super().__init__(message)
        self.setting = setting


class NotificationError(MileageHawkError):
    """A notification provider rejected a send."""

    def __init__(self, message: str, channel: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.channel = channel
        self.status_code = status_code
