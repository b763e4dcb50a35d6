"""
Failure taxonomy shared by every component.

Source clients never raise these past their boundary; they hand them back
inside a SourceResult. The action workflow raises NoCredential and
DownstreamActionFailed internally and converts them into failed outcomes.
"""

from typing import Optional


class FleetError(Exception):
    """Base class for all fleet dashboard errors"""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.message = message
        self.cause = cause

    def __str__(self) -> str:
        return self.message


class SourceUnavailable(FleetError):
    """Network error, timeout or non-2xx response from a data source"""

    def __init__(self, message: str, cause: Optional[BaseException] = None, status_code: Optional[int] = None):
        super().__init__(message, cause)
        self.status_code = status_code


class MalformedPayload(FleetError):
    """A data source answered with a body that does not match its schema"""


class NoCredential(FleetError):
    """No panel token could be resolved for the acting user"""


class DownstreamActionFailed(FleetError):
    """The panel rejected or failed a power signal after confirmation"""


class ConfigurationError(FleetError):
    """Invalid or missing local configuration (servers, tokens)"""


class InvalidCorrelationToken(FleetError):
    """A confirmation token did not match the expected grammar"""
