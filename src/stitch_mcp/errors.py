"""
Error taxonomy for the Stitch bridge.

Startup failures (project/credential resolution) are fatal; everything raised
while serving a tool call is turned into an error result by the router.
"""

from typing import Any, Optional


class StitchError(Exception):
    """Base class for every error raised by the bridge."""


# ---------------------------------------------------------------------------
# Host environment
# ---------------------------------------------------------------------------

class ConfigurationError(StitchError):
    """No billing project could be resolved."""


class DependencyMissingError(StitchError):
    """The gcloud CLI is not installed or not on PATH."""


class AuthExpiredError(StitchError):
    """Application-default credentials need reauthentication."""


class CommandError(StitchError):
    """A gcloud invocation failed for any other reason."""

    def __init__(self, message: str, returncode: Optional[int] = None, stderr: str = ""):
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(message)


# ---------------------------------------------------------------------------
# Upstream JSON-RPC service
# ---------------------------------------------------------------------------

class UpstreamTimeoutError(StitchError, TimeoutError):
    """The upstream call exceeded its wall-clock budget."""


class UpstreamUnavailableError(StitchError):
    """The upstream endpoint could not be reached."""


class HttpError(StitchError):
    """Non-2xx HTTP status from the upstream service."""

    def __init__(self, status_code: int, body: str):
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP {status_code}: {body}")


class UpstreamError(StitchError):
    """The upstream answered with a JSON-RPC error object."""

    def __init__(self, message: str, error: Any = None):
        self.message = message
        self.error = error
        super().__init__(message)


class UpstreamDataError(StitchError):
    """A successful upstream response lacked the data a tool needs."""


# ---------------------------------------------------------------------------
# Composite tools
# ---------------------------------------------------------------------------

class ToolArgumentError(StitchError):
    """A locally implemented tool was called with unusable arguments."""


class PayloadNotFoundError(StitchError):
    """No download URL matching the requested role was found."""


class DownloadError(StitchError):
    """Fetching a located download URL failed."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)
