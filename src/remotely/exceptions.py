"""Exception hierarchy for remotely.

All exceptions inherit from :class:`RemotelyError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`remotely.exit_codes`.

Two families live here:

* **Configuration / programming errors** -- raised straight to the caller
  (unknown adapter name, malformed URL, invalid config file).
* **Request-level errors** -- subclasses of :class:`RemoteError`. These are
  never raised out of :meth:`~remotely.remote.Remote.get` and friends;
  they are captured in a :class:`~remotely.result.RemoteResult` and the
  caller only sees the ``False`` failure sentinel unless it asks for the
  result object.

Subclass hierarchy::

    RemotelyError (exit 1)
    +-- InvalidUsageError       (exit 2)
    +-- ConfigError             (exit 1)
    +-- AdapterResolutionError  (exit 3)
    +-- InvalidUrlError         (exit 2)
    +-- RemoteError             (exit 4)
        +-- TransportError      (exit 5)
        +-- ResponseParseError  (exit 6)
        +-- HttpStatusError     (exit 7)
"""

from __future__ import annotations

from remotely.exit_codes import (
    EXIT_ADAPTER_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HTTP_STATUS,
    EXIT_INVALID_USAGE,
    EXIT_REQUEST_FAILED,
    EXIT_RESPONSE_PARSE_ERROR,
    EXIT_TRANSPORT_ERROR,
)


class RemotelyError(Exception):
    """Base exception for all remotely errors.

    Args:
        message: Human-readable error description printed to stderr.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(RemotelyError):
    """Raised for invalid CLI arguments (e.g. a header without a colon)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(RemotelyError):
    """Raised for configuration problems (invalid JSON, failed validation)."""

    exit_code = EXIT_GENERIC_FAILURE


class AdapterResolutionError(RemotelyError):
    """Raised when a transport adapter name is not in the registry."""

    exit_code = EXIT_ADAPTER_ERROR


class InvalidUrlError(RemotelyError):
    """Raised when a URL has no scheme or host and cannot be dispatched."""

    exit_code = EXIT_INVALID_USAGE


class RemoteError(RemotelyError):
    """Base class for request-level failures.

    Instances are carried by :class:`~remotely.result.RemoteResult`
    rather than propagated to callers of the plain request methods.
    """

    exit_code = EXIT_REQUEST_FAILED


class TransportError(RemoteError):
    """Raised by a transport when connect, write or read fails."""

    exit_code = EXIT_TRANSPORT_ERROR


class ResponseParseError(RemoteError):
    """Raised when raw response text is not a valid HTTP response."""

    exit_code = EXIT_RESPONSE_PARSE_ERROR


class HttpStatusError(RemoteError):
    """Describes a response whose status is not ``200 OK``.

    Args:
        status_code: The numeric status from the status line.
        reason: The reason phrase, possibly empty.
    """

    exit_code = EXIT_HTTP_STATUS

    def __init__(self, status_code: int, reason: str = ""):
        message = f"HTTP {status_code} {reason}".rstrip()
        super().__init__(message)
        self.status_code = status_code
        self.reason = reason
