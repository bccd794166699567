"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~remotely.exceptions.RemotelyError` subclass.
Shell scripts wrapping ``remotely`` can inspect the exit code to tell a
transport failure from a bad status without parsing stderr.

Example::

    $ remotely get https://api.example.com/missing
    $ echo $?
    7   # EXIT_HTTP_STATUS -- the server answered with a non-200 status
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or a malformed URL."""

EXIT_ADAPTER_ERROR = 3
"""The configured transport adapter name could not be resolved."""

EXIT_REQUEST_FAILED = 4
"""The request failed and only the failure sentinel is known."""

EXIT_TRANSPORT_ERROR = 5
"""A network-level error occurred (connect, write or read)."""

EXIT_RESPONSE_PARSE_ERROR = 6
"""The raw response could not be parsed."""

EXIT_HTTP_STATUS = 7
"""The remote server returned a status other than 200."""
