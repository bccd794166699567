"""Explicit success/failure container for request-level outcomes.

:class:`RemoteResult` lets callers tell a transport failure from a bad
status from an unparseable response.  The plain request methods collapse
it back to the historical ``False`` sentinel via
:meth:`RemoteResult.value_or_false`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from remotely.exceptions import RemoteError


FAILURE = False
"""The single value plain request methods return on any failure."""


@dataclass(frozen=True)
class RemoteResult:
    """Outcome of one request: either a value or a :class:`RemoteError`.

    Example::

        result = remote.get_result("https://api.example.com/users")
        if result.ok:
            users = result.value
        elif isinstance(result.error, HttpStatusError):
            print(result.error.status_code)
    """

    value: Any = None
    error: Optional[RemoteError] = None

    @classmethod
    def success(cls, value: Any) -> RemoteResult:
        return cls(value=value)

    @classmethod
    def failure(cls, error: RemoteError) -> RemoteResult:
        return cls(error=error)

    @property
    def ok(self) -> bool:
        """``True`` when the request produced a value."""
        return self.error is None

    def unwrap(self) -> Any:
        """Return the value or raise the captured error."""
        if self.error is not None:
            raise self.error
        return self.value

    def value_or_false(self) -> Any:
        """Return the value, or :data:`FAILURE` when the request failed."""
        if self.error is not None:
            return FAILURE
        return self.value
