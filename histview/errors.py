"""
errors.py

Exception taxonomy for the historical viewer.

  - `FetchFailure`: the transport could not deliver a payload (network, auth,
    server error, malformed body). Recoverable: the current buffers stay on
    screen and the failure is surfaced as a notice.
  - `InvalidRangeClass`: a range class string/value outside the known set.
    Rejected at the boundary, never handled inside the scheduler loop.
  - `ExportFailure` / `AuthenticationExpired`: CSV export pass-through errors.
  - `UnknownChannel`: a channel name the snapshot does not carry.

An empty buffer is not an error.
"""
from __future__ import annotations

from typing import Optional


class HistViewError(Exception):
    """Base class for all viewer errors."""


class InvalidRangeClass(HistViewError, ValueError):
    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid range class: {value!r}")


class UnknownChannel(HistViewError, KeyError):
    def __init__(self, channel: str):
        self.channel = channel
        super().__init__(channel)

    def __str__(self) -> str:
        return f"Unknown channel: {self.channel}"


class FetchFailure(HistViewError):
    def __init__(self, message: str, *, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ExportFailure(HistViewError):
    def __init__(self, message: str, *, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class AuthenticationExpired(ExportFailure):
    def __init__(self, message: str = "Session expired. Please log in again."):
        super().__init__(message, status_code=401)
