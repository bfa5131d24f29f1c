"""Tagged failures raised by the gateway and the form controllers.

``kind`` lets callers branch on the failure class without inspecting shapes.
"""

from __future__ import annotations

from typing import Literal

ErrorKind = Literal["validation", "business", "transport"]


class ConsoleError(Exception):
    kind: ErrorKind = "business"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message
        # Set once the failure has already been shown to the operator.
        self.notified = False


class ValidationError(ConsoleError):
    kind: ErrorKind = "validation"

    def __init__(self, field_errors: dict[str, str], message: str | None = None):
        self.field_errors = dict(field_errors)
        first = next(iter(self.field_errors.values()), "invalid input")
        super().__init__(message or first)


class BusinessError(ConsoleError):
    kind: ErrorKind = "business"

    def __init__(self, code: int, message: str):
        super().__init__(message)
        self.code = code


class SessionExpiredError(BusinessError):
    def __init__(self, message: str = "Session expired, please log in again"):
        super().__init__(401, message)


class TransportError(ConsoleError):
    """HTTP-level or network failure. ``status_code`` is None when no response arrived."""

    kind: ErrorKind = "transport"

    def __init__(self, status_code: int | None, message: str):
        super().__init__(message)
        self.status_code = status_code
