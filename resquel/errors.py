# File: resquel/errors.py
"""
Resquel - Exception Hierarchy
=============================

Two families of failures exist:

* **Startup failures** (``ConfigurationError``) are raised out of
  ``Resquel.init()``; the router is never built.
* **Request failures** (``RequestError`` subclasses) are raised while a
  request is handled and rendered by the router as a JSON error body with
  the exception's ``status_code``.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Dict, List, Optional

if TYPE_CHECKING:
    from resquel.validators import ValidationResult


class ResquelError(Exception):
    """Base class for every error raised by resquel."""


class ConfigurationError(ResquelError):
    """The route configuration cannot be compiled."""

    def __init__(
        self,
        message: str,
        result: Optional["ValidationResult"] = None,
    ) -> None:
        super().__init__(message)
        self.result: Optional["ValidationResult"] = result

    @classmethod
    def from_result(cls, result: "ValidationResult") -> "ConfigurationError":
        messages: List[str] = [str(err) for err in result.errors]
        return cls(
            "Invalid resquel configuration:\n  " + "\n  ".join(messages),
            result,
        )


class RequestError(ResquelError):
    """A failure that is reported to the HTTP client."""

    status_code: int = 500
    code: str = "request_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message: str = message

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.code, "message": self.message}


class PayloadError(RequestError):
    """Path parameters or body payload are unusable; nothing was executed."""

    status_code = 400
    code = "invalid_payload"


class DatabaseError(RequestError):
    """The driver reported a failure while executing the statement."""

    status_code = 500
    code = "database_error"

    @classmethod
    def from_driver(cls, exc: BaseException, operation: str) -> "DatabaseError":
        # Only the exception class name leaves the process; the driver
        # message may contain SQL text or connection details.
        orig: BaseException = getattr(exc, "orig", None) or exc
        return cls(f"{operation} failed: {type(orig).__name__}")


__all__: List[str] = [
    "ResquelError",
    "ConfigurationError",
    "RequestError",
    "PayloadError",
    "DatabaseError",
]
