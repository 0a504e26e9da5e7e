"""
Failure description — structured error information for the failure track.

An ErrorCode says what kind of thing went wrong; the FailureDescription
carries the human-readable message and, when there was one, the exception
that caused it.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique


@unique
class ErrorCode(Enum):
    """Error codes for the failure track, grouped by the HTTP status they map to."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Input could not be interpreted (→ 400)."""

    NOT_FOUND = "NOT_FOUND"
    """Input source does not exist or cannot be read (→ 404)."""

    PAYLOAD_TOO_LARGE = "PAYLOAD_TOO_LARGE"
    """Input exceeds the configured size limit (→ 413)."""

    TECHNICAL_ERROR = "TECHNICAL_ERROR"
    """Unexpected infrastructure failure (→ 500)."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor: error code, message, optional cause, timestamp.

    >>> desc = FailureDescription(ErrorCode.VALIDATION_ERROR, "truncated DER")
    >>> desc.message
    'truncated DER'
    """

    code: ErrorCode
    message: str
    exception: BaseException | None = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def full_stack_trace(self) -> str:
        """Message followed by the formatted exception chain, if any."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(
                type(self.exception), self.exception, self.exception.__traceback__
            )
        )
        return f"{self.message}\n{tb}"
