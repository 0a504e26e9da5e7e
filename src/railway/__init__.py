"""
Railway-Oriented Programming (ROP) helpers.

Explicit, composable error handling: adapters return Result instead of
raising, and callers route the failure track wherever it belongs.

    from railway import Result, ErrorCode

    def read_candidate(path) -> Result[bytes]:
        return Result.from_computation(path.read_bytes, ErrorCode.NOT_FOUND, "unreadable")
"""

from railway.assertions import ResultAssertions
from railway.failure import ErrorCode, FailureDescription
from railway.result import Failure, Result, Success

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ResultAssertions",
]

__version__ = "1.0.0"
