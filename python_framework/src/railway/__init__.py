"""
Railway-Oriented Programming (ROP) helpers.

Explicit, composable error handling — stages return Result instead of raising.

    from railway import Result, ErrorCode

    def require_path(path: str | None) -> Result[str]:
        if not path:
            return Result.failure(ErrorCode.NOT_FOUND, "Path not configured")
        return Result.success(path)

    result = require_path("cert.pem").map(Path).flat_map(read_bytes)
"""

from railway.result import Result, Success, Failure
from railway.failure import ErrorCode, FailureDescription
from railway.result_failures import ResultFailures
from railway.assertions import ResultAssertions

__all__ = [
    "Result",
    "Success",
    "Failure",
    "ErrorCode",
    "FailureDescription",
    "ResultFailures",
    "ResultAssertions",
]

__version__ = "1.1.0"
