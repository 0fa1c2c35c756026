"""
Convenience factory methods for common Result failures.

    from railway.result_failures import ResultFailures

    # Instead of:
    Result.failure(ErrorCode.NOT_FOUND, "Certificate file not found with identifier: cert.pem")

    # Write:
    ResultFailures.not_found("Certificate file", "cert.pem")
"""

from __future__ import annotations

from railway.failure import ErrorCode
from railway.result import Result


class ResultFailures:
    """Factory methods for the failure kinds raised while loading credentials."""

    @staticmethod
    def not_found(resource_type: str, identifier: str) -> Result:
        return Result.failure(
            ErrorCode.NOT_FOUND,
            f"{resource_type} not found: {identifier}",
        )

    @staticmethod
    def parse_error(message: str, exception: BaseException | None = None) -> Result:
        """Bytes did not decode as the expected structure."""
        return Result.failure(ErrorCode.PARSE_ERROR, message, exception)

    @staticmethod
    def store_error(message: str, exception: BaseException | None = None) -> Result:
        """Credential store assembly failed."""
        return Result.failure(ErrorCode.STORE_ERROR, message, exception)

    @staticmethod
    def validation_error(message: str) -> Result:
        return Result.failure(ErrorCode.VALIDATION_ERROR, message)

    @staticmethod
    def io_error(message: str, exception: BaseException | None = None) -> Result:
        return Result.failure(ErrorCode.IO_ERROR, message, exception)

    @staticmethod
    def configuration_error(message: str, exception: BaseException | None = None) -> Result:
        return Result.failure(ErrorCode.CONFIGURATION_ERROR, message, exception)

    @staticmethod
    def from_exception(message: str, exception: BaseException) -> Result:
        """
        Auto-map a Python exception to the appropriate ErrorCode.

        Mapping:
          - FileNotFoundError → NOT_FOUND
          - OSError (other) → IO_ERROR
          - UnicodeDecodeError → CONFIGURATION_ERROR
          - ValueError, TypeError → PARSE_ERROR
          - Everything else → UNKNOWN_ERROR
        """
        return Result.failure(_map_exception_to_code(exception), message, exception)


def _map_exception_to_code(exception: BaseException) -> ErrorCode:
    """Map a Python exception type to the most appropriate ErrorCode."""
    match exception:
        case FileNotFoundError():
            return ErrorCode.NOT_FOUND
        case OSError():
            return ErrorCode.IO_ERROR
        case UnicodeDecodeError():
            return ErrorCode.CONFIGURATION_ERROR
        case ValueError() | TypeError():
            return ErrorCode.PARSE_ERROR
        case _:
            return ErrorCode.UNKNOWN_ERROR
