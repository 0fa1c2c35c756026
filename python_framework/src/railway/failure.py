"""
Failure description — structured error information for the failure track.

An ErrorCode names the kind of failure; a FailureDescription carries the code,
a human-readable message, the originating exception (if any) and a timestamp.
"""

from __future__ import annotations

import traceback
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum, unique
from typing import Optional


@unique
class ErrorCode(Enum):
    """
    Structured error codes for the failure track.

    Credential loading reports one of three primary kinds:
    NOT_FOUND (input absent), PARSE_ERROR (bytes do not decode) and
    STORE_ERROR (credential store assembly failed). The remaining codes
    cover configuration and I/O problems around them.
    """

    NOT_FOUND = "NOT_FOUND"
    """Input file or resource doesn't exist."""

    PARSE_ERROR = "PARSE_ERROR"
    """Bytes do not decode as the expected certificate or key type."""

    STORE_ERROR = "STORE_ERROR"
    """The in-memory credential store rejected its entries."""

    VALIDATION_ERROR = "VALIDATION_ERROR"
    """Invalid argument, e.g. an unknown algorithm name."""

    IO_ERROR = "IO_ERROR"
    """The input exists but could not be read."""

    CONFIGURATION_ERROR = "CONFIGURATION_ERROR"
    """Configuration resource missing keys or undecodable."""

    UNKNOWN_ERROR = "UNKNOWN_ERROR"
    """Unexpected/unclassified failures."""


@dataclass(frozen=True, slots=True)
class FailureDescription:
    """
    Immutable failure descriptor carrying error code, message, optional exception, and timestamp.

    >>> desc = FailureDescription(ErrorCode.PARSE_ERROR, "Not a certificate")
    >>> desc.code
    <ErrorCode.PARSE_ERROR: 'PARSE_ERROR'>
    >>> desc.message
    'Not a certificate'
    """

    code: ErrorCode
    message: str
    exception: Optional[BaseException] = field(default=None, repr=False)
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    @property
    def reason(self) -> str:
        """The message, followed by the underlying exception text when there is one."""
        if self.exception is None:
            return self.message
        return f"{self.message}: {self.exception}"

    def full_stack_trace(self) -> str:
        """Message plus the formatted traceback of the underlying exception."""
        if self.exception is None:
            return self.message
        tb = "".join(
            traceback.format_exception(type(self.exception), self.exception, self.exception.__traceback__)
        )
        return f"{self.message}\n{tb}"
