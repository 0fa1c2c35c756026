"""
Filesystem adapter — reads certificate and key material from disk.

Implements the MaterialSource port. Existence is checked first so a missing
file is reported as NOT_FOUND rather than a generic I/O failure; the file
handle is opened in a `with` block and closed on every exit path.
"""

from __future__ import annotations

from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result
from railway.result_failures import ResultFailures

log = structlog.get_logger()


class FileMaterialSource:
    """Read raw bytes from local files."""

    def read(self, path: Path, description: str = "File") -> Result[bytes]:
        """
        Read the whole file at `path`.

        `description` names the material in failure messages
        ("Certificate file", "Private key file").
        """
        if not path.is_file():
            return ResultFailures.not_found(description, str(path))
        return Result.from_computation(
            lambda: self._read_bytes(path),
            ErrorCode.IO_ERROR,
            f"Failed to read {description.lower()} {path}",
        ).peek(lambda data: log.debug("file.read", path=str(path), size=len(data)))

    @staticmethod
    def _read_bytes(path: Path) -> bytes:
        with path.open("rb") as stream:
            return stream.read()
