"""
Properties adapter — key/value configuration in `.properties` format.

Reads the bundled sample configuration (or an explicit file) once and hands
back a plain mapping; callers look values up with get_config().

Follows java.util.Properties.load:
  - `#` and `!` comment lines, blank lines skipped
  - `key=value`, `key:value` and `key value` separators
  - a line ending in an odd number of backslashes continues on the next line
  - backslash escapes in keys and values: `\\=`, `\\:`, `\\ `, `\\\\`,
    `\\t`, `\\n`, `\\r`, `\\f` and `\\uXXXX`

Leading whitespace is dropped from every line; trailing whitespace is part
of the value.
"""

from __future__ import annotations

import re
from collections.abc import Mapping
from importlib import resources
from pathlib import Path

import structlog
from railway import ErrorCode
from railway.result import Result
from railway.result_failures import ResultFailures

log = structlog.get_logger()

DEFAULT_PROPERTIES = "iot-credentials.properties"

_WHITESPACE = " \t\f"
_KEY_TERMINATORS = "=:" + _WHITESPACE
_LINE_BREAK = re.compile(r"\r\n|\r|\n")
_ESCAPE = re.compile(r"\\(?:u([0-9a-fA-F]{4})|(.)|$)", re.DOTALL)
_CONTROL_ESCAPES = {"t": "\t", "n": "\n", "r": "\r", "f": "\f"}


def _logical_lines(text: str) -> list[str]:
    """Join continuation lines and drop blanks/comments."""
    lines: list[str] = []
    pending: str | None = None
    for raw in _LINE_BREAK.split(text):
        line = raw.lstrip(_WHITESPACE)
        if pending is None and (not line or line[0] in "#!"):
            continue
        trailing = len(line) - len(line.rstrip("\\"))
        if trailing % 2:
            pending = (pending or "") + line[:-1]
            continue
        lines.append((pending or "") + line)
        pending = None
    if pending is not None:
        lines.append(pending)
    return lines


def _split_key_value(line: str) -> tuple[str, str]:
    """Split a logical line at the first unescaped separator, both sides still escaped."""
    end = 0
    while end < len(line):
        char = line[end]
        if char == "\\":
            end += 2
            continue
        if char in _KEY_TERMINATORS:
            break
        end += 1
    key = line[:end]

    start = end
    while start < len(line) and line[start] in _WHITESPACE:
        start += 1
    if start < len(line) and line[start] in "=:":
        start += 1
    while start < len(line) and line[start] in _WHITESPACE:
        start += 1
    return key, line[start:]


def _replace_escape(match: re.Match[str]) -> str:
    code_point, escaped = match.groups()
    if code_point is not None:
        return chr(int(code_point, 16))
    if escaped is None:
        return ""
    if escaped == "u":
        raise ValueError("Malformed \\uxxxx encoding")
    return _CONTROL_ESCAPES.get(escaped, escaped)


def unescape(text: str) -> str:
    """Resolve `.properties` backslash escapes. Raises ValueError on a malformed `\\u` escape."""
    return _ESCAPE.sub(_replace_escape, text)


def parse_properties(text: str) -> dict[str, str]:
    """Parse `.properties` text into a dict. Later keys override earlier ones."""
    properties: dict[str, str] = {}
    for line in _logical_lines(text):
        key, value = _split_key_value(line)
        properties[unescape(key)] = unescape(value)
    return properties


def load_properties(path: Path) -> Result[dict[str, str]]:
    """Load a `.properties` file from disk."""
    if not path.is_file():
        return ResultFailures.not_found("Properties file", str(path))
    return Result.from_computation(
        lambda: parse_properties(path.read_text(encoding="utf-8")),
        ErrorCode.CONFIGURATION_ERROR,
        f"Failed to read properties file {path}",
    ).peek(lambda props: log.debug("properties.loaded", path=str(path), keys=len(props)))


def load_bundled_properties(name: str = DEFAULT_PROPERTIES) -> Result[dict[str, str]]:
    """Load a `.properties` resource shipped inside the iot_credentials package."""
    resource = resources.files("iot_credentials") / "resources" / name
    if not resource.is_file():
        return ResultFailures.not_found("Properties resource", name)
    return Result.from_computation(
        lambda: parse_properties(resource.read_text(encoding="utf-8")),
        ErrorCode.CONFIGURATION_ERROR,
        f"Failed to read properties resource {name}",
    )


def get_config(properties: Mapping[str, str], name: str) -> str | None:
    """Look up `name`; absent and blank values both yield None."""
    value = properties.get(name)
    if value is None or not value.strip():
        return None
    return value
