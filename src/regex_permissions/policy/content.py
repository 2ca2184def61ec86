"""
Primary content selection.

Rules match a single string per request. Which argument that is depends on
the tool: the shell command for Bash, the path for file tools, and so on.
Tools not listed here (MCP tools, future built-ins) fall back to the first
non-empty common field.
"""

from collections.abc import Mapping
from typing import Any

PRIMARY_FIELDS: dict[str, str] = {
    "Bash": "command",
    "Edit": "file_path",
    "Write": "file_path",
    "Read": "file_path",
    "WebFetch": "url",
    "Grep": "pattern",
    "Glob": "pattern",
    "WebSearch": "query",
}

FALLBACK_FIELDS: tuple[str, ...] = ("command", "file_path", "url", "pattern")


def primary_field(tool_name: str) -> str:
    """Return the argument name a tool's rules are matched against."""
    return PRIMARY_FIELDS.get(tool_name, FALLBACK_FIELDS[0])


def extract_primary_content(
    tool_name: str,
    arguments: Mapping[str, Any] | None,
) -> str | None:
    """
    Select the string that content patterns are evaluated against.

    Args:
        tool_name: Name of the tool being invoked
        arguments: The tool's argument mapping (may be None)

    Returns:
        The selected string, or None if the field is absent or not a string
    """
    if not arguments:
        return None

    field_name = PRIMARY_FIELDS.get(tool_name)
    if field_name is not None:
        return _as_text(arguments.get(field_name))

    for name in FALLBACK_FIELDS:
        value = _as_text(arguments.get(name))
        if value:
            return value
    return None


def _as_text(value: Any) -> str | None:
    return value if isinstance(value, str) else None
