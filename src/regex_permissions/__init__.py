"""
regex-permissions - Regex allow/ask/deny rules for AI coding assistant tool calls.

Runs as a PreToolUse hook: each tool request is matched against rules such
as "Bash(^git\\s+push)" taken from project and global settings files, and
the hook answers deny, ask, allow, or stays silent so the assistant's own
permission handling applies.

Example usage:
    $ regex-permissions hook < request.json
    $ regex-permissions check Bash "git push --force"
    $ regex-permissions rules --strict
"""

__version__ = "0.1.0"
__author__ = "regex-permissions Contributors"

__all__ = [
    "__version__",
    "__author__",
]
