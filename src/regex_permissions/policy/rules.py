"""
Rule parsing for regex-permissions.

A rule is written as ``Tool(pattern)``: a regex over the tool name, then a
regex over the request's primary content in parentheses. Two entry forms
are accepted::

    "Bash(^git\\s+push)"
    {"rule": "WebFetch(example\\.com)", "reason": "...", "flags": "i"}

Parsing splits at the first ``(`` and the final ``)``. This is a substring
split, not a balanced-paren parse: the content part may contain any
parentheses, but the tool part can never contain ``(``. Tool patterns are
anchored to the whole tool name (``Edit`` never matches ``NotebookEdit``)
and are always case-sensitive; flags only apply to the content pattern.
"""

import logging
import re
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from pydantic import ValidationError

from regex_permissions.errors import (
    EmptyRuleError,
    PatternError,
    RuleFormatError,
    RuleParseError,
    UnsafePatternError,
)
from regex_permissions.policy.patterns import PatternCompiler
from regex_permissions.schema import RuleEntry

logger = logging.getLogger(__name__)

_RULE_SHAPE = re.compile(r"([^(]+)\((.+)\)", re.DOTALL)

# Flags that would make a matcher depend on state left by earlier calls.
STATEFUL_FLAGS = frozenset("gy")


@dataclass(frozen=True)
class CompiledRule:
    """
    A parsed rule ready for evaluation.

    Attributes:
        tool_matcher: Anchored, case-sensitive tool name pattern
        content_matcher: Pattern searched in the primary content
        reason: Optional human-readable reason from the rule entry
        raw: The original rule text
    """

    tool_matcher: re.Pattern[str]
    content_matcher: re.Pattern[str]
    reason: str | None = None
    raw: str = ""

    def matches_tool(self, tool_name: str) -> bool:
        return self.tool_matcher.search(tool_name) is not None

    def matches(self, tool_name: str, content: str | None) -> bool:
        """Both the tool name and the content must match; no content never matches."""
        if not self.matches_tool(tool_name):
            return False
        if content is None:
            return False
        return self.content_matcher.search(content) is not None


def split_rule(raw: str) -> tuple[str, str]:
    """
    Split ``Tool(pattern)`` into its tool and content patterns.

    Raises:
        RuleFormatError: If the text is not of that shape
    """
    match = _RULE_SHAPE.fullmatch(raw)
    if match is None:
        raise RuleFormatError(rule=raw)
    return match.group(1), match.group(2)


def anchor_tool_pattern(tool_pattern: str) -> str:
    """Wrap a tool pattern so it must match the entire tool name."""
    return rf"\A(?:{tool_pattern})\Z"


def strip_stateful_flags(flags: str | None, raw: str = "") -> str:
    """Remove flags that make matching stateful, warning when any were present."""
    if not flags:
        return ""
    for letter in sorted(STATEFUL_FLAGS & set(flags)):
        logger.warning('Stripping "%s" flag from rule (causes stateful matching): %s', letter, raw)
    return "".join(c for c in flags if c not in STATEFUL_FLAGS)


class RuleParser:
    """
    Turns raw rule entries into CompiledRule objects.

    The parser shares one PatternCompiler across every rule it parses, so
    repeated patterns (the same tool regex on many rules, the same rule in
    two scopes) compile once.
    """

    def __init__(self, compiler: PatternCompiler | None = None) -> None:
        self.compiler = compiler if compiler is not None else PatternCompiler()

    def parse(self, entry: Any, category: str | None = None) -> CompiledRule | None:
        """
        Parse one entry, returning None for anything malformed.

        Args:
            entry: A rule string, a RuleEntry, or a mapping with a "rule" key
            category: Category name, used only in diagnostics

        Returns:
            The compiled rule, or None if the entry was dropped
        """
        try:
            return self.parse_strict(entry, category)
        except RuleParseError as e:
            if isinstance(e.__cause__, UnsafePatternError):
                logger.warning("Skipping unsafe regex (possible ReDoS): %s", e.__cause__.pattern)
            logger.warning("Skipping invalid rule: %s", e.rule or e.message)
            logger.debug("%s", e)
            return None

    def parse_strict(self, entry: Any, category: str | None = None) -> CompiledRule:
        """
        Parse one entry, raising on anything malformed.

        Raises:
            EmptyRuleError: If the entry has no rule text
            RuleFormatError: If the rule is not shaped Tool(pattern)
            RuleParseError: If either pattern fails to compile
        """
        rule_entry = _coerce_entry(entry, category)
        raw = rule_entry.rule

        tool_pattern, content_pattern = _split(raw, category)
        flags = strip_stateful_flags(rule_entry.flags, raw)

        try:
            tool_matcher = self.compiler.compile_strict(anchor_tool_pattern(tool_pattern))
            content_matcher = self.compiler.compile_strict(content_pattern, flags)
        except PatternError as e:
            raise RuleParseError(
                message=f"Invalid rule {raw!r}: {e.message}",
                rule=raw,
                category=category,
                suggestion=e.suggestion,
            ) from e

        return CompiledRule(
            tool_matcher=tool_matcher,
            content_matcher=content_matcher,
            reason=rule_entry.reason,
            raw=raw,
        )


def _split(raw: str, category: str | None) -> tuple[str, str]:
    try:
        return split_rule(raw)
    except RuleFormatError as e:
        e.category = category
        e.context["category"] = category
        raise


def _coerce_entry(entry: Any, category: str | None) -> RuleEntry:
    if isinstance(entry, RuleEntry):
        rule_entry = entry
    elif isinstance(entry, str):
        rule_entry = RuleEntry(rule=entry)
    elif isinstance(entry, Mapping):
        try:
            rule_entry = RuleEntry.model_validate(dict(entry))
        except ValidationError as e:
            rule = entry.get("rule")
            raise RuleParseError(
                message=f"Malformed rule entry: {e.errors()[0]['msg']}",
                rule=rule if isinstance(rule, str) else "",
                category=category,
            ) from None
    else:
        raise RuleParseError(
            message=f"Rule entry must be a string or an object, got {type(entry).__name__}",
            category=category,
        )

    if not rule_entry.rule:
        raise EmptyRuleError(category=category)
    return rule_entry


@dataclass(frozen=True)
class RuleSet:
    """
    Compiled rules per category, in evaluation order.

    Order matters: within a category the first matching rule wins.
    """

    deny: tuple[CompiledRule, ...] = ()
    ask: tuple[CompiledRule, ...] = ()
    allow: tuple[CompiledRule, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not (self.deny or self.ask or self.allow)

    def __len__(self) -> int:
        return len(self.deny) + len(self.ask) + len(self.allow)
