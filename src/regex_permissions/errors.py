"""
Exception hierarchy for regex-permissions.

All regex-permissions exceptions inherit from RegexPermissionsError, allowing
callers to catch every library-specific exception with a single except clause.

Exception Categories:
    - PatternError: A regex could not be compiled or was rejected as unsafe
    - RuleParseError: A rule entry does not have the Tool(pattern) shape
    - ConfigLoadError: A standalone rule file could not be read

Design Principles:
    - All errors have error codes for programmatic handling
    - All errors include context (pattern, rule, path where applicable)
    - All errors provide actionable suggestions where possible
    - Evaluation never lets these escape: a failing rule is dropped and
      the request falls through to no-match
"""

from dataclasses import dataclass, field
from typing import Any


# =============================================================================
# Error Codes
# =============================================================================

# Pattern errors: 1xxx
ERROR_PATTERN_INVALID = 1001
ERROR_PATTERN_UNSAFE = 1002
ERROR_PATTERN_FLAG_UNSUPPORTED = 1003

# Rule errors: 2xxx
ERROR_RULE_INVALID = 2001
ERROR_RULE_FORMAT = 2002
ERROR_RULE_EMPTY = 2003

# Config errors: 3xxx
ERROR_CONFIG_LOAD = 3001


# =============================================================================
# Base Exception
# =============================================================================


@dataclass
class RegexPermissionsError(Exception):
    """
    Base exception for all regex-permissions errors.

    Attributes:
        message: Human-readable error description
        code: Numeric error code for programmatic handling
        suggestion: Optional hint for how to resolve the error
        context: Optional dict with additional debugging info
    """

    message: str = ""
    code: int = 0
    suggestion: str | None = None
    context: dict[str, Any] = field(default_factory=dict)

    def __str__(self) -> str:
        """Format error for display."""
        parts = [f"[E{self.code}] {self.message}"]
        if self.suggestion:
            parts.append(f"\nSuggestion: {self.suggestion}")
        return "".join(parts)

    def __repr__(self) -> str:
        """Format error for debugging."""
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"code={self.code}, "
            f"context={self.context!r})"
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "code": self.code,
            "suggestion": self.suggestion,
            "context": self.context,
        }


# =============================================================================
# Pattern Errors
# =============================================================================


@dataclass
class PatternError(RegexPermissionsError):
    """
    Base class for errors compiling a single regular expression.

    Attributes:
        pattern: The pattern text that failed
        flags: The rule flags the pattern was compiled with
    """

    pattern: str = ""
    flags: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid pattern: {self.pattern}"
        if self.code == 0:
            self.code = ERROR_PATTERN_INVALID
        self.context.update({
            "pattern": self.pattern,
            "flags": self.flags,
        })


@dataclass
class PatternCompileError(PatternError):
    """Raised when the regex engine cannot parse a pattern."""

    detail: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Cannot compile pattern {self.pattern!r}: {self.detail}"
        if not self.suggestion:
            self.suggestion = "Check the pattern against Python 're' syntax"
        super().__post_init__()
        self.context["detail"] = self.detail


@dataclass
class UnsafePatternError(PatternError):
    """Raised when a pattern has a nested-quantifier shape such as (a+)+."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unsafe regex (possible ReDoS): {self.pattern}"
        if self.code == 0:
            self.code = ERROR_PATTERN_UNSAFE
        if not self.suggestion:
            self.suggestion = "Drop the outer quantifier, e.g. write 'a+' instead of '(a+)+'"
        super().__post_init__()


@dataclass
class UnsupportedFlagError(PatternError):
    """Raised when a rule carries a flag letter with no 're' equivalent."""

    flag: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Unsupported regex flag {self.flag!r} on pattern {self.pattern!r}"
        if self.code == 0:
            self.code = ERROR_PATTERN_FLAG_UNSUPPORTED
        if not self.suggestion:
            self.suggestion = "Use only the flags i, m, s (u and d are ignored)"
        super().__post_init__()
        self.context["flag"] = self.flag


# =============================================================================
# Rule Errors
# =============================================================================


@dataclass
class RuleParseError(RegexPermissionsError):
    """
    Raised when a rule entry cannot be turned into a compiled rule.

    Attributes:
        rule: The raw rule text (may be empty when the entry had none)
        category: Which category the rule was configured under, if known
    """

    rule: str = ""
    category: str | None = None

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Invalid rule: {self.rule}"
        if self.code == 0:
            self.code = ERROR_RULE_INVALID
        self.context.update({
            "rule": self.rule,
            "category": self.category,
        })


@dataclass
class RuleFormatError(RuleParseError):
    """Raised when a rule is not shaped like Tool(pattern)."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Rule is not of the form Tool(pattern): {self.rule}"
        if self.code == 0:
            self.code = ERROR_RULE_FORMAT
        if not self.suggestion:
            self.suggestion = 'Write rules as "Bash(^git\\\\s+status)"'
        super().__post_init__()


@dataclass
class EmptyRuleError(RuleParseError):
    """Raised when an entry has no rule text at all."""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = "Rule entry has no rule text"
        if self.code == 0:
            self.code = ERROR_RULE_EMPTY
        if not self.suggestion:
            self.suggestion = 'Use a string or an object with a "rule" key'
        super().__post_init__()


# =============================================================================
# Config Errors
# =============================================================================


@dataclass
class ConfigLoadError(RegexPermissionsError):
    """Raised when a standalone rule file cannot be read or parsed."""

    path: str = ""

    def __post_init__(self) -> None:
        """Set defaults after dataclass init."""
        if not self.message:
            self.message = f"Cannot load rules from {self.path}"
        if self.code == 0:
            self.code = ERROR_CONFIG_LOAD
        self.context["path"] = self.path
