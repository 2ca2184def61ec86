"""
Schema definitions for regex-permissions.

This module defines the Pydantic models used throughout regex-permissions:
- RuleEntry/RegexPermissions: Rules as written in settings files
- ClaudeSettings: The settings file envelope holding regexPermissions
- HookInput: The PreToolUse request read from stdin
- Decision: The result of evaluating a request

Design Decisions:
    - Settings models ignore unknown keys (settings files hold much more
      than our rules)
    - A malformed category degrades to an empty list instead of failing
      the whole file
    - Decision is immutable (frozen=True)
"""

import logging
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator

logger = logging.getLogger(__name__)

HOOK_EVENT_NAME = "PreToolUse"

DEFAULT_DENY_REASON = "Blocked by regex-permissions deny rule"
DEFAULT_ASK_REASON = "Flagged by regex-permissions ask rule"


# =============================================================================
# Enums
# =============================================================================


class PermissionDecision(str, Enum):
    """The decisions a rule category can render."""

    DENY = "deny"
    ASK = "ask"
    ALLOW = "allow"


CATEGORIES: tuple[str, ...] = tuple(d.value for d in PermissionDecision)


# =============================================================================
# Rule Models
# =============================================================================


class RuleEntry(BaseModel):
    """
    Structured form of a rule.

    Attributes:
        rule: Rule text, "Tool(pattern)"
        reason: Optional explanation shown to the user on deny/ask
        flags: Optional regex flag letters for the content pattern
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    rule: str | None = Field(default=None, description="Rule text, Tool(pattern)")
    reason: str | None = Field(default=None, description="Reason shown on match")
    flags: str | None = Field(default=None, description="Content pattern flags")


class RegexPermissions(BaseModel):
    """
    The regexPermissions block of a settings file.

    Entries are kept raw (strings, objects, or junk); each one is parsed and
    checked individually when rules are prepared, so one bad entry never
    invalidates its neighbours.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    deny: list[Any] = Field(default_factory=list, description="Deny rules")
    ask: list[Any] = Field(default_factory=list, description="Ask rules")
    allow: list[Any] = Field(default_factory=list, description="Allow rules")

    @field_validator("deny", "ask", "allow", mode="before")
    @classmethod
    def coerce_category(cls, v: Any, info: ValidationInfo) -> list[Any]:
        """Treat a missing or non-list category as empty."""
        if v is None:
            return []
        if not isinstance(v, list):
            logger.warning(
                '"%s" must be an array, got %s - skipping',
                info.field_name,
                type(v).__name__,
            )
            return []
        return v

    def entries(self, category: str) -> list[Any]:
        return getattr(self, category)

    @property
    def total(self) -> int:
        return len(self.deny) + len(self.ask) + len(self.allow)


class ClaudeSettings(BaseModel):
    """A settings.local.json file. Only regexPermissions is read."""

    model_config = ConfigDict(frozen=True, extra="ignore", populate_by_name=True)

    regex_permissions: RegexPermissions | None = Field(
        default=None,
        alias="regexPermissions",
    )


# =============================================================================
# Runtime Models
# =============================================================================


class HookInput(BaseModel):
    """
    A PreToolUse request as delivered on stdin.

    Attributes:
        tool_name: The tool being invoked (e.g., "Bash")
        tool_input: The tool's arguments
        cwd: Working directory of the session, used to find project settings
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    tool_name: str = Field(..., min_length=1, description="Tool being invoked")
    tool_input: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")
    cwd: str | None = Field(default=None, description="Session working directory")

    @field_validator("tool_input", mode="before")
    @classmethod
    def default_tool_input(cls, v: Any) -> Any:
        return {} if v is None else v


class Decision(BaseModel):
    """
    Result of evaluating a request against the rules.

    ``decision`` is None for no-match: no rule governs the request and the
    caller applies its own default.

    Attributes:
        decision: deny, ask, allow, or None
        reason: Human-readable explanation (deny/ask only)
        rule_matched: Text of the rule that decided, when there was one
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    decision: PermissionDecision | None = Field(default=None)
    reason: str | None = Field(default=None)
    rule_matched: str | None = Field(default=None)

    @classmethod
    def deny(cls, reason: str | None = None, rule: str | None = None) -> "Decision":
        """Create a DENY decision."""
        return cls(
            decision=PermissionDecision.DENY,
            reason=reason or DEFAULT_DENY_REASON,
            rule_matched=rule,
        )

    @classmethod
    def ask(cls, reason: str | None = None, rule: str | None = None) -> "Decision":
        """Create an ASK decision."""
        return cls(
            decision=PermissionDecision.ASK,
            reason=reason or DEFAULT_ASK_REASON,
            rule_matched=rule,
        )

    @classmethod
    def allow(cls, rule: str | None = None) -> "Decision":
        """Create an ALLOW decision."""
        return cls(decision=PermissionDecision.ALLOW, rule_matched=rule)

    @classmethod
    def no_match(cls) -> "Decision":
        """Create a passthrough result."""
        return cls()

    @property
    def matched(self) -> bool:
        return self.decision is not None

    @property
    def label(self) -> str:
        return self.decision.value if self.decision is not None else "passthrough"

    def to_hook_output(self) -> dict[str, Any]:
        """
        Render the hook's stdout envelope.

        Returns an empty dict for no-match, which tells the caller to fall
        back to its own permission handling.
        """
        if self.decision is None:
            return {}
        specific: dict[str, Any] = {
            "hookEventName": HOOK_EVENT_NAME,
            "permissionDecision": self.decision.value,
        }
        if self.reason:
            specific["permissionDecisionReason"] = self.reason
        return {"hookSpecificOutput": specific}
