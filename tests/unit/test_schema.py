"""
Unit tests for schema models.

Tests cover:
- Decision constructors and hook envelope rendering
- HookInput validation
- RuleEntry / RegexPermissions leniency
"""

import pytest
from pydantic import ValidationError

from regex_permissions.schema import (
    CATEGORIES,
    DEFAULT_ASK_REASON,
    DEFAULT_DENY_REASON,
    HOOK_EVENT_NAME,
    ClaudeSettings,
    Decision,
    HookInput,
    PermissionDecision,
    RegexPermissions,
    RuleEntry,
)


class TestDecision:
    """Tests for Decision."""

    def test_deny(self) -> None:
        decision = Decision.deny("No sudo", rule="Bash(^sudo)")
        assert decision.decision == PermissionDecision.DENY
        assert decision.reason == "No sudo"
        assert decision.rule_matched == "Bash(^sudo)"
        assert decision.matched
        assert decision.label == "deny"

    def test_deny_default_reason(self) -> None:
        assert Decision.deny().reason == DEFAULT_DENY_REASON

    def test_ask_default_reason(self) -> None:
        assert Decision.ask().reason == DEFAULT_ASK_REASON

    def test_allow(self) -> None:
        decision = Decision.allow()
        assert decision.decision == PermissionDecision.ALLOW
        assert decision.reason is None

    def test_no_match(self) -> None:
        decision = Decision.no_match()
        assert decision.decision is None
        assert not decision.matched
        assert decision.label == "passthrough"

    def test_frozen(self) -> None:
        decision = Decision.allow()
        with pytest.raises(ValidationError):
            decision.reason = "changed"  # type: ignore[misc]

    def test_hook_output_deny(self) -> None:
        assert Decision.deny("No sudo").to_hook_output() == {
            "hookSpecificOutput": {
                "hookEventName": HOOK_EVENT_NAME,
                "permissionDecision": "deny",
                "permissionDecisionReason": "No sudo",
            }
        }

    def test_hook_output_allow_has_no_reason(self) -> None:
        assert Decision.allow().to_hook_output() == {
            "hookSpecificOutput": {
                "hookEventName": "PreToolUse",
                "permissionDecision": "allow",
            }
        }

    def test_hook_output_no_match(self) -> None:
        assert Decision.no_match().to_hook_output() == {}


class TestHookInput:
    """Tests for HookInput."""

    def test_full_input(self) -> None:
        request = HookInput.model_validate(
            {
                "session_id": "abc",
                "hook_event_name": "PreToolUse",
                "tool_name": "Bash",
                "tool_input": {"command": "ls", "timeout": 5},
                "cwd": "/project",
            }
        )
        assert request.tool_name == "Bash"
        assert request.tool_input["command"] == "ls"
        assert request.cwd == "/project"

    def test_tool_input_optional(self) -> None:
        assert HookInput(tool_name="Bash").tool_input == {}
        assert HookInput.model_validate({"tool_name": "Bash", "tool_input": None}).tool_input == {}

    @pytest.mark.parametrize("data", [{}, {"tool_name": ""}, {"tool_name": None}])
    def test_tool_name_required(self, data: dict) -> None:
        with pytest.raises(ValidationError):
            HookInput.model_validate(data)


class TestRuleModels:
    """Tests for RuleEntry, RegexPermissions and ClaudeSettings."""

    def test_categories(self) -> None:
        assert CATEGORIES == ("deny", "ask", "allow")

    def test_rule_entry_defaults(self) -> None:
        entry = RuleEntry.model_validate({"rule": "Bash(x)"})
        assert entry.reason is None
        assert entry.flags is None

    def test_permissions_keep_raw_entries(self) -> None:
        config = RegexPermissions.model_validate({"deny": ["Bash(x)", {"rule": "Read(y)"}, 5]})
        assert config.deny == ["Bash(x)", {"rule": "Read(y)"}, 5]
        assert config.entries("deny") is config.deny
        assert config.total == 3

    @pytest.mark.parametrize("value", ["text", 3, {"rule": "Bash(x)"}, True])
    def test_non_list_category_is_empty(self, value: object) -> None:
        config = RegexPermissions.model_validate({"allow": value})
        assert config.allow == []

    def test_settings_alias(self) -> None:
        settings = ClaudeSettings.model_validate(
            {"permissions": {"allow": ["Bash(ls:*)"]}, "regexPermissions": {"ask": ["Bash(x)"]}}
        )
        assert settings.regex_permissions is not None
        assert settings.regex_permissions.ask == ["Bash(x)"]

    def test_settings_without_rules(self) -> None:
        assert ClaudeSettings.model_validate({}).regex_permissions is None
