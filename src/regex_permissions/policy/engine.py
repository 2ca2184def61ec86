"""
Policy Engine for regex-permissions.

Every PreToolUse request passes through the engine, which renders one of
deny, ask, allow, or no-match (defer to the caller's own permissions).

Design Principles:
    - Fail-open: A request no rule governs is never decided here
    - Precedence: deny beats ask beats allow, first match wins per category
    - Predictable: Same inputs always produce same decisions
    - Stateless: The engine only reads its immutable RuleSet, so concurrent
      evaluate() calls need no locking

How it works:
    1. Select the request's primary content (command, path, url, ...)
    2. If the content spans several lines, build a per-line view
    3. Deny pass: the whole content OR any single line matching is enough
    4. Ask pass: same matching as deny
    5. Allow pass: every line must be covered by some allow rule;
       single-line content needs one matching rule
    6. Otherwise no-match

Security Note:
    Steps 3-5 are deliberately asymmetric. A dangerous command smuggled onto
    the second line of "git status\\nsudo rm -rf /" is still caught by a
    "^sudo" deny rule, while an allow rule for "^git" does not approve the
    whole block because one line is not covered.
"""

from collections.abc import Mapping, Sequence
from typing import Any

from regex_permissions.policy.content import extract_primary_content
from regex_permissions.policy.rules import CompiledRule, RuleSet
from regex_permissions.schema import Decision


def split_lines(content: str | None) -> list[str] | None:
    """
    Build the multiline view of a content string.

    Returns None for single-line content; otherwise the stripped, non-empty
    lines (which may be an empty list for whitespace-only content).
    """
    if content is None or "\n" not in content:
        return None
    return [line.strip() for line in content.split("\n") if line.strip()]


class PolicyEngine:
    """
    Evaluates tool requests against a prepared RuleSet.

    Usage:
        engine = PolicyEngine(rule_set)
        decision = engine.evaluate("Bash", {"command": "git status"})
        if decision.matched:
            print(decision.to_hook_output())

    Attributes:
        rules: The compiled rules to enforce
    """

    def __init__(self, rules: RuleSet) -> None:
        self.rules = rules

    @property
    def is_empty(self) -> bool:
        return self.rules.is_empty

    def evaluate(
        self,
        tool_name: str,
        arguments: Mapping[str, Any] | None,
    ) -> Decision:
        """
        Evaluate a request.

        Args:
            tool_name: The tool being invoked (e.g., "Bash")
            arguments: The tool's arguments

        Returns:
            Decision; Decision.no_match() when no rule applies
        """
        content = extract_primary_content(tool_name, arguments)
        lines = split_lines(content)

        rule = self._first_match(self.rules.deny, tool_name, content, lines)
        if rule is not None:
            return Decision.deny(rule.reason, rule=rule.raw)

        rule = self._first_match(self.rules.ask, tool_name, content, lines)
        if rule is not None:
            return Decision.ask(rule.reason, rule=rule.raw)

        if lines is not None:
            return self._evaluate_allow_lines(tool_name, lines)

        for rule in self.rules.allow:
            if rule.matches(tool_name, content):
                return Decision.allow(rule=rule.raw)

        return Decision.no_match()

    # =========================================================================
    # Matching helpers
    # =========================================================================

    def _first_match(
        self,
        rules: Sequence[CompiledRule],
        tool_name: str,
        content: str | None,
        lines: list[str] | None,
    ) -> CompiledRule | None:
        """Return the first rule matching the whole content or any line."""
        for rule in rules:
            if rule.matches(tool_name, content):
                return rule
            if lines and any(rule.matches(tool_name, line) for line in lines):
                return rule
        return None

    def _evaluate_allow_lines(self, tool_name: str, lines: list[str]) -> Decision:
        """
        Allow multiline content only if every line is covered.

        Content made only of blank lines has nothing to vet and is not
        auto-approved.
        """
        # Stricter than the upstream hook, which allows a blank block because
        # every check over zero lines passes.
        if not lines:
            return Decision.no_match()

        for line in lines:
            if not any(rule.matches(tool_name, line) for rule in self.rules.allow):
                return Decision.no_match()

        return Decision.allow()
