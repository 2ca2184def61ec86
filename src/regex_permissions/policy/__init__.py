"""
Policy module for regex-permissions.

This module implements rule compilation and evaluation for PreToolUse
requests.

Key concepts:
    - PatternCompiler: Compiles rule regexes behind a ReDoS shape filter
    - RuleParser: Turns "Tool(pattern)" entries into CompiledRule objects
    - PolicyEngine: Applies deny -> ask -> allow precedence and renders a
      Decision, or no-match when no rule governs the request

The policy engine must be:
    - Fail-open: Malformed rules are dropped, never fatal
    - Predictable: Same inputs always produce same decisions
    - Cautious on multiline input: one bad line escalates, every line
      must be vetted to allow
"""

from regex_permissions.policy.content import extract_primary_content, primary_field
from regex_permissions.policy.engine import PolicyEngine, split_lines
from regex_permissions.policy.patterns import PatternCompiler, is_safe_pattern
from regex_permissions.policy.rules import CompiledRule, RuleParser, RuleSet, split_rule

__all__ = [
    "CompiledRule",
    "PatternCompiler",
    "PolicyEngine",
    "RuleParser",
    "RuleSet",
    "extract_primary_content",
    "is_safe_pattern",
    "primary_field",
    "split_lines",
    "split_rule",
]
