"""
PreToolUse hook runner.

Reads one request from stdin, evaluates it against the project and global
rules, and returns the JSON envelope to print. Everything that can go wrong
with the input (empty stdin, bad JSON, no tool_name) yields an empty answer,
which leaves the decision to the assistant's own permission settings.
"""

import json
import logging
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from regex_permissions.config import load_scoped_rules
from regex_permissions.policy import PolicyEngine
from regex_permissions.schema import Decision, HookInput

logger = logging.getLogger(__name__)


def parse_hook_input(raw_input: str) -> HookInput | None:
    """Parse stdin text into a HookInput, or None if it is unusable."""
    try:
        data = json.loads(raw_input)
    except (json.JSONDecodeError, RecursionError):
        logger.debug("Hook input is not valid JSON")
        return None

    try:
        return HookInput.model_validate(data)
    except ValidationError as e:
        logger.debug("Hook input rejected: %s", e.errors()[0]["msg"])
        return None


def evaluate_request(request: HookInput, home: str | Path | None = None) -> Decision:
    """Evaluate one request against the rules of its scopes."""
    rules = load_scoped_rules(request.cwd, home)
    engine = PolicyEngine(rules)
    if engine.is_empty:
        return Decision.no_match()
    return engine.evaluate(request.tool_name, request.tool_input)


def run_hook(raw_input: str, home: str | Path | None = None) -> dict[str, Any]:
    """
    Run the hook on raw stdin text.

    Args:
        raw_input: The JSON request as read from stdin
        home: Home directory holding the global settings (defaults to ~)

    Returns:
        The envelope to print, or an empty dict for no decision
    """
    request = parse_hook_input(raw_input)
    if request is None:
        return {}
    return evaluate_request(request, home).to_hook_output()
