"""
Configuration loading and merging for regex-permissions.

Rules live under the ``regexPermissions`` key of Claude settings files.
Two scopes are read and combined additively:

    project: <cwd>/.claude/settings.local.json
    global:  ~/.claude/settings.local.json

Project rules come first in every category, so on equal footing a project
rule is reached before a global one.

Every failure here degrades: a missing file, broken JSON, or a category
that is not a list reads as "no rules" with a warning, never as an error
that would block the request.
"""

import json
import logging
import os
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from regex_permissions.errors import ConfigLoadError
from regex_permissions.policy.rules import CompiledRule, RuleParser, RuleSet
from regex_permissions.schema import CATEGORIES, ClaudeSettings, RegexPermissions

logger = logging.getLogger(__name__)

ENV_DEBUG = "REGEX_PERMISSIONS_DEBUG"

SETTINGS_DIR = ".claude"
SETTINGS_FILENAME = "settings.local.json"


def debug_enabled() -> bool:
    """Whether REGEX_PERMISSIONS_DEBUG=1 is set."""
    return os.environ.get(ENV_DEBUG) == "1"


# =============================================================================
# Scope paths
# =============================================================================


def project_settings_path(cwd: str | Path) -> Path:
    return Path(cwd) / SETTINGS_DIR / SETTINGS_FILENAME


def global_settings_path(home: str | Path | None = None) -> Path:
    base = Path(home) if home is not None else Path.home()
    return base / SETTINGS_DIR / SETTINGS_FILENAME


# =============================================================================
# Loading
# =============================================================================


def load_settings(path: str | Path) -> RegexPermissions | None:
    """
    Load the regexPermissions block of one settings file.

    Args:
        path: Path to a settings JSON file

    Returns:
        The rules block, or None if the file or key is absent or unusable
    """
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        logger.debug("No settings at %s", path)
        return None
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Cannot read %s: %s", path, e)
        return None

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Invalid JSON in %s: %s", path, e)
        return None
    except RecursionError:
        logger.warning("Invalid JSON in %s: nested too deeply", path)
        return None

    return _permissions_from_data(data, path)


def load_rules_file(path: str | Path) -> RegexPermissions:
    """
    Load a standalone YAML (or JSON) rule file.

    The file may either hold a ``regexPermissions`` key, like a settings
    file, or the deny/ask/allow block at the top level.

    Raises:
        ConfigLoadError: If the file cannot be read or is not a mapping
    """
    path = Path(path)
    try:
        with path.open(encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, UnicodeDecodeError) as e:
        raise ConfigLoadError(message=f"Cannot read {path}: {e}", path=str(path)) from e
    except yaml.YAMLError as e:
        raise ConfigLoadError(message=f"Invalid YAML syntax in {path}:\n{e}", path=str(path)) from None

    if data is None:
        return RegexPermissions()
    if not isinstance(data, dict):
        raise ConfigLoadError(
            message=f"Rule file {path} must contain a mapping, got {type(data).__name__}",
            path=str(path),
            suggestion="Start the file with deny:, ask: and allow: lists",
        )

    block = data.get("regexPermissions", data)
    try:
        return RegexPermissions.model_validate(block)
    except ValidationError as e:
        raise ConfigLoadError(
            message=f"Malformed rules in {path}: {e.errors()[0]['msg']}",
            path=str(path),
        ) from None


def _permissions_from_data(data: Any, path: Path) -> RegexPermissions | None:
    if not isinstance(data, dict):
        logger.warning("Settings in %s must be a JSON object, got %s", path, type(data).__name__)
        return None
    try:
        settings = ClaudeSettings.model_validate(data)
    except ValidationError as e:
        logger.warning("Ignoring regexPermissions in %s: %s", path, e.errors()[0]["msg"])
        return None
    return settings.regex_permissions


# =============================================================================
# Merging and preparation
# =============================================================================


def merge_configs(
    a: RegexPermissions | None,
    b: RegexPermissions | None,
) -> RegexPermissions:
    """
    Combine two scopes' rules, ``a`` first in every category.

    Absent scopes count as empty. When only one scope is present it is
    returned unchanged.
    """
    if a is None:
        return b if b is not None else RegexPermissions()
    if b is None:
        return a
    return RegexPermissions(
        deny=a.deny + b.deny,
        ask=a.ask + b.ask,
        allow=a.allow + b.allow,
    )


def prepare_rules(
    config: RegexPermissions,
    parser: RuleParser | None = None,
) -> RuleSet:
    """
    Parse every entry of every category, dropping the ones that fail.

    Args:
        config: Raw rules (usually the result of merge_configs)
        parser: Parser to use; a fresh one with its own cache by default

    Returns:
        The compiled RuleSet
    """
    parser = parser if parser is not None else RuleParser()
    compiled: dict[str, tuple[CompiledRule, ...]] = {}
    for category in CATEGORIES:
        parsed = (parser.parse(entry, category) for entry in config.entries(category))
        compiled[category] = tuple(rule for rule in parsed if rule is not None)

    rule_set = RuleSet(**compiled)
    logger.debug(
        "Loaded %d deny, %d ask, %d allow rules",
        len(rule_set.deny),
        len(rule_set.ask),
        len(rule_set.allow),
    )
    return rule_set


def load_scoped_config(
    cwd: str | Path | None,
    home: str | Path | None = None,
) -> RegexPermissions:
    """Load and merge the project scope (if cwd is known) and the global scope."""
    project = load_settings(project_settings_path(cwd)) if cwd else None
    global_ = load_settings(global_settings_path(home))
    return merge_configs(project, global_)


def load_scoped_rules(
    cwd: str | Path | None,
    home: str | Path | None = None,
    parser: RuleParser | None = None,
) -> RuleSet:
    """Load, merge and compile both scopes."""
    return prepare_rules(load_scoped_config(cwd, home), parser)
