"""
Pytest configuration and fixtures for regex-permissions tests.

This module provides shared fixtures used across unit, integration,
and security tests.
"""

import json
import tempfile
from pathlib import Path
from typing import Any, Callable, Generator

import pytest

from regex_permissions.config import prepare_rules
from regex_permissions.policy import PolicyEngine, RuleParser
from regex_permissions.schema import RegexPermissions


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for test files."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def project_dir(temp_dir: Path) -> Path:
    """A project directory (holds .claude/settings.local.json when written)."""
    path = temp_dir / "project"
    path.mkdir()
    return path


@pytest.fixture
def home_dir(temp_dir: Path) -> Path:
    """A fake home directory so tests never read the real global settings."""
    path = temp_dir / "home"
    path.mkdir()
    return path


@pytest.fixture
def write_settings() -> Callable[[Path, Any], Path]:
    """Write a settings.local.json under <base>/.claude and return its path."""

    def _write(base: Path, data: Any) -> Path:
        settings_dir = base / ".claude"
        settings_dir.mkdir(parents=True, exist_ok=True)
        path = settings_dir / "settings.local.json"
        path.write_text(data if isinstance(data, str) else json.dumps(data))
        return path

    return _write


@pytest.fixture
def sample_permissions() -> dict[str, Any]:
    """The rule set used by most end-to-end scenarios."""
    return {
        "deny": [
            {"rule": r"Bash(^git\s+push\s+.*--force\b(?!-))", "reason": "No force push"},
            {"rule": r"Edit|Write(\.env$)", "reason": "No .env edits"},
            {"rule": r"Bash(^sudo)", "reason": "No sudo"},
        ],
        "ask": [
            {"rule": "Bash([;|&`$#\\n])", "reason": "Shell metacharacters"},
            {"rule": r"Bash(^git\s+push)", "reason": "Confirm push"},
        ],
        "allow": [
            r"Bash(^\S+\s+--help$)",
            r"Bash(^git\s+(status|log|diff))",
            r"Bash(^aws\s+\S+\s+(get|list|describe)-)",
            "Glob|Grep(.*)",
            "WebSearch(.*)",
            {"rule": r"WebFetch(example\.com)", "flags": "i"},
        ],
    }


@pytest.fixture
def make_engine() -> Callable[..., PolicyEngine]:
    """Build a PolicyEngine from raw category lists."""

    def _make(**categories: Any) -> PolicyEngine:
        config = RegexPermissions.model_validate(categories)
        return PolicyEngine(prepare_rules(config, RuleParser()))

    return _make
