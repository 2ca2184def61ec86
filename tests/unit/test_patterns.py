"""
Unit tests for the pattern compiler.

Tests cover:
- Nested-quantifier heuristic
- Flag translation
- Caching and fail-open compilation
"""

import logging
import re

import pytest

from regex_permissions.errors import (
    PatternCompileError,
    UnsafePatternError,
    UnsupportedFlagError,
)
from regex_permissions.policy.patterns import (
    PatternCompiler,
    is_safe_pattern,
    translate_flags,
)


# =============================================================================
# Safety Heuristic Tests
# =============================================================================


class TestIsSafePattern:
    """Tests for the nested-quantifier shape filter."""

    @pytest.mark.parametrize(
        "pattern",
        [
            r"(a+)+",
            r"(a+)+$",
            r"(.+)*",
            r"(\d+)+",
            r"(\s*)+",
            r"^(x*){2,}",
        ],
    )
    def test_rejects_nested_quantifiers(self, pattern: str) -> None:
        """Canonical ReDoS shapes are rejected."""
        assert is_safe_pattern(pattern) is False

    @pytest.mark.parametrize(
        "pattern",
        [
            r"(-H\s+\S+\s+)*",
            r"^git\s+(status|log|diff)",
            r"(ab)+",
            r"(a+)",
            r"^sudo",
            r"\.env$",
        ],
    )
    def test_accepts_structured_groups(self, pattern: str) -> None:
        """Groups with more than one atom, or no outer quantifier, pass."""
        assert is_safe_pattern(pattern) is True


# =============================================================================
# Flag Translation Tests
# =============================================================================


class TestTranslateFlags:
    """Tests for rule flag letters."""

    def test_empty_flags(self) -> None:
        assert translate_flags("") == re.RegexFlag(0)

    def test_supported_flags(self) -> None:
        assert translate_flags("ims") == re.IGNORECASE | re.MULTILINE | re.DOTALL

    def test_ignored_flags(self) -> None:
        """u and d have no effect in Python."""
        assert translate_flags("ud") == re.RegexFlag(0)

    def test_unknown_flag_raises(self) -> None:
        with pytest.raises(UnsupportedFlagError) as exc_info:
            translate_flags("iq", pattern="abc")
        assert exc_info.value.flag == "q"
        assert exc_info.value.context["pattern"] == "abc"


# =============================================================================
# PatternCompiler Tests
# =============================================================================


class TestPatternCompiler:
    """Tests for compile/compile_strict and the cache."""

    def test_compile_returns_pattern(self) -> None:
        compiler = PatternCompiler()
        matcher = compiler.compile(r"^git\s+push")
        assert matcher is not None
        assert matcher.search("git push origin")

    def test_flags_applied(self) -> None:
        compiler = PatternCompiler()
        matcher = compiler.compile(r"example\.com", "i")
        assert matcher is not None
        assert matcher.search("https://EXAMPLE.COM/")

    def test_invalid_regex_returns_none(self) -> None:
        """Unparsable patterns fail open."""
        compiler = PatternCompiler()
        assert compiler.compile("+") is None
        assert len(compiler) == 0

    def test_unsafe_regex_returns_none_with_warning(self, caplog: pytest.LogCaptureFixture) -> None:
        compiler = PatternCompiler()
        with caplog.at_level(logging.WARNING, logger="regex_permissions"):
            assert compiler.compile("(a+)+$") is None
        assert "possible ReDoS" in caplog.text

    def test_unknown_flag_returns_none(self) -> None:
        compiler = PatternCompiler()
        assert compiler.compile("abc", "q") is None

    def test_compile_strict_raises_compile_error(self) -> None:
        compiler = PatternCompiler()
        with pytest.raises(PatternCompileError) as exc_info:
            compiler.compile_strict("(unclosed")
        assert exc_info.value.pattern == "(unclosed"
        assert exc_info.value.detail

    def test_compile_strict_raises_unsafe(self) -> None:
        compiler = PatternCompiler()
        with pytest.raises(UnsafePatternError):
            compiler.compile_strict(r"(\d+)+")

    def test_cache_returns_same_instance(self) -> None:
        compiler = PatternCompiler()
        first = compiler.compile("abc", "i")
        second = compiler.compile("abc", "i")
        assert first is second
        assert ("i", "abc") in compiler
        assert len(compiler) == 1

    def test_cache_keyed_by_flags(self) -> None:
        compiler = PatternCompiler()
        plain = compiler.compile("abc")
        folded = compiler.compile("abc", "i")
        assert plain is not folded
        assert len(compiler) == 2

    def test_cache_hit_skips_safety_check(self, monkeypatch: pytest.MonkeyPatch) -> None:
        """Once cached, a pattern is served without re-running the heuristic."""
        from regex_permissions.policy import patterns

        compiler = PatternCompiler()
        compiler.compile("abc")

        def fail(pattern: str) -> bool:
            raise AssertionError("safety check re-run on cache hit")

        monkeypatch.setattr(patterns, "is_safe_pattern", fail)
        assert compiler.compile("abc") is not None

    def test_clear(self) -> None:
        compiler = PatternCompiler()
        first = compiler.compile("abc")
        compiler.clear()
        assert len(compiler) == 0
        second = compiler.compile("abc")
        assert second is not None
        assert second.pattern == first.pattern

    def test_compilers_do_not_share_cache(self) -> None:
        a = PatternCompiler()
        b = PatternCompiler()
        a.compile("abc")
        assert len(b) == 0
