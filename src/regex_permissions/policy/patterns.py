"""
Pattern compiler for regex-permissions.

Turns rule pattern text plus flag letters into compiled ``re.Pattern``
objects, memoizing successful compilations.

Safety Note:
    Rules come from user-editable settings files and are matched against
    arbitrary command text. Before a pattern reaches ``re.compile`` it is
    screened by ``is_safe_pattern``, a shape heuristic for the classic
    nested-quantifier ReDoS form (``(a+)+``, ``(.+)*``). It is NOT a
    static analysis: it has no false negatives on those canonical shapes
    but other pathological patterns (``(?:a+)+``, ``(a|aa)+``) still pass.

Caching:
    ``PatternCompiler`` owns its cache. Entries are keyed by
    ``(flags, pattern)``; a hit returns the same object and skips the
    safety check. Inserts happen under a lock with insert-if-absent
    semantics, so concurrent callers racing on one key all end up with
    the same compiled object. Lookups do not lock.
"""

import logging
import re
import threading

from regex_permissions.errors import (
    PatternCompileError,
    PatternError,
    UnsafePatternError,
    UnsupportedFlagError,
)

logger = logging.getLogger(__name__)

# A group holding exactly one quantified atom, closed and quantified again.
_NESTED_QUANTIFIER = re.compile(r"\((\.|\\.|[^)\\])[+*]\)[+*{]")

FLAG_MAP: dict[str, re.RegexFlag] = {
    "i": re.IGNORECASE,
    "m": re.MULTILINE,
    "s": re.DOTALL,
}

# Python str patterns are always unicode-aware and match objects always
# carry spans, so these are accepted and ignored.
IGNORED_FLAGS = frozenset("ud")


def is_safe_pattern(pattern: str) -> bool:
    """
    Check a pattern against the nested-quantifier heuristic.

    Examples:
        (a+)+            -> False
        (\\s*)+          -> False
        (-H\\s+\\S+\\s+)*  -> True (multi-token group)
    """
    return _NESTED_QUANTIFIER.search(pattern) is None


def translate_flags(flags: str, pattern: str = "") -> re.RegexFlag:
    """
    Translate rule flag letters into ``re`` flags.

    Args:
        flags: Flag letters such as "i" or "ms"
        pattern: Pattern the flags belong to (for error context)

    Returns:
        Combined ``re.RegexFlag`` value

    Raises:
        UnsupportedFlagError: If a letter has no ``re`` equivalent
    """
    result = re.RegexFlag(0)
    for letter in flags:
        if letter in IGNORED_FLAGS:
            continue
        try:
            result |= FLAG_MAP[letter]
        except KeyError:
            raise UnsupportedFlagError(pattern=pattern, flags=flags, flag=letter) from None
    return result


class PatternCompiler:
    """
    Compiles and caches rule patterns.

    Usage:
        compiler = PatternCompiler()
        matcher = compiler.compile(r"^git\\s+push", "i")
        if matcher is not None and matcher.search(command):
            ...
    """

    def __init__(self) -> None:
        self._cache: dict[tuple[str, str], re.Pattern[str]] = {}
        self._lock = threading.Lock()

    def compile(self, pattern: str, flags: str = "") -> re.Pattern[str] | None:
        """
        Compile a pattern, returning None instead of raising.

        Unsafe patterns are reported with a warning; patterns the regex
        engine rejects are dropped quietly, the caller reports the rule.
        """
        try:
            return self.compile_strict(pattern, flags)
        except UnsafePatternError:
            logger.warning("Skipping unsafe regex (possible ReDoS): %s", pattern)
            return None
        except PatternError as e:
            logger.debug("%s", e.message)
            return None

    def compile_strict(self, pattern: str, flags: str = "") -> re.Pattern[str]:
        """
        Compile a pattern, raising on failure.

        Args:
            pattern: Regular expression text
            flags: Rule flag letters (stateful flags must already be removed)

        Returns:
            The compiled pattern (cached)

        Raises:
            UnsafePatternError: If the pattern fails the ReDoS heuristic
            UnsupportedFlagError: If a flag letter is not supported
            PatternCompileError: If ``re`` cannot parse the pattern
        """
        key = (flags, pattern)
        cached = self._cache.get(key)
        if cached is not None:
            return cached

        if not is_safe_pattern(pattern):
            raise UnsafePatternError(pattern=pattern, flags=flags)

        re_flags = translate_flags(flags, pattern)
        try:
            compiled = re.compile(pattern, re_flags)
        except re.error as e:
            raise PatternCompileError(pattern=pattern, flags=flags, detail=str(e)) from e

        with self._lock:
            return self._cache.setdefault(key, compiled)

    def clear(self) -> None:
        """Drop every cached pattern."""
        with self._lock:
            self._cache.clear()

    def __len__(self) -> int:
        return len(self._cache)

    def __contains__(self, key: object) -> bool:
        return key in self._cache
