"""
User-agent pattern set for bot classification.

This module defines:
- PatternSet: A mutable set of lowercase regex fragments plus one compiled
  matcher built from the alternation of every fragment
- PatternCompileError: Raised when supplied fragments are not valid regexes

Matching Rules:
- Fragments and user agents are folded with an ASCII-only lowercase
  (non-ASCII characters are left untouched)
- A user agent is a bot if any fragment matches anywhere in it
- An empty pattern set matches only the empty user agent

Usage:
    from botguard.security.patterns import PatternSet

    patterns = PatternSet("^Googlebot-Image/\\nbingpreview/")
    patterns.is_bot("Googlebot-Image/1.0")  # True
    patterns.append(["CustomNewTestB0T\\\\s/\\\\d\\\\.\\\\d"])
    patterns.remove(["bingpreview/"])

Concurrency Note:
    PatternSet is not synchronized. Queries may run concurrently with each
    other; mutations need exclusive access (see botguard.security.detector).
"""

import re
import string
from typing import Iterable, Iterator, Optional, Pattern, Union

# =============================================================================
# NORMALIZATION
# =============================================================================

_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

# Matches only the empty string (no trailing-newline leniency, unlike "^$")
EMPTY_PATTERN = r"\A\Z"

# Unescaped "\N" backreference or "(?(N)" conditional
_NUMBERED_GROUPREF = re.compile(r"(?<!\\)(?:\\\\)*(?:\\[1-9]|\(\?\(\d+\))")

# Each fragment is wrapped as "(?:" + fragment + ")" in the combined matcher
_GROUP_OPEN = "(?:"
_GROUP_CLOSE = ")"


def ascii_lower(text: str) -> str:
    """Lowercase ASCII letters only, leaving every other character unchanged."""
    return text.translate(_ASCII_LOWER)


def parse_lines(text: str) -> set[str]:
    """Split a newline-delimited block into unique folded fragments."""
    return {
        ascii_lower(line.strip())
        for line in text.split("\n")
        if line.strip()
    }


def _normalize(fragments: Union[str, Iterable[str]]) -> set[str]:
    if isinstance(fragments, str):
        fragments = [fragments]
    return {
        ascii_lower(fragment.strip())
        for fragment in fragments
        if fragment.strip()
    }


# =============================================================================
# ERRORS
# =============================================================================

class PatternCompileError(ValueError):
    """One or more fragments failed to compile as regular expressions."""

    def __init__(self, errors: list[tuple[str, str]]):
        self.errors = errors
        details = "; ".join(f"{fragment!r}: {message}" for fragment, message in errors)
        super().__init__(f"Invalid bot pattern(s): {details}")

    @property
    def fragments(self) -> list[str]:
        """The offending fragment texts."""
        return [fragment for fragment, _ in self.errors]


def _compile_fragment(fragment: str) -> Pattern[str]:
    # Group numbers shift once fragments are combined
    if _NUMBERED_GROUPREF.search(fragment):
        raise re.error("numbered backreferences and group conditionals are not supported")
    # Bare first: "a)|(b" only compiles once wrapped
    re.compile(fragment)
    return re.compile(_GROUP_OPEN + fragment + _GROUP_CLOSE)


def _compile_fragments(fragments: Iterable[str]) -> dict[str, Pattern[str]]:
    """Compile fragments one by one, collecting every failure."""
    compiled: dict[str, Pattern[str]] = {}
    errors: list[tuple[str, str]] = []
    for fragment in sorted(fragments):
        try:
            compiled[fragment] = _compile_fragment(fragment)
        except re.error as e:
            errors.append((fragment, str(e)))
    if errors:
        raise PatternCompileError(errors)
    return compiled


def build_matcher(fragments: Iterable[str]) -> Pattern[str]:
    """
    Compile the alternation of all fragments into a single matcher.

    Fragments are joined in sorted order, so equal sets always produce
    the same expression. An empty set yields a matcher for "" only.

    Every fragment must already have passed _compile_fragment; a
    combined compile failure is an internal error and raises re.error.
    """
    ordered = sorted(fragments)
    if not ordered:
        return re.compile(EMPTY_PATTERN)

    source = "|".join(_GROUP_OPEN + fragment + _GROUP_CLOSE for fragment in ordered)
    return re.compile(source)


# =============================================================================
# PATTERN SET
# =============================================================================

class PatternSet:
    """
    Set of bot user-agent fragments with an always-current compiled matcher.

    Every mutating call rebuilds the matcher from the full set before it
    returns. A failed append leaves both the set and the matcher untouched.
    """

    def __init__(self, text: str = ""):
        fragments = parse_lines(text)
        self._compiled_fragments = _compile_fragments(fragments)
        self._compiled = build_matcher(fragments)
        self._patterns = frozenset(fragments)

    @classmethod
    def default(cls, corpus: Optional[str] = None) -> "PatternSet":
        """Build from an externally loaded corpus, or empty if none is given."""
        return cls(corpus or "")

    # -------------------------------------------------------------------------
    # Mutation
    # -------------------------------------------------------------------------

    def append(self, fragments: Union[str, Iterable[str]]) -> None:
        """
        Add fragments to the set. Duplicates are ignored.

        Args:
            fragments: Regex fragments; a bare string counts as one fragment

        Raises:
            PatternCompileError: If any fragment is invalid (nothing is added)
        """
        new = _normalize(fragments) - self._patterns
        compiled_fragments = dict(self._compiled_fragments)
        compiled_fragments.update(_compile_fragments(new))
        patterns = self._patterns | new
        compiled = build_matcher(patterns)

        self._compiled_fragments = compiled_fragments
        self._compiled = compiled
        self._patterns = patterns

    def remove(self, fragments: Union[str, Iterable[str]]) -> None:
        """Remove fragments from the set. Unknown fragments are ignored."""
        patterns = self._patterns - _normalize(fragments)
        try:
            compiled = build_matcher(patterns)
        except re.error as e:
            # A subset of an already valid set must compile
            raise AssertionError(f"Rebuild after remove failed: {e}") from e

        self._compiled_fragments = {
            fragment: self._compiled_fragments[fragment] for fragment in patterns
        }
        self._compiled = compiled
        self._patterns = patterns

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def is_bot(self, user_agent: str) -> bool:
        """Return True if the user agent matches any fragment."""
        return self._compiled.search(ascii_lower(user_agent)) is not None

    check_bot = is_bot

    def matching_patterns(self, user_agent: str) -> list[str]:
        """Return the sorted fragments that individually match the user agent."""
        ua_lower = ascii_lower(user_agent)
        return [
            fragment
            for fragment, compiled in sorted(self._compiled_fragments.items())
            if compiled.search(ua_lower)
        ]

    @property
    def patterns(self) -> frozenset[str]:
        return self._patterns

    @property
    def compiled(self) -> Pattern[str]:
        return self._compiled

    @property
    def pattern(self) -> str:
        """Source of the combined matcher."""
        return self._compiled.pattern

    def copy(self) -> "PatternSet":
        clone = PatternSet.__new__(PatternSet)
        clone._compiled_fragments = dict(self._compiled_fragments)
        clone._compiled = self._compiled
        clone._patterns = self._patterns
        return clone

    def __contains__(self, fragment: object) -> bool:
        if not isinstance(fragment, str):
            return False
        return ascii_lower(fragment.strip()) in self._patterns

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._patterns))

    def __len__(self) -> int:
        return len(self._patterns)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, PatternSet):
            return NotImplemented
        return self._patterns == other._patterns

    __hash__ = None  # mutable

    def __repr__(self) -> str:
        return f"PatternSet({len(self._patterns)} patterns)"
