"""
Glob-style filename matching for organization rules.

Patterns are evaluated against a file's base name only. Supported syntax:

    *        any run of characters, including none
    ?        exactly one character
    [abc]    one character from the set (ranges like ``a-z`` allowed)
    [!abc]   one character not in the set (``[^abc]`` is accepted too)

Wildcards never match a path separator, so a pattern can not reach into
subdirectories.
"""

import logging
import os
import re
from functools import lru_cache
from typing import Pattern

from file_organizer.utils.errors import PatternError

logger = logging.getLogger(__name__)

# Fixed for the whole system; POSIX filesystems are case-sensitive.
CASE_SENSITIVE = True

_SEPARATORS = {"/", os.sep} | ({os.altsep} if os.altsep else set())


class Matcher:
    """Decide whether file names satisfy rule patterns."""

    def __init__(self, case_sensitive: bool = CASE_SENSITIVE):
        self.case_sensitive = case_sensitive

    def matches(self, file_base_name: str, pattern: str) -> bool:
        """Check a base name against a pattern.

        Args:
            file_base_name: Name of the file without any directory part
            pattern: Glob-style pattern

        Returns:
            True if the whole name matches the pattern
        """
        regex = compile_pattern(pattern, self.case_sensitive)
        return regex.fullmatch(file_base_name) is not None

    def validate(self, pattern: str) -> None:
        """Raise PatternError if the pattern can not be compiled."""
        compile_pattern(pattern, self.case_sensitive)


def matches(file_base_name: str, pattern: str) -> bool:
    """Module-level shortcut using the system-wide case policy."""
    return compile_pattern(pattern, CASE_SENSITIVE).fullmatch(file_base_name) is not None


@lru_cache(maxsize=256)
def compile_pattern(pattern: str, case_sensitive: bool = CASE_SENSITIVE) -> Pattern[str]:
    """Translate a glob pattern into a compiled regular expression.

    Raises:
        PatternError: If the pattern is empty, contains a path separator,
            has an unterminated character class or a reversed range.
    """
    if not isinstance(pattern, str) or not pattern:
        raise PatternError(str(pattern), "pattern is empty")

    for separator in _SEPARATORS:
        if separator in pattern:
            raise PatternError(pattern, "patterns match base names and must not contain path separators")

    regex = _translate(pattern)
    flags = 0 if case_sensitive else re.IGNORECASE

    try:
        compiled = re.compile(regex, flags | re.DOTALL)
    except re.error as e:
        raise PatternError(pattern, str(e)) from e

    logger.debug(f"Compiled pattern {pattern!r} -> {regex!r}")
    return compiled


def _translate(pattern: str) -> str:
    parts = []
    i = 0
    n = len(pattern)

    while i < n:
        char = pattern[i]
        i += 1

        if char == "*":
            # Consecutive stars are equivalent to one
            if not parts or parts[-1] != "[^/]*":
                parts.append("[^/]*")
        elif char == "?":
            parts.append("[^/]")
        elif char == "[":
            start = i - 1
            j = i
            if j < n and pattern[j] in "!^":
                j += 1
            # A leading ']' is part of the set, not its end
            if j < n and pattern[j] == "]":
                j += 1
            while j < n and pattern[j] != "]":
                j += 1
            if j >= n:
                raise PatternError(
                    pattern, f"unterminated character class at position {start}"
                )
            parts.append(_translate_class(pattern, pattern[i:j]))
            i = j + 1
        else:
            parts.append(re.escape(char))

    return "".join(parts)


def _translate_class(pattern: str, body: str) -> str:
    negate = body[:1] in ("!", "^")
    if negate:
        body = body[1:]

    items = []
    k = 0
    while k < len(body):
        if k + 2 < len(body) and body[k + 1] == "-":
            low, high = body[k], body[k + 2]
            if low > high:
                raise PatternError(pattern, f"reversed range {low}-{high} in character class")
            items.append(f"{re.escape(low)}-{re.escape(high)}")
            k += 3
        else:
            items.append(re.escape(body[k]))
            k += 1

    members = "".join(items)
    if negate:
        return f"[^/{members}]"
    return f"[{members}]"
