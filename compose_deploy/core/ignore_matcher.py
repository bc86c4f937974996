# compose_deploy/core/ignore_matcher.py
"""Matching of .dockerignore patterns against build context paths

Patterns follow the container-build conventions: ``*`` and ``?`` stay
within one path segment, ``**`` spans any number of segments, ``[...]``
is a character class and ``\\`` escapes the next character. Patterns are
evaluated in order; a pattern prefixed with ``!`` re-includes paths that an
earlier pattern excluded.
"""

import posixpath
import re
from typing import IO, Iterable, List, Tuple, Union

from ..api.exceptions import IgnorePatternError
from ..utils.file_utils import clean_path, to_slash

_UTF8_BOM = "\ufeff"


def read_ignore_patterns(source: Union[str, IO[str], Iterable[str]]) -> List[str]:
    """
    Read patterns from the contents of an ignore file

    Lines starting with '#' are comments and blank lines are skipped. Each
    remaining pattern is trimmed, cleaned and converted to forward slashes,
    and a single leading '/' is dropped since paths are always relative to
    the context root.

    Args:
        source: File contents, an open text file or an iterable of lines

    Returns:
        Patterns in file order; exclusions keep their '!' prefix
    """
    if isinstance(source, str):
        lines = source.splitlines()
    else:
        lines = source

    patterns = []
    for lineno, line in enumerate(lines):
        line = line.rstrip("\r\n")
        if lineno == 0 and line.startswith(_UTF8_BOM):
            line = line[len(_UTF8_BOM):]

        # Comments are only recognized in the first column
        if line.startswith("#"):
            continue

        pattern = line.strip()
        if not pattern:
            continue

        invert = pattern[0] == "!"
        if invert:
            pattern = pattern[1:].strip()

        if pattern:
            pattern = clean_path(to_slash(pattern))
            if len(pattern) > 1 and pattern[0] == "/":
                pattern = pattern[1:]

        if invert:
            pattern = "!" + pattern
        patterns.append(pattern)

    return patterns


def _class_char(pattern: str, i: int) -> Tuple[str, int]:
    """Read one (possibly escaped) character of a character class"""
    if i >= len(pattern) or pattern[i] in "-]":
        raise ValueError("malformed character class")
    if pattern[i] == "\\":
        i += 1
        if i >= len(pattern):
            raise ValueError("malformed character class")
    return pattern[i], i + 1


def _translate_class(pattern: str, start: int) -> Tuple[str, int]:
    """Translate the character class starting at ``pattern[start] == '['``"""
    i = start + 1
    negate = i < len(pattern) and pattern[i] == "^"
    if negate:
        i += 1

    ranges = []
    while True:
        if i < len(pattern) and pattern[i] == "]" and ranges:
            body = "".join(ranges)
            return ("[^" if negate else "[") + body + "]", i + 1

        lo, i = _class_char(pattern, i)
        if i < len(pattern) and pattern[i] == "-":
            hi, i = _class_char(pattern, i + 1)
            if hi < lo:
                raise ValueError(f"bad character range {lo}-{hi}")
            ranges.append(re.escape(lo) + "-" + re.escape(hi))
        else:
            ranges.append(re.escape(lo))


def translate_pattern(pattern: str) -> str:
    """
    Translate a cleaned ignore pattern into an anchored regular expression

    Args:
        pattern: Pattern without its '!' prefix

    Returns:
        Regular expression source

    Raises:
        ValueError: If the pattern is malformed
    """
    parts = ["^"]
    i = 0
    n = len(pattern)

    while i < n:
        ch = pattern[i]
        if ch == "*":
            if i + 1 < n and pattern[i + 1] == "*":
                i += 1
                # '**/' may match nothing at all
                if i + 1 < n and pattern[i + 1] == "/":
                    i += 1
                if i + 1 >= n:
                    parts.append(".*")
                else:
                    parts.append("(.*/)?")
            else:
                parts.append("[^/]*")
        elif ch == "?":
            parts.append("[^/]")
        elif ch == "[":
            cls, i = _translate_class(pattern, i)
            parts.append(cls)
            continue
        elif ch == "\\":
            if i + 1 >= n:
                raise ValueError("trailing backslash")
            i += 1
            parts.append(re.escape(pattern[i]))
        else:
            parts.append(re.escape(ch))
        i += 1

    parts.append("$")
    return "".join(parts)


class Pattern:
    """A single compiled ignore pattern"""

    def __init__(self, text: str):
        """
        Compile a pattern

        Args:
            text: Pattern, optionally prefixed with '!'

        Raises:
            IgnorePatternError: If the pattern is malformed
        """
        original = text
        self.exclusion = False

        text = clean_path(text.strip())
        if text.startswith("!"):
            if len(text) == 1:
                raise IgnorePatternError(original, 'illegal exclusion pattern: "!"')
            self.exclusion = True
            text = text[1:]

        self.cleaned = text
        try:
            self._regex = re.compile(translate_pattern(text))
        except (ValueError, re.error) as e:
            raise IgnorePatternError(original, str(e))

    def match(self, path: str) -> bool:
        """Match a slash-separated relative path against this pattern"""
        return self._regex.match(path) is not None

    def __str__(self) -> str:
        return ("!" if self.exclusion else "") + self.cleaned

    def __repr__(self) -> str:
        return f"Pattern({str(self)!r})"


class PatternMatcher:
    """Ordered set of ignore patterns"""

    def __init__(self, patterns: Iterable[str]):
        """
        Compile patterns

        Args:
            patterns: Patterns as produced by read_ignore_patterns

        Raises:
            IgnorePatternError: If any pattern is malformed
        """
        self._patterns: List[Pattern] = []
        for text in patterns:
            if not text.strip():
                continue
            self._patterns.append(Pattern(text))

    @property
    def patterns(self) -> List[Pattern]:
        """Compiled patterns in evaluation order"""
        return list(self._patterns)

    @property
    def exclusions(self) -> bool:
        """Whether any pattern re-includes paths"""
        return any(p.exclusion for p in self._patterns)

    def matches(self, path: str) -> bool:
        """
        Check whether a path, or any of its parent directories, is ignored

        Args:
            path: Path relative to the context root, '/'-separated

        Returns:
            True if the path should be excluded
        """
        path = to_slash(path)
        parent = posixpath.dirname(path) or "."
        parent_dirs = parent.split("/")

        matched = False
        for pattern in self._patterns:
            # An inclusion cannot change an already ignored path and an
            # exclusion cannot change a path that is not ignored yet
            if pattern.exclusion != matched:
                continue

            match = pattern.match(path)
            if not match and parent != ".":
                for i in range(len(parent_dirs)):
                    if pattern.match("/".join(parent_dirs[:i + 1])):
                        match = True
                        break

            if match:
                matched = not pattern.exclusion

        return matched


def compile_patterns(lines: Union[str, IO[str], Iterable[str]]) -> PatternMatcher:
    """Read and compile ignore-file contents in one step"""
    return PatternMatcher(read_ignore_patterns(lines))
