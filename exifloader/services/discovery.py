"""Glob matching and directory discovery."""
from __future__ import annotations

import logging
import re
from pathlib import Path
from typing import Iterable, Iterator, Pattern


logger = logging.getLogger(__name__)

# Wildcards at the start of a segment never match dotfiles
_NO_DOT = r"(?!\.)"


def _split_top_level(body: str) -> list[str]:
    """Split a brace body on commas that are not nested in other braces."""
    parts = []
    depth = 0
    current = []
    for char in body:
        if char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
        if char == "," and depth == 0:
            parts.append("".join(current))
            current = []
        else:
            current.append(char)
    parts.append("".join(current))
    return parts


def expand_braces(pattern: str) -> list[str]:
    """Expand ``{a,b}`` alternations into separate patterns.

    >>> expand_braces("**/*.{jpg,png}")
    ['**/*.jpg', '**/*.png']
    """
    depth = 0
    start = -1
    for i, char in enumerate(pattern):
        if char == "{":
            if depth == 0:
                start = i
            depth += 1
        elif char == "}" and depth > 0:
            depth -= 1
            if depth == 0:
                options = _split_top_level(pattern[start + 1:i])
                if len(options) > 1:
                    prefix, suffix = pattern[:start], pattern[i + 1:]
                    expanded: list[str] = []
                    for option in options:
                        for result in expand_braces(prefix + option + suffix):
                            if result not in expanded:
                                expanded.append(result)
                    return expanded
    return [pattern]


def translate_glob(pattern: str) -> str:
    """Translate one brace-free glob into a regular expression.

    ``*`` and ``?`` stay within a path segment, ``**/`` spans zero or more
    directories and a trailing ``**`` matches everything below.
    """
    out: list[str] = []
    i = 0
    n = len(pattern)
    seg_start = True
    while i < n:
        char = pattern[i]
        if char == "*" and pattern.startswith("**", i) and seg_start and (
            i + 2 == n or pattern[i + 2] == "/"
        ):
            if i + 2 == n:
                out.append(rf"(?:{_NO_DOT}[^/]*(?:/{_NO_DOT}[^/]*)*)?")
                i += 2
            else:
                out.append(rf"(?:{_NO_DOT}[^/]*/)*")
                i += 3
            seg_start = True
            continue
        if char == "*":
            while i + 1 < n and pattern[i + 1] == "*":
                i += 1
            out.append((_NO_DOT if seg_start else "") + "[^/]*")
        elif char == "?":
            out.append((_NO_DOT if seg_start else "") + "[^/]")
        elif char == "[":
            end = pattern.find("]", i + 2)
            body = pattern[i + 1:end] if end != -1 else ""
            if end == -1 or "/" in body:
                # classes never span segments; take the bracket literally
                out.append(re.escape(char))
            else:
                body = body.replace("\\", "\\\\")
                if body.startswith("!"):
                    body = "^/" + body[1:]
                out.append("[" + body + "]")
                i = end
        elif char == "/":
            out.append("/")
            i += 1
            seg_start = True
            continue
        else:
            out.append(re.escape(char))
        seg_start = False
        i += 1
    return "".join(out)


class PatternMatcher:
    """Matches relative POSIX paths against one or more glob patterns."""

    def __init__(self, patterns: Iterable[str]):
        self._patterns = tuple(patterns)
        compiled: list[Pattern[str]] = []
        for pattern in self._patterns:
            pattern = pattern[2:] if pattern.startswith("./") else pattern
            for expanded in expand_braces(pattern):
                compiled.append(re.compile(translate_glob(expanded)))
        self._compiled = tuple(compiled)

    @property
    def patterns(self) -> tuple[str, ...]:
        return self._patterns

    def matches(self, rel_path: str) -> bool:
        """Check a path relative to the base directory (``/`` separated)."""
        rel_path = rel_path.replace("\\", "/")
        return any(regex.fullmatch(rel_path) for regex in self._compiled)

    def __call__(self, rel_path: str) -> bool:
        return self.matches(rel_path)


class FileDiscovery:
    """Finds files under a base directory that match glob patterns."""

    def __init__(self, patterns: Iterable[str], follow_symlinks: bool = False):
        """Initialize discovery.

        Args:
            patterns: Glob patterns relative to the base directory.
            follow_symlinks: Whether to follow symbolic links.
        """
        self._matcher = PatternMatcher(patterns)
        self._follow_symlinks = follow_symlinks

    @property
    def matcher(self) -> PatternMatcher:
        return self._matcher

    def scan(self, base: Path) -> Iterator[str]:
        """Yield matching file paths relative to base."""
        yield from self._scan_directory(base, base)

    def _scan_directory(self, directory: Path, base: Path) -> Iterator[str]:
        """Scan a single directory."""
        try:
            entries = sorted(directory.iterdir())
        except PermissionError:
            logger.warning(f"Permission denied: {directory}")
            return

        for entry in entries:
            if entry.is_symlink() and not self._follow_symlinks:
                continue

            if entry.is_file():
                rel = entry.relative_to(base).as_posix()
                if self._matcher.matches(rel):
                    yield rel
            elif entry.is_dir():
                yield from self._scan_directory(entry, base)

    def discover(self, base: Path) -> list[str]:
        """Sorted list of matching relative paths.

        Raises:
            FileNotFoundError: The base directory does not exist.
        """
        if not base.is_dir():
            raise FileNotFoundError(f"Images directory does not exist: {base}")
        return sorted(self.scan(base))


def discover_files(base: Path, patterns: Iterable[str]) -> list[str]:
    """Relative POSIX paths of files under base matching any pattern."""
    return FileDiscovery(patterns).discover(base)
