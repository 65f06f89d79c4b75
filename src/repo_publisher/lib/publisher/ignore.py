"""Ignore-pattern parsing and matching.

Patterns follow a gitignore-like subset evaluated with :mod:`fnmatch`:

- ``name`` (no slash) matches that file or directory name at any depth;
- ``dir/name`` is anchored at the repository root (a leading ``/`` is
  optional) and matches the path itself or anything below it;
- a trailing ``/`` only matches directories, i.e. paths below them;
- a leading ``**/`` also matches zero directories, so ``**/name`` matches
  ``name`` at the root as well as below it.

Negated patterns (``!pattern``) are not supported.
"""

import fnmatch
from collections.abc import Iterable

from repo_publisher.lib.publisher.errors import ControlFileError
from repo_publisher.lib.publisher.types import DiffEntry


def parse_ignore_file(content: bytes, path: str) -> list[str]:
    """Parse ignore-file content into an ordered list of patterns.

    Args:
        content: Raw file bytes.
        path: Repository path of the file, for error messages.

    Returns:
        Patterns in file order, comments and blank lines removed.

    Raises:
        ControlFileError: If the content is not UTF-8 or uses negation.
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError as exc:
        raise ControlFileError(path, f"not valid UTF-8 ({exc.reason})") from exc

    patterns: list[str] = []
    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.rstrip()
        if not line.strip() or line.lstrip().startswith("#"):
            continue
        line = line.strip()
        if line.startswith("!"):
            raise ControlFileError(path, f"line {lineno}: negated patterns are not supported")
        if line.strip("/") == "":
            raise ControlFileError(path, f"line {lineno}: pattern {line!r} matches nothing")
        patterns.append(line)
    return patterns


class IgnoreMatcher:
    """Matches repository paths against an ordered list of ignore patterns."""

    def __init__(self, patterns: Iterable[str]) -> None:
        self.patterns = list(patterns)
        # (glob, anchored, directory_only)
        self._rules: list[tuple[str, bool, bool]] = []
        for pat in self.patterns:
            directory_only = pat.endswith("/")
            body = pat.strip("/")
            anchored = "/" in body or pat.startswith("/")
            self._rules.append((body, anchored, directory_only))
            # fnmatch needs at least one segment before the slash
            while body.startswith("**/"):
                body = body[3:]
                self._rules.append((body, "/" in body, directory_only))

    def __bool__(self) -> bool:
        return bool(self._rules)

    def matches(self, path: str) -> bool:
        """Whether ``path`` (a file path relative to the repository root) is ignored."""
        segments = [s for s in path.strip("/").split("/") if s]
        if not segments:
            return False

        for glob, anchored, directory_only in self._rules:
            # candidate prefixes: directories only, or directories plus the file itself
            last = len(segments) - 1 if directory_only else len(segments)
            if anchored:
                for end in range(1, last + 1):
                    if fnmatch.fnmatchcase("/".join(segments[:end]), glob):
                        return True
            else:
                for seg in segments[:last]:
                    if fnmatch.fnmatchcase(seg, glob):
                        return True
        return False

    def matches_entry(self, entry: DiffEntry) -> bool:
        """Whether either side of a diff entry is ignored."""
        return any(self.matches(p) for p in entry.paths)

    def filter(self, entries: Iterable[DiffEntry]) -> list[DiffEntry]:
        """Drop every entry whose before- or after-path is ignored."""
        return [e for e in entries if not self.matches_entry(e)]
