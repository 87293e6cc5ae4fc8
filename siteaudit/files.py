"""HTML file discovery under a site root."""

from __future__ import annotations

import logging
from fnmatch import fnmatch
from pathlib import Path
from typing import Iterable, List, Optional, Sequence

LOGGER = logging.getLogger(__name__)

HTML_SUFFIXES = (".html",)

DEFAULT_IGNORE_PATTERNS: List[str] = [
    "node_modules/**",
    "audits/**",
    ".git/**",
]


class SiteRootError(Exception):
    """Raised when the site root cannot be enumerated."""

    def __init__(self, message: str, root: Optional[Path] = None):
        self.root = root
        super().__init__(message)


def is_ignored(relative_path: str, patterns: Iterable[str]) -> bool:
    """Return True if *relative_path* (POSIX form) matches any ignore glob.

    A leading ``**/`` also matches at the root, so ``**/audits/**``
    ignores ``audits/x.html`` as well as ``a/audits/x.html``.
    """
    for pattern in patterns:
        if fnmatch(relative_path, pattern):
            return True
        if pattern.startswith("**/") and fnmatch(relative_path, pattern[3:]):
            return True
    return False


def extend_ignore_patterns(base: Iterable[str], extra: Optional[Iterable[str]]) -> List[str]:
    """Append *extra* to *base*, dropping repeats and keeping order."""
    return list(dict.fromkeys([*base, *(extra or ())]))


def discover_html_files(
    root: Path,
    ignore_patterns: Optional[Sequence[str]] = None,
) -> List[str]:
    """
    List HTML files below *root*.

    Args:
        root: Site root directory.
        ignore_patterns: Glob patterns relative to root. Defaults to
            :data:`DEFAULT_IGNORE_PATTERNS`; a list given here replaces
            them (use :func:`extend_ignore_patterns` to add instead).

    Returns:
        Sorted, deduplicated POSIX paths relative to root.

    Raises:
        SiteRootError: If root is missing, not a directory, or unreadable.
    """
    patterns = list(DEFAULT_IGNORE_PATTERNS if ignore_patterns is None else ignore_patterns)
    root = Path(root)

    if not root.exists():
        raise SiteRootError(f"Site root does not exist: {root}", root=root)
    if not root.is_dir():
        raise SiteRootError(f"Site root is not a directory: {root}", root=root)

    found = set()
    try:
        for path in root.rglob("*"):
            if path.suffix.lower() not in HTML_SUFFIXES or not path.is_file():
                continue
            relative = path.relative_to(root).as_posix()
            if is_ignored(relative, patterns):
                continue
            found.add(relative)
    except PermissionError as exc:
        raise SiteRootError(f"Cannot read site root {root}: {exc}", root=root) from exc

    LOGGER.debug("Discovered %d HTML files under %s", len(found), root)
    return sorted(found)
