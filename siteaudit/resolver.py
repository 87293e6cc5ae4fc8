"""Filesystem resolution for internal links."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable
from urllib.parse import unquote

from .records import CheckResult, LinkStatus
from .references import strip_fragment


def resolve_internal_path(link: str, sources: Iterable[str], root: Path) -> Path:
    """
    Map an internal reference to an absolute path.

    Root-relative links (``/img/x.png``) resolve against *root*. Anything
    else resolves against the directory of the first source file in sorted
    order. Only that one directory is consulted, so a relative link that
    works from one page but not another is judged by the first page alone.

    Raises:
        ValueError: If a relative link arrives with no sources. Records built
            by LinkAuditor always carry at least one; direct callers may not.
    """
    root = Path(root).resolve()
    base = unquote(strip_fragment(link).split("?", 1)[0])

    if base.startswith("/"):
        return Path(os.path.normpath(root / base.lstrip("/")))

    ordered = sorted(sources)
    if not ordered:
        raise ValueError(f"Internal link {link!r} has no source files")
    source_dir = (root / ordered[0]).parent
    return Path(os.path.normpath(source_dir / base))


def check_internal_link(link: str, sources: Iterable[str], root: Path) -> CheckResult:
    """Check that the resolved target exists; a directory counts."""
    root = Path(root).resolve()
    target = resolve_internal_path(link, sources, root)
    if target.exists():
        return CheckResult(status=LinkStatus.ok)

    try:
        shown = target.relative_to(root).as_posix()
    except ValueError:
        shown = str(target)
    return CheckResult(
        status=LinkStatus.broken,
        reason=f"File not found: {shown}",
    )
