"""Data structures shared by the link audit stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional, Set


class LinkKind(str, Enum):
    """How a raw reference is checked."""

    skip = "skip"
    internal = "internal"
    external = "external"


class LinkStatus(str, Enum):
    """Outcome of checking one unique reference."""

    ok = "ok"
    broken = "broken"
    skipped = "skipped"


@dataclass(slots=True)
class LinkRecord:
    """One unique raw reference and the files that contain it."""

    link: str
    sources: Set[str] = field(default_factory=set)

    def add_source(self, path: str) -> None:
        self.sources.add(path)

    def sorted_sources(self) -> List[str]:
        return sorted(self.sources)


@dataclass(frozen=True, slots=True)
class CheckResult:
    """Immutable result of resolving a LinkRecord."""

    status: LinkStatus
    reason: str = ""
    http_status: Optional[int] = None

    @property
    def is_broken(self) -> bool:
        return self.status is LinkStatus.broken


@dataclass(slots=True)
class BrokenLink:
    """A broken-link entry as it appears in the report."""

    link: str
    reason: str
    sources: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {"link": self.link, "reason": self.reason, "sources": self.sources}


@dataclass(slots=True)
class AuditReport:
    """Terminal artifact of a link audit run."""

    timestamp: str
    total_unique_links: int
    broken_links: List[BrokenLink] = field(default_factory=list)
    unreadable_files: List[str] = field(default_factory=list)

    @property
    def broken_links_count(self) -> int:
        return len(self.broken_links)

    @property
    def has_broken_links(self) -> bool:
        return bool(self.broken_links)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to the JSON document written to disk."""
        return {
            "timestamp": self.timestamp,
            "summary": {
                "totalUniqueLinks": self.total_unique_links,
                "brokenLinksCount": self.broken_links_count,
            },
            "brokenLinks": [entry.to_dict() for entry in self.broken_links],
            "unreadableFiles": self.unreadable_files,
        }
