"""Report building, persistence, and console formatting."""

from __future__ import annotations

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple

from .records import AuditReport, BrokenLink, CheckResult, LinkRecord

LOGGER = logging.getLogger(__name__)


def format_timestamp(moment: Optional[datetime] = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace(
        "+00:00", "Z"
    )


def build_report(
    records: Mapping[str, LinkRecord],
    results: Sequence[Tuple[str, CheckResult]],
    *,
    unreadable_files: Sequence[str] = (),
    timestamp: Optional[str] = None,
) -> AuditReport:
    """
    Aggregate per-link results into an AuditReport.

    Args:
        records: Every unique link found, keyed by raw reference.
        results: ``(link, result)`` pairs in the order they were settled;
            broken entries keep this order.
        unreadable_files: Source files skipped because they could not be read.
        timestamp: Override for the report timestamp.
    """
    broken: List[BrokenLink] = []
    for link, result in results:
        if not result.is_broken:
            continue
        record = records.get(link)
        sources = record.sorted_sources() if record else []
        broken.append(BrokenLink(link=link, reason=result.reason, sources=sources))

    return AuditReport(
        timestamp=timestamp or format_timestamp(),
        total_unique_links=len(records),
        broken_links=broken,
        unreadable_files=sorted(unreadable_files),
    )


def report_to_json(data: Dict[str, Any]) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False)


def write_report(data: Dict[str, Any], path: Path) -> Path:
    """Write a report dict as JSON, creating parent directories."""
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(report_to_json(data), encoding="utf-8")
    LOGGER.info("Detailed report saved to: %s", path)
    return path


def format_broken_links(report: AuditReport) -> str:
    """Human-readable breakdown of every broken link and where it appears."""
    if not report.broken_links:
        return ""

    lines = ["--- BROKEN LINKS ---"]
    for entry in report.broken_links:
        lines.append("")
        lines.append(f"Link: {entry.link}")
        lines.append(f"   Reason: {entry.reason}")
        lines.append("   Found in:")
        for source in entry.sources:
            lines.append(f"     - {source}")
    return "\n".join(lines)


def format_summary(report: AuditReport) -> str:
    """Counts line plus the final pass/fail line."""
    lines = [
        f"Unique links: {report.total_unique_links}, "
        f"broken: {report.broken_links_count}",
    ]
    if report.unreadable_files:
        lines.append(f"Unreadable files skipped: {len(report.unreadable_files)}")
    if report.has_broken_links:
        lines.append(f"FAILED: Found {report.broken_links_count} broken links.")
    else:
        lines.append("SUCCESS: No broken links found.")
    return "\n".join(lines)
