"""Link and asset auditor for static HTML sites.

This package scans a built static site and reports broken references:

- Every ``href="..."`` and ``src="..."`` value in every HTML file
- Internal links resolved against the filesystem
- External links fetched once each, with bounded concurrency
- <img> tags that were never wrapped in a responsive <picture>
- Card elements that render hidden or collapsed in a headless browser

Example usage:

    from siteaudit import audit_links, audit_images

    report = audit_links("./dist")
    print(report.broken_links_count)
    for entry in report.broken_links:
        print(entry.link, entry.reason, entry.sources)

    images = audit_images("./dist")
    print(images.total_issues)
"""

from __future__ import annotations

import asyncio
from pathlib import Path
from typing import Optional

import httpx

from .auditor import AuditState, LinkAuditor
from .config import AuditSettings, ConfigError, load_settings
from .external import ExternalChecker, check_external_links
from .files import SiteRootError, discover_html_files
from .images import ImageAuditReport, audit_images
from .records import AuditReport, BrokenLink, CheckResult, LinkKind, LinkRecord, LinkStatus
from .references import classify_reference, extract_references

__all__ = [
    # Records
    "AuditReport",
    "BrokenLink",
    "CheckResult",
    "LinkKind",
    "LinkRecord",
    "LinkStatus",
    # Config
    "AuditSettings",
    "ConfigError",
    "load_settings",
    # Stages
    "discover_html_files",
    "extract_references",
    "classify_reference",
    "ExternalChecker",
    "check_external_links",
    "SiteRootError",
    # Orchestration
    "AuditState",
    "LinkAuditor",
    "audit_links",
    "audit_links_async",
    # Images
    "ImageAuditReport",
    "audit_images",
    # Cards (lazy, needs playwright)
    "CardAuditReport",
    "audit_cards",
    "audit_cards_async",
]

_CARD_EXPORTS = frozenset({"CardAuditReport", "audit_cards", "audit_cards_async"})


# Lazy import so link and image audits work without a browser install
def __getattr__(name):
    if name in _CARD_EXPORTS:
        from . import cards

        return getattr(cards, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


async def audit_links_async(
    root: Optional[Path] = None,
    *,
    settings: Optional[AuditSettings] = None,
    client: Optional[httpx.AsyncClient] = None,
    write: bool = True,
) -> AuditReport:
    """
    Audit every link under a site root.

    Args:
        root: Site root; overrides ``settings.root`` when given.
        settings: Audit settings (defaults apply when omitted).
        client: Optional httpx client for external checks.
        write: Persist the JSON report under the output directory.

    Returns:
        AuditReport with counts and broken-link entries.

    Raises:
        SiteRootError: If the site root cannot be enumerated.
    """
    settings = settings or AuditSettings()
    if root is not None:
        settings = settings.with_overrides(root=Path(root))
    auditor = LinkAuditor(settings, client=client)
    return await auditor.run(write=write)


def audit_links(
    root: Optional[Path] = None,
    *,
    settings: Optional[AuditSettings] = None,
    write: bool = True,
) -> AuditReport:
    """Synchronous wrapper for audit_links_async."""
    return asyncio.run(audit_links_async(root, settings=settings, write=write))
