"""Card visibility audit in a headless browser.

Every HTML page under the site root is served over a throwaway local HTTP
server and opened in Chromium. Elements matching the card selectors are
counted and split into visible and hidden-or-missing, using the computed
style (display, visibility, opacity) and the rendered box size.

Example usage:

    from siteaudit.cards import audit_cards

    report = audit_cards("./dist")
    print(report.totals)
    for row in report.rows:
        print(row.page, row.visible, row.hidden)
"""

from __future__ import annotations

import asyncio
import csv
import io
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from functools import partial
from http.server import SimpleHTTPRequestHandler, ThreadingHTTPServer
from pathlib import Path
from typing import Any, Dict, Iterator, List, Optional
from urllib.parse import quote

from playwright.async_api import Browser, async_playwright

from .config import AuditSettings
from .files import discover_html_files, extend_ignore_patterns

LOGGER = logging.getLogger(__name__)

CARD_SELECTORS: List[str] = [
    "[class*=card]",
    ".card",
    ".cards .card",
    ".program-card",
    ".blog-card",
    ".news-card",
    ".grid-card",
    ".feature-card",
]

# Screenshot output from visual audits is not part of the site.
CARD_EXTRA_IGNORES: List[str] = ["visual-audit-results/**"]

NAVIGATION_TIMEOUT_MS = 60_000

CSV_HEADER = ["page", "total_cards", "visible_cards", "hidden_or_missing"]

COUNT_CARDS_JS = """
(query) => {
  const els = Array.from(document.querySelectorAll(query));
  let visible = 0;
  for (const el of els) {
    const cs = window.getComputedStyle(el);
    const r = el.getBoundingClientRect();
    if (cs.display !== "none" && cs.visibility !== "hidden" &&
        cs.opacity !== "0" && r.width > 0 && r.height > 0) {
      visible++;
    }
  }
  return { total: els.length, visible: visible };
}
"""


class NoPagesError(Exception):
    """Raised when the site root holds no HTML pages to open."""


@dataclass(slots=True)
class CardPageResult:
    """Card counts for one page."""

    page: str
    total: int = 0
    visible: int = 0
    error: Optional[str] = None

    @property
    def hidden(self) -> int:
        return self.total - self.visible


@dataclass(slots=True)
class CardAuditReport:
    rows: List[CardPageResult] = field(default_factory=list)

    @property
    def totals(self) -> Dict[str, int]:
        return {
            "total": sum(row.total for row in self.rows),
            "visible": sum(row.visible for row in self.rows),
            "hidden": sum(row.hidden for row in self.rows),
        }

    @property
    def errors(self) -> List[CardPageResult]:
        return [row for row in self.rows if row.error]

    def to_csv(self) -> str:
        buffer = io.StringIO()
        writer = csv.writer(buffer, lineterminator="\n")
        writer.writerow(CSV_HEADER)
        for row in self.rows:
            writer.writerow([row.page, row.total, row.visible, row.hidden])
        return buffer.getvalue()


def selector_query(selectors: List[str] = CARD_SELECTORS) -> str:
    """Join selectors into one querySelectorAll string, dropping repeats."""
    return ",".join(dict.fromkeys(selectors))


def page_url(base_url: str, relative: str) -> str:
    return f"{base_url.rstrip('/')}/{quote(relative)}"


class _QuietHandler(SimpleHTTPRequestHandler):
    def log_message(self, format: str, *args: Any) -> None:  # noqa: A002
        LOGGER.debug("static server: " + format, *args)


@contextmanager
def serve_directory(root: Path) -> Iterator[str]:
    """Serve *root* on a free localhost port; yields the base URL."""
    handler = partial(_QuietHandler, directory=str(root))
    server = ThreadingHTTPServer(("127.0.0.1", 0), handler)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    try:
        yield f"http://127.0.0.1:{server.server_address[1]}"
    finally:
        server.shutdown()
        server.server_close()
        thread.join(timeout=5)


@contextmanager
def _maybe_serve(root: Path, base_url: Optional[str]) -> Iterator[str]:
    if base_url is not None:
        yield base_url
        return
    with serve_directory(root) as served:
        yield served


async def audit_page(browser: Browser, url: str, query: str) -> Dict[str, int]:
    """Open *url* in a new page and count cards matching *query*."""
    page = await browser.new_page()
    try:
        page.set_default_navigation_timeout(NAVIGATION_TIMEOUT_MS)
        await page.goto(url, wait_until="networkidle")
        counts = await page.evaluate(COUNT_CARDS_JS, query)
    finally:
        await page.close()
    return {"total": int(counts["total"]), "visible": int(counts["visible"])}


async def _audit_pages(
    browser: Browser, base_url: str, pages: List[str], query: str
) -> CardAuditReport:
    report = CardAuditReport()
    for relative in pages:
        url = page_url(base_url, relative)
        try:
            counts = await audit_page(browser, url, query)
        except Exception as exc:
            # A page that fails to load is reported, the rest still run.
            LOGGER.warning("%s  ERROR: %s", relative, exc)
            report.rows.append(CardPageResult(page=relative, error=str(exc)))
            continue
        row = CardPageResult(page=relative, total=counts["total"], visible=counts["visible"])
        LOGGER.info(
            "%s  total:%d  visible:%d  hidden:%d", relative, row.total, row.visible, row.hidden
        )
        report.rows.append(row)
    return report


async def audit_cards_async(
    root: Optional[Path] = None,
    *,
    settings: Optional[AuditSettings] = None,
    browser: Optional[Browser] = None,
    base_url: Optional[str] = None,
    write: bool = True,
) -> CardAuditReport:
    """
    Count visible and hidden cards on every HTML page of a site.

    Args:
        root: Site root; overrides ``settings.root`` when given.
        settings: Audit settings (defaults apply when omitted).
        browser: An already running Playwright browser. A headless Chromium
            is launched and closed when omitted.
        base_url: Where the site is already served. A local static server
            over the root is started when omitted.
        write: Persist ``card-visibility.csv`` under the output directory.

    Raises:
        NoPagesError: If the root holds no HTML files.
        SiteRootError: If the site root cannot be enumerated.
    """
    settings = settings or AuditSettings()
    if root is not None:
        settings = settings.with_overrides(root=Path(root))

    pages = discover_html_files(
        settings.root, extend_ignore_patterns(settings.ignore_patterns, CARD_EXTRA_IGNORES)
    )
    if not pages:
        raise NoPagesError(
            f"No HTML files found under {settings.root}. Run this in your built site root."
        )
    LOGGER.info("Checking card visibility on %d pages.", len(pages))

    query = selector_query()
    with _maybe_serve(settings.root, base_url) as url:
        if browser is not None:
            report = await _audit_pages(browser, url, pages, query)
        else:
            async with async_playwright() as playwright:
                launched = await playwright.chromium.launch(headless=True)
                try:
                    report = await _audit_pages(launched, url, pages, query)
                finally:
                    await launched.close()

    if write:
        path = settings.card_report_path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(report.to_csv(), encoding="utf-8")
        LOGGER.info("Wrote %s", path)
    return report


def audit_cards(
    root: Optional[Path] = None,
    *,
    settings: Optional[AuditSettings] = None,
    write: bool = True,
) -> CardAuditReport:
    """Synchronous wrapper for audit_cards_async."""
    return asyncio.run(audit_cards_async(root, settings=settings, write=write))
