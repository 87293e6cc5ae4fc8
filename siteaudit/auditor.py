"""Link audit orchestration.

A run walks through fixed stages::

    idle -> crawling -> extracting -> classifying -> checking -> reporting -> done

Any failure before checking starts (missing root, bad settings) ends in
``fatal`` and no report is produced. Per-link failures never stop a run;
they become broken entries in the report.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import Dict, List, Optional, Tuple

import httpx

from .config import AuditSettings
from .external import ExternalChecker
from .files import discover_html_files
from .records import AuditReport, CheckResult, LinkKind, LinkRecord, LinkStatus
from .references import classify_reference, extract_references
from .report import build_report, write_report
from .resolver import check_internal_link

LOGGER = logging.getLogger(__name__)

SKIP_REASON = "Special protocol or anchor"
OFFLINE_REASON = "External check disabled"


class AuditState(str, Enum):
    """Stage of a single audit run."""

    idle = "idle"
    crawling = "crawling"
    extracting = "extracting"
    classifying = "classifying"
    checking = "checking"
    reporting = "reporting"
    done = "done"
    fatal = "fatal"


class LinkAuditor:
    """Find every href/src reference under a site root and check it.

    An auditor is good for one run; create a new one to audit again.
    """

    def __init__(
        self,
        settings: Optional[AuditSettings] = None,
        *,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.settings = settings or AuditSettings()
        self.state = AuditState.idle
        self.files: List[str] = []
        self.records: Dict[str, LinkRecord] = {}
        self.checked: Dict[str, CheckResult] = {}
        self.unreadable_files: List[str] = []
        self._settled: List[Tuple[str, CheckResult]] = []
        self._kinds: Dict[str, LinkKind] = {}
        self._checker = ExternalChecker(
            concurrency=self.settings.concurrency,
            timeout=self.settings.timeout,
            user_agent=self.settings.user_agent,
            client=client,
        )

    @property
    def root(self) -> Path:
        return self.settings.root

    async def run(self, *, write: bool = True) -> AuditReport:
        """
        Execute the full audit.

        Args:
            write: Persist the JSON report to the configured output path.

        Returns:
            The finished AuditReport.

        Raises:
            RuntimeError: If this auditor has already run.
            SiteRootError: If the site root cannot be enumerated.
        """
        if self.state is not AuditState.idle:
            raise RuntimeError(f"Auditor already used (state={self.state.value})")

        try:
            self._crawl()
        except Exception:
            self.state = AuditState.fatal
            raise

        self._extract()
        self._classify()
        await self._check()

        self.state = AuditState.reporting
        report = build_report(
            self.records,
            self._settled,
            unreadable_files=self.unreadable_files,
        )
        if write:
            write_report(report.to_dict(), self.settings.link_report_path)

        self.state = AuditState.done
        return report

    def _crawl(self) -> None:
        self.state = AuditState.crawling
        self.files = discover_html_files(self.root, self.settings.ignore_patterns)
        LOGGER.info("Found %d HTML files to audit.", len(self.files))

    def _extract(self) -> None:
        self.state = AuditState.extracting
        for relative in self.files:
            try:
                content = (self.root / relative).read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as exc:
                LOGGER.warning("Skipping unreadable file %s: %s", relative, exc)
                self.unreadable_files.append(relative)
                continue
            for link in extract_references(content):
                record = self.records.get(link)
                if record is None:
                    record = self.records[link] = LinkRecord(link=link)
                record.add_source(relative)
        LOGGER.info("Found %d unique links to check.", len(self.records))

    def _classify(self) -> None:
        self.state = AuditState.classifying
        self._kinds = {link: classify_reference(link) for link in self.records}

    def _settle(self, link: str, result: CheckResult) -> None:
        self.checked[link] = result
        self._settled.append((link, result))

    async def _check(self) -> None:
        self.state = AuditState.checking
        external: List[str] = []

        for link, kind in self._kinds.items():
            if kind is LinkKind.skip:
                self._settle(link, CheckResult(status=LinkStatus.skipped, reason=SKIP_REASON))
            elif kind is LinkKind.internal:
                self._settle(
                    link,
                    check_internal_link(link, self.records[link].sources, self.root),
                )
            elif self.settings.check_external:
                external.append(link)
            else:
                self._settle(
                    link, CheckResult(status=LinkStatus.skipped, reason=OFFLINE_REASON)
                )

        if external:
            LOGGER.info("Checking %d external links...", len(external))
            for link, result in await self._checker.check_all(external):
                self._settle(link, result)
