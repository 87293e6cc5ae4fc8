"""Tests for siteaudit.report module."""

from __future__ import annotations

import json
from datetime import datetime, timezone

from siteaudit.records import AuditReport, BrokenLink, CheckResult, LinkRecord, LinkStatus
from siteaudit.report import (
    build_report,
    format_broken_links,
    format_summary,
    format_timestamp,
    write_report,
)


def _records(*items):
    return {link: LinkRecord(link=link, sources=set(sources)) for link, sources in items}


class TestFormatTimestamp:
    def test_utc_z_suffix(self):
        moment = datetime(2026, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
        assert format_timestamp(moment) == "2026-01-02T03:04:05.678Z"


class TestBuildReport:
    def test_only_broken_entries_kept_in_settled_order(self):
        records = _records(("a.html", ["x.html"]), ("b.html", ["z.html", "y.html"]), ("#t", ["x.html"]))
        results = [
            ("b.html", CheckResult(LinkStatus.broken, "File not found: b.html")),
            ("#t", CheckResult(LinkStatus.skipped, "Special protocol or anchor")),
            ("a.html", CheckResult(LinkStatus.broken, "File not found: a.html")),
        ]
        report = build_report(records, results, timestamp="T")
        assert report.total_unique_links == 3
        assert [e.link for e in report.broken_links] == ["b.html", "a.html"]
        assert report.broken_links[0].sources == ["y.html", "z.html"]

    def test_empty(self):
        report = build_report({}, [], timestamp="T")
        assert report.to_dict() == {
            "timestamp": "T",
            "summary": {"totalUniqueLinks": 0, "brokenLinksCount": 0},
            "brokenLinks": [],
            "unreadableFiles": [],
        }


class TestWriteReport:
    def test_creates_directory(self, tmp_path):
        path = tmp_path / "audits" / "out.json"
        write_report({"a": 1}, path)
        assert json.loads(path.read_text()) == {"a": 1}


class TestFormatting:
    def _report(self, broken):
        return AuditReport(timestamp="T", total_unique_links=5, broken_links=broken)

    def test_success_summary(self):
        text = format_summary(self._report([]))
        assert "Unique links: 5, broken: 0" in text
        assert "SUCCESS" in text
        assert format_broken_links(self._report([])) == ""

    def test_failure_listing(self):
        report = self._report(
            [BrokenLink(link="x.html", reason="File not found: x.html", sources=["a.html", "b.html"])]
        )
        listing = format_broken_links(report)
        assert "Link: x.html" in listing
        assert "Reason: File not found: x.html" in listing
        assert "- a.html" in listing and "- b.html" in listing
        assert "FAILED: Found 1 broken links." in format_summary(report)

    def test_unreadable_files_mentioned(self):
        report = AuditReport(timestamp="T", total_unique_links=0, unreadable_files=["bad.html"])
        assert "Unreadable files skipped: 1" in format_summary(report)
