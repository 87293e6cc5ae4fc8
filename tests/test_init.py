"""Tests for the siteaudit public API."""

from __future__ import annotations

import pytest

import siteaudit
from siteaudit import AuditSettings, audit_links, audit_links_async


class TestExports:
    def test_all_names_resolve(self):
        for name in siteaudit.__all__:
            assert hasattr(siteaudit, name), name

    def test_card_exports_come_from_cards_module(self):
        from siteaudit import cards

        assert siteaudit.audit_cards_async is cards.audit_cards_async
        assert siteaudit.CardAuditReport is cards.CardAuditReport

    def test_unknown_attribute_raises(self):
        with pytest.raises(AttributeError):
            siteaudit.not_a_real_name


class TestAuditLinks:
    def test_sync_wrapper(self, make_site):
        root = make_site({"index.html": '<a href="gone.html">x</a>'})
        report = audit_links(root, write=False)
        assert report.broken_links_count == 1

    @pytest.mark.asyncio
    async def test_root_overrides_settings(self, make_site, tmp_path):
        root = make_site({"index.html": ""})
        settings = AuditSettings(root=tmp_path / "other", output_dir="out")
        report = await audit_links_async(root, settings=settings)
        assert report.total_unique_links == 0
        assert (root / "out" / "link-audit-results.json").is_file()

    @pytest.mark.asyncio
    async def test_client_passed_through(self, make_site, status_client):
        root = make_site({"index.html": '<a href="https://example.com/404">x</a>'})
        client, transport = status_client({"https://example.com/404": 404})
        async with client:
            report = await audit_links_async(root, client=client, write=False)
        assert len(transport.requests) == 1
        assert report.broken_links[0].reason == "HTTP Error: 404"
