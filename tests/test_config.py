"""Tests for siteaudit.config and siteaudit.cli_config modules."""

from __future__ import annotations

from pathlib import Path
from unittest.mock import MagicMock

import pytest

from siteaudit import cli
from siteaudit.cli_config import env_candidates, load_config
from siteaudit.config import AuditSettings, ConfigError, load_settings


class TestAuditSettings:
    def test_defaults(self):
        settings = AuditSettings()
        assert settings.root == Path.cwd()
        assert settings.concurrency == 10
        assert settings.timeout == 15.0
        assert settings.output_dir == "audits"
        assert settings.check_external is True
        assert "node_modules/**" in settings.ignore_patterns

    def test_report_paths(self, tmp_path):
        settings = AuditSettings(root=tmp_path)
        assert settings.link_report_path == tmp_path / "audits" / "link-audit-results.json"
        assert settings.image_report_path == tmp_path / "audits" / "image-audit-results.json"

    @pytest.mark.parametrize("field,value", [("concurrency", 0), ("timeout", 0), ("timeout", -1.0)])
    def test_invalid_values(self, field, value):
        with pytest.raises(ConfigError):
            AuditSettings(**{field: value})

    def test_overrides_skip_none(self, tmp_path):
        settings = AuditSettings(root=tmp_path).with_overrides(concurrency=None, timeout=2.0)
        assert settings.concurrency == 10
        assert settings.timeout == 2.0

    def test_overrides_validate(self):
        with pytest.raises(ConfigError):
            AuditSettings().with_overrides(concurrency=0)


class TestLoadSettings:
    def test_env_overrides(self, tmp_path):
        env = {
            "SITE_AUDIT_CONCURRENCY": "4",
            "SITE_AUDIT_TIMEOUT": "2.5",
            "SITE_AUDIT_USER_AGENT": "TestBot/1.0",
            "SITE_AUDIT_OUTPUT_DIR": "reports",
            "SITE_AUDIT_IGNORE": "drafts/**, vendor/**",
        }
        settings = load_settings(tmp_path, env=env)
        assert settings.root == tmp_path
        assert settings.concurrency == 4
        assert settings.timeout == 2.5
        assert settings.user_agent == "TestBot/1.0"
        assert settings.output_dir == "reports"
        assert settings.ignore_patterns[-2:] == ["drafts/**", "vendor/**"]
        assert "node_modules/**" in settings.ignore_patterns

    def test_blank_values_ignored(self):
        settings = load_settings(env={"SITE_AUDIT_CONCURRENCY": " ", "SITE_AUDIT_IGNORE": ","})
        assert settings.concurrency == 10
        assert "audits/**" in settings.ignore_patterns

    def test_invalid_number(self):
        with pytest.raises(ConfigError, match="SITE_AUDIT_CONCURRENCY"):
            load_settings(env={"SITE_AUDIT_CONCURRENCY": "many"})

    def test_reads_os_environ_at_call_time(self, monkeypatch):
        monkeypatch.setenv("SITE_AUDIT_TIMEOUT", "7")
        assert load_settings().timeout == 7.0


class TestLoadConfig:
    def test_site_root_env_wins(self, tmp_path):
        root = tmp_path / "site"
        root.mkdir()
        (root / ".env").write_text("X=1")
        user_env = tmp_path / "user.env"
        user_env.write_text("X=2")
        load_env = MagicMock(return_value=True)

        loaded = load_config(root, load_env=load_env, user_env_file=user_env)

        assert loaded == root / ".env"
        load_env.assert_called_once_with(root / ".env")

    def test_falls_back_to_user_file(self, tmp_path):
        user_env = tmp_path / "user.env"
        user_env.write_text("X=2")
        load_env = MagicMock(return_value=True)

        assert load_config(tmp_path / "site", load_env=load_env, user_env_file=user_env) == user_env
        load_env.assert_called_once_with(user_env)

    def test_nothing_found_writes_nothing(self, tmp_path):
        user_env = tmp_path / "cfg" / ".env"
        load_env = MagicMock()

        assert load_config(tmp_path, load_env=load_env, user_env_file=user_env) is None
        load_env.assert_not_called()
        assert not (tmp_path / "cfg").exists()

    def test_env_candidates_order(self, tmp_path):
        user_env = tmp_path / "user.env"
        assert env_candidates(tmp_path / "site", user_env) == [tmp_path / "site" / ".env", user_env]


class TestRootEnvThroughCli:
    def test_root_env_sets_concurrency(self, tmp_path, monkeypatch):
        root = tmp_path / "dist"
        root.mkdir()
        (root / ".env").write_text("SITE_AUDIT_CONCURRENCY=3\n")
        # setenv + delenv registers cleanup for the value load_dotenv adds
        monkeypatch.setenv("SITE_AUDIT_CONCURRENCY", "0")
        monkeypatch.delenv("SITE_AUDIT_CONCURRENCY")

        args = cli._parse_links_args(["--root", str(root)])
        cli._load_config(args)
        settings = cli._build_settings(args)

        assert settings.concurrency == 3
        assert settings.root == root

    def test_exported_value_beats_root_env(self, tmp_path, monkeypatch):
        root = tmp_path / "dist"
        root.mkdir()
        (root / ".env").write_text("SITE_AUDIT_CONCURRENCY=3\n")
        monkeypatch.setenv("SITE_AUDIT_CONCURRENCY", "6")

        args = cli._parse_links_args(["--root", str(root)])
        cli._load_config(args)

        assert cli._build_settings(args).concurrency == 6
