"""Settings for audit runs.

Environment variables are read at call time (inside ``load_settings``) so
that tests can monkeypatch them freely and late ``.env`` loading works.

Recognised variables:

- ``SITE_AUDIT_CONCURRENCY``: max in-flight external checks (default 10)
- ``SITE_AUDIT_TIMEOUT``: per-request timeout in seconds (default 15)
- ``SITE_AUDIT_USER_AGENT``: User-Agent header for external checks
- ``SITE_AUDIT_OUTPUT_DIR``: report directory, relative to the root (default ``audits``)
- ``SITE_AUDIT_IGNORE``: comma separated glob patterns to skip, added to the defaults
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, List, Mapping, Optional

from .external import DEFAULT_CONCURRENCY, DEFAULT_TIMEOUT, DEFAULT_USER_AGENT
from .files import DEFAULT_IGNORE_PATTERNS, extend_ignore_patterns

DEFAULT_OUTPUT_DIR = "audits"
LINK_REPORT_NAME = "link-audit-results.json"
IMAGE_REPORT_NAME = "image-audit-results.json"
CARD_REPORT_NAME = "card-visibility.csv"


class ConfigError(ValueError):
    """Raised when a setting has an unusable value."""


@dataclass
class AuditSettings:
    """Resolved configuration for one audit run."""

    root: Path = field(default_factory=Path.cwd)
    ignore_patterns: List[str] = field(default_factory=lambda: list(DEFAULT_IGNORE_PATTERNS))
    concurrency: int = DEFAULT_CONCURRENCY
    timeout: float = DEFAULT_TIMEOUT
    user_agent: str = DEFAULT_USER_AGENT
    output_dir: str = DEFAULT_OUTPUT_DIR
    check_external: bool = True

    def __post_init__(self) -> None:
        self.root = Path(self.root)
        if self.concurrency < 1:
            raise ConfigError(f"concurrency must be at least 1, got {self.concurrency}")
        if self.timeout <= 0:
            raise ConfigError(f"timeout must be positive, got {self.timeout}")

    @property
    def output_path(self) -> Path:
        return self.root / self.output_dir

    @property
    def link_report_path(self) -> Path:
        return self.output_path / LINK_REPORT_NAME

    @property
    def image_report_path(self) -> Path:
        return self.output_path / IMAGE_REPORT_NAME

    @property
    def card_report_path(self) -> Path:
        return self.output_path / CARD_REPORT_NAME

    def with_overrides(self, **overrides: Any) -> "AuditSettings":
        """Return a copy with every non-None override applied."""
        changes = {key: value for key, value in overrides.items() if value is not None}
        return replace(self, **changes)


def _parse_number(env: Mapping[str, str], name: str, cast: type) -> Optional[Any]:
    raw = env.get(name)
    if raw is None or not raw.strip():
        return None
    try:
        return cast(raw.strip())
    except ValueError as exc:
        raise ConfigError(f"{name} must be a {cast.__name__}, got {raw!r}") from exc


def _parse_patterns(raw: Optional[str]) -> Optional[List[str]]:
    if raw is None:
        return None
    patterns = [part.strip() for part in raw.split(",") if part.strip()]
    return patterns or None


def load_settings(
    root: Optional[Path] = None,
    env: Optional[Mapping[str, str]] = None,
) -> AuditSettings:
    """Build settings from defaults plus environment overrides."""
    env = os.environ if env is None else env
    return AuditSettings().with_overrides(
        root=Path(root) if root is not None else None,
        concurrency=_parse_number(env, "SITE_AUDIT_CONCURRENCY", int),
        timeout=_parse_number(env, "SITE_AUDIT_TIMEOUT", float),
        user_agent=(env.get("SITE_AUDIT_USER_AGENT") or "").strip() or None,
        output_dir=(env.get("SITE_AUDIT_OUTPUT_DIR") or "").strip() or None,
        ignore_patterns=extend_ignore_patterns(
            DEFAULT_IGNORE_PATTERNS, _parse_patterns(env.get("SITE_AUDIT_IGNORE"))
        ),
    )
