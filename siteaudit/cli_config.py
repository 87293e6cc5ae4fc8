"""Locate and load the .env file for a CLI run."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, List, Optional

LOGGER = logging.getLogger(__name__)

USER_ENV_FILE = Path.home() / ".config" / "siteaudit" / ".env"


def env_candidates(root: Path, user_env_file: Path = USER_ENV_FILE) -> List[Path]:
    """The audited site's own .env wins over the per-user file."""
    return [Path(root) / ".env", user_env_file]


def load_config(
    root: Path,
    *,
    load_env: Callable[[Path], bool],
    user_env_file: Path = USER_ENV_FILE,
) -> Optional[Path]:
    """
    Load the first existing .env for an audit of *root*.

    Values already present in the environment are left alone, so an
    explicit ``SITE_AUDIT_*`` export beats either file. Nothing is written
    to disk.

    Returns:
        The file that was loaded, or None when neither exists.
    """
    for candidate in env_candidates(root, user_env_file):
        if candidate.is_file():
            load_env(candidate)
            LOGGER.debug("Loaded settings from %s", candidate)
            return candidate
    return None
