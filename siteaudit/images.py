"""Audit for <img> tags that are not wrapped in a responsive <picture>."""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

from .config import AuditSettings
from .files import discover_html_files
from .report import format_timestamp, write_report

LOGGER = logging.getLogger(__name__)

PICTURE_BLOCK = re.compile(r"<picture[\s\S]*?</picture>", re.IGNORECASE)
IMG_TAG = re.compile(r"<img[^>]+>", re.IGNORECASE)
SRC_ATTR = re.compile(r'src="([^"]+)"')
ALT_ATTR = re.compile(r'alt="([^"]+)"')

MISSING = "N/A"


@dataclass(slots=True)
class UnconvertedImage:
    tag: str
    src: str = MISSING
    alt: str = MISSING


@dataclass(slots=True)
class FileImageIssues:
    file: str
    images: List[UnconvertedImage] = field(default_factory=list)


@dataclass(slots=True)
class ImageAuditReport:
    """Result of an image audit run."""

    timestamp: str
    files_scanned: int
    files: List[FileImageIssues] = field(default_factory=list)

    @property
    def total_issues(self) -> int:
        return sum(len(entry.images) for entry in self.files)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "timestamp": self.timestamp,
            "unconvertedImages": [
                {
                    "file": entry.file,
                    "images": [
                        {"tag": image.tag, "src": image.src, "alt": image.alt}
                        for image in entry.images
                    ],
                }
                for entry in self.files
            ],
            "summary": {
                "filesScanned": self.files_scanned,
                "filesWithIssues": len(self.files),
                "totalIssues": self.total_issues,
            },
        }


def _attr(pattern: re.Pattern, tag: str) -> str:
    match = pattern.search(tag)
    return match.group(1) if match else MISSING


def find_unconverted_images(html: str) -> List[UnconvertedImage]:
    """Return <img> tags outside any <picture> block, in document order."""
    stripped = PICTURE_BLOCK.sub("", html or "")
    return [
        UnconvertedImage(tag=tag, src=_attr(SRC_ATTR, tag), alt=_attr(ALT_ATTR, tag))
        for tag in IMG_TAG.findall(stripped)
    ]


def audit_images(
    root: Optional[Path] = None,
    *,
    settings: Optional[AuditSettings] = None,
    write: bool = True,
) -> ImageAuditReport:
    """
    Scan every HTML file under the root for unconverted images.

    Args:
        root: Site root; overrides ``settings.root`` when given.
        settings: Audit settings (defaults apply when omitted).
        write: Persist the JSON report under the output directory.

    Raises:
        SiteRootError: If the site root cannot be enumerated.
    """
    settings = settings or AuditSettings()
    if root is not None:
        settings = settings.with_overrides(root=Path(root))

    files = discover_html_files(settings.root, settings.ignore_patterns)
    LOGGER.info("Scanning %d HTML files for <img> tags outside <picture>.", len(files))

    report = ImageAuditReport(timestamp=format_timestamp(), files_scanned=len(files))
    for relative in files:
        content = (settings.root / relative).read_text(encoding="utf-8")
        images = find_unconverted_images(content)
        if images:
            report.files.append(FileImageIssues(file=relative, images=images))

    if write:
        write_report(report.to_dict(), settings.image_report_path)
    return report
