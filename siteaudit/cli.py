"""Command-line interface for the site link, image, and card audits."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import List, Optional

from dotenv import load_dotenv

from .cli_config import load_config
from .config import AuditSettings, ConfigError, load_settings
from .files import SiteRootError, extend_ignore_patterns
from .report import format_broken_links, format_summary

EXIT_OK = 0
EXIT_FINDINGS = 1
EXIT_FATAL = 2
EXIT_INTERRUPTED = 130


def _load_config(args: argparse.Namespace) -> None:
    root = Path(args.root) if args.root else Path.cwd()
    load_config(root, load_env=load_dotenv)


def _setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        datefmt="%H:%M:%S",
    )


def _add_common_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--root",
        type=str,
        default=None,
        help="Site root to audit (default: current directory)",
    )
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Report directory relative to the root (default: audits)",
    )
    parser.add_argument(
        "--ignore",
        type=str,
        nargs="+",
        default=None,
        metavar="GLOB",
        help="Extra glob patterns to skip, relative to the root; added to "
             "node_modules/** audits/** .git/** and SITE_AUDIT_IGNORE",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )


def _build_settings(args: argparse.Namespace) -> AuditSettings:
    settings = load_settings(Path(args.root) if args.root else None)
    return settings.with_overrides(
        output_dir=args.output_dir,
        ignore_patterns=(
            extend_ignore_patterns(settings.ignore_patterns, args.ignore) if args.ignore else None
        ),
        concurrency=getattr(args, "concurrency", None),
        timeout=getattr(args, "timeout", None),
        check_external=False if getattr(args, "internal_only", False) else None,
    )


# =============================================================================
# LINK AUDIT COMMAND
# =============================================================================


def _parse_links_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="site-audit-links",
        description="Audit every href/src reference in a static site for broken links.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""\
Examples:
  # Audit the site in the current directory
  site-audit-links

  # Audit a build directory with fewer parallel requests
  site-audit-links --root dist --concurrency 4

  # Offline run: internal links only
  site-audit-links --internal-only

Exit codes: 0 no broken links, 1 broken links found, 2 audit failed.
""",
    )
    _add_common_args(parser)
    parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help="Maximum external checks in flight (default: 10)",
    )
    parser.add_argument(
        "--timeout",
        type=float,
        default=None,
        help="Per-request timeout in seconds for external checks (default: 15)",
    )
    parser.add_argument(
        "--internal-only",
        action="store_true",
        help="Skip external links instead of fetching them",
    )
    return parser.parse_args(argv)


async def _run_links_async(args: argparse.Namespace) -> int:
    """Main async entry point for the link audit."""
    from . import audit_links_async

    settings = _build_settings(args)
    logging.info("Starting link audit in %s", settings.root)

    report = await audit_links_async(settings=settings)

    listing = format_broken_links(report)
    if listing:
        print(listing)
        print()
    print(format_summary(report))

    return EXIT_FINDINGS if report.has_broken_links else EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the link audit."""
    args = _parse_links_args(argv)
    _setup_logging(args.verbose)
    _load_config(args)

    try:
        return asyncio.run(_run_links_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return EXIT_INTERRUPTED
    except (SiteRootError, ConfigError) as exc:
        logging.error("Error: %s", exc)
        return EXIT_FATAL
    except Exception as exc:
        logging.error("An unexpected error occurred during the link audit: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return EXIT_FATAL


# =============================================================================
# IMAGE AUDIT COMMAND
# =============================================================================


def _parse_images_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="site-audit-images",
        description="Find <img> tags that are not wrapped in a <picture> element.",
    )
    _add_common_args(parser)
    return parser.parse_args(argv)


def _run_images(args: argparse.Namespace) -> int:
    from .images import audit_images

    settings = _build_settings(args)
    report = audit_images(settings=settings)

    if report.total_issues:
        for entry in report.files:
            print(f"{entry.file}: {len(entry.images)} image(s)")
            for image in entry.images:
                print(f"   - {image.src}")
        print(
            "\nAction required: Convert the listed <img> tags to the <picture> "
            "element for optimal performance."
        )
        return EXIT_FINDINGS

    print("SUCCESS: All images are using the responsive <picture> element.")
    return EXIT_OK


def images_main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the image audit."""
    args = _parse_images_args(argv)
    _setup_logging(args.verbose)
    _load_config(args)

    try:
        return _run_images(args)
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return EXIT_INTERRUPTED
    except Exception as exc:
        logging.error("An error occurred during the image audit: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return EXIT_FATAL



# =============================================================================
# CARD VISIBILITY COMMAND
# =============================================================================


def _parse_cards_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="site-audit-cards",
        description=(
            "Open every HTML page in headless Chromium and count visible "
            "versus hidden card elements."
        ),
        epilog="Writes <output-dir>/card-visibility.csv. Exit code 2 when no pages are found.",
    )
    _add_common_args(parser)
    return parser.parse_args(argv)


async def _run_cards_async(args: argparse.Namespace) -> int:
    from .cards import audit_cards_async

    settings = _build_settings(args)
    report = await audit_cards_async(settings=settings)
    totals = report.totals

    print("=== SUMMARY ===")
    print(f"Total cards:    {totals['total']}")
    print(f"Visible cards:  {totals['visible']}")
    print(f"Missing/hidden: {totals['hidden']}")
    if report.errors:
        print(f"Pages that failed to load: {len(report.errors)}")
    print(f"Wrote: {settings.card_report_path}")
    return EXIT_OK


def cards_main(argv: Optional[List[str]] = None) -> int:
    """CLI entry point for the card visibility audit."""
    from .cards import NoPagesError

    args = _parse_cards_args(argv)
    _setup_logging(args.verbose)
    _load_config(args)

    try:
        return asyncio.run(_run_cards_async(args))
    except KeyboardInterrupt:
        logging.info("Interrupted")
        return EXIT_INTERRUPTED
    except (NoPagesError, SiteRootError, ConfigError) as exc:
        logging.error("Error: %s", exc)
        return EXIT_FATAL
    except Exception as exc:
        logging.error("An error occurred during the card audit: %s", exc)
        if args.verbose:
            logging.exception("Full traceback:")
        return EXIT_FATAL


if __name__ == "__main__":
    sys.exit(main())
