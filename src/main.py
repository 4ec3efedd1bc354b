# src/main.py — v1
"""CLI entry point — enrich, sources, stats, cleanup commands.

Usage:
    hwenrich enrich <type> <manufacturer> <model> [--refresh] [--json]
    hwenrich sources
    hwenrich stats
    hwenrich cleanup [--max-age-days N]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import TYPE_CHECKING

from pydantic import ValidationError

from hwenrich.version import __version__

if TYPE_CHECKING:
    from hwenrich.config.settings import Settings
    from hwenrich.enrichment.factory import EnrichmentContext

logger = logging.getLogger("hwenrich.main")


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    from hwenrich.config.settings import ConfigurationError, load_settings

    try:
        settings = load_settings()
    except (ConfigurationError, ValidationError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 2

    _setup_logging(settings, args.verbose)

    try:
        return asyncio.run(_run(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="hwenrich",
        description=f"hwenrich v{__version__} — Device knowledge aggregation and caching",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command")

    # --- enrich ---
    p_enrich = subparsers.add_parser(
        "enrich", help="Enrich a single device",
    )
    p_enrich.add_argument(
        "device_type", help="Cpu, Gpu, Motherboard, Memory, Storage or Monitor",
    )
    p_enrich.add_argument("manufacturer", help="Manufacturer name")
    p_enrich.add_argument("model", help="Model name")
    p_enrich.add_argument(
        "--refresh", action="store_true",
        help="Bypass the result cache",
    )
    p_enrich.add_argument(
        "--json", action="store_true", dest="as_json",
        help="Print the full result as JSON",
    )
    p_enrich.set_defaults(func=_cmd_enrich)

    # --- sources ---
    p_sources = subparsers.add_parser(
        "sources", help="List registered sources",
    )
    p_sources.set_defaults(func=_cmd_sources)

    # --- stats ---
    p_stats = subparsers.add_parser(
        "stats", help="Show cache and knowledge statistics",
    )
    p_stats.set_defaults(func=_cmd_stats)

    # --- cleanup ---
    p_cleanup = subparsers.add_parser(
        "cleanup", help="Remove expired cache entries and old images",
    )
    p_cleanup.add_argument(
        "--max-age-days", type=int, default=30,
        help="Remove images cached more than N days ago (default: 30)",
    )
    p_cleanup.set_defaults(func=_cmd_cleanup)

    return parser


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    from hwenrich.enrichment.factory import EnrichmentContext

    context = EnrichmentContext(settings)
    try:
        return await args.func(args, context)
    finally:
        await context.aclose()


async def _cmd_enrich(args: argparse.Namespace, context: EnrichmentContext) -> int:
    """Enrich one device and print the result."""
    from hwenrich.core.errors import NoSourceSucceeded
    from hwenrich.core.models import DeviceIdentifier, DeviceType

    try:
        device_type = DeviceType.parse(args.device_type)
    except ValueError as exc:
        logger.error("%s", exc)
        return 2

    identifier = DeviceIdentifier(manufacturer=args.manufacturer, model=args.model)
    try:
        info = await context.service.enrich(
            device_type, identifier, force_refresh=args.refresh
        )
    except NoSourceSucceeded as exc:
        logger.error("%s", exc)
        return 1

    if args.as_json:
        print(info.model_dump_json(indent=2))
        return 0

    print(f"\n{info.identifier.manufacturer} {info.identifier.model} ({device_type.display_name})")
    print(f"  Key:         {info.device_key}")
    print(f"  Origin:      {info.origin}")
    print(f"  Sources:     {', '.join(info.sources) or '-'}")
    print(f"  Confidence:  {info.confidence:.2f}")
    if info.description:
        preview = info.description[:200]
        if len(info.description) > 200:
            preview += "..."
        print(f"  Description: {preview}")
    for category in info.categories:
        print(f"  [{category.name}]")
        for item in category.specs:
            unit = f" {item.unit}" if item.unit and not item.value.endswith(item.unit) else ""
            print(f"    {item.label}: {item.value}{unit}")
    if info.product_page:
        print(f"  Product page: {info.product_page}")
    if info.support_page:
        print(f"  Support page: {info.support_page}")
    if info.images and info.images.primary_image_cached:
        print(f"  Image:       {info.images.primary_image_cached}")
    return 0


async def _cmd_sources(args: argparse.Namespace, context: EnrichmentContext) -> int:
    """List registered sources, most preferred first."""
    descriptors = context.service.list_sources()
    print("\nRegistered sources:")
    for d in descriptors:
        types = ", ".join(t.value for t in d.device_types) or "-"
        print(f"  {d.priority:>3}  {d.name:<24} {types}")
    return 0


async def _cmd_stats(args: argparse.Namespace, context: EnrichmentContext) -> int:
    """Display cache, knowledge and image statistics."""
    stats = await context.service.stats()
    print("\nResult cache:")
    print(f"  Entries:      {stats.cache.total_entries}")
    print(f"  Valid:        {stats.cache.valid_entries}")
    print(f"  Expired:      {stats.cache.expired_entries}")
    print("\nKnowledge store:")
    print(f"  Devices:      {stats.knowledge.total_devices}")
    for type_name, count in sorted(stats.knowledge.devices_by_type.items()):
        print(f"    {type_name:<12}{count}")
    print(f"  Avg sources:  {stats.knowledge.avg_sources_per_device:.2f}")
    if stats.images is not None:
        print("\nImage cache:")
        print(f"  Images:       {stats.images.cached_count}")
        print(f"  Size:         {stats.images.total_size / 1024:.1f} KiB")
    return 0


async def _cmd_cleanup(args: argparse.Namespace, context: EnrichmentContext) -> int:
    """Sweep expired cache entries and old images."""
    result = await context.service.cleanup(args.max_age_days)
    print(json.dumps(result.model_dump()))
    return 0


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from hwenrich.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=settings.log_file,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
