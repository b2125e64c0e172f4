"""Command line entry point for locale-sync."""

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import List, Optional

import structlog

from locale_sync import __version__
from locale_sync.config import load_config
from locale_sync.core.manager import TranslationManager
from locale_sync.core.progress import ConsoleProgressBar
from locale_sync.errors import ConfigurationError, LocaleSyncError


def setup_logging(debug: bool = False) -> None:
    """Configure structured logging."""
    level = logging.DEBUG if debug else logging.INFO

    # Clear any existing handlers to prevent duplication
    root_logger = logging.getLogger()
    for handler in root_logger.handlers[:]:
        root_logger.removeHandler(handler)

    # Command output goes to stdout, logs to stderr
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(message)s"))

    logging.basicConfig(
        level=level,
        handlers=[handler],
        force=True,
    )

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.dev.ConsoleRenderer(colors=True)
                if debug
                else structlog.processors.JSONRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="locale-sync",
        description="Keep JSON locale files in sync with a source language",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument("--version", action="version", version=f"locale-sync {__version__}")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")
    parser.add_argument("--config-file", type=Path, help="Path to configuration file")

    commands = parser.add_subparsers(dest="command", required=True)

    sync = commands.add_parser("sync", help="Translate missing and modified keys into every language")
    sync.add_argument("source", nargs="?", help="Source language (defaults to config)")
    sync.add_argument("--force", action="store_true", help="Re-translate every key from scratch")

    status = commands.add_parser("status", help="Show translation completeness per language")
    status.add_argument("source", nargs="?", help="Source language (defaults to config)")

    add_key = commands.add_parser("add-key", help="Add a key to every language")
    add_key.add_argument("key", help="Dot-separated key path, e.g. common.save")
    add_key.add_argument("value", help="Value in the source language")
    add_key.add_argument("source", nargs="?", help="Source language (defaults to config)")

    add_language = commands.add_parser("add-language", help="Create and translate a new language file")
    add_language.add_argument("source", help="Language to translate from")
    add_language.add_argument("new", help="Code of the new language")

    batch = commands.add_parser("translate-batch", help="Translate one window of keys into a language")
    batch.add_argument("source", help="Language to translate from")
    batch.add_argument("target", help="Language to translate into")
    batch.add_argument("--batch-size", type=int, default=25, help="Number of keys in the window")
    batch.add_argument("--offset", type=int, default=0, help="Index of the first key")

    commands.add_parser("languages", help="List available languages")
    commands.add_parser("config", help="Print the effective configuration")

    return parser


async def cmd_sync(manager: TranslationManager, args: argparse.Namespace) -> int:
    report = await manager.sync_translations(args.source, force=args.force)

    mode = "force" if report.force else "smart"
    print(f"Synced {len(report.results)} language(s) from {report.source_lang} ({mode} mode)")
    for lang, result in report.results.items():
        if result.ok:
            print(f"  {lang}: {result.keys_translated} key(s) translated")
        else:
            print(f"  {lang}: failed ({result.error})")

    return 1 if report.failed else 0


async def cmd_status(manager: TranslationManager, args: argparse.Namespace) -> int:
    statuses = await manager.get_translation_status(args.source)
    for lang, status in statuses.items():
        print(f"{lang}: {status.translated}/{status.total} ({status.completeness}%), {status.missing} missing")
    return 0


async def cmd_add_key(manager: TranslationManager, args: argparse.Namespace) -> int:
    written = await manager.add_key(args.key, args.value, args.source)
    for lang, value in written.items():
        print(f"{lang}: {value}")
    return 0


async def cmd_add_language(manager: TranslationManager, args: argparse.Namespace) -> int:
    result = await manager.add_new_language(args.source, args.new, on_progress=ConsoleProgressBar())
    print(f"Added {args.new} with {result.keys_translated} translated key(s)")
    return 0


async def cmd_translate_batch(manager: TranslationManager, args: argparse.Namespace) -> int:
    count = await manager.translate_batch(args.source, args.target, args.batch_size, args.offset)
    print(f"Translated {count} key(s)")
    return 0


async def cmd_languages(manager: TranslationManager, args: argparse.Namespace) -> int:
    for lang in manager.get_supported_languages():
        print(lang)
    return 0


async def cmd_config(manager: TranslationManager, args: argparse.Namespace) -> int:
    config = manager.settings.to_dict()
    config["resolved_locales_path"] = str(manager.locales_path)
    print(json.dumps(config, indent=2, ensure_ascii=False))
    return 0


COMMANDS = {
    "sync": cmd_sync,
    "status": cmd_status,
    "add-key": cmd_add_key,
    "add-language": cmd_add_language,
    "translate-batch": cmd_translate_batch,
    "languages": cmd_languages,
    "config": cmd_config,
}


async def main(argv: Optional[List[str]] = None) -> int:
    """Parse arguments, run one command and return the exit status."""
    args = build_parser().parse_args(argv)
    setup_logging(debug=args.debug)

    logger = structlog.get_logger()
    logger.debug("Starting locale-sync", version=__version__, command=args.command)

    manager = None
    try:
        settings = load_config(config_file=args.config_file)
        manager = TranslationManager(settings)
        return await COMMANDS[args.command](manager, args)

    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e), config_key=e.context.get("config_key"))
        print(f"Error: {e.message}", file=sys.stderr)
        print("Fix the input or configuration and run again.", file=sys.stderr)
        return 1
    except LocaleSyncError as e:
        logger.error("Command failed", command=args.command, **e.to_dict())
        print(f"Error: {e.message}", file=sys.stderr)
        if e.requires_user_action():
            print("Fix the input or configuration and run again.", file=sys.stderr)
        elif e.is_retryable():
            print(f"This looks temporary; retry in {e.retry_after or 1}s.", file=sys.stderr)
        return 1
    finally:
        if manager is not None:
            await manager.aclose()


def run() -> None:
    """Synchronous entry point for setuptools."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nInterrupted by user")
        sys.exit(130)


if __name__ == "__main__":
    run()
