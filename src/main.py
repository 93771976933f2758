# src/main.py — v3
"""CLI entry point for the translate, batch, text, engines, directions and interactive commands.

Usage:
    doctranslator translate [source] [-o destination]
    doctranslator batch <source_dir> <target_dir> [options]
    doctranslator text <text>... [--source-lang xx] [--target-lang yy]
    doctranslator engines
    doctranslator directions
    doctranslator interactive
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import signal
import sys
from pathlib import Path
from typing import TYPE_CHECKING

from doctranslator.config.settings import ConfigurationError, Settings, load_settings
from doctranslator.version import __version__

if TYPE_CHECKING:
    from doctranslator.batch.models import BatchSummary
    from doctranslator.client.base_client import BaseTranslationClient
    from doctranslator.core.models import ItemOutcome

logger = logging.getLogger(__name__)

SAMPLE_DOCUMENT_TEXT = "This is example document\nTo be translated."

_REMOTE_COMMANDS = {"translate", "batch", "text", "engines", "directions", "interactive"}


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = _build_parser()
    args = parser.parse_args(argv)

    if not hasattr(args, "func"):
        parser.print_help()
        return 1

    try:
        settings = _load_settings(args)
    except (ConfigurationError, ValueError) as exc:
        print(f"Invalid configuration: {exc}", file=sys.stderr)
        return 1

    _setup_logging(settings, args.verbose)

    if args.command in _REMOTE_COMMANDS and not settings.tilde_api_key:
        logger.error("API key cannot be empty. Set TILDE_API_KEY or pass --api-key.")
        return 1

    try:
        return asyncio.run(args.func(args, settings))
    except KeyboardInterrupt:
        logger.info("Interrupted by user")
        return 130
    except Exception as exc:
        logger.error("Fatal error: %s", exc, exc_info=args.verbose)
        return 1


def _build_parser() -> argparse.ArgumentParser:
    """Build CLI argument parser."""
    parser = argparse.ArgumentParser(
        prog="doctranslator",
        description=f"doctranslator v{__version__}: asynchronous document translation",
    )
    parser.add_argument(
        "--version", action="version", version=f"%(prog)s {__version__}",
    )
    parser.add_argument(
        "-v", "--verbose", action="store_true",
        help="Enable debug logging",
    )
    parser.add_argument("--api-key", default=None, help="Service API key (default: TILDE_API_KEY)")
    parser.add_argument("--server-url", default=None, help="Service base URL")
    parser.add_argument(
        "--source-lang", default=None,
        help="Source language code; empty string for auto-detect (default: en)",
    )
    parser.add_argument("--target-lang", default=None, help="Target language code (default: lv)")

    subparsers = parser.add_subparsers(dest="command")

    # --- translate ---
    p_translate = subparsers.add_parser("translate", help="Translate a single document")
    p_translate.add_argument(
        "source", type=Path, nargs="?", default=None,
        help="Source document (default: sample document)",
    )
    p_translate.add_argument(
        "-o", "--output", type=Path, default=None,
        help="Destination path (default: sample result path)",
    )
    p_translate.set_defaults(func=_cmd_translate)

    # --- batch ---
    p_batch = subparsers.add_parser("batch", help="Translate every document in a directory")
    p_batch.add_argument("source_dir", type=Path, help="Directory containing source documents")
    p_batch.add_argument("target_dir", type=Path, help="Directory for translated documents")
    p_batch.add_argument("--pattern", default=None, help="File glob (default: *.txt)")
    p_batch.add_argument("--recursive", action="store_true", help="Scan subdirectories")
    p_batch.add_argument(
        "-j", "--concurrency", type=_positive_int, default=None,
        help="Documents translated in parallel (default: 4)",
    )
    p_batch.set_defaults(func=_cmd_batch)

    # --- text ---
    p_text = subparsers.add_parser("text", help="Translate plain text")
    p_text.add_argument("texts", nargs="+", help="Text segments to translate")
    p_text.set_defaults(func=_cmd_text)

    # --- engines ---
    p_engines = subparsers.add_parser("engines", help="List translation engines")
    p_engines.set_defaults(func=_cmd_engines)

    # --- directions ---
    p_directions = subparsers.add_parser("directions", help="List language directions")
    p_directions.set_defaults(func=_cmd_directions)

    # --- interactive ---
    p_interactive = subparsers.add_parser("interactive", help="Menu-driven session")
    p_interactive.set_defaults(func=_cmd_interactive)

    return parser


def _positive_int(value: str) -> int:
    """argparse type for counts that must be at least 1."""
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid int value: '{value}'") from None
    if number < 1:
        raise argparse.ArgumentTypeError(f"must be >= 1, got {number}")
    return number


def _load_settings(args: argparse.Namespace) -> Settings:
    """Load settings from .env, applying global CLI overrides."""
    overrides: dict[str, object] = {}
    if args.api_key is not None:
        overrides["tilde_api_key"] = args.api_key
    if args.server_url is not None:
        overrides["tilde_server_url"] = args.server_url
    if args.source_lang is not None:
        overrides["source_language"] = args.source_lang
    if args.target_lang is not None:
        overrides["target_language"] = args.target_lang
    if args.verbose:
        overrides["log_level"] = "DEBUG"
    return load_settings(**overrides)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


async def _cmd_translate(args: argparse.Namespace, settings: Settings) -> int:
    """Translate one document."""
    from doctranslator.api.facade import translate_document

    source: Path = args.source or settings.sample_source_path
    destination: Path = args.output or settings.sample_destination_path

    if args.source is None:
        _ensure_sample_document(source)

    outcome = await translate_document(source, destination, settings=settings)
    _print_outcome(outcome)
    return 0 if outcome.success else 1


async def _cmd_batch(args: argparse.Namespace, settings: Settings) -> int:
    """Translate a directory of documents."""
    from doctranslator.api.facade import translate_directory
    from doctranslator.batch.orchestrator import OutcomeCollector
    from doctranslator.batch.scanner import SourceEnumerationError

    cancel_event = asyncio.Event()
    collector = OutcomeCollector()
    _install_interrupt_handler(cancel_event)

    try:
        summary = await translate_directory(
            args.source_dir,
            args.target_dir,
            settings=settings,
            cancel_event=cancel_event,
            collector=collector,
            concurrency=args.concurrency,
            pattern=args.pattern,
            recursive=args.recursive or None,
        )
    except SourceEnumerationError as exc:
        logger.error("%s", exc)
        return 1
    finally:
        _remove_interrupt_handler()

    _print_batch_summary(summary)
    if summary.cancelled:
        return 130
    return 0 if summary.failed == 0 else 1


async def _cmd_text(args: argparse.Namespace, settings: Settings) -> int:
    """Translate plain text segments."""
    from doctranslator.api.facade import create_client

    async with create_client(settings) as client:
        await _translate_texts(client, args.texts, settings)
    return 0


async def _cmd_engines(args: argparse.Namespace, settings: Settings) -> int:
    """List available engines."""
    from doctranslator.api.facade import create_client

    async with create_client(settings) as client:
        await _print_engines(client)
    return 0


async def _cmd_directions(args: argparse.Namespace, settings: Settings) -> int:
    """List language directions."""
    from doctranslator.api.facade import create_client

    async with create_client(settings) as client:
        await _print_language_directions(client)
    return 0


async def _cmd_interactive(args: argparse.Namespace, settings: Settings) -> int:
    """Menu-driven session mirroring the individual commands."""
    from doctranslator.api.facade import create_client
    from doctranslator.client.errors import RemoteServiceError

    menu = (
        "\nChoose an action:\n"
        "1. Text translation\n"
        "2. Document translation\n"
        "3. List engines\n"
        "4. List language directions\n"
        "5. Run all\n"
        "6. Exit"
    )
    async with create_client(settings) as client:
        while True:
            print(menu)
            choice = input("Enter your choice (1-6): ").strip()
            try:
                if choice == "1":
                    await _run_text_checks(client, settings)
                elif choice == "2":
                    await _interactive_documents(client, settings)
                elif choice == "3":
                    await _print_engines(client)
                elif choice == "4":
                    await _print_language_directions(client)
                elif choice == "5":
                    await _run_text_checks(client, settings)
                    await _interactive_documents(client, settings)
                    await _print_engines(client)
                    await _print_language_directions(client)
                elif choice == "6":
                    return 0
                else:
                    print("Invalid choice. Please enter a number between 1 and 6.")
            except RemoteServiceError as exc:
                print(f"   Error: {type(exc).__name__} - {exc}")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


async def _interactive_documents(client: BaseTranslationClient, settings: Settings) -> None:
    """Prompt for single or bulk mode and run it with the shared client."""
    from doctranslator.api.facade import translate_directory, translate_document
    from doctranslator.batch.scanner import SourceEnumerationError

    mode = input("Single or Bulk document translation? (s/b): ").strip().lower()
    if mode == "b":
        source_dir = Path(input("Enter path to source directory: ").strip())
        target_dir = Path(input("Enter path to target directory: ").strip())
        try:
            summary = await translate_directory(
                source_dir, target_dir, settings=settings, client=client,
            )
        except SourceEnumerationError as exc:
            print(f"Error: {exc}")
            return
        _print_batch_summary(summary)
        return

    raw_source = input(
        f"Enter path to source document (Enter for '{settings.sample_source_path}'): "
    ).strip()
    raw_target = input(
        f"Enter path to save translation (Enter for '{settings.sample_destination_path}'): "
    ).strip()
    source = Path(raw_source) if raw_source else settings.sample_source_path
    destination = Path(raw_target) if raw_target else settings.sample_destination_path
    if not raw_source:
        _ensure_sample_document(source)
    outcome = await translate_document(source, destination, settings=settings, client=client)
    _print_outcome(outcome)


async def _run_text_checks(client: BaseTranslationClient, settings: Settings) -> None:
    """Translate a single segment, several segments, then with auto-detect."""
    await _translate_texts(client, ["First sentence"], settings)
    await _translate_texts(client, ["Hello", "World"], settings)
    await _translate_texts(client, ["This is English text"], settings, auto_detect=True)


async def _translate_texts(
    client: BaseTranslationClient,
    texts: list[str],
    settings: Settings,
    auto_detect: bool = False,
) -> None:
    source = None if auto_detect else settings.source_language_or_auto
    result = await client.translate_text(texts, source, settings.target_language)
    print(f"\nTranslation ({source or 'auto'} -> {settings.target_language}):")
    if result.detected_language:
        print(f"  Detected language: {result.detected_language}")
    if result.domain:
        print(f"  Domain:            {result.domain}")
    for item in result.translations:
        print(f"  - {item.translation}")


async def _print_engines(client: BaseTranslationClient) -> None:
    engines = await client.list_engines()
    if not engines:
        print("  No engines found.")
        return
    for count, engine in enumerate(engines, start=1):
        print(f"  {count}. {engine.name} ({engine.vendor or 'unknown vendor'})")
        print(f"     Source languages: {', '.join(engine.source_languages)}")
        print(f"     Target languages: {', '.join(engine.target_languages)}")
        print(f"     Domain: {engine.domain or 'General'}  Status: {engine.status}")
        print(f"     Term collections: {engine.supports_term_collections}  ID: {engine.id}")
    print(f"\n  Listed {len(engines)} engines.")


async def _print_language_directions(client: BaseTranslationClient) -> None:
    count = 0
    async for direction in client.list_language_directions():
        count += 1
        print(
            f"  {count}. {direction.source_language} -> {direction.target_language} "
            f"[{direction.domain or 'General'}] | Engine: {direction.engine_name} "
            f"({direction.engine_vendor})"
        )
    if count == 0:
        print("  No language directions found.")
    else:
        print(f"\n  Listed {count} language directions.")


def _ensure_sample_document(path: Path) -> None:
    """Create the sample source document if it does not exist yet."""
    if path.exists():
        return
    logger.info("Creating default document: %s", path)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(SAMPLE_DOCUMENT_TEXT, encoding="utf-8")


def _print_outcome(outcome: ItemOutcome) -> None:
    print(f"\n{outcome.describe()}")


def _print_batch_summary(summary: BatchSummary) -> None:
    """Print a human-readable summary of a batch run."""
    if summary.nothing_to_do:
        print(f"\nNo matching documents found in {summary.source_root}; nothing to do.")
        return

    print(f"\nBatch complete{' (cancelled)' if summary.cancelled else ''}:")
    for outcome in summary.outcomes:
        print(f"  {'OK  ' if outcome.success else 'FAIL'} {outcome.describe()}")
    print(f"  Documents:  {summary.total}")
    print(f"  Succeeded:  {summary.succeeded}")
    print(f"  Failed:     {summary.failed}")
    for reason, count in sorted(summary.failures_by_reason().items()):
        print(f"    {reason}: {count}")
    print(f"  Duration:   {summary.duration_seconds:.1f}s")


def _install_interrupt_handler(cancel_event: asyncio.Event) -> None:
    """Turn Ctrl+C into cooperative batch cancellation where supported."""
    try:
        asyncio.get_running_loop().add_signal_handler(signal.SIGINT, cancel_event.set)
    except (NotImplementedError, RuntimeError):
        logger.debug("Signal handlers unavailable; Ctrl+C aborts immediately")


def _remove_interrupt_handler() -> None:
    try:
        asyncio.get_running_loop().remove_signal_handler(signal.SIGINT)
    except (NotImplementedError, RuntimeError):
        pass


def _setup_logging(settings: Settings, verbose: bool) -> None:
    """Configure logging for CLI usage."""
    from doctranslator.logging.logger import setup_logging

    setup_logging(
        level="DEBUG" if verbose else settings.log_level,
        log_format=settings.log_format,
        log_file=str(settings.log_file) if settings.log_file else None,
        rotation=settings.log_rotation,
        retention=settings.log_retention,
    )


if __name__ == "__main__":
    sys.exit(main())
