"""Main CLI entry point."""

import argparse
import asyncio
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.markup import escape

from rutt import __version__
from rutt.core.email.imap import IMAPMailSource
from rutt.core.mail_source import DemoMailSource, MailSource
from rutt.tui import RuttApp
from rutt.utils.config import ConfigManager
from rutt.utils.errors import ErrorHandler, RuttError
from rutt.utils.logging import get_log_manager, get_logger, init_logging, log_call, log_event

logger = get_logger(__name__)


def setup_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="rutt",
        description="Browse an IMAP mailbox from the terminal with vim-style keys.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to the configuration file (default: ~/.rutt/config.json)",
    )
    parser.add_argument(
        "--limit",
        type=int,
        default=None,
        help="Number of newest emails to load (default: account.fetch_limit)",
    )
    parser.add_argument(
        "--mailbox",
        default=None,
        help="Mailbox to open read-only (default: account.mailbox)",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        type=str.upper,
        help="Level for the log files (default: logging.log_level)",
    )

    demo_group = parser.add_argument_group("demo", "Run without an IMAP account")
    demo_group.add_argument(
        "--demo",
        action="store_true",
        help="Browse a generated mailbox instead of connecting to a server",
    )
    demo_group.add_argument(
        "--demo-count",
        type=int,
        default=200,
        help="Number of generated emails in demo mode (default: 200)",
    )
    return parser


def apply_overrides(config_manager: ConfigManager, args: argparse.Namespace) -> None:
    """Fold command line options into the in-memory configuration."""

    if args.limit is not None:
        if args.limit < 1:
            raise RuttError("--limit must be at least 1", details={"limit": args.limit})
        config_manager.set_config("account.fetch_limit", args.limit, persist=False)
    if args.mailbox:
        config_manager.set_config("account.mailbox", args.mailbox, persist=False)
    if args.log_level:
        config_manager.set_config("logging.log_level", args.log_level, persist=False)


def build_source(config_manager: ConfigManager, args: argparse.Namespace) -> MailSource:
    if args.demo:
        return DemoMailSource(count=args.demo_count)
    return IMAPMailSource(config_manager)


@log_call
async def run_session(
    config_manager: ConfigManager, args: argparse.Namespace, console: Console
) -> int:
    """Load the mailbox, then hand the terminal to the Textual app.

    Returns:
        Exit code (0 = success)
    """
    config = config_manager.config
    source = build_source(config_manager, args)
    server = "demo mailbox" if args.demo else config.account.imap_server

    try:
        console.print(f"Connecting to {server}...")
        console.print("Fetching emails...")
        records = await source.initial_records()
        console.print(f"Found {len(records)} emails")

        app = RuttApp(
            records,
            source,
            account="demo" if args.demo else config.account.username,
            date_format=config.ui.date_format,
            visible_height=config.ui.initial_visible_height,
        )

        log_manager = get_log_manager()
        if log_manager is not None:
            log_manager.detach_console()
        log_event("session_started", "Interactive session started", emails=len(records))
        try:
            await app.run_async()
        finally:
            if log_manager is not None:
                log_manager.attach_console()
        log_event("session_ended", "Interactive session ended")

    finally:
        await source.close()

    return app.return_code or 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point.

    Returns:
        Exit code
    """
    console = Console()

    try:
        parser = setup_argument_parser()
        args = parser.parse_args(argv)

        try:
            config_manager = ConfigManager(args.config)
            apply_overrides(config_manager, args)
        except RuttError as e:
            logger.error(f"Configuration error: {e}")
            console.print(f"[red]Configuration error:[/red] {escape(ErrorHandler.describe(e))}")
            return 1

        logging_config = config_manager.config.logging
        init_logging(logging_config.log_level, logging_config.console_level)

        return asyncio.run(run_session(config_manager, args, console))

    except KeyboardInterrupt:
        console.print("\n[yellow]Interrupted by user[/yellow]")
        return 130  # Standard SIGINT exit code

    except RuttError as e:
        ErrorHandler.handle(e, "startup", log_traceback=False)
        console.print(f"[red]Error:[/red] {escape(ErrorHandler.describe(e))}")
        return 1
