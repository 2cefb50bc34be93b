"""Command-line interface for FileRelay.

Usage:
    filerelay run "report_.*\\.csv"
    filerelay run "report_.*\\.csv" --destination reports.zip --format json
    filerelay run "file[0-9]" --demo
    filerelay version
"""

import argparse
import asyncio
import json
import logging
import sys
from concurrent.futures import ThreadPoolExecutor
from typing import Optional

from filerelay import __version__
from filerelay.archive import ZipArchiver
from filerelay.clients import InMemoryFileSource, InMemoryObjectStore
from filerelay.config import settings
from filerelay.errors import PipelineError
from filerelay.pipeline import Orchestrator, PipelineRun, default_orchestrator

logger = logging.getLogger(__name__)

_executor = ThreadPoolExecutor(max_workers=1)


def create_parser() -> argparse.ArgumentParser:
    """Create the CLI argument parser.

    Returns:
        Configured ArgumentParser with all commands and arguments.
    """
    parser = argparse.ArgumentParser(
        prog="filerelay",
        description="FileRelay — archive matching remote files into the object store",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  filerelay run "report_.*\\.csv"
  filerelay run "report_.*\\.csv" --destination reports.zip --format json
  filerelay run "file[0-9]" --demo
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # run command
    run_parser = subparsers.add_parser(
        "run",
        help="Locate, archive and upload files matching a pattern",
        description="Run the relay pipeline once and print the object id",
    )
    run_parser.add_argument(
        "pattern",
        type=str,
        help="Regular expression matched against remote file paths",
    )
    run_parser.add_argument(
        "--destination",
        type=str,
        default=None,
        help=f"Object name for the archive (default: {settings.destination_name})",
    )
    run_parser.add_argument(
        "--concurrency",
        type=int,
        default=None,
        help=f"Max concurrent downloads (default: {settings.fetch_concurrency})",
    )
    run_parser.add_argument(
        "--format",
        type=str,
        choices=["text", "json"],
        default="text",
        help="Output format (default: text)",
    )
    run_parser.add_argument(
        "--demo",
        action="store_true",
        help="Use built-in sample files and an in-memory object store",
    )

    subparsers.add_parser(
        "version",
        help="Show version information",
    )

    return parser


def _run_async(coro):
    """Run an async coroutine from synchronous CLI context.

    Spins up a new event loop in a dedicated thread to avoid conflicts
    with any existing event loop.
    """
    def _target():
        loop = asyncio.new_event_loop()
        try:
            return loop.run_until_complete(coro)
        finally:
            loop.close()

    future = _executor.submit(_target)
    return future.result()


async def _relay(args: argparse.Namespace) -> PipelineRun:
    """Execute one pipeline run with demo or settings-backed collaborators."""
    if args.demo:
        source = InMemoryFileSource.demo()
        orchestrator = Orchestrator(
            locator=source,
            fetcher=source,
            archiver=ZipArchiver(max_bytes=settings.max_archive_bytes),
            uploader=InMemoryObjectStore(prefix="demo"),
            destination=args.destination,
            max_concurrency=args.concurrency,
        )
        run = orchestrator.create_run(args.pattern)
        await orchestrator.execute(run)
        return run

    async with default_orchestrator(
        destination=args.destination,
        max_concurrency=args.concurrency,
    ) as orchestrator:
        run = orchestrator.create_run(args.pattern)
        await orchestrator.execute(run)
        return run


def cmd_run(args: argparse.Namespace) -> int:
    """Execute the run command.

    Args:
        args: Parsed command-line arguments

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    if args.concurrency is not None and args.concurrency < 1:
        print("Error: --concurrency must be at least 1", file=sys.stderr)
        return 2

    logger.info(
        "Relaying files matching %r (demo=%s)", args.pattern, args.demo,
    )

    try:
        run = _run_async(_relay(args))
    except KeyboardInterrupt:
        logger.warning("Interrupted by user")
        return 130
    except PipelineError as e:
        cause = f" (caused by {e.__cause__!r})" if e.__cause__ else ""
        print(f"Error: {type(e).__name__}: {e}{cause}", file=sys.stderr)
        return 1
    except Exception as e:
        logger.error("Relay failed: %s", e, exc_info=True)
        print(f"Error: {e}", file=sys.stderr)
        return 1

    if args.format == "json":
        print(json.dumps(
            {
                "object_id": run.result,
                "destination": run.destination,
                "files": run.handles,
                "archive_bytes": len(run.archive or b""),
            },
            indent=2,
        ))
    else:
        print(run.result)

    return 0


def cmd_version(args: argparse.Namespace) -> int:
    """Execute the version command."""
    print(f"FileRelay v{__version__}")
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:])

    Returns:
        Exit code (0 for success, non-zero for failure)
    """
    logging.basicConfig(
        level=getattr(logging, settings.log_level, logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    parser = create_parser()
    args = parser.parse_args(argv)

    # Route to command handler
    if args.command == "run":
        return cmd_run(args)
    elif args.command == "version":
        return cmd_version(args)
    else:
        # No command specified
        parser.print_help()
        return 0


def cli_entry() -> None:
    """Console script entry point for setuptools."""
    sys.exit(main())


if __name__ == "__main__":
    cli_entry()
