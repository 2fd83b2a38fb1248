"""
Command-line interface for mediasort.
"""

import argparse
import locale
import logging
import sys
import zoneinfo
from pathlib import Path
from typing import List, Optional

from rich.console import Console
from rich.logging import RichHandler
from rich.progress import Progress, SpinnerColumn, TextColumn
from rich.table import Table

from .classifier import ItemClassifier
from .config import Config
from .constants import PROGRAM, get_console, get_logger
from .core import OrganizerEngine
from .file_operations import FileOperations
from .history import HistoryManager
from .metadata import default_shell_provider
from .models import MediaKind, RunSummary
from .reporting import ConsoleReporter
from .resolvers import PhotoDateResolver, VideoDateResolver
from .timestamps import set_default_timezone
from .worker import OrganizerWorker

# Seconds between checks for Ctrl-C while the worker runs
WAIT_INTERVAL = 0.1


def create_parser(config: Config) -> argparse.ArgumentParser:
    """Create argument parser with dynamic defaults from config."""
    last_source = config.get_last_source()
    last_dest = config.get_last_dest()
    timezone = config.get_timezone()

    source_help = "Source directory containing photos and videos to organize"
    dest_help = "Destination directory for the dated folders"
    timezone_help = "Timezone that offset-bearing video dates are converted to"
    log_help = "Number of log lines kept in memory during a run"

    if last_source:
        source_help += f" (default: {last_source})"
    if last_dest:
        dest_help += f" (default: {last_dest})"
    if timezone:
        timezone_help += f" (default: {timezone})"
    else:
        timezone_help += " (default: system local time)"
    log_help += f" (default: {config.get_max_log_entries()})"
    shell_help = "Do not consult the platform shell metadata service for videos (saved)"
    if not config.get_shell_metadata():
        shell_help += " (currently disabled)"

    parser = argparse.ArgumentParser(
        description="Move photos and videos into YYYY-MM-DD folders by capture date",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"""
Examples:
  {PROGRAM} ~/Downloads/Camera ~/Pictures/ByDate
  {PROGRAM} --source ~/Desktop/NewPhotos
  {PROGRAM} --yes
        """
    )

    parser.add_argument(
        "source", nargs="?",
        help=source_help
    )
    parser.add_argument(
        "dest", nargs="?",
        help=dest_help
    )
    parser.add_argument(
        "--source", "-s", dest="source_override",
        help="Override source directory"
    )
    parser.add_argument(
        "--dest", "-d", dest="dest_override",
        help="Override destination directory"
    )
    parser.add_argument(
        "--yes", "-y", action="store_true",
        help="Auto-confirm processing for saved source/dest paths"
    )
    parser.add_argument(
        "--timezone", "--tz", type=str, metavar="TIMEZONE",
        help=timezone_help
    )
    parser.add_argument(
        "--max-log-entries", type=int, metavar="N",
        help=log_help
    )
    shell_group = parser.add_mutually_exclusive_group()
    shell_group.add_argument(
        "--shell-metadata", dest="shell_metadata", action="store_const", const=True,
        help="Consult the platform shell metadata service for videos (saved)"
    )
    shell_group.add_argument(
        "--no-shell-metadata", dest="shell_metadata", action="store_const", const=False,
        help=shell_help
    )
    parser.add_argument(
        "--verbose", "-v", action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--version", "-V", action="store_true",
        help=f"Display the version number of {PROGRAM} and exit"
    )

    return parser


def setup_logging(console: Console, verbose: bool) -> logging.Logger:
    """Route program logging to the console through rich."""
    logger = get_logger()
    if not any(isinstance(h, RichHandler) for h in logger.handlers):
        console_handler = RichHandler(console=console, rich_tracebacks=True)
        console_handler.setFormatter(logging.Formatter("%(message)s", datefmt="[%X]"))
        logger.addHandler(console_handler)
        logger.propagate = False

    for handler in logger.handlers:
        if isinstance(handler, RichHandler):
            handler.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.setLevel(logging.DEBUG)
    return logger


def setup_locale() -> None:
    """Adopt the user's LC_TIME so localised shell dates parse as displayed."""
    try:
        locale.setlocale(locale.LC_TIME, "")
    except locale.Error as e:
        get_logger().warning(f"Could not use the system locale for dates: {e}")


def build_engine(shell_metadata: bool) -> OrganizerEngine:
    """Wire the engine with the platform's metadata collaborators."""
    file_ops = FileOperations()
    classifier = ItemClassifier({
        MediaKind.PHOTO: PhotoDateResolver(file_ops=file_ops),
        MediaKind.VIDEO: VideoDateResolver(shell=default_shell_provider(shell_metadata),
                                           file_ops=file_ops),
    })
    return OrganizerEngine(classifier=classifier, file_ops=file_ops)


def show_processing_plan(source: Path, dest: Path, timezone: Optional[str],
                         shell_metadata: bool, console: Console) -> None:
    """Display the processing plan before execution."""
    console.print("\n[bold]Processing Plan:[/bold]")
    console.print(f"  Source:          [blue]{source}[/blue]")
    console.print(f"  Destination:     [blue]{dest}[/blue]")
    console.print(f"  Timezone:        [cyan]{timezone or 'system local'}[/cyan]")
    console.print(f"  Shell Metadata:  [cyan]{'Yes' if shell_metadata else 'No'}[/cyan]")
    console.print()


def confirm_processing(console: Console) -> bool:
    """Ask for confirmation when using saved configuration."""
    console.print("[yellow]Confirm processing plan with saved configuration.[/yellow]")

    try:
        response = console.input("Continue? [y/N]: ").strip().lower()
        return response in ['y', 'yes']
    except (EOFError, KeyboardInterrupt):
        console.print("\n[red]Operation cancelled[/red]")
        return False


def print_summary(summary: RunSummary, console: Console) -> None:
    """Print processing summary."""
    table = Table(title="Processing Summary")
    table.add_column("Category", style="cyan")
    table.add_column("Count", style="green")

    table.add_row("Photos", str(summary.photos))
    table.add_row("Videos", str(summary.videos))
    table.add_row("Errors", str(summary.error_count))
    table.add_row("Skipped Directories", str(summary.skipped_dirs))

    size_mb = summary.total_size_mb
    if size_mb > 1024:
        size_str = f"{size_mb/1024:.1f} GB"
    else:
        size_str = f"{size_mb:.1f} MB"
    table.add_row("Total Size", size_str)

    console.print(table)


def run_worker(worker: OrganizerWorker, source: Path, dest: Path,
               reporter: ConsoleReporter, console: Console) -> RunSummary:
    """Run the worker to completion, turning Ctrl-C into cooperative cancellation."""
    worker.start(source, dest, reporter)
    while True:
        try:
            summary = worker.wait(WAIT_INTERVAL)
        except KeyboardInterrupt:
            if worker.token is not None and not worker.token.is_cancelled():
                console.print("[yellow]Cancelling...[/yellow]")
                worker.cancel()
            continue
        if summary is not None:
            return summary


def main(argv: Optional[List[str]] = None, config_path: Optional[Path] = None) -> int:
    """Main entry point.

    Args:
        argv: Optional argument list (defaults to sys.argv[1:])
        config_path: Optional path to config file (for testing)
    """
    config = Config(config_path=config_path)
    parser = create_parser(config)
    args = parser.parse_args(argv)

    # Detect if running with no positional arguments (using saved config)
    using_saved_config = args.source is None and args.dest is None and \
                         args.source_override is None and args.dest_override is None

    if args.version:
        from . import __version__, __copyright__
        if args.verbose:
            print(f"{PROGRAM} version {__version__} {__copyright__}")
            print(f"Config:  {config.config_path}")
            return 0
        print(__version__)
        return 0

    # Determine source and destination
    source_path = (args.source_override or args.source or
                   config.get_last_source())
    dest_path = (args.dest_override or args.dest or
                 config.get_last_dest())

    if not source_path or not dest_path:
        parser.error("Source and destination directories are required")

    source = Path(source_path).expanduser().resolve()
    dest = Path(dest_path).expanduser().resolve()

    # Validate paths
    if not source.exists():
        print(f"Error: Source directory does not exist: {source}")
        return 1

    if not source.is_dir():
        print(f"Error: Source is not a directory: {source}")
        return 1

    if FileOperations.paths_overlap(source, dest):
        print("Error: Identical or overlapping source/dest folders:")
        print(f" - Source:      {source}")
        print(f" - Destination: {dest}")
        return 1

    # Handle timezone setting
    timezone = args.timezone or config.get_timezone()
    try:
        set_default_timezone(timezone)
    except (zoneinfo.ZoneInfoNotFoundError, ValueError):
        print(f"Error: Unknown timezone: {timezone}")
        return 1

    max_log_entries = config.get_max_log_entries()
    if args.max_log_entries is not None:
        if args.max_log_entries < 1:
            print(f"Error: --max-log-entries must be positive, got {args.max_log_entries}")
            return 1
        max_log_entries = args.max_log_entries
        config.update_max_log_entries(max_log_entries)

    shell_metadata = config.get_shell_metadata()
    if args.shell_metadata is not None:
        shell_metadata = args.shell_metadata

    # Update config with current paths and settings
    config.update_paths(str(source), str(dest))
    if args.timezone:
        config.update_timezone(args.timezone)
    if args.shell_metadata is not None:
        config.update_shell_metadata(args.shell_metadata)

    console = get_console()
    logger = setup_logging(console, args.verbose)
    setup_locale()

    show_processing_plan(source, dest, timezone, shell_metadata, console)

    # Show confirmation when using saved config without --yes flag
    if using_saved_config and not args.yes:
        if not confirm_processing(console):
            return 0

    history_manager = HistoryManager(dest_path=dest, root_dir=config.program_root)
    history_manager.setup_run_logger(logger)

    worker = OrganizerWorker(build_engine(shell_metadata))

    try:
        with Progress(SpinnerColumn(), TextColumn("{task.description}"),
                      console=console, transient=True) as progress:
            task = progress.add_task("Processing...", total=None)
            reporter = ConsoleReporter(console, progress, task, capacity=max_log_entries)
            summary = run_worker(worker, source, dest, reporter, console)

        print_summary(summary, console)
        history_manager.log_run_summary(source, dest, summary)

    except Exception as e:
        console.print(f"\n[red]Fatal error: {e}[/red]")
        return 1
    finally:
        history_manager.close_run_logger(logger)

    if summary.aborted:
        console.print("\n[red]Run aborted: destination is not accessible[/red]")
        return 1
    if summary.cancelled:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 0

    if summary.error_count > 0:
        console.print(f"\n[green]✓ Processing completed![/green] [yellow]({summary.error_count} files could not be moved)[/yellow]")
    else:
        console.print("\n[green]✓ Processing completed successfully![/green]")
    return 0


if __name__ == "__main__":
    sys.exit(main())
