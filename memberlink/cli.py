"""
Member Folder Linkage Tool - CLI Interface.

A command-line interface for linking member folders in a storage system to
CRM member records. Folder labels are parsed, scored against every member
and assigned one-to-one; uncertain links are flagged for review.

Usage Examples:
    # List member folders and their parsed names
    python -m memberlink scan /path/to/Members

    # Suggest links against a member snapshot
    python -m memberlink match /path/to/Members members.json

    # Raise the threshold and export the result
    python -m memberlink match /path/to/Members members.json -c 60 -o result.json

    # Commit confident links (preview first)
    python -m memberlink apply /path/to/Members members.json --dry-run

    # Review flagged links interactively before committing
    python -m memberlink apply /path/to/Members members.json --include-review
"""

import logging
import os
from pathlib import Path
from typing import Optional

import typer
from rich.console import Console
from rich.markup import escape

from memberlink.matching import AssignmentStrategy
from memberlink.orchestration import MatchOrchestrator
from memberlink.ui import MatchTUI

__version__ = "0.1.0"

app = typer.Typer(
    name="memberlink",
    help="Member Folder Linkage Tool - Link storage folders to CRM member records.",
    add_completion=False,
    no_args_is_help=True,
)

console = Console()


def version_callback(value: bool) -> None:
    """Display version information and exit."""
    if value:
        console.print(f"Member Folder Linkage Tool v{__version__}")
        raise typer.Exit()


def validate_folder_source(folder_source: Path) -> None:
    """
    Validate that the folder source exists and is readable.

    Args:
        folder_source: Directory of member folders or a JSON/CSV listing.

    Raises:
        typer.Exit: If validation fails with descriptive error message.
    """
    if not folder_source.exists():
        console.print(
            f"[red]Error:[/red] Folder source does not exist: {escape(str(folder_source))}"
        )
        raise typer.Exit(1)

    if not os.access(folder_source, os.R_OK):
        console.print(
            f"[red]Error:[/red] Permission denied - cannot read: {escape(str(folder_source))}"
        )
        raise typer.Exit(1)


def validate_members_file(members_file: Path) -> None:
    """Validate that the member snapshot is a readable file."""
    if not members_file.is_file():
        console.print(
            f"[red]Error:[/red] Members file does not exist: {escape(str(members_file))}"
        )
        raise typer.Exit(1)


def validate_confidence(value: int) -> int:
    """
    Validate confidence threshold is within valid range.

    Raises:
        typer.BadParameter: If value is out of range.
    """
    if not 0 <= value <= 100:
        raise typer.BadParameter("Confidence must be between 0 and 100")
    return value


def configure_logging(verbose: bool) -> None:
    """Route module loggers to stderr; DEBUG when verbose."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        "-v",
        callback=version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
) -> None:
    """Member Folder Linkage Tool - Link storage folders to CRM member records."""
    pass


@app.command()
def scan(
    folder_source: Path = typer.Argument(
        ...,
        help="Directory of member folders, or a JSON/CSV folder listing.",
        exists=False,  # We do our own validation
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        "-l",
        help="Path for log file output.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output.",
    ),
) -> None:
    """
    List member folders and the names parsed from their labels.

    Read-only: shows each folder's first name, last name and embedded
    client ID along with scan statistics.
    """
    configure_logging(verbose)
    validate_folder_source(folder_source)

    try:
        orchestrator = MatchOrchestrator(
            folder_source=folder_source,
            log_file_path=log_file,
            verbose=verbose,
            tui=MatchTUI(console),
        )
        folders = orchestrator.scan()

        if folders:
            console.print(f"\n[green]Found {len(folders)} member folder(s).[/green]")
        else:
            console.print("\n[yellow]No member folders found.[/yellow]")

    except KeyboardInterrupt:
        console.print("\n[yellow]Scan interrupted by user.[/yellow]")
        raise typer.Exit(130)

    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    except OSError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def match(
    folder_source: Path = typer.Argument(
        ...,
        help="Directory of member folders, or a JSON/CSV folder listing.",
        exists=False,
    ),
    members_file: Path = typer.Argument(
        ...,
        help="CRM member snapshot (JSON or CSV).",
        exists=False,
    ),
    min_confidence: int = typer.Option(
        30,
        "--min-confidence",
        "-c",
        help="Minimum confidence for a suggestion (0-100).",
        callback=validate_confidence,
    ),
    strategy: AssignmentStrategy = typer.Option(
        AssignmentStrategy.GREEDY,
        "--strategy",
        help="Assignment strategy.",
        case_sensitive=False,
    ),
    nicknames: bool = typer.Option(
        False,
        "--nicknames",
        help="Credit common first-name nicknames (Bill for William).",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the match result as JSON.",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        "-l",
        help="Path for log file output.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output.",
    ),
) -> None:
    """
    Suggest folder/member links without changing anything.

    Every folder is scored against every member; each member is suggested
    for at most one folder. Suggestions below the threshold are dropped and
    uncertain ones are flagged for review.
    """
    configure_logging(verbose)
    validate_folder_source(folder_source)
    validate_members_file(members_file)

    try:
        orchestrator = MatchOrchestrator(
            folder_source=folder_source,
            members_path=members_file,
            min_confidence=min_confidence,
            strategy=strategy,
            nicknames=nicknames,
            log_file_path=log_file,
            verbose=verbose,
            tui=MatchTUI(console),
        )
        result = orchestrator.match(output_path=output)

        console.print(
            f"\n[green]{len(result.suggestions)} suggestion(s), "
            f"{result.stats.requires_review} requiring review.[/green]"
        )
        if output:
            console.print(f"[dim]Result written to: {escape(str(output))}[/dim]")

    except KeyboardInterrupt:
        console.print("\n[yellow]Match interrupted by user.[/yellow]")
        raise typer.Exit(130)

    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    except OSError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


@app.command()
def apply(
    folder_source: Path = typer.Argument(
        ...,
        help="Directory of member folders, or a JSON/CSV folder listing.",
        exists=False,
    ),
    members_file: Path = typer.Argument(
        ...,
        help="CRM member snapshot (JSON); linkage fields are written back into it.",
        exists=False,
    ),
    min_confidence: int = typer.Option(
        30,
        "--min-confidence",
        "-c",
        help="Minimum confidence for a suggestion (0-100).",
        callback=validate_confidence,
    ),
    strategy: AssignmentStrategy = typer.Option(
        AssignmentStrategy.GREEDY,
        "--strategy",
        help="Assignment strategy.",
        case_sensitive=False,
    ),
    nicknames: bool = typer.Option(
        False,
        "--nicknames",
        help="Credit common first-name nicknames (Bill for William).",
    ),
    auto_only: bool = typer.Option(
        True,
        "--auto-only/--include-review",
        help="Commit only links that need no review, or review flagged links first.",
    ),
    max_attempts: int = typer.Option(
        1,
        "--max-attempts",
        min=1,
        help="Attempts per member update before it is reported as failed.",
    ),
    retry_delay: float = typer.Option(
        0.0,
        "--retry-delay",
        min=0.0,
        help="Seconds to wait between attempts of a failed member update.",
    ),
    dry_run: bool = typer.Option(
        False,
        "--dry-run",
        "-n",
        help="Report what would be written without changing member records.",
    ),
    output: Optional[Path] = typer.Option(
        None,
        "--output",
        "-o",
        help="Write the match result as JSON.",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        "-l",
        help="Path for log file output.",
    ),
    verbose: bool = typer.Option(
        False,
        "--verbose",
        "-V",
        help="Enable verbose output.",
    ),
) -> None:
    """
    Commit folder/member links to the member snapshot.

    Runs the match, then commits exact and fuzzy links that need no review.
    With --include-review, flagged links are shown one at a time to accept
    or skip before committing.
    """
    configure_logging(verbose)
    validate_folder_source(folder_source)
    validate_members_file(members_file)

    if not dry_run and not os.access(members_file, os.W_OK):
        console.print(
            f"[red]Error:[/red] Permission denied - cannot write to: {escape(str(members_file))}"
        )
        console.print(
            "[dim]Tip: Use --dry-run to preview changes without write access.[/dim]"
        )
        raise typer.Exit(1)

    try:
        if dry_run:
            console.print("[yellow][DRY RUN MODE][/yellow] No member records will be modified.\n")

        orchestrator = MatchOrchestrator(
            folder_source=folder_source,
            members_path=members_file,
            min_confidence=min_confidence,
            strategy=strategy,
            nicknames=nicknames,
            log_file_path=log_file,
            dry_run=dry_run,
            verbose=verbose,
            tui=MatchTUI(console),
        )
        summary = orchestrator.apply(
            auto_only=auto_only,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            output_path=output,
        )

        if summary.errors:
            console.print(
                f"\n[yellow]Completed with {summary.errors} error(s).[/yellow]"
            )
            raise typer.Exit(1)

    except KeyboardInterrupt:
        console.print("\n[yellow]Apply interrupted by user.[/yellow]")
        raise typer.Exit(130)

    except ValueError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)

    except OSError as e:
        console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)


if __name__ == "__main__":
    app()
