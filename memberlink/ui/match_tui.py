"""Terminal User Interface for memberlink.

This module provides the MatchTUI class, a Rich-based TUI for showing
scanned folders and match results and for reviewing flagged suggestions
before they are committed.

Example:
    from memberlink.ui import MatchTUI

    tui = MatchTUI()
    tui.display_scan_summary(folders, stats)
    tui.display_match_result(result, threshold=30)
    confirmed = tui.review_suggestions(flagged)
    tui.display_apply_summary(summary)
"""

from typing import Callable, List, Optional, Tuple

from rich.console import Console
from rich.markup import escape
from rich.panel import Panel
from rich.progress import (
    BarColumn,
    Progress,
    TaskProgressColumn,
    TextColumn,
    TimeRemainingColumn,
)
from rich.prompt import Prompt
from rich.table import Table

from memberlink.models import (
    ApplyOutcome,
    ApplySummary,
    FolderRecord,
    MatchResult,
    MatchSuggestion,
    MemberRecord,
    ScanStats,
)


class MatchTUI:
    """Rich-based Terminal User Interface for folder/member linkage.

    Provides display and review methods for the linkage workflow:
    - Scanned folders with their parsed names
    - Suggestions, unmatched items and statistics
    - Interactive review of flagged suggestions with accept/skip/quit
    - Progress tracking and a summary for the apply step

    Args:
        console: Optional Rich Console instance for output. Pass a Console
            writing to a StringIO to capture output in tests.

    Attributes:
        console: The Rich Console instance used for all output.
    """

    def __init__(self, console: Optional[Console] = None) -> None:
        self.console = console or Console()

    def display_scan_summary(self, folders: List[FolderRecord], stats: ScanStats) -> None:
        """Display scanned folders and what was parsed out of each label.

        Args:
            folders: Folder records in scan order.
            stats: Aggregate counts for the scan.
        """
        header_text = (
            f"Folders scanned: {stats.total_folders:,}\n"
            f"With client ID: {stats.folders_with_id:,}\n"
            f"Without client ID: {stats.folders_without_id:,}\n"
            f"Total files: {stats.total_files:,}"
        )
        self.console.print(Panel(header_text, title="Scan Results", border_style="blue"))

        if not folders:
            self.console.print("[yellow]No member folders found.[/yellow]")
            return

        table = Table(title="Member Folders")
        table.add_column("#", justify="right", style="cyan", no_wrap=True)
        table.add_column("Folder Name", style="white")
        table.add_column("First Name")
        table.add_column("Last Name")
        table.add_column("Client ID", style="magenta")
        table.add_column("Files", justify="right")

        for idx, folder in enumerate(folders, start=1):
            table.add_row(
                str(idx),
                self._truncate_name(folder.raw_name),
                escape(folder.extracted_first_name),
                escape(folder.extracted_last_name),
                folder.embedded_id or "",
                f"{folder.file_count:,}",
            )

        self.console.print(table)

    def display_match_result(self, result: MatchResult, threshold: int) -> None:
        """Display suggestions, unmatched folders and members, and statistics.

        Args:
            result: Output of the assignment engine.
            threshold: Minimum confidence used for the run (0-100).
        """
        stats = result.stats
        header_text = (
            f"Folders: {stats.total_folders:,}    Members: {stats.total_members:,}\n"
            f"Suggestions: {len(result.suggestions)}    "
            f"Requires review: {stats.requires_review}\n"
            f"Exact: {stats.exact_matches}    Fuzzy: {stats.fuzzy_matches}    "
            f"Partial: {stats.partial_matches}\n"
            f"Confidence threshold: {threshold}%"
        )
        self.console.print(Panel(header_text, title="Match Results", border_style="blue"))

        if result.suggestions:
            table = Table(title="Suggestions")
            table.add_column("#", justify="right", style="cyan", no_wrap=True)
            table.add_column("Folder", style="white")
            table.add_column("Member")
            table.add_column("Confidence", justify="center")
            table.add_column("Type", style="magenta")
            table.add_column("Review", justify="center")

            for idx, suggestion in enumerate(result.suggestions, start=1):
                table.add_row(
                    str(idx),
                    self._truncate_name(suggestion.folder.raw_name, max_length=40),
                    self._member_label(suggestion.member),
                    self._format_confidence(suggestion.confidence),
                    suggestion.match_type.value,
                    "[yellow]yes[/yellow]" if suggestion.requires_manual_review else "",
                )
            self.console.print(table)
        else:
            self.console.print("[yellow]No suggestions above the threshold.[/yellow]")

        if result.unmatched_folders:
            names = "\n".join(f"- {escape(f.raw_name)}" for f in result.unmatched_folders)
            self.console.print(
                Panel(names, title=f"Unmatched Folders ({stats.unmatched_folders})", border_style="dim")
            )
        if result.unmatched_members:
            names = "\n".join(
                f"- {self._member_label(m)}" for m in result.unmatched_members
            )
            self.console.print(
                Panel(names, title=f"Unmatched Members ({stats.unmatched_members})", border_style="dim")
            )

    def review_suggestions(self, suggestions: List[MatchSuggestion]) -> List[MatchSuggestion]:
        """Walk flagged suggestions one by one and collect the accepted ones.

        Each suggestion is shown with its reasons and runner-up candidates,
        then the user picks (a)ccept, (s)kip or (q)uit. Quitting or pressing
        Ctrl+C ends the review; suggestions accepted so far are kept.

        Args:
            suggestions: Suggestions awaiting a decision.

        Returns:
            Accepted suggestions, in review order.
        """
        if not suggestions:
            return []

        accepted: List[MatchSuggestion] = []
        total = len(suggestions)
        review_cancelled = False

        with Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            console=self.console,
        ) as progress:
            task = progress.add_task(f"Reviewing suggestions: 0/{total}", total=total)

            for idx, suggestion in enumerate(suggestions, start=1):
                progress.update(
                    task,
                    completed=idx - 1,
                    description=f"Reviewing suggestions: {idx}/{total}",
                )

                try:
                    self._display_suggestion(suggestion, idx)
                    action = self._prompt_action()
                except KeyboardInterrupt:
                    self.console.print("\n[yellow]Review cancelled by user.[/yellow]")
                    action = "q"

                if action == "q":
                    progress.update(
                        task,
                        completed=idx - 1,
                        description=f"Review stopped: {idx - 1}/{total}",
                    )
                    review_cancelled = True
                    break

                if action == "a":
                    accepted.append(suggestion)

            if not review_cancelled:
                progress.update(task, completed=total)

        return accepted

    def display_apply_summary(self, summary: ApplySummary) -> None:
        """Display the outcome of the apply step.

        Args:
            summary: Batch summary with per-item outcomes.
        """
        title = "Apply Summary"
        if summary.dry_run:
            title += " [yellow][DRY RUN][/yellow]"
        self.console.print(Panel(title, border_style="yellow" if summary.dry_run else "green"))

        table = Table(show_header=True, header_style="bold")
        table.add_column("Metric", style="cyan")
        table.add_column("Value", justify="right")
        table.add_row("Attempted", f"{summary.attempted:,}")
        table.add_row("Applied", f"{summary.applied:,}")
        table.add_row("Errors", f"{summary.errors:,}")
        table.add_row("Duration", self._format_duration(summary.duration_seconds))
        self.console.print(table)

        failures = [o for o in summary.outcomes if not o.applied]
        if failures:
            self._display_errors(
                [escape(f"{o.folder_name} -> {o.member_id}: {o.reason}") for o in failures]
            )

    def create_progress_callback(
        self, total: int
    ) -> Tuple[Progress, Callable[[int, int, ApplyOutcome], None]]:
        """Create a progress bar and a callback for the apply step.

        The caller owns the Progress lifecycle and must use it as a context
        manager around the batch.

        Example:
            progress, callback = tui.create_progress_callback(len(confirmed))
            with progress:
                ApplyService(store, progress_callback=callback).apply(confirmed)
        """
        progress = Progress(
            TextColumn("[progress.description]{task.description}"),
            BarColumn(),
            TaskProgressColumn(),
            TimeRemainingColumn(),
            console=self.console,
        )
        task_id = progress.add_task("Applying matches...", total=total)

        def callback(completed: int, total: int, outcome: ApplyOutcome) -> None:
            progress.update(task_id, completed=completed)

        return progress, callback

    def _display_suggestion(self, suggestion: MatchSuggestion, number: int) -> None:
        title = (
            f"Suggestion {number} - "
            f"{suggestion.confidence}% confidence ({suggestion.match_type.value})"
        )

        folder = suggestion.folder
        member = suggestion.member
        lines = [
            f"[bold]Folder:[/bold] {escape(folder.raw_name)}",
            f"  parsed as: {escape(folder.extracted_full_name) or '-'}"
            + (f" (client ID {folder.embedded_id})" if folder.has_embedded_id else ""),
            f"  files: {folder.file_count:,}  subfolders: {folder.subfolder_count:,}",
            f"[bold]Member:[/bold] {self._member_label(member)}",
            "",
            "[bold]Reasons:[/bold]",
        ]
        lines.extend(f"  - {escape(reason)}" for reason in suggestion.reasons)

        if suggestion.alternatives:
            lines.append("")
            lines.append("[bold]Other candidates:[/bold]")
            for alt_member, alt_confidence in suggestion.alternatives:
                lines.append(
                    f"  - {self._member_label(alt_member)} ({alt_confidence}%)"
                )

        self.console.print(Panel("\n".join(lines), title=title, border_style="blue"))

    def _prompt_action(self) -> str:
        """Prompt for an action on the current suggestion.

        Returns:
            One of 'a' (accept), 's' (skip), or 'q' (quit).
        """
        return Prompt.ask(
            "(a)ccept, (s)kip, (q)uit",
            choices=["a", "s", "q"],
            default="s",
            console=self.console,
        )

    def _display_errors(self, errors: List[str]) -> None:
        max_display = 10
        error_text = "\n".join(f"- {e}" for e in errors[:max_display])
        remaining = len(errors) - max_display
        if remaining > 0:
            error_text += f"\n\n... and {remaining} more errors"

        self.console.print(
            Panel(error_text, title=f"Errors ({len(errors)})", border_style="red")
        )

    def _format_confidence(self, confidence: int) -> str:
        """Format confidence with color coding.

        Args:
            confidence: Confidence score (0-100).

        Returns:
            Formatted string with Rich color markup.
        """
        if confidence >= 80:
            return f"[green]{confidence}%[/green]"
        elif confidence >= 60:
            return f"[yellow]{confidence}%[/yellow]"
        else:
            return f"[red]{confidence}%[/red]"

    def _format_duration(self, seconds: float) -> str:
        if seconds < 0:
            seconds = 0
        minutes = int(seconds // 60)
        secs = int(seconds % 60)
        return f"{minutes}m {secs}s"

    def _truncate_name(self, name: str, max_length: int = 60) -> str:
        """Shorten a folder label and escape it for Rich markup."""
        if len(name) > max_length:
            name = name[: max_length - 3] + "..."
        return escape(name)

    def _member_label(self, member: MemberRecord) -> str:
        return escape(f"{member.full_name} [{member.member_id}]")
