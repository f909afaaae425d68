"""MatchOrchestrator for coordinating the linkage workflows.

This module provides the MatchOrchestrator class that wires the folder
scanner, member loader, assignment engine, TUI, apply step and run logger
into three workflows:

- scan(): list member folders and what was parsed out of their labels
- match(): score and assign folders to members, read-only
- apply(): match, optionally review flagged suggestions, then commit

Example:
    from memberlink.orchestration import MatchOrchestrator
    from pathlib import Path

    orchestrator = MatchOrchestrator(
        folder_source=Path("/data/Members"),
        members_path=Path("members.json"),
        min_confidence=30,
    )

    result = orchestrator.match()
    summary = orchestrator.apply(auto_only=True)
"""

import json
import sys
import time
from pathlib import Path
from typing import List, Optional, Tuple

from rich.markup import escape

from memberlink.matching import NICKNAME_SCORING, AssignmentStrategy, MatchAssigner
from memberlink.models import (
    ApplySummary,
    FolderRecord,
    MatchResult,
    MatchSuggestion,
    MemberRecord,
    ScanStats,
)
from memberlink.operations import (
    ApplyService,
    JsonMemberStore,
    select_auto_apply,
    select_for_review,
)
from memberlink.orchestration.match_logger import MatchLogger
from memberlink.scanning import FolderScanner, load_folders, load_members
from memberlink.ui import MatchTUI

LISTING_SUFFIXES = (".json", ".csv")


class MatchOrchestrator:
    """Orchestrates scanning, matching and applying.

    The folder source is either a directory whose immediate subfolders are
    member folders, or a JSON/CSV folder listing exported from the storage
    system. Members come from a JSON or CSV snapshot; apply needs a JSON
    snapshot because linkage fields are written back into it.

    Non-fatal problems (unreadable folders, unusable member entries) are
    collected and exposed through get_errors().

    Attributes:
        folder_source: Directory or folder listing file.
        members_path: Member snapshot, or None for scan-only use.
        min_confidence: Minimum confidence (0-100) for a candidate.
        strategy: Assignment strategy.
        nicknames: Whether first-name nicknames (Bill for William) earn credit.
        log_file_path: Optional path for the run log.
        dry_run: Whether apply reports without writing.
        verbose: Whether to print extra details.
    """

    def __init__(
        self,
        folder_source: Path,
        members_path: Optional[Path] = None,
        min_confidence: int = 30,
        strategy: AssignmentStrategy = AssignmentStrategy.GREEDY,
        nicknames: bool = False,
        log_file_path: Optional[Path] = None,
        dry_run: bool = False,
        verbose: bool = False,
        tui: Optional[MatchTUI] = None,
    ) -> None:
        """Initialize the MatchOrchestrator.

        Raises:
            ValueError: If folder_source is missing or is a file that is not
                a JSON/CSV listing, if members_path is given but is not a
                file, or if min_confidence is not between 0 and 100.
        """
        resolved_source = Path(folder_source).resolve()
        if not resolved_source.exists():
            raise ValueError(f"Folder source does not exist: {folder_source}")
        if resolved_source.is_file() and resolved_source.suffix.lower() not in LISTING_SUFFIXES:
            raise ValueError(f"Folder listing must be a .json or .csv file: {folder_source}")

        if members_path is not None:
            members_path = Path(members_path)
            if not members_path.is_file():
                raise ValueError(f"Members file does not exist: {members_path}")

        if not 0 <= min_confidence <= 100:
            raise ValueError(
                f"min_confidence must be between 0 and 100, got {min_confidence}"
            )

        self.folder_source = resolved_source
        self.members_path = members_path
        self.min_confidence = min_confidence
        self.strategy = strategy
        self.nicknames = nicknames
        self.log_file_path = log_file_path
        self.dry_run = dry_run
        self.verbose = verbose

        self._scanner = FolderScanner()
        self._assigner = MatchAssigner(
            min_confidence=min_confidence,
            strategy=strategy,
            config=NICKNAME_SCORING if nicknames else None,
        )
        self._tui = tui or MatchTUI()

        self._errors: List[str] = []

    def get_errors(self) -> List[str]:
        return self._errors.copy()

    def scan(self) -> List[FolderRecord]:
        """List member folders and show what each label parsed to.

        Returns:
            Folder records in scan order.
        """
        start_time = time.time()
        self._errors.clear()

        folders = self._collect_folders()
        stats = ScanStats.from_folders(folders)
        self._tui.display_scan_summary(folders, stats)

        self._write_run_log(
            "SCAN",
            stats,
            members=None,
            duration=time.time() - start_time,
        )
        self._show_errors()
        return folders

    def match(self, output_path: Optional[Path] = None) -> MatchResult:
        """Score and assign folders to members without writing anything.

        Args:
            output_path: Optional path to write the result as JSON.

        Returns:
            The MatchResult of the run.

        Raises:
            ValueError: If no members file was given.
        """
        start_time = time.time()
        self._errors.clear()

        folders, members, result = self._execute_match_phase()
        self._tui.display_match_result(result, self.min_confidence)

        if output_path is not None:
            self.export_result(result, output_path)

        self._write_run_log(
            "MATCH",
            ScanStats.from_folders(folders),
            members=members,
            result=result,
            duration=time.time() - start_time,
        )
        self._show_errors()
        return result

    def apply(
        self,
        auto_only: bool = True,
        max_attempts: int = 1,
        retry_delay: float = 0.0,
        output_path: Optional[Path] = None,
    ) -> ApplySummary:
        """Match, pick the suggestions to commit, and commit them.

        With auto_only, exact and fuzzy suggestions that need no review are
        committed. Otherwise flagged suggestions are walked through the
        interactive review first and the accepted ones are committed too.

        Args:
            auto_only: Commit only suggestions that need no review.
            max_attempts: Attempts per member update.
            retry_delay: Seconds between attempts.
            output_path: Optional path to write the match result as JSON.

        Returns:
            ApplySummary for the batch. Empty if nothing was selected or the
            review was cancelled.

        Raises:
            ValueError: If no JSON members file was given.
        """
        start_time = time.time()
        self._errors.clear()

        store = self._open_store()
        folders, members, result = self._execute_match_phase()
        self._tui.display_match_result(result, self.min_confidence)

        if output_path is not None:
            self.export_result(result, output_path)

        confirmed = select_auto_apply(result)
        if not auto_only:
            flagged = select_for_review(result)
            try:
                confirmed.extend(self._tui.review_suggestions(flagged))
            except KeyboardInterrupt:
                self._tui.console.print("\n[yellow]Apply cancelled by user.[/yellow]")
                return ApplySummary(dry_run=self.dry_run, duration_seconds=time.time() - start_time)

        if not confirmed:
            self._tui.console.print("[yellow]No suggestions selected for apply.[/yellow]")
            summary = ApplySummary(dry_run=self.dry_run)
        else:
            summary = self._execute_apply_phase(store, confirmed, max_attempts, retry_delay)

        summary.duration_seconds = time.time() - start_time
        self._tui.display_apply_summary(summary)

        self._write_run_log(
            "DRY RUN" if self.dry_run else "APPLY",
            ScanStats.from_folders(folders),
            members=members,
            result=result,
            apply_summary=summary,
            duration=summary.duration_seconds,
        )
        self._show_errors()
        return summary

    def export_result(self, result: MatchResult, output_path: Path) -> None:
        """Write a MatchResult as JSON.

        Raises:
            OSError: If the file cannot be written.
        """
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(result.to_dict(), f, indent=2)
            f.write("\n")
        if self.verbose:
            self._tui.console.print(f"[dim]Result written to: {escape(str(output_path))}[/dim]")

    def _collect_folders(self) -> List[FolderRecord]:
        """Scan the directory or read the listing, recording problems."""
        if self.folder_source.is_dir():
            self._scanner.clear_errors()
            folders = self._scanner.scan_member_folders(self.folder_source)
            self._errors.extend(self._scanner.get_errors())
        else:
            folders, problems = load_folders(self.folder_source)
            self._errors.extend(problems)
        return folders

    def _execute_match_phase(
        self,
    ) -> Tuple[List[FolderRecord], List[MemberRecord], MatchResult]:
        if self.members_path is None:
            raise ValueError("A members file is required for matching")

        folders = self._collect_folders()
        members, problems = load_members(self.members_path)
        self._errors.extend(problems)

        if self.verbose:
            self._tui.console.print(
                f"[dim]Matching {len(folders)} folders against {len(members)} members[/dim]"
            )

        result = self._assigner.assign(folders, members)
        return folders, members, result

    def _open_store(self) -> JsonMemberStore:
        if self.members_path is None:
            raise ValueError("A members file is required for apply")
        return JsonMemberStore(self.members_path)

    def _execute_apply_phase(
        self,
        store: JsonMemberStore,
        confirmed: List[MatchSuggestion],
        max_attempts: int,
        retry_delay: float,
    ) -> ApplySummary:
        if self.dry_run:
            self._tui.console.print("[yellow][DRY RUN][/yellow] No member records will be modified.")

        progress, callback = self._tui.create_progress_callback(len(confirmed))
        service = ApplyService(
            store,
            dry_run=self.dry_run,
            max_attempts=max_attempts,
            retry_delay=retry_delay,
            progress_callback=callback,
        )
        with progress:
            summary = service.apply(confirmed)

        for outcome in summary.outcomes:
            if not outcome.applied:
                self._errors.append(
                    f"Failed to link {outcome.folder_name} -> {outcome.member_id}: {outcome.reason}"
                )
        return summary

    def _write_run_log(
        self,
        mode: str,
        scan_stats: ScanStats,
        members: Optional[List[MemberRecord]],
        result: Optional[MatchResult] = None,
        apply_summary: Optional[ApplySummary] = None,
        duration: float = 0.0,
    ) -> None:
        """Write the structured run log; failures only produce a warning."""
        try:
            run_log = MatchLogger(log_file_path=self.log_file_path, mode=mode)
        except OSError as e:
            print(f"Warning: Could not create log file: {e}", file=sys.stderr)
            return

        with run_log:
            run_log.log_header()
            run_log.log_scan_phase(
                base_path=self.folder_source,
                members_path=self.members_path if members is not None else None,
                min_confidence=self.min_confidence,
                scan_stats=scan_stats,
                total_members=len(members) if members is not None else 0,
                problems=self._errors,
            )
            if result is not None:
                run_log.log_match_phase(result)
                if apply_summary is not None:
                    run_log.log_apply_phase(apply_summary)
                run_log.log_summary(result, apply_summary, duration)

            if self.verbose:
                self._tui.console.print(f"[dim]Log file: {escape(str(run_log.get_log_path()))}[/dim]")

    def _show_errors(self) -> None:
        if self.verbose and self._errors:
            self._tui.console.print("[yellow]Warnings:[/yellow]")
            for error in self._errors:
                self._tui.console.print(f"  [dim]- {escape(error)}[/dim]")
