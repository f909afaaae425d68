"""MatchLogger for writing linkage runs to a structured log file.

This module provides the MatchLogger class that writes a sectioned plain
text log: header, scan phase, match phase, apply phase and summary.
"""

import sys
from datetime import datetime
from pathlib import Path
from typing import List, Optional, TextIO

from memberlink.models import (
    ApplySummary,
    MatchResult,
    MemberRecord,
    ScanStats,
)


class MatchLogger:
    """Logger for linkage runs with a structured output format.

    Usage:
        with MatchLogger(mode="MATCH") as logger:
            logger.log_header()
            logger.log_scan_phase(base_path, members_path, min_confidence, scan_stats, total_members)
            logger.log_match_phase(result)
            logger.log_apply_phase(apply_summary)
            logger.log_summary(result, apply_summary, duration)

    Attributes:
        SEPARATOR: The 65-character separator line used between sections.
    """

    SEPARATOR = "=" * 65

    def __init__(
        self,
        log_file_path: Optional[Path] = None,
        mode: str = "MATCH",
    ) -> None:
        """Initialize the MatchLogger.

        Args:
            log_file_path: Optional path for the log file. If not provided,
                generates a timestamped filename in the current directory.
            mode: Run mode shown in the header (SCAN, MATCH, APPLY, DRY RUN).

        Raises:
            OSError: If the log file path is not writable.
        """
        self._mode = mode
        self._start_timestamp = datetime.now()
        self._file_handle: Optional[TextIO] = None

        if log_file_path is None:
            timestamp_str = self._start_timestamp.strftime("%Y-%m-%d_%H-%M-%S")
            self._log_file_path = Path.cwd() / f"match_log_{timestamp_str}.log"
        else:
            self._log_file_path = Path(log_file_path)

        self._validate_path()

    def _validate_path(self) -> None:
        """Validate that the log file path is writable.

        Raises:
            OSError: If the parent directory doesn't exist or is not writable.
        """
        parent = self._log_file_path.parent
        if not parent.exists():
            raise OSError(f"Parent directory does not exist: {parent}")
        if not parent.is_dir():
            raise OSError(f"Parent path is not a directory: {parent}")
        try:
            test_file = parent / f".memberlink_test_{id(self)}"
            test_file.touch()
            test_file.unlink()
        except PermissionError:
            raise OSError(f"Permission denied: cannot write to {parent}")

    def __enter__(self) -> "MatchLogger":
        """Open the log file.

        Raises:
            OSError: If the file cannot be opened for writing.
        """
        try:
            self._file_handle = open(self._log_file_path, "w", encoding="utf-8")
        except OSError as e:
            raise OSError(f"Cannot open log file for writing: {e}")
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def close(self) -> None:
        """Close the log file if open."""
        if self._file_handle is not None:
            try:
                self._file_handle.close()
            except OSError as e:
                print(f"Warning: Error closing log file: {e}", file=sys.stderr)
            finally:
                self._file_handle = None

    def get_log_path(self) -> Path:
        return self._log_file_path

    def log_header(self) -> None:
        """Write the title, timestamp and mode."""
        self._write_separator()
        self._write_line("Member Folder Linkage - Run Log")
        self._write_separator()
        self._write_line(f"Timestamp: {self._format_timestamp(self._start_timestamp)}")
        self._write_line(f"Mode: {self._mode}")
        self._write_line("")

    def log_scan_phase(
        self,
        base_path: Path,
        members_path: Optional[Path],
        min_confidence: int,
        scan_stats: ScanStats,
        total_members: int,
        problems: Optional[List[str]] = None,
    ) -> None:
        """Write the scan phase section.

        Args:
            base_path: Scanned folder source.
            members_path: Member snapshot file, if one was loaded.
            min_confidence: Candidate threshold (0-100).
            scan_stats: Folder scan counts.
            total_members: Number of usable members loaded.
            problems: Scanner and loader warnings.
        """
        self._write_separator()
        self._write_line("SCAN PHASE")
        self._write_separator()
        self._write_line(f"Folder source: {base_path}")
        if members_path is not None:
            self._write_line(f"Member snapshot: {members_path}")
        self._write_line(f"Minimum Confidence Threshold: {min_confidence}")
        self._write_line(f"Folders scanned: {scan_stats.total_folders}")
        self._write_line(f"Folders with client ID: {scan_stats.folders_with_id}")
        self._write_line(f"Folders without client ID: {scan_stats.folders_without_id}")
        self._write_line(f"Total files: {scan_stats.total_files:,}")
        self._write_line(f"Total subfolders: {scan_stats.total_subfolders:,}")
        self._write_line(f"Members loaded: {total_members}")
        if problems:
            self._write_line("Warnings:")
            for problem in problems:
                self._write_line(f"- {problem}", indent=2)
        self._write_line("")

    def log_match_phase(self, result: MatchResult) -> None:
        """Write one entry per suggestion, then unmatched folders and members."""
        self._write_separator()
        self._write_line("MATCH PHASE")
        self._write_separator()

        for i, suggestion in enumerate(result.suggestions, start=1):
            review = " - REVIEW" if suggestion.requires_manual_review else ""
            self._write_line(
                f"Suggestion {i}: ({suggestion.confidence}% - {suggestion.match_type.value}{review})"
            )
            self._write_line(f"Folder: {suggestion.folder.raw_name}", indent=2)
            self._write_line(
                f"Member: {suggestion.member.full_name} [{suggestion.member.member_id}]",
                indent=2,
            )
            for reason in suggestion.reasons:
                self._write_line(f"- {reason}", indent=4)
            self._write_line("")

        self._log_unmatched("Unmatched folders", [f.raw_name for f in result.unmatched_folders])
        self._log_unmatched(
            "Unmatched members",
            [self._member_label(m) for m in result.unmatched_members],
        )

    def log_apply_phase(self, summary: ApplySummary) -> None:
        """Write one line per commit outcome."""
        self._write_separator()
        self._write_line("APPLY PHASE" + (" (DRY RUN)" if summary.dry_run else ""))
        self._write_separator()
        for outcome in summary.outcomes:
            now = self._format_timestamp(datetime.now())
            status = outcome.status.upper()
            line = f"[{now}] {status}: {outcome.folder_name} -> {outcome.member_name} [{outcome.member_id}]"
            self._write_line(line)
            if outcome.reason:
                self._write_line(f"! {outcome.reason} (after {outcome.attempts} attempt(s))", indent=4)
        self._write_line("")

    def log_summary(
        self,
        result: MatchResult,
        apply_summary: Optional[ApplySummary] = None,
        duration_seconds: float = 0.0,
    ) -> None:
        """Write the summary section."""
        stats = result.stats
        self._write_separator()
        self._write_line("SUMMARY")
        self._write_separator()
        self._write_line(f"Total folders: {stats.total_folders}")
        self._write_line(f"Total members: {stats.total_members}")
        self._write_line(f"Exact matches: {stats.exact_matches}")
        self._write_line(f"Fuzzy matches: {stats.fuzzy_matches}")
        self._write_line(f"Partial matches: {stats.partial_matches}")
        self._write_line(f"Requires review: {stats.requires_review}")
        self._write_line(f"Unmatched folders: {stats.unmatched_folders}")
        self._write_line(f"Unmatched members: {stats.unmatched_members}")

        if apply_summary is not None:
            self._write_line(f"Matches applied: {apply_summary.applied}/{apply_summary.attempted}")
            if apply_summary.errors:
                self._write_line(f"Apply errors: {apply_summary.errors}")

        self._write_line(f"Duration: {self._format_duration(duration_seconds)}")
        self._write_line("")
        self._write_line(f"Log file: {self._log_file_path}")
        self._write_separator()

    def _log_unmatched(self, title: str, names: List[str]) -> None:
        self._write_line(f"{title}: {len(names)}")
        for name in names:
            self._write_line(f"- {name}", indent=2)
        self._write_line("")

    @staticmethod
    def _member_label(member: MemberRecord) -> str:
        return f"{member.full_name} [{member.member_id}]"

    def _format_duration(self, seconds: float) -> str:
        """Format duration like "5m 23s", "1h 5m 30s", or "45s"."""
        total_seconds = int(seconds)

        if total_seconds < 60:
            return f"{total_seconds}s"

        hours = total_seconds // 3600
        minutes = (total_seconds % 3600) // 60
        secs = total_seconds % 60

        if hours > 0:
            return f"{hours}h {minutes}m {secs}s"
        return f"{minutes}m {secs}s"

    def _format_timestamp(self, dt: datetime) -> str:
        return dt.strftime("%Y-%m-%d %H:%M:%S")

    def _write_separator(self) -> None:
        self._write_line(self.SEPARATOR)

    def _write_line(self, text: str, indent: int = 0) -> None:
        """Write a line to the log file with optional indentation."""
        if self._file_handle is None:
            print(
                f"Warning: Attempted to write to closed log file: {text}",
                file=sys.stderr,
            )
            return

        try:
            self._file_handle.write(" " * indent + text + "\n")
        except OSError as e:
            print(f"Warning: Error writing to log file: {e}", file=sys.stderr)
