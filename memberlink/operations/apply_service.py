"""
Apply step for confirmed match suggestions.

This module contains the ApplyService class, which commits confirmed
folder/member links to the CRM through a MemberUpdater, one call per
suggestion. Every item is attempted independently: a failure is retried up
to max_attempts times, then recorded on the item and the batch moves on.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence

from memberlink.models import (
    ApplyOutcome,
    ApplySummary,
    MatchResult,
    MatchSuggestion,
    MatchType,
)

from .member_store import MemberUpdater

logger = logging.getLogger(__name__)

SYNC_STATUS_MATCHED = "Matched"


def select_auto_apply(result: MatchResult) -> List[MatchSuggestion]:
    """Suggestions that are safe to commit without human review.

    Only exact and fuzzy matches that carry no manual review flag qualify.
    """
    return [
        s for s in result.suggestions
        if s.match_type in (MatchType.EXACT, MatchType.FUZZY) and not s.requires_manual_review
    ]


def select_for_review(result: MatchResult) -> List[MatchSuggestion]:
    """Suggestions that need a human decision before they are committed."""
    auto = {id(s) for s in select_auto_apply(result)}
    return [s for s in result.suggestions if id(s) not in auto]


def build_update_fields(suggestion: MatchSuggestion, synced_at: datetime) -> Dict[str, Any]:
    """Linkage fields written onto the member record for one suggestion."""
    return {
        "linkedFolderId": suggestion.folder.id,
        "linkedFolderName": suggestion.folder.raw_name,
        "folderSyncStatus": SYNC_STATUS_MATCHED,
        "folderSyncDate": synced_at.isoformat(),
        "folderMatchConfidence": suggestion.confidence,
        "folderMatchType": suggestion.match_type.value,
        "folderFileCount": suggestion.folder.file_count,
        "folderSubfolderCount": suggestion.folder.subfolder_count,
    }


class ApplyService:
    """
    Commits confirmed suggestions to the member store.

    Args:
        updater: Collaborator that writes one member record.
        dry_run: If True, report what would be written without calling the
            updater.
        max_attempts: Attempts per item before it is recorded as failed.
        retry_delay: Seconds to wait between attempts.
        progress_callback: Optional callable invoked after each item with
            (completed, total, outcome).

    Raises:
        ValueError: If max_attempts is below 1 or retry_delay is negative.
    """

    def __init__(
        self,
        updater: MemberUpdater,
        dry_run: bool = False,
        max_attempts: int = 1,
        retry_delay: float = 0.0,
        progress_callback: Optional[Callable[[int, int, ApplyOutcome], None]] = None,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")
        if retry_delay < 0:
            raise ValueError(f"retry_delay must not be negative, got {retry_delay}")
        self.updater = updater
        self.dry_run = dry_run
        self.max_attempts = max_attempts
        self.retry_delay = retry_delay
        self.progress_callback = progress_callback

    def apply(self, suggestions: Sequence[MatchSuggestion]) -> ApplySummary:
        """
        Commit each suggestion and report per-item outcomes.

        Parameters:
            suggestions (Sequence[MatchSuggestion]): Confirmed suggestions, committed in order.

        Returns:
            ApplySummary: Counts plus one ApplyOutcome per suggestion. Never raises for
            collaborator failures.
        """
        start = time.time()
        summary = ApplySummary(dry_run=self.dry_run)
        total = len(suggestions)

        for index, suggestion in enumerate(suggestions, start=1):
            outcome = self.apply_one(suggestion)
            summary.outcomes.append(outcome)
            summary.attempted += 1
            if outcome.applied:
                summary.applied += 1
            else:
                summary.errors += 1
            if self.progress_callback is not None:
                self.progress_callback(index, total, outcome)

        summary.duration_seconds = time.time() - start
        logger.info(
            "Applied %d of %d matches (%d errors)%s",
            summary.applied, summary.attempted, summary.errors,
            " [dry run]" if self.dry_run else "",
        )
        return summary

    def apply_one(self, suggestion: MatchSuggestion) -> ApplyOutcome:
        """
        Commit a single suggestion, retrying on failure.

        Returns:
            ApplyOutcome: status "applied" on success, "error" with the last failure reason otherwise.
        """
        outcome = ApplyOutcome(
            folder_id=suggestion.folder.id,
            folder_name=suggestion.folder.raw_name,
            member_id=suggestion.member.member_id,
            member_name=suggestion.member.full_name,
            confidence=suggestion.confidence,
            match_type=suggestion.match_type,
            status="error",
            file_count=suggestion.folder.file_count,
        )

        fields = build_update_fields(suggestion, datetime.now(timezone.utc))

        if self.dry_run:
            outcome.status = "applied"
            logger.debug("[dry run] Would link %s -> %s", outcome.folder_name, outcome.member_id)
            return outcome

        for attempt in range(1, self.max_attempts + 1):
            outcome.attempts = attempt
            try:
                self.updater.update_member(suggestion.member.member_id, fields)
            except Exception as e:  # any collaborator failure stays on this item
                outcome.reason = f"{type(e).__name__}: {e}"
                logger.warning(
                    "Attempt %d/%d failed linking %s -> %s: %s",
                    attempt, self.max_attempts, outcome.folder_name, outcome.member_id, outcome.reason,
                )
                if attempt < self.max_attempts and self.retry_delay:
                    time.sleep(self.retry_delay)
                continue

            outcome.status = "applied"
            outcome.reason = None
            logger.debug("Linked %s -> %s", outcome.folder_name, outcome.member_id)
            break

        return outcome
