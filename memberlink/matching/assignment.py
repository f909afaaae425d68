"""Folder to member assignment for linkage runs.

This module provides the MatchAssigner class, which pairs each folder with at
most one member and each member with at most one folder.

Two strategies are available:
    1. Greedy (default): folders are processed in input order and each takes
       its best remaining candidate. An earlier folder can claim a member
       that would have suited a later folder better.
    2. Optimal: the full folder x member score matrix is solved with the
       Hungarian algorithm, maximising total confidence.

Example:
    >>> from memberlink.matching import MatchAssigner
    >>> assigner = MatchAssigner(min_confidence=30)
    >>> result = assigner.assign(folders, members)
    >>> for suggestion in result.suggestions:
    ...     print(f"{suggestion.folder.raw_name}: {suggestion.confidence}")
"""

import logging
from enum import Enum
from typing import FrozenSet, List, Optional, Sequence, Tuple

import numpy as np
from scipy.optimize import linear_sum_assignment

from memberlink.models import (
    ConfidenceScore,
    FolderRecord,
    MatchResult,
    MatchStats,
    MatchSuggestion,
    MatchType,
    MemberRecord,
)

from .confidence import DEFAULT_SCORING, ConfidenceModel, ScoringConfig

logger = logging.getLogger(__name__)

Candidate = Tuple[MemberRecord, ConfidenceScore]


class AssignmentStrategy(Enum):
    """How folders are paired with members."""
    GREEDY = "greedy"      # Folder order decides, first qualifying best wins
    OPTIMAL = "optimal"    # Hungarian algorithm over the full score matrix


class MatchAssigner:
    """Produces one-to-one folder/member suggestions.

    Attributes:
        min_confidence: Minimum confidence (0-100) for a member to be
            considered a candidate at all.
        strategy: AssignmentStrategy in use.
        max_alternatives: How many runner-up candidates to keep on each
            suggestion for reviewers.
    """

    def __init__(
        self,
        min_confidence: int = 30,
        strategy: AssignmentStrategy = AssignmentStrategy.GREEDY,
        config: Optional[ScoringConfig] = None,
        max_alternatives: int = 3,
    ) -> None:
        """Initialize the MatchAssigner.

        Args:
            min_confidence: Candidate threshold on the 0-100 scale. Defaults
                to 30. Values outside the scale are accepted: a negative
                threshold admits every pair, one above 100 admits none.
            strategy: Assignment strategy. Defaults to greedy.
            config: Scoring configuration. Defaults to the production tuning.
            max_alternatives: Runner-ups recorded per suggestion.

        Raises:
            ValueError: If max_alternatives is negative or strategy is not a
                known AssignmentStrategy value.
        """
        if max_alternatives < 0:
            raise ValueError(
                f"max_alternatives must not be negative, got {max_alternatives}"
            )
        self.min_confidence = int(min_confidence)
        self.strategy = AssignmentStrategy(strategy)
        self.config = config or DEFAULT_SCORING
        self.max_alternatives = max_alternatives
        self._model = ConfidenceModel(self.config)

    def assign(
        self,
        folders: Sequence[FolderRecord],
        members: Sequence[MemberRecord],
    ) -> MatchResult:
        """Pair folders with members.

        Args:
            folders: Folders in processing order.
            members: Member snapshot. Order breaks confidence ties.

        Returns:
            MatchResult with suggestions sorted by confidence (descending),
            unmatched folders in input order, unmatched members in input
            order and aggregate statistics.
        """
        folders = list(folders)
        members = list(members)

        if self.strategy is AssignmentStrategy.OPTIMAL:
            suggestions, unmatched_folders = self._assign_optimal(folders, members)
        else:
            suggestions, unmatched_folders = self._assign_greedy(folders, members)

        # By identity: a duplicated member id drops only the record actually suggested
        matched = {id(s.member) for s in suggestions}
        unmatched_members = [m for m in members if id(m) not in matched]

        # Stable: equal confidences keep folder processing order
        suggestions.sort(key=lambda s: -s.confidence)

        stats = self._build_stats(folders, members, suggestions, unmatched_folders, unmatched_members)
        logger.info(
            "Matched %d of %d folders (%d exact, %d fuzzy, %d partial, %d need review)",
            len(suggestions), stats.total_folders, stats.exact_matches,
            stats.fuzzy_matches, stats.partial_matches, stats.requires_review,
        )

        return MatchResult(
            suggestions=suggestions,
            unmatched_folders=unmatched_folders,
            unmatched_members=unmatched_members,
            stats=stats,
        )

    def rank_candidates(
        self,
        folder: FolderRecord,
        members: Sequence[MemberRecord],
        used_ids: FrozenSet[str] = frozenset(),
    ) -> List[Candidate]:
        """Score a folder against every unused member.

        Args:
            folder: Folder to score.
            members: Candidate members.
            used_ids: Member ids already claimed by earlier folders.

        Returns:
            Qualifying candidates ordered by confidence (descending); ties
            keep member input order.
        """
        candidates: List[Candidate] = []
        for member in members:
            if member.member_id in used_ids:
                continue
            score = self._model.score(folder, member)
            if score.confidence >= self.min_confidence:
                candidates.append((member, score))
        candidates.sort(key=lambda candidate: -candidate[1].confidence)
        return candidates

    def _assign_greedy(
        self,
        folders: List[FolderRecord],
        members: List[MemberRecord],
    ) -> Tuple[List[MatchSuggestion], List[FolderRecord]]:
        """Folder-major greedy pass.

        The set of used member ids is threaded through the loop as an
        immutable value; each step returns a new set.
        """
        suggestions: List[MatchSuggestion] = []
        unmatched_folders: List[FolderRecord] = []
        used_ids: FrozenSet[str] = frozenset()

        for folder in folders:
            candidates = self.rank_candidates(folder, members, used_ids)
            if not candidates:
                logger.debug("No candidate for folder %r", folder.raw_name)
                unmatched_folders.append(folder)
                continue

            member, score = candidates[0]
            alternatives = [(m, s.confidence) for m, s in candidates[1:1 + self.max_alternatives]]
            suggestions.append(self._build_suggestion(folder, member, score, alternatives))
            used_ids = used_ids | {member.member_id}

        return suggestions, unmatched_folders

    def _assign_optimal(
        self,
        folders: List[FolderRecord],
        members: List[MemberRecord],
    ) -> Tuple[List[MatchSuggestion], List[FolderRecord]]:
        """Globally optimal pass using the Hungarian algorithm.

        Pairs below min_confidence are excluded by giving them zero weight
        and dropping them after the solve.
        """
        if not folders or not members:
            return [], list(folders)

        scores: List[List[ConfidenceScore]] = [
            [self._model.score(folder, member) for member in members]
            for folder in folders
        ]
        qualifies = np.array(
            [[score.confidence >= self.min_confidence for score in row] for row in scores],
            dtype=bool,
        )
        # Shift by one so a qualifying zero-confidence pair still outweighs
        # leaving the folder unmatched
        confidences = np.array([[score.confidence for score in row] for row in scores], dtype=float)
        weights = np.where(qualifies, confidences + 1.0, 0.0)

        row_ind, col_ind = linear_sum_assignment(weights, maximize=True)
        chosen = {
            int(i): int(j)
            for i, j in zip(row_ind, col_ind)
            if qualifies[i, j]
        }

        suggestions: List[MatchSuggestion] = []
        unmatched_folders: List[FolderRecord] = []
        for i, folder in enumerate(folders):
            if i not in chosen:
                unmatched_folders.append(folder)
                continue
            j = chosen[i]
            runners = sorted(
                (
                    (members[k], scores[i][k].confidence)
                    for k in range(len(members))
                    if k != j and scores[i][k].confidence >= self.min_confidence
                ),
                key=lambda pair: -pair[1],
            )
            suggestions.append(
                self._build_suggestion(
                    folder, members[j], scores[i][j], runners[:self.max_alternatives]
                )
            )

        return suggestions, unmatched_folders

    def _build_suggestion(
        self,
        folder: FolderRecord,
        member: MemberRecord,
        score: ConfidenceScore,
        alternatives: List[Tuple[MemberRecord, int]],
    ) -> MatchSuggestion:
        return MatchSuggestion(
            folder=folder,
            member=member,
            confidence=score.confidence,
            match_type=self.config.match_type_for(score.confidence),
            reasons=list(score.reasons),
            requires_manual_review=score.requires_manual_review,
            alternatives=alternatives,
        )

    @staticmethod
    def _build_stats(
        folders: List[FolderRecord],
        members: List[MemberRecord],
        suggestions: List[MatchSuggestion],
        unmatched_folders: List[FolderRecord],
        unmatched_members: List[MemberRecord],
    ) -> MatchStats:
        return MatchStats(
            total_folders=len(folders),
            total_members=len(members),
            exact_matches=sum(1 for s in suggestions if s.match_type is MatchType.EXACT),
            fuzzy_matches=sum(1 for s in suggestions if s.match_type is MatchType.FUZZY),
            partial_matches=sum(1 for s in suggestions if s.match_type is MatchType.PARTIAL),
            requires_review=sum(1 for s in suggestions if s.requires_manual_review),
            unmatched_folders=len(unmatched_folders),
            unmatched_members=len(unmatched_members),
        )


def assign(
    folders: Sequence[FolderRecord],
    members: Sequence[MemberRecord],
    min_confidence: int = 30,
) -> MatchResult:
    """Greedy assignment with the default scoring configuration."""
    return MatchAssigner(min_confidence=min_confidence).assign(folders, members)
