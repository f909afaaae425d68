"""Confidence model for folder/member pairs.

Scoring is additive: each rule below fires independently and adds points,
and the total is capped at 100.

    Rule                               Points   Forces manual review
    Embedded client id == member id       +50
    Full name similarity >= 0.95          +35
    Full name similarity >= 0.80          +25   when below 0.90
    Full name similarity >= 0.60          +15   yes
    First name similarity >= 0.90         +15
    First name similarity >= 0.70          +8   yes
    First name is a listed nickname        +0   (opt-in, see ScoringConfig)
    Last name similarity >= 0.90          +15
    Last name similarity >= 0.70           +8   yes
    Reversed "Last, First" >= 0.80        +10
    Member first name inside label         +5
    Member last name inside label          +5

Manual review is also required for any confidence below 80, which covers the
ambiguous 30-70 band as well.

Example:
    >>> from memberlink.matching import ConfidenceModel
    >>> from memberlink.models import FolderRecord, MemberRecord
    >>> model = ConfidenceModel()
    >>> folder = FolderRecord(id="f1", raw_name="Jane Doe")
    >>> member = MemberRecord(member_id="m1", first_name="Jane", last_name="Doe")
    >>> model.score(folder, member).confidence
    75
"""

from dataclasses import dataclass, replace
from typing import List, Tuple

from memberlink.models import ConfidenceScore, FolderRecord, MatchType, MemberRecord

from .nicknames import is_nickname
from .similarity import similarity


@dataclass(frozen=True)
class ScoringConfig:
    """Point values and similarity cutoffs used by the confidence model.

    The defaults are the production tuning; tests and experiments may pass
    a modified copy (``dataclasses.replace``) to ConfidenceModel.

    Raises:
        ValueError: If a cutoff lies outside [0, 1] or cutoffs are out of
            order.
    """
    id_match_points: int = 50

    full_exact_cutoff: float = 0.95
    full_exact_points: int = 35
    full_strong_cutoff: float = 0.80
    full_strong_points: int = 25
    full_strong_review_below: float = 0.90
    full_moderate_cutoff: float = 0.60
    full_moderate_points: int = 15

    part_match_cutoff: float = 0.90
    part_match_points: int = 15
    part_partial_cutoff: float = 0.70
    part_partial_points: int = 8

    reversed_cutoff: float = 0.80
    reversed_points: int = 10

    presence_points: int = 5

    # First-name nickname credit, only when no first-name similarity rule fired
    nickname_points: int = 0

    max_confidence: int = 100
    review_band_low: int = 30
    review_band_high: int = 70
    auto_accept_at: int = 80

    exact_at: int = 95
    fuzzy_at: int = 80
    partial_at: int = 60

    def __post_init__(self) -> None:
        cutoffs = {
            "full_exact_cutoff": self.full_exact_cutoff,
            "full_strong_cutoff": self.full_strong_cutoff,
            "full_strong_review_below": self.full_strong_review_below,
            "full_moderate_cutoff": self.full_moderate_cutoff,
            "part_match_cutoff": self.part_match_cutoff,
            "part_partial_cutoff": self.part_partial_cutoff,
            "reversed_cutoff": self.reversed_cutoff,
        }
        for name, value in cutoffs.items():
            if not 0.0 <= value <= 1.0:
                raise ValueError(f"{name} must be between 0.0 and 1.0, got {value}")
        if not self.full_moderate_cutoff <= self.full_strong_cutoff <= self.full_exact_cutoff:
            raise ValueError("Full name cutoffs must satisfy moderate <= strong <= exact")
        if not self.part_partial_cutoff <= self.part_match_cutoff:
            raise ValueError("Name part cutoffs must satisfy partial <= match")
        if not self.partial_at <= self.fuzzy_at <= self.exact_at:
            raise ValueError("Match type thresholds must satisfy partial <= fuzzy <= exact")
        if self.nickname_points < 0:
            raise ValueError(f"nickname_points must not be negative, got {self.nickname_points}")

    def match_type_for(self, confidence: int) -> MatchType:
        return MatchType.from_confidence(
            confidence,
            exact_at=self.exact_at,
            fuzzy_at=self.fuzzy_at,
            partial_at=self.partial_at,
        )


DEFAULT_SCORING = ScoringConfig()
# Default tuning plus first-name nickname credit worth a first-name match
NICKNAME_SCORING = replace(DEFAULT_SCORING, nickname_points=DEFAULT_SCORING.part_match_points)


def _pct(value: float) -> str:
    return f"{value * 100:.1f}%"


class ConfidenceModel:
    """Scores how likely a folder and a member refer to the same person.

    Attributes:
        config: ScoringConfig with the point values and cutoffs in use.
    """

    def __init__(self, config: ScoringConfig = DEFAULT_SCORING) -> None:
        self.config = config

    def score(self, folder: FolderRecord, member: MemberRecord) -> ConfidenceScore:
        """Score one folder/member pair.

        Args:
            folder: Folder with parsed name parts.
            member: Candidate member record.

        Returns:
            ConfidenceScore with the capped confidence, the reasons for each
            triggered rule and the manual review flag.
        """
        cfg = self.config
        reasons: List[str] = []
        confidence = 0
        review = False

        # Client id (highest trust)
        if folder.has_embedded_id and folder.embedded_id == member.member_id:
            confidence += cfg.id_match_points
            reasons.append(f"Exact Client ID match: {folder.embedded_id}")

        full_sim = similarity(folder.extracted_full_name, member.full_name)
        if full_sim >= cfg.full_exact_cutoff:
            confidence += cfg.full_exact_points
            reasons.append(f"Exact name match ({_pct(full_sim)})")
        elif full_sim >= cfg.full_strong_cutoff:
            confidence += cfg.full_strong_points
            reasons.append(f"Strong name match ({_pct(full_sim)})")
            if full_sim < cfg.full_strong_review_below:
                review = True
        elif full_sim >= cfg.full_moderate_cutoff:
            confidence += cfg.full_moderate_points
            reasons.append(f"Moderate name match ({_pct(full_sim)})")
            review = True

        points, review_part = self._score_part(
            "First name", folder.extracted_first_name, member.first_name, reasons
        )
        confidence += points
        review = review or review_part
        if points == 0 and cfg.nickname_points and is_nickname(
            folder.extracted_first_name, member.first_name
        ):
            confidence += cfg.nickname_points
            reasons.append("Nickname match for first name")

        points, review_part = self._score_part(
            "Last name", folder.extracted_last_name, member.last_name, reasons
        )
        confidence += points
        review = review or review_part

        # Catches labels written "Last First" without the comma
        reversed_name = f"{member.last_name}, {member.first_name}"
        reversed_sim = similarity(folder.extracted_full_name, reversed_name)
        if reversed_sim >= cfg.reversed_cutoff:
            confidence += cfg.reversed_points
            reasons.append(f"Reversed name format match ({_pct(reversed_sim)})")

        label = folder.raw_name.lower()
        if member.first_name and member.first_name.lower() in label:
            confidence += cfg.presence_points
            reasons.append("First name found in folder")
        if member.last_name and member.last_name.lower() in label:
            confidence += cfg.presence_points
            reasons.append("Last name found in folder")

        if cfg.review_band_low < confidence < cfg.review_band_high:
            review = True

        confidence = min(confidence, cfg.max_confidence)

        return ConfidenceScore(
            confidence=confidence,
            reasons=tuple(reasons),
            requires_manual_review=review or confidence < cfg.auto_accept_at,
        )

    def _score_part(
        self, label: str, folder_part: str, member_part: str, reasons: List[str]
    ) -> Tuple[int, bool]:
        """Score a first or last name component.

        Returns:
            Tuple of (points, forces_review). Both parts must be non-empty.
        """
        if not folder_part or not member_part:
            return 0, False

        cfg = self.config
        sim = similarity(folder_part, member_part)
        if sim >= cfg.part_match_cutoff:
            reasons.append(f"{label} match ({_pct(sim)})")
            return cfg.part_match_points, False
        if sim >= cfg.part_partial_cutoff:
            reasons.append(f"Partial {label.lower()} match ({_pct(sim)})")
            return cfg.part_partial_points, True
        return 0, False
