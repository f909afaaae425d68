"""
MatchType enum for bucketing match suggestions by confidence.

Match types, in order of decreasing confidence:
1. Exact (>= 95) - Strong signals agree, safe to auto-apply
2. Fuzzy (>= 80) - Close match with minor noise
3. Partial (>= 60) - Some signals agree, needs a second look
4. Manual (< 60) - Weak evidence, must be confirmed by a human
"""

from enum import Enum


class MatchType(Enum):
    """Coarse confidence bucket used to drive review workflows."""
    EXACT = "exact"        # confidence >= 95
    FUZZY = "fuzzy"        # 80 <= confidence < 95
    PARTIAL = "partial"    # 60 <= confidence < 80
    MANUAL = "manual"      # confidence < 60

    @classmethod
    def from_confidence(
        cls,
        confidence: int,
        exact_at: int = 95,
        fuzzy_at: int = 80,
        partial_at: int = 60,
    ) -> "MatchType":
        """Derive the match type from a 0-100 confidence score."""
        if confidence >= exact_at:
            return cls.EXACT
        if confidence >= fuzzy_at:
            return cls.FUZZY
        if confidence >= partial_at:
            return cls.PARTIAL
        return cls.MANUAL
