"""
Models package for the member record-linkage engine.

This package provides convenient imports for all data models:
- MatchType: Enum for confidence buckets
- FolderRecord: Storage folder with parsed name parts
- MemberRecord: CRM member entry
- ParsedName: Output of the folder label parser
- ConfidenceScore: Confidence model output
- MatchSuggestion: Proposed folder/member link
- MatchStats, MatchResult: Matching run output
- ScanStats: Folder scan summary
- ApplyOutcome, ApplySummary: Commit results
"""

from .match_type import MatchType
from .data_models import (
    ApplyOutcome,
    ApplySummary,
    ConfidenceScore,
    FolderRecord,
    MatchResult,
    MatchStats,
    MatchSuggestion,
    MemberRecord,
    ParsedName,
    ScanStats,
)

__all__ = [
    "MatchType",
    "ApplyOutcome",
    "ApplySummary",
    "ConfidenceScore",
    "FolderRecord",
    "MatchResult",
    "MatchStats",
    "MatchSuggestion",
    "MemberRecord",
    "ParsedName",
    "ScanStats",
]
