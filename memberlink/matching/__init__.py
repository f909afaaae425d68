"""Record-linkage engine for memberlink.

This package parses folder labels, scores folder/member pairs and assigns
folders to CRM members one-to-one.

Example:
    >>> from memberlink.matching import MatchAssigner
    >>> from memberlink.models import FolderRecord, MemberRecord
    >>> folders = [FolderRecord(id="f1", raw_name="Doe, Jane")]
    >>> members = [MemberRecord(member_id="m1", first_name="Jane", last_name="Doe")]
    >>> result = MatchAssigner(min_confidence=30).assign(folders, members)
    >>> result.suggestions[0].member.member_id
    'm1'
"""

from .assignment import AssignmentStrategy, MatchAssigner, assign
from .confidence import DEFAULT_SCORING, NICKNAME_SCORING, ConfidenceModel, ScoringConfig
from .name_parser import (
    CommaFormat,
    DashFormat,
    NameFormat,
    NameParser,
    PlainFormat,
    parse_folder_name,
)
from .nicknames import is_nickname
from .similarity import normalize_name, similarity

__all__ = [
    "AssignmentStrategy",
    "MatchAssigner",
    "assign",
    "DEFAULT_SCORING",
    "NICKNAME_SCORING",
    "ConfidenceModel",
    "ScoringConfig",
    "CommaFormat",
    "DashFormat",
    "NameFormat",
    "NameParser",
    "PlainFormat",
    "parse_folder_name",
    "is_nickname",
    "normalize_name",
    "similarity",
]
