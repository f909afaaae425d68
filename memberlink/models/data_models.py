"""
Core data models for the member record-linkage engine.

This module contains the following dataclasses:
- FolderRecord: A storage folder nominally holding one member's documents
- MemberRecord: A CRM member entry with a canonical identifier
- ParsedName: Name parts and embedded identifier extracted from a folder label
- ConfidenceScore: Output of the confidence model for one folder/member pair
- MatchSuggestion: A proposed folder to member link
- MatchStats: Counts summarising a matching run
- MatchResult: Full output of a matching run
- ScanStats: Counts summarising a folder scan
- ApplyOutcome: Result of committing one suggestion
- ApplySummary: Aggregated results of an apply batch
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from .match_type import MatchType


def _parse_timestamp(value: Any) -> Optional[datetime]:
    """Accept a datetime, an ISO-8601 string (with optional 'Z') or None."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        return datetime.fromisoformat(text)
    except ValueError:
        return None


def _parse_count(value: Any) -> int:
    if value is None or value == "":
        return 0
    try:
        return int(value)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class ParsedName:
    """Name parts recovered from a free-text folder label."""
    first: str = ""
    last: str = ""
    full: str = ""
    has_id: bool = False
    id: Optional[str] = None


@dataclass(frozen=True)
class FolderRecord:
    """One storage folder candidate for a member.

    The extracted_* and embedded id fields are derived from raw_name on
    construction and are never supplied by the caller.
    """
    id: str                                     # Opaque storage identifier
    raw_name: str                               # Folder label as named by staff
    file_count: int = 0                         # Files directly inside
    subfolder_count: int = 0                    # Subfolders directly inside
    last_modified: Optional[datetime] = None    # Last modification time
    full_path: Optional[str] = None             # Path within the storage system
    parent_id: Optional[str] = None             # Containing folder id
    extracted_first_name: str = field(init=False, default="")
    extracted_last_name: str = field(init=False, default="")
    extracted_full_name: str = field(init=False, default="")
    has_embedded_id: bool = field(init=False, default=False)
    embedded_id: Optional[str] = field(init=False, default=None)

    def __post_init__(self) -> None:
        from memberlink.matching.name_parser import parse_folder_name

        parsed = parse_folder_name(self.raw_name)
        object.__setattr__(self, "extracted_first_name", parsed.first)
        object.__setattr__(self, "extracted_last_name", parsed.last)
        object.__setattr__(self, "extracted_full_name", parsed.full)
        object.__setattr__(self, "has_embedded_id", parsed.has_id)
        object.__setattr__(self, "embedded_id", parsed.id)

    @property
    def parsed_name(self) -> ParsedName:
        return ParsedName(
            first=self.extracted_first_name,
            last=self.extracted_last_name,
            full=self.extracted_full_name,
            has_id=self.has_embedded_id,
            id=self.embedded_id,
        )

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FolderRecord":
        """Build a FolderRecord from the camelCase input shape.

        Raises:
            ValueError: If the id or name key is missing.
        """
        if data.get("id") in (None, "") or data.get("name") is None:
            raise ValueError(f"Folder entry requires 'id' and 'name': {data!r}")
        return cls(
            id=str(data["id"]),
            raw_name=str(data["name"]),
            file_count=_parse_count(data.get("fileCount")),
            subfolder_count=_parse_count(data.get("subfolderCount")),
            last_modified=_parse_timestamp(data.get("lastModified")),
            full_path=data.get("fullPath"),
            parent_id=data.get("parentId"),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.raw_name,
            "fullPath": self.full_path,
            "parentId": self.parent_id,
            "extractedFirstName": self.extracted_first_name,
            "extractedLastName": self.extracted_last_name,
            "extractedFullName": self.extracted_full_name,
            "hasEmbeddedId": self.has_embedded_id,
            "embeddedId": self.embedded_id,
            "fileCount": self.file_count,
            "subfolderCount": self.subfolder_count,
            "lastModified": (
                self.last_modified.isoformat() if self.last_modified else None
            ),
        }


@dataclass(frozen=True)
class MemberRecord:
    """One CRM member entry. Attributes are carried through, never scored."""
    member_id: str
    first_name: str = ""
    last_name: str = ""
    attributes: Dict[str, Any] = field(default_factory=dict, compare=False, hash=False)

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MemberRecord":
        """Build a MemberRecord from the camelCase input shape.

        Keys other than memberId, firstName and lastName are kept as
        passthrough attributes.

        Raises:
            ValueError: If memberId is missing.
        """
        member_id = data.get("memberId")
        if member_id in (None, ""):
            raise ValueError(f"Member entry requires 'memberId': {data!r}")
        attributes = {
            key: value
            for key, value in data.items()
            if key not in ("memberId", "firstName", "lastName", "fullName")
        }
        return cls(
            member_id=str(member_id),
            first_name=str(data.get("firstName") or "").strip(),
            last_name=str(data.get("lastName") or "").strip(),
            attributes=attributes,
        )

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = dict(self.attributes)
        data.update({
            "memberId": self.member_id,
            "firstName": self.first_name,
            "lastName": self.last_name,
            "fullName": self.full_name,
        })
        return data


@dataclass(frozen=True)
class ConfidenceScore:
    """Confidence model output for one folder/member pair."""
    confidence: int                   # 0-100
    reasons: Tuple[str, ...]          # One entry per triggered rule, in order
    requires_manual_review: bool


@dataclass
class MatchSuggestion:
    """A proposed link between a folder and a member."""
    folder: FolderRecord
    member: MemberRecord
    confidence: int                   # 0-100
    match_type: MatchType             # Derived from confidence
    reasons: List[str]                # Contributing factors, in evaluation order
    requires_manual_review: bool
    alternatives: List[Tuple[MemberRecord, int]] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "folder": self.folder.to_dict(),
            "member": self.member.to_dict(),
            "confidence": self.confidence,
            "matchType": self.match_type.value,
            "reasons": list(self.reasons),
            "requiresManualReview": self.requires_manual_review,
            "alternatives": [
                {"memberId": member.member_id, "fullName": member.full_name, "confidence": score}
                for member, score in self.alternatives
            ],
        }


@dataclass
class MatchStats:
    """Counts summarising a matching run."""
    total_folders: int = 0
    total_members: int = 0
    exact_matches: int = 0
    fuzzy_matches: int = 0
    partial_matches: int = 0
    requires_review: int = 0
    unmatched_folders: int = 0
    unmatched_members: int = 0

    def to_dict(self) -> Dict[str, int]:
        return {
            "totalFolders": self.total_folders,
            "totalMembers": self.total_members,
            "exactMatches": self.exact_matches,
            "fuzzyMatches": self.fuzzy_matches,
            "partialMatches": self.partial_matches,
            "requiresReview": self.requires_review,
            "unmatchedFolders": self.unmatched_folders,
            "unmatchedMembers": self.unmatched_members,
        }


@dataclass
class MatchResult:
    """Full output of a matching run, recomputable from the same inputs."""
    suggestions: List[MatchSuggestion] = field(default_factory=list)
    unmatched_folders: List[FolderRecord] = field(default_factory=list)
    unmatched_members: List[MemberRecord] = field(default_factory=list)
    stats: MatchStats = field(default_factory=MatchStats)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "suggestions": [s.to_dict() for s in self.suggestions],
            "unmatchedFolders": [f.to_dict() for f in self.unmatched_folders],
            "unmatchedMembers": [m.to_dict() for m in self.unmatched_members],
            "stats": self.stats.to_dict(),
        }


@dataclass
class ScanStats:
    """Counts summarising a folder scan."""
    total_folders: int = 0
    folders_with_id: int = 0          # Labels carrying an embedded identifier
    folders_without_id: int = 0
    total_files: int = 0
    total_subfolders: int = 0

    @classmethod
    def from_folders(cls, folders: List[FolderRecord]) -> "ScanStats":
        with_id = sum(1 for f in folders if f.has_embedded_id)
        return cls(
            total_folders=len(folders),
            folders_with_id=with_id,
            folders_without_id=len(folders) - with_id,
            total_files=sum(f.file_count for f in folders),
            total_subfolders=sum(f.subfolder_count for f in folders),
        )


@dataclass
class ApplyOutcome:
    """Result of committing one suggestion to the member store."""
    folder_id: str
    folder_name: str
    member_id: str
    member_name: str
    confidence: int
    match_type: MatchType
    status: str                       # "applied" or "error"
    reason: Optional[str] = None      # Failure reason when status is "error"
    attempts: int = 0
    file_count: int = 0

    @property
    def applied(self) -> bool:
        return self.status == "applied"


@dataclass
class ApplySummary:
    """Aggregated results of an apply batch."""
    attempted: int = 0
    applied: int = 0
    errors: int = 0
    outcomes: List[ApplyOutcome] = field(default_factory=list)
    dry_run: bool = False
    duration_seconds: float = 0.0
