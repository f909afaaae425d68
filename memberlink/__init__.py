"""memberlink - Member Folder Linkage Tool.

A Python application for linking member folders in a storage system to CRM
member records using name parsing, fuzzy scoring and one-to-one assignment.
"""

__version__ = "0.1.0"

from .models import (
    MatchType,
    FolderRecord,
    MemberRecord,
    MatchSuggestion,
    MatchStats,
    MatchResult,
)
from .matching import assign, parse_folder_name, similarity

__all__ = [
    "__version__",
    "MatchType",
    "FolderRecord",
    "MemberRecord",
    "MatchSuggestion",
    "MatchStats",
    "MatchResult",
    "assign",
    "parse_folder_name",
    "similarity",
]


def main() -> None:
    """Entry point for the memberlink CLI application.

    Imports and runs the Typer app from the memberlink.cli module.
    """
    from memberlink.cli import app
    app()
