"""Loading folder listings and CRM member snapshots from files.

Member snapshots are JSON (a list of objects, or an object with a "members"
or "Result" list) or CSV with a header row. Both use the camelCase input
shape: memberId, firstName, lastName, plus any passthrough columns.

Folder listings exported from a storage system use the same JSON layouts
with a "folders" key and the id/name/fileCount/... shape.
"""

import csv
import json
import logging
from pathlib import Path
from typing import Any, Dict, List, Tuple

from memberlink.models import FolderRecord, MemberRecord

logger = logging.getLogger(__name__)


def _read_entries(path: Path, list_key: str) -> List[Dict[str, Any]]:
    """Read raw dict entries from a JSON or CSV file.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the content is not a supported layout.
    """
    if path.suffix.lower() == ".csv":
        with open(path, "r", encoding="utf-8", newline="") as f:
            return [dict(row) for row in csv.DictReader(f)]

    with open(path, "r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {path}: {e}") from e

    if isinstance(data, dict):
        for key in (list_key, "Result"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list):
        raise ValueError(f"Expected a list of entries in {path}")
    return [entry for entry in data if isinstance(entry, dict)]


def load_members(path: Path) -> Tuple[List[MemberRecord], List[str]]:
    """Load a member snapshot, keeping only members that can be matched.

    Entries without a memberId, or with neither a first nor a last name,
    are dropped.

    Args:
        path: JSON or CSV snapshot.

    Returns:
        Tuple of (members, problems). problems holds one message per dropped
        entry.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not a supported layout.
    """
    members: List[MemberRecord] = []
    problems: List[str] = []

    for index, entry in enumerate(_read_entries(path, "members"), start=1):
        try:
            member = MemberRecord.from_dict(entry)
        except ValueError:
            problems.append(f"Entry {index}: missing memberId")
            continue
        if not member.first_name and not member.last_name:
            problems.append(f"Entry {index} ({member.member_id}): missing first and last name")
            continue
        members.append(member)

    if problems:
        logger.warning("Dropped %d unusable member entries from %s", len(problems), path)
    logger.info("Loaded %d members from %s", len(members), path)
    return members, problems


def load_folders(path: Path) -> Tuple[List[FolderRecord], List[str]]:
    """Load an exported folder listing.

    Args:
        path: JSON or CSV listing.

    Returns:
        Tuple of (folders, problems) with folders in file order.

    Raises:
        OSError: If the file cannot be read.
        ValueError: If the file is not a supported layout.
    """
    folders: List[FolderRecord] = []
    problems: List[str] = []

    for index, entry in enumerate(_read_entries(path, "folders"), start=1):
        try:
            folders.append(FolderRecord.from_dict(entry))
        except ValueError:
            problems.append(f"Entry {index}: missing id or name")

    if problems:
        logger.warning("Dropped %d unusable folder entries from %s", len(problems), path)
    logger.info("Loaded %d folders from %s", len(folders), path)
    return folders, problems
