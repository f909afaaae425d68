"""
Member store collaborators for the apply step.

This module contains:
- MemberUpdater: The interface the apply step writes through
- JsonMemberStore: A MemberUpdater backed by a JSON member snapshot file
"""

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, List

logger = logging.getLogger(__name__)


class MemberUpdater:
    """Writes linkage fields onto one CRM member record."""

    def update_member(self, member_id: str, fields: Dict[str, Any]) -> None:
        """Update a member record.

        Raises:
            KeyError: If no record has the given member id.
            OSError: If the store cannot be written.
        """
        raise NotImplementedError


class JsonMemberStore(MemberUpdater):
    """MemberUpdater that edits a JSON member snapshot in place.

    The file may hold a list of member objects or an object with a
    "members" list; the layout is preserved on write. Each update is written
    to disk immediately through a temporary file, so a failure part way
    through a batch leaves earlier updates committed.

    Attributes:
        path: Path to the JSON snapshot.
    """

    def __init__(self, path: Path) -> None:
        """Load the snapshot.

        Args:
            path: JSON snapshot path.

        Raises:
            OSError: If the file cannot be read.
            ValueError: If the file is not JSON or holds no member list.
        """
        self.path = Path(path)
        if self.path.suffix.lower() != ".json":
            raise ValueError(f"Member store must be a JSON file, got {self.path}")

        with open(self.path, "r", encoding="utf-8") as f:
            try:
                self._document = json.load(f)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {self.path}: {e}") from e

        self._records = self._member_list(self._document)

    @staticmethod
    def _member_list(document: Any) -> List[Dict[str, Any]]:
        if isinstance(document, list):
            return document
        if isinstance(document, dict) and isinstance(document.get("members"), list):
            return document["members"]
        raise ValueError("Member store must hold a list of members or a 'members' list")

    def get_member(self, member_id: str) -> Dict[str, Any]:
        """Return the raw record for a member id.

        Raises:
            KeyError: If no record has the given member id.
        """
        for record in self._records:
            if isinstance(record, dict) and str(record.get("memberId")) == member_id:
                return record
        raise KeyError(f"Member not found: {member_id}")

    def update_member(self, member_id: str, fields: Dict[str, Any]) -> None:
        """Write fields onto a member record and save the snapshot.

        If the write fails the in-memory record is restored before the error
        propagates.

        Raises:
            KeyError: If no record has the given member id.
            OSError: If the snapshot cannot be written.
        """
        record = self.get_member(member_id)
        original = dict(record)
        record.update(fields)
        try:
            self._write()
        except OSError:
            record.clear()
            record.update(original)
            raise
        logger.debug("Updated member %s with %d fields", member_id, len(fields))

    def _write(self) -> None:
        directory = self.path.parent
        fd, tmp_name = tempfile.mkstemp(prefix=".memberlink_", suffix=".json", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(self._document, f, indent=2)
                f.write("\n")
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
