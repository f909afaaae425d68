"""Pytest fixtures for memberlink tests."""

import io
import json
import tempfile
from pathlib import Path
from typing import Dict, Generator, List

import pytest
from rich.console import Console

from memberlink.matching import MatchAssigner
from memberlink.models import FolderRecord, MemberRecord
from memberlink.ui import MatchTUI


def pytest_configure(config) -> None:
    config.addinivalue_line("markers", "unit: fast tests of a single component")
    config.addinivalue_line("markers", "integration: tests touching the filesystem or several components")


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for isolated test environments.

    Yields:
        Path to the temporary directory.
    """
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir)


@pytest.fixture
def sample_members() -> List[MemberRecord]:
    """A small CRM snapshot covering exact, reordered and id-only cases."""
    return [
        MemberRecord(member_id="1001", first_name="John", last_name="Smith"),
        MemberRecord(member_id="1002", first_name="Jane", last_name="Doe"),
        MemberRecord(member_id="4521", first_name="Anything", last_name="Else"),
        MemberRecord(member_id="1004", first_name="Maria", last_name="Garcia"),
    ]


@pytest.fixture
def sample_folders() -> List[FolderRecord]:
    """Folder labels in the formats staff actually use."""
    return [
        FolderRecord(id="f1", raw_name="Smith, John", file_count=4),
        FolderRecord(id="f2", raw_name="Jane Doe", file_count=2, subfolder_count=1),
        FolderRecord(id="f3", raw_name="ClientID: 4521 - Random Label", file_count=7),
        FolderRecord(id="f4", raw_name="Unrelated Person"),
    ]


@pytest.fixture
def assigner_default() -> MatchAssigner:
    return MatchAssigner()


@pytest.fixture
def member_folders_dir(temp_dir: Path) -> Path:
    """Create a Members directory with one folder per member.

    Creates:
        Members/
        ├── Smith, John ClientID: 1001/     (2 files, 1 subfolder)
        ├── Jane Doe Files/                 (1 file)
        ├── ClientID: 4521 - Random Label/
        ├── Unrelated Person/
        └── .hidden/

    Against members_json this yields one exact link (1001, auto-applied),
    one partial link (Jane Doe) and one id-only link (4521), both flagged
    for review, with "Unrelated Person" and member 1004 left unmatched.
    """
    base = temp_dir / "Members"
    base.mkdir()

    smith = base / "Smith, John ClientID: 1001"
    smith.mkdir()
    (smith / "intake.pdf").write_text("intake")
    (smith / "notes.txt").write_text("notes")
    (smith / "2024").mkdir()

    doe = base / "Jane Doe Files"
    doe.mkdir()
    (doe / "form.pdf").write_text("form")

    (base / "ClientID: 4521 - Random Label").mkdir()
    (base / "Unrelated Person").mkdir()
    (base / ".hidden").mkdir()

    return base


@pytest.fixture
def members_json(temp_dir: Path) -> Path:
    """Write a JSON member snapshot wrapped in a "members" key."""
    path = temp_dir / "members.json"
    document: Dict[str, list] = {
        "members": [
            {"memberId": "1001", "firstName": "John", "lastName": "Smith", "status": "Active"},
            {"memberId": "1002", "firstName": "Jane", "lastName": "Doe"},
            {"memberId": "4521", "firstName": "Anything", "lastName": "Else"},
            {"memberId": "1004", "firstName": "Maria", "lastName": "Garcia"},
        ]
    }
    path.write_text(json.dumps(document, indent=2), encoding="utf-8")
    return path


@pytest.fixture
def folders_listing_json(temp_dir: Path) -> Path:
    """Write an exported folder listing with an embedded client id."""
    path = temp_dir / "folders.json"
    document = {
        "folders": [
            {"id": "drive-1", "name": "Smith, John", "fileCount": 3, "fullPath": "Members/Smith, John"},
            {"id": "drive-2", "name": "ClientID: 4521 - Random Label", "fileCount": 5},
            {"id": "drive-3", "name": "Unrelated Person"},
        ]
    }
    path.write_text(json.dumps(document), encoding="utf-8")
    return path


@pytest.fixture
def tui_with_captured_output() -> MatchTUI:
    """Create a MatchTUI instance with Console output captured to StringIO.

    Access captured output via: tui.console.file.getvalue()
    """
    output = io.StringIO()
    console = Console(file=output, force_terminal=True, width=160)
    return MatchTUI(console=console)
