"""Input collection package for memberlink.

This package gathers the two lists the matching engine consumes:

- FolderScanner: Lists member folders under a base directory and builds
  FolderRecord instances with parsed names and content counts.
- load_members / load_folders: Read CRM member snapshots and exported
  folder listings from JSON or CSV files.

Example:
    >>> from memberlink.scanning import FolderScanner, load_members
    >>> from pathlib import Path
    >>>
    >>> folders = FolderScanner().scan_member_folders(Path("/data/Members"))
    >>> members, problems = load_members(Path("members.json"))
"""

from .folder_scanner import FolderScanner
from .snapshot_loader import load_folders, load_members

__all__ = ["FolderScanner", "load_folders", "load_members"]
