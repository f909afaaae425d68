"""Member folder scanning for the linkage engine.

This module provides the FolderScanner class, which lists the member folders
under a base directory and builds a FolderRecord for each, with the name
parts parsed from the folder label and direct file/subfolder counts.

Example:
    >>> from memberlink.scanning import FolderScanner
    >>> scanner = FolderScanner()
    >>> folders = scanner.scan_member_folders(Path("/data/Members"))
    >>> for folder in folders:
    ...     print(f"{folder.raw_name}: {folder.extracted_full_name}")
"""

import logging
from datetime import datetime
from pathlib import Path
from typing import List, Optional

from memberlink.models import FolderRecord

logger = logging.getLogger(__name__)


class FolderScanner:
    """Scans member folders and collects their metadata.

    Hidden directories (names starting with '.') are skipped. Problems with
    individual folders are recorded and the folder is skipped; they never
    abort the scan.

    Attributes:
        _errors: List of error messages encountered during scanning.

    Example:
        >>> scanner = FolderScanner()
        >>> folder = scanner.scan_folder(Path("/data/Members/Doe, Jane"))
        >>> if folder:
        ...     print(f"{folder.file_count} files, {folder.subfolder_count} subfolders")
    """

    def __init__(self) -> None:
        self._errors: List[str] = []

    def scan_folder(self, folder_path: Path, parent: Optional[Path] = None) -> Optional[FolderRecord]:
        """Scan one folder and collect metadata.

        Only direct children are counted: regular files towards file_count
        and directories towards subfolder_count.

        Args:
            folder_path: Path to the folder to scan.
            parent: Containing directory, used for full_path and parent_id.
                Defaults to the folder's parent.

        Returns:
            FolderRecord with parsed name parts, or None if the folder is
            inaccessible.
        """
        try:
            resolved_path = folder_path.resolve()

            if not resolved_path.exists():
                self._errors.append(f"Folder not found: {folder_path}")
                return None

            if not resolved_path.is_dir():
                self._errors.append(f"Not a directory: {folder_path}")
                return None

            parent_path = (parent or resolved_path.parent).resolve()
            file_count = 0
            subfolder_count = 0

            for child in resolved_path.iterdir():
                try:
                    if child.is_dir():
                        subfolder_count += 1
                    elif child.is_file():
                        file_count += 1
                except OSError as e:
                    self._errors.append(f"Error accessing {child}: {e}")

            return FolderRecord(
                id=str(resolved_path),
                raw_name=resolved_path.name,
                file_count=file_count,
                subfolder_count=subfolder_count,
                last_modified=datetime.fromtimestamp(resolved_path.stat().st_mtime),
                full_path=f"{parent_path.name}/{resolved_path.name}",
                parent_id=str(parent_path),
            )

        except PermissionError:
            self._errors.append(f"Permission denied accessing folder: {folder_path}")
            return None
        except OSError as e:
            self._errors.append(f"Error scanning folder {folder_path}: {e}")
            return None

    def scan_member_folders(self, base_path: Path) -> List[FolderRecord]:
        """Scan the immediate subdirectories of a base path.

        Args:
            base_path: Directory holding one folder per member.

        Returns:
            FolderRecords sorted by folder name (case-insensitive).
            Subdirectories that fail to scan are skipped with errors
            recorded.
        """
        result: List[FolderRecord] = []

        try:
            resolved_path = base_path.resolve()

            if not resolved_path.exists():
                self._errors.append(f"Base path not found: {base_path}")
                return result

            if not resolved_path.is_dir():
                self._errors.append(f"Base path is not a directory: {base_path}")
                return result

            for child in resolved_path.iterdir():
                if child.name.startswith(".") or not child.is_dir():
                    continue

                folder = self.scan_folder(child, parent=resolved_path)
                if folder is not None:
                    result.append(folder)

        except PermissionError:
            self._errors.append(f"Permission denied accessing base path: {base_path}")
        except OSError as e:
            self._errors.append(f"Error scanning base path {base_path}: {e}")

        result.sort(key=lambda f: (f.raw_name.casefold(), f.raw_name))
        logger.info("Scanned %d member folders under %s", len(result), base_path)
        for error in self._errors:
            logger.warning(error)
        return result

    def get_errors(self) -> List[str]:
        """Get list of errors encountered during scanning operations."""
        return self._errors.copy()

    def clear_errors(self) -> None:
        """Clear the list of accumulated errors."""
        self._errors.clear()
