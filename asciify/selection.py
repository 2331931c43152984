"""
Input file selection for asciify.

Turns a file name or mask into the list of files to scan, optionally
recursing into subdirectories. Files within a directory are visited newest
first, so the newest-duplicate filter keeps the most recent of a family of
dated or numbered files (notes_20220212.bin over notes_20211220.bin).
"""

import fnmatch
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional, Set, Tuple

logger = logging.getLogger(__name__)


@dataclass
class SelectedFile:
    """A file chosen for scanning."""
    folder: Path
    name: str

    @property
    def path(self) -> Path:
        return self.folder / self.name


@dataclass
class Selection:
    """Result of walking the input tree."""
    files: List[SelectedFile] = field(default_factory=list)
    excluded: List[Path] = field(default_factory=list)
    directories: int = 0


class NewestDuplicateFilter:
    """
    Keeps the first file seen for each base name.

    The base name is the part of the file name before *skip_match*
    (case-sensitive), or the whole name if *skip_match* does not occur.
    An empty *skip_match* lets everything through.
    """

    def __init__(self, skip_match: str = "") -> None:
        self.skip_match = skip_match
        self._base_names: Set[str] = set()

    def reset(self) -> None:
        """Forget all base names; called at each directory boundary."""
        self._base_names.clear()

    def base_name(self, name: str) -> str:
        index = name.find(self.skip_match)
        return name[:index] if index >= 0 else name

    def passes(self, name: str) -> bool:
        """Return True if *name* is the first of its base name."""
        if not self.skip_match:
            return True
        base = self.base_name(name)
        if base in self._base_names:
            return False
        self._base_names.add(base)
        return True


def resolve_input(pattern: str, cwd: Optional[Path] = None) -> Tuple[Path, str]:
    """
    Split an input argument into a start folder and a file mask.

    A directory part in *pattern* replaces the current directory.
    """
    if cwd is None:
        cwd = Path.cwd()
    if os.sep in pattern or "/" in pattern:
        candidate = Path(pattern)
        if candidate.is_dir():
            return candidate, ""
        if not candidate.name:
            raise ValueError(f"Invalid input path: {pattern}")
        return candidate.parent, candidate.name
    return cwd, pattern


def list_directory(folder: Path, mask: str = "") -> Tuple[List[str], List[str]]:
    """
    List subdirectories and mask-matching files of *folder*, newest first.

    Returns:
        (subdirectory names, file names). Unreadable folders yield two
        empty lists.
    """
    try:
        entries = list(os.scandir(folder))
    except OSError as e:
        logger.warning("Cannot list %s: %s", folder, e)
        return [], []

    def newest_first(entry: os.DirEntry) -> Tuple[float, str]:
        try:
            mtime = entry.stat().st_mtime
        except OSError:
            mtime = 0.0
        return (-mtime, entry.name)

    entries.sort(key=newest_first)

    subdirs: List[str] = []
    files: List[str] = []
    for entry in entries:
        try:
            if entry.is_dir(follow_symlinks=False):
                subdirs.append(entry.name)
                continue
            # Linked directories are neither descended into nor scanned.
            if entry.is_symlink() and entry.is_dir():
                logger.debug("Skipping linked directory %s", entry.path)
                continue
        except OSError as e:
            logger.warning("Cannot inspect %s: %s", entry.path, e)
            continue
        if not mask or fnmatch.fnmatchcase(entry.name, mask):
            files.append(entry.name)
    return subdirs, files


def select_files(
    folder: Path,
    mask: str = "",
    recurse: bool = False,
    skip_older_match: str = "",
) -> Selection:
    """
    Collect the files to scan under *folder*.

    Args:
        folder: Start folder.
        mask: fnmatch-style pattern for file names; empty matches all.
        recurse: Descend into subdirectories (depth first).
        skip_older_match: Newest-duplicate marker, see NewestDuplicateFilter.

    Returns:
        Selection with included files in visiting order, excluded
        duplicates, and the number of directories visited.
    """
    selection = Selection()
    duplicates = NewestDuplicateFilter(skip_older_match)
    _walk(folder, mask, recurse, duplicates, selection)
    return selection


def _walk(
    folder: Path,
    mask: str,
    recurse: bool,
    duplicates: NewestDuplicateFilter,
    selection: Selection,
) -> None:
    selection.directories += 1
    logger.debug("Directory: %s", folder)
    subdirs, files = list_directory(folder, mask)

    duplicates.reset()
    for name in files:
        if duplicates.passes(name):
            selection.files.append(SelectedFile(folder=folder, name=name))
        else:
            selection.excluded.append(folder / name)

    if recurse:
        for sub in subdirs:
            _walk(folder / sub, mask, recurse, duplicates, selection)
