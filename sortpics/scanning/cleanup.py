"""
Junk-file matching and empty-directory removal for --cleanup.
All deletions here are best effort: failures are logged and ignored.
"""
import logging
import re
from pathlib import Path
from typing import Iterable, List, Pattern, Set, Union

REGEX_PREFIX = "re:"


class JunkMatcher:
    """
    Ordered list of exact base names and regular expressions
    ("re:" prefixed). A name is junk if any pattern matches.
    """

    def __init__(self, patterns: Iterable[str]):
        self.patterns: List[Union[str, Pattern]] = []
        for pattern in patterns:
            if pattern.startswith(REGEX_PREFIX):
                self.patterns.append(re.compile(pattern[len(REGEX_PREFIX):]))
            else:
                self.patterns.append(pattern)

    def matches(self, name: str) -> bool:
        for pattern in self.patterns:
            if isinstance(pattern, str):
                if name == pattern:
                    return True
            elif pattern.search(name):
                return True
        return False


def load_junk_patterns(junk_file: Path) -> List[str]:
    """One pattern per line; blank lines and '#' comments are ignored."""
    patterns = []
    with junk_file.open("r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if line and not line.startswith("#"):
                patterns.append(line)
    return patterns


def delete_junk(path: Path, dry_run: bool = False) -> bool:
    if dry_run:
        logging.debug(f"[DRY RUN] Deleted junk {path}")
        return True

    try:
        path.unlink()
        logging.debug(f"Deleted junk {path}")
        return True
    except OSError as e:
        logging.warning(f"Could not delete junk {path}: {e}")
        return False


class RemovalLog:
    """
    Source paths this run has removed (or, in a dry run, would have removed).
    Only directories that lost an entry here are candidates for pruning, and
    an entry counts as gone once it is recorded, so a dry run prunes the
    same directories as a real one.
    """

    def __init__(self):
        self.removed: Set[Path] = set()
        self.emptied: Set[Path] = set()

    def record(self, path: Path):
        self.removed.add(path)
        self.emptied.add(path.parent)

    def left_empty(self, directory: Path) -> bool:
        if directory not in self.emptied:
            return False
        return all(entry in self.removed for entry in directory.iterdir())


def remove_if_empty(directory: Path, removals: RemovalLog, dry_run: bool = False) -> bool:
    """Removes `directory` if the run emptied it. Directories that started out empty are kept."""
    try:
        if not removals.left_empty(directory):
            return False
    except OSError as e:
        logging.warning(f"Could not inspect {directory}: {e}")
        return False

    if dry_run:
        logging.debug(f"[DRY RUN] Removed empty directory {directory}")
        removals.record(directory)
        return True

    try:
        directory.rmdir()
        logging.debug(f"Removed empty directory {directory}")
        removals.record(directory)
        return True
    except OSError as e:
        logging.warning(f"Could not remove {directory}: {e}")
        return False
