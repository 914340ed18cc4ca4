import os
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, Iterator, Optional, Set


@dataclass(frozen=True)
class WalkEntry:
    directory: Path  # containing directory
    path: Path
    name: str
    is_dir: bool = False


class DiskWalker:
    """
    Depth-first traversal over one or more roots.

    Recursive mode yields a directory entry only after everything below it
    (so emptied directories can be removed as they come up). Within a
    directory, names are visited in sorted order. Roots themselves are never
    yielded as directory entries.
    """

    def __init__(self, recursive: bool = False, skip_dirs: Optional[Set[Path]] = None):
        self.recursive = recursive
        self.skip_dirs = {d.resolve() for d in (skip_dirs or set())}

    def walk(self, roots: Iterable[Path]) -> Iterator[WalkEntry]:
        for root in roots:
            if root.is_file():
                yield WalkEntry(root.parent, root, root.name)
            elif root.is_dir():
                yield from self._walk_dir(root)
            else:
                logging.warning(f"Skipping {root}: not a file or directory")

    def _walk_dir(self, current: Path) -> Iterator[WalkEntry]:
        try:
            with os.scandir(current) as it:
                entries = list(it)
        except OSError:
            logging.warning(f"Permission denied: {current}")
            return

        # Sort for stable traversal order
        entries.sort(key=lambda e: e.name)

        for e in entries:
            path = Path(e.path)
            if e.is_dir(follow_symlinks=False):
                if self.recursive and path.resolve() not in self.skip_dirs:
                    yield from self._walk_dir(path)
                    yield WalkEntry(current, path, e.name, is_dir=True)
            elif e.is_file(follow_symlinks=False):
                yield WalkEntry(current, path, e.name)
