import logging
from pathlib import Path
from typing import Optional

from ..models import CollisionPolicy, DestinationCandidate, Disposition
from ..scanning.hasher import FileHasher


class CollisionResolver:
    """
    Decides what happens when the planned destination is already taken.

      - same content       -> Duplicate (source deleted if force_delete)
      - different content  -> next _NNNN name if increment, else NameCollisionSkip

    The source is hashed at most once; each tried destination at most once.
    """

    def __init__(self, hasher: Optional[FileHasher] = None, dry_run: bool = False):
        self.hasher = hasher or FileHasher()
        self.dry_run = dry_run

    def resolve(self, source: Path, candidate: DestinationCandidate, policy: CollisionPolicy) -> Disposition:
        if not candidate.path.exists():
            return Disposition.proceed(candidate.path)

        source_digest = None
        current = candidate
        counter = 0
        while current.path.exists():
            # Re-running over an already sorted tree: never delete the file itself
            if self._same_file(source, current.path):
                logging.debug(f"{source} is already in place")
                return Disposition.duplicate(current.path)

            if source_digest is None:
                source_digest = self.hasher.digest(source)

            if self.hasher.digest(current.path) == source_digest:
                logging.debug(f"Duplicate: {source} == {current.path}")
                deleted = policy.force_delete and self._delete_source(source)
                return Disposition.duplicate(current.path, source_deleted=deleted)

            if not policy.increment:
                logging.debug(f"Name collision: {current.path} exists with different content")
                return Disposition.name_collision()

            counter += 1
            current = candidate.with_increment(counter)

        logging.debug(f"Name collision resolved: {source} -> {current.path.name}")
        return Disposition.proceed(current.path)

    def _delete_source(self, source: Path) -> bool:
        if self.dry_run:
            logging.debug(f"[DRY RUN] Deleted duplicate {source}")
            return True
        try:
            source.unlink()
            logging.debug(f"Deleted duplicate {source}")
            return True
        except OSError as e:
            logging.warning(f"Could not delete duplicate {source}: {e}")
            return False

    @staticmethod
    def _same_file(a: Path, b: Path) -> bool:
        try:
            return a.samefile(b)
        except OSError:
            return False
