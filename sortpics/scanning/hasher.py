import hashlib
from pathlib import Path

from .. import config
from ..exceptions import FileOperationError


class FileHasher:
    """
    Full-content SHA-256 fingerprints, used to tell true duplicates from
    name collisions.
    """

    def digest(self, path: Path) -> str:
        try:
            return self._full_sha256(path)
        except OSError as e:
            raise FileOperationError(f"Cannot hash {path}: {e}") from e

    def _full_sha256(self, path: Path) -> str:
        """Reads entire file. High I/O cost."""
        h = hashlib.sha256()
        with open(path, 'rb') as f:
            while chunk := f.read(config.HASH_CHUNK_SIZE):
                h.update(chunk)
        return h.hexdigest()
