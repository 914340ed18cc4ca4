import os
import shutil
import logging
from pathlib import Path

from ..exceptions import (
    DestinationError,
    FileOperationError,
    MetadataWriteError,
    SortPicsError,
)
from ..metadata.rewrite import compute_tag_updates
from ..models import MediaFile

BACKUP_SUFFIX = ".bak"


class FileMover:
    """
    Copies or moves a file into place, then rewrites its timestamp tags
    when a date delta was applied.
    """

    def __init__(self, metadata, move_mode: bool = False, dry_run: bool = False):
        self.metadata = metadata
        self.move_mode = move_mode
        self.dry_run = dry_run

    def execute(self, media: MediaFile, dest: Path) -> bool:
        """
        Returns True when the file reached `dest`.
        Raises DestinationError when the destination folder is unusable.
        """
        src = media.source_path
        action = 'Move' if self.move_mode else 'Copy'

        if self.dry_run:
            logging.debug(f"[DRY RUN] {action} {src} -> {dest}")
            if media.delta_applied:
                logging.debug(f"[DRY RUN] Rewrite timestamps in {dest}")
            return True

        self.ensure_directory(dest.parent)

        try:
            if self.move_mode:
                shutil.move(str(src), str(dest))
            else:
                shutil.copy2(str(src), str(dest))
        except (OSError, shutil.Error) as e:
            logging.error(f"Failed to process {src} -> {dest}: {e}")
            return False

        logging.debug(f"{action} {src} -> {dest}")

        if media.delta_applied:
            try:
                self.rewrite_timestamps(media, dest)
            except (SortPicsError, OSError) as e:
                # The transferred file stays as it is
                logging.warning(f"Timestamp rewrite failed for {dest}: {e}")

        return True

    def ensure_directory(self, directory: Path):
        if directory.is_dir():
            if not os.access(directory, os.W_OK):
                raise DestinationError(f"Destination directory is not writable: {directory}")
            return

        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise DestinationError(f"Cannot create destination directory {directory}: {e}") from e

    def rewrite_timestamps(self, media: MediaFile, dest: Path) -> bool:
        """
        Stores the adjusted timestamp in every date tag of `dest` that still
        holds the original one. Returns True if the file was rewritten.
        """
        if not self.metadata.can_write(media.format_id):
            logging.warning(f"Cannot write metadata to {media.format_id} files, leaving {dest} unchanged")
            return False

        tags = self.metadata.read_tags(dest)
        updates = compute_tag_updates(tags, media.original_timestamp, media.timestamp, media.subsec)
        if not updates:
            logging.debug(f"No timestamp tags to rewrite in {dest}")
            return False

        staged = dest.with_name(f".{dest.stem}.sortpics-tmp{dest.suffix}")
        if staged.exists():
            staged.unlink()

        ok, message = self.metadata.write_tags(dest, updates, staged)
        if not ok:
            if staged.exists():
                staged.unlink()
            raise MetadataWriteError(message or "write failed")

        swap_in(staged, dest)
        logging.debug(f"Rewrote {', '.join(sorted(updates))} in {dest}")
        return True


def swap_in(staged: Path, dest: Path):
    """
    Replaces `dest` with `staged` via dest -> dest.bak, staged -> dest,
    then drops the backup. `dest` is restored from the backup if the second
    rename fails, so it is never left missing.
    """
    backup = dest.with_name(dest.name + BACKUP_SUFFIX)

    try:
        dest.replace(backup)
    except OSError as e:
        staged.unlink(missing_ok=True)
        raise FileOperationError(f"Cannot back up {dest}: {e}") from e

    try:
        staged.replace(dest)
    except OSError as e:
        backup.replace(dest)
        staged.unlink(missing_ok=True)
        raise FileOperationError(f"Cannot replace {dest}: {e}") from e

    try:
        backup.unlink()
    except OSError as e:
        logging.warning(f"Could not remove backup {backup}: {e}")
