import logging
from pathlib import Path
from typing import Iterable, Optional

from tqdm import tqdm

from .exceptions import FileOperationError, MetadataExtractionError
from .metadata.delta import apply_delta
from .metadata.extract import open_metadata
from .metadata.resolver import resolve
from .models import Disposition, MediaFile, RunCounters, SortOptions
from .organization.collision import CollisionResolver
from .organization.mover import FileMover
from .organization.rules import DestinationPlanner
from .reporting import format_summary
from .scanning.cleanup import JunkMatcher, RemovalLog, delete_junk, remove_if_empty
from .scanning.filesystem import DiskWalker
from .scanning.hasher import FileHasher


class SortPicsApp:
    """
    Runs every candidate file through resolve -> plan -> collision check ->
    transfer, one file at a time.
    """

    def __init__(self, options: SortOptions, metadata=None, hasher: Optional[FileHasher] = None):
        self.options = options
        self.metadata = metadata if metadata is not None else open_metadata()
        self.planner = DestinationPlanner(options)
        self.resolver = CollisionResolver(hasher, dry_run=options.dry_run)
        self.mover = FileMover(self.metadata, move_mode=options.move, dry_run=options.dry_run)
        self.junk = JunkMatcher(options.junk_patterns)
        self.removals = RemovalLog()

    def run(self, sources: Iterable[Path]) -> RunCounters:
        """
        Sorts everything under `sources` and returns the run counters.
        DestinationError is not caught here: it ends the run.
        """
        opts = self.options
        counters = RunCounters()
        self.removals = RemovalLog()

        # Never descend into our own output when it sits inside a source
        skip_dirs = {opts.dest_root}
        if opts.raw_root is not None:
            skip_dirs.add(opts.raw_root)

        walker = DiskWalker(recursive=opts.recursive, skip_dirs=skip_dirs)
        entries = walker.walk(sources)
        if opts.show_progress:
            entries = tqdm(entries, desc="Sorting", unit="file")

        for entry in entries:
            if entry.is_dir:
                if opts.cleanup:
                    remove_if_empty(entry.path, self.removals, dry_run=opts.dry_run)
                continue
            self.process_file(entry.path, counters)

        if counters.total:
            logging.info(format_summary(counters, dry_run=opts.dry_run))
        return counters

    def process_file(self, path: Path, counters: RunCounters):
        opts = self.options

        if opts.cleanup and self.junk.matches(path.name):
            if delete_junk(path, dry_run=opts.dry_run):
                self.removals.record(path)
            return

        format_id = self.metadata.supported_type(path)
        if not format_id:
            logging.debug(f"{path.name}: File type is not supported.")
            return

        counters.total += 1

        try:
            tags = self.metadata.read_tags(path)
        except MetadataExtractionError as e:
            logging.warning(f"Skipping {path}: {e}")
            counters.skipped += 1
            return

        resolved = resolve(tags, path, logic_level=opts.logic_level, suffix=opts.suffix)
        if resolved is None:
            logging.debug(f"{path.name}: Unable to read date from metadata, skipping file.")
            counters.skipped += 1
            return

        try:
            timestamp = apply_delta(resolved.timestamp, opts.date_delta)
        except (ValueError, OverflowError) as e:
            logging.warning(f"Skipping {path}: cannot shift {resolved.timestamp} by the date delta: {e}")
            counters.skipped += 1
            return

        media = MediaFile(
            source_path=path,
            format_id=format_id,
            tags=tags,
            timestamp=timestamp,
            subsec=resolved.subsec,
            device_tag=resolved.device_tag,
            date_source=resolved.source,
        )
        if opts.date_delta:
            media.original_timestamp = resolved.timestamp
        logging.debug(f"{path.name}: dated {media.timestamp} from {media.date_source}")

        candidate = self.planner.plan(media.timestamp, media.subsec, media.device_tag, path.name)

        try:
            disposition = self.resolver.resolve(path, candidate, opts.policy)
        except FileOperationError as e:
            logging.error(str(e))
            counters.failed += 1
            return

        if disposition.kind == Disposition.DUPLICATE:
            logging.debug(f"{path.name}: duplicate of {disposition.dest_path}")
            counters.duplicate += 1
            if disposition.source_deleted:
                self.removals.record(path)
        elif disposition.kind == Disposition.COLLISION:
            logging.debug(f"{path.name}: {candidate.path} exists with different content, skipping file.")
            counters.skipped += 1
        elif self.mover.execute(media, disposition.dest_path):
            counters.copied += 1
            if opts.move:
                self.removals.record(path)
        else:
            counters.failed += 1
