import argparse
import logging
import os
import re
import sys
from pathlib import Path
from typing import List, Optional, Tuple

from . import config
from .core import SortPicsApp
from .exceptions import SortPicsError
from .metadata.delta import parse_date_delta
from .models import SortOptions
from .scanning.cleanup import JunkMatcher, load_junk_patterns


def setup_logging(dest_root: Optional[Path], verbose: bool):
    """Logs to the console, and to a file in the destination when one is given."""
    log_level = logging.DEBUG if verbose else logging.INFO

    handlers: List[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if dest_root is not None:
        handlers.append(logging.FileHandler(dest_root / config.LOG_FILE_NAME, encoding='utf-8'))

    logging.basicConfig(
        level=log_level,
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=handlers,
        force=True,
    )

    # Silence chatty libraries
    logging.getLogger("exifread").setLevel(logging.ERROR)


def parse_args(argv=None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        prog="sortpics",
        description="Sort photos and videos into a dated tree using their EXIF capture time.",
    )

    p.add_argument("paths", type=Path, nargs="+", metavar="SRC [SRC ...] DEST",
                   help="Source files/directories followed by the destination directory")

    p.add_argument("-r", "--recursive", action="store_true", help="Descend into subdirectories")
    p.add_argument("-n", "--dry-run", action="store_true", help="Simulate actions without modifying disk")
    p.add_argument("-m", "--move", action="store_true", help="Move files instead of copying")
    p.add_argument("-c", "--cleanup", action="store_true", help="Delete junk files and remove emptied directories")
    p.add_argument("-f", "--force", action="store_true", help="Delete source files that duplicate the destination")
    p.add_argument("-i", "--increment", action="store_true",
                   help="Add _0001, _0002, ... when a different file already has the name")
    p.add_argument("-l", "--logic", type=int, default=0, choices=(0, 1, 2),
                   help="Date guessing for files without date tags: 1 = directory names, 2 = also mtime")
    p.add_argument("--date", metavar="DELTA", help="Shift capture times, e.g. '+1d -2h' or '-1y 3mo'")

    p.add_argument("--raw-path", type=Path, default=None, help="Separate destination root for RAW files")
    p.add_argument("--flat", action="store_true", help="Put every file directly under the destination")
    p.add_argument("--nosubsec", action="store_true", help="Leave sub-seconds out of file names")
    p.add_argument("--prefix", default=config.FILE_FORMAT, help="strftime format for the file name (default: %(default)s)")
    p.add_argument("--suffix", default=None, help="Fixed text replacing the camera make/model in file names")
    p.add_argument("--path-format", default=config.PATH_FORMAT,
                   help="strftime format for the directory tree (default: %(default)s)")

    p.add_argument("--junk", action="append", default=[], metavar="PATTERN",
                   help="Extra cleanup pattern (exact name, or 're:' + regex). Repeatable.")
    p.add_argument("--junk-file", type=Path, default=None, help="File containing cleanup patterns")

    p.add_argument("--progress", action="store_true", help="Show a progress bar")
    p.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")

    args = p.parse_args(argv)
    if len(args.paths) < 2:
        p.error("Must specify a source and destination directory.")
    return args


def split_paths(paths: List[Path]) -> Tuple[List[Path], Path]:
    """The last path is the destination, the rest are sources."""
    return [p.resolve() for p in paths[:-1]], paths[-1].resolve()


def validate(sources: List[Path], dest_root: Path, raw_root: Optional[Path]) -> List[str]:
    errors = []
    for root in (dest_root, raw_root):
        if root is None:
            continue
        if not (root.is_dir() and os.access(root, os.W_OK)):
            errors.append(f"Destination directory '{root}' does not exist or is not writable.")

    for src in sources:
        if not (src.exists() and os.access(src, os.R_OK)):
            errors.append(f"Source '{src}' doesn't exist or is not readable.")
    return errors


def build_options(args: argparse.Namespace, dest_root: Path) -> SortOptions:
    junk = list(config.JUNK_PATTERNS) + list(args.junk)
    if args.junk_file:
        junk.extend(load_junk_patterns(args.junk_file))
    JunkMatcher(junk)  # fail early on bad regexes

    return SortOptions(
        dest_root=dest_root,
        raw_root=args.raw_path.resolve() if args.raw_path else None,
        recursive=args.recursive,
        cleanup=args.cleanup,
        junk_patterns=junk,
        move=args.move,
        dry_run=args.dry_run,
        force=args.force,
        increment=args.increment,
        logic_level=args.logic,
        date_delta=parse_date_delta(args.date) if args.date else None,
        flat=args.flat,
        subsec=not args.nosubsec,
        file_format=args.prefix,
        path_format=args.path_format,
        suffix=args.suffix,
        show_progress=args.progress,
    )


def main(argv=None) -> int:
    args = parse_args(argv)
    sources, dest_root = split_paths(args.paths)
    raw_root = args.raw_path.resolve() if args.raw_path else None

    errors = validate(sources, dest_root, raw_root)
    if errors:
        setup_logging(None, args.verbose)
        for error in errors:
            logging.error(error)
        return 1

    try:
        options = build_options(args, dest_root)
    except (SortPicsError, OSError, ValueError, re.error) as e:
        setup_logging(None, args.verbose)
        logging.error(f"Invalid arguments: {e}")
        return 1

    # Nothing is written into DEST until every argument checks out
    setup_logging(None if args.dry_run else dest_root, args.verbose)

    logging.debug(f"Sources: {', '.join(str(s) for s in sources)}")
    logging.debug(f"Dest:    {dest_root}")

    try:
        SortPicsApp(options).run(sources)
    except KeyboardInterrupt:
        logging.warning("Operation cancelled by user.")
        return 130
    except SortPicsError as e:
        logging.error(f"Fatal: {e}")
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())
