from datetime import datetime
from pathlib import Path
from typing import Optional

from .. import config
from ..models import DestinationCandidate, SortOptions


def select_root(ext: str, dest_root: Path, raw_root: Optional[Path]) -> Path:
    """RAW files go to raw_root when one is configured."""
    if raw_root is not None and ext.lower() in config.RAW_EXTS:
        return raw_root
    return dest_root


class DestinationPlanner:
    """
    Turns a resolved timestamp and device tag into the destination path.
    Pure: the same inputs always give the same path, and nothing on disk
    is consulted.
    """

    def __init__(self, options: SortOptions):
        self.options = options

    def build_filename(self, dt: datetime, subsec: int, device_tag: str, original_name: str) -> str:
        opts = self.options
        name = dt.strftime(opts.file_format)
        if opts.subsec:
            name += f".{subsec:02d}"
        if device_tag:
            name += f"_{device_tag}"
        return name + Path(original_name).suffix.lower()

    def build_subpath(self, dt: datetime) -> str:
        if self.options.flat:
            return ""
        return dt.strftime(self.options.path_format)

    def plan(self, dt: datetime, subsec: int, device_tag: str, original_name: str) -> DestinationCandidate:
        ext = Path(original_name).suffix
        root = select_root(ext, self.options.dest_root, self.options.raw_root)

        subpath = self.build_subpath(dt)
        folder = root / subpath if subpath else root
        filename = self.build_filename(dt, subsec, device_tag, original_name)
        return DestinationCandidate(folder / filename)
