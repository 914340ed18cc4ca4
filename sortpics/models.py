from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from dateutil.relativedelta import relativedelta

from . import config


@dataclass
class MediaFile:
    """
    One candidate file, alive only while it is being sorted.
    """
    source_path: Path
    format_id: str
    tags: Dict[str, str] = field(default_factory=dict)

    # Populated by the metadata resolver
    timestamp: Optional[datetime] = None
    subsec: int = 0
    device_tag: str = ""
    date_source: Optional[str] = None  # tag name, 'directory' or 'mtime'

    # Set when a date delta moved the timestamp
    original_timestamp: Optional[datetime] = None

    @property
    def delta_applied(self) -> bool:
        return self.original_timestamp is not None and self.original_timestamp != self.timestamp


@dataclass(frozen=True)
class DestinationCandidate:
    path: Path

    @property
    def filename(self) -> str:
        return self.path.name

    def with_increment(self, counter: int) -> 'DestinationCandidate':
        """Returns a sibling candidate with a zero-padded counter before the extension."""
        stem, ext = self.path.stem, self.path.suffix
        name = f"{stem}_{counter:0{config.INCREMENT_WIDTH}d}{ext}"
        return DestinationCandidate(self.path.with_name(name))


@dataclass(frozen=True)
class Disposition:
    """Terminal decision for one file, produced by the collision resolver."""
    kind: str  # proceed/duplicate/collision
    dest_path: Optional[Path] = None
    source_deleted: bool = False

    PROCEED = 'proceed'
    DUPLICATE = 'duplicate'
    COLLISION = 'collision'

    @classmethod
    def proceed(cls, path: Path) -> 'Disposition':
        return cls(cls.PROCEED, path)

    @classmethod
    def duplicate(cls, existing: Path, source_deleted: bool = False) -> 'Disposition':
        return cls(cls.DUPLICATE, existing, source_deleted)

    @classmethod
    def name_collision(cls) -> 'Disposition':
        return cls(cls.COLLISION)


@dataclass(frozen=True)
class CollisionPolicy:
    force_delete: bool = False
    increment: bool = False


@dataclass
class RunCounters:
    total: int = 0
    copied: int = 0
    duplicate: int = 0
    skipped: int = 0
    failed: int = 0

    def as_dict(self) -> Dict[str, int]:
        return {
            'total': self.total,
            'copied': self.copied,
            'duplicate': self.duplicate,
            'skipped': self.skipped,
            'failed': self.failed,
        }


@dataclass(frozen=True)
class SortOptions:
    """
    Immutable run configuration, built once by the CLI.
    """
    dest_root: Path
    raw_root: Optional[Path] = None

    # Traversal
    recursive: bool = False
    cleanup: bool = False
    junk_patterns: List[str] = field(default_factory=lambda: list(config.JUNK_PATTERNS))

    # Operation mode
    move: bool = False
    dry_run: bool = False
    force: bool = False
    increment: bool = False

    # Date resolution
    logic_level: int = 0
    date_delta: Optional[relativedelta] = None

    # Naming
    flat: bool = False
    subsec: bool = True
    file_format: str = config.FILE_FORMAT
    path_format: str = config.PATH_FORMAT
    suffix: Optional[str] = None

    show_progress: bool = False

    @property
    def policy(self) -> CollisionPolicy:
        return CollisionPolicy(force_delete=self.force, increment=self.increment)
