"""
Capture-time and device resolution from a tag snapshot.

The resolver never touches the file's contents. Only the heuristic logic
levels look at the path (directory names) or the filesystem (mtime).
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional, Tuple

from dateutil import parser as dateparser

from .. import config


@dataclass(frozen=True)
class ResolvedMetadata:
    timestamp: datetime
    subsec: int
    device_tag: str
    source: str  # tag name, 'directory' or 'mtime'


def resolve(tags: Dict[str, str],
            path: Path,
            logic_level: int = 0,
            suffix: Optional[str] = None) -> Optional[ResolvedMetadata]:
    """
    Returns the resolved capture metadata, or None when no date could be found
    (the caller skips the file).
    """
    dt, subsec, source = resolve_tag_date(tags)

    if dt is None and logic_level >= 1:
        dt = date_from_directory(path)
        source = 'directory'

    # Level 2 only fills in when level 1 found nothing
    if dt is None and logic_level >= 2:
        dt = date_from_mtime(path)
        source = 'mtime'

    if dt is None:
        return None

    return ResolvedMetadata(
        timestamp=dt,
        subsec=subsec,
        device_tag=device_tag(tags, suffix),
        source=source,
    )


def resolve_tag_date(tags: Dict[str, str]) -> Tuple[Optional[datetime], int, Optional[str]]:
    """
    First populated date tag wins. An unparseable value in that tag is not
    retried against the lower-priority tags.
    """
    for tag in config.DATE_TAGS:
        value = tags.get(tag, "").strip()
        if not value:
            continue

        dt = parse_exif_date(value)
        if dt is None:
            logging.debug(f"Unparseable {tag} value: {value!r}")
            return None, 0, None
        return dt, resolve_subsec(tags), tag

    return None, 0, None


def resolve_subsec(tags: Dict[str, str]) -> int:
    """
    Hundredths of a second from the first populated sub-second tag.
    The value is a decimal fraction, so "5" is 50 and "123" is 12.
    """
    for tag in config.SUBSEC_TAGS:
        value = tags.get(tag, "").strip()
        if not value:
            continue

        digits = ""
        for ch in value:
            if not ch.isdigit():
                break
            digits += ch
        if not digits:
            return 0
        return int(digits[:2].ljust(2, "0"))
    return 0


def parse_exif_date(value: str) -> Optional[datetime]:
    """
    Parses "YYYY:MM:DD HH:MM:SS" with optional sub-second and timezone
    suffixes (both dropped). Also accepts ISO style separators.
    Returns a naive datetime.
    """
    clean = value.strip()
    if len(clean) < 19:
        return None

    # Drop ".45", "+02:00", "Z" etc.
    head = clean[:10].replace(":", "-") + clean[10:19].replace("T", " ")
    try:
        return datetime.strptime(head, "%Y-%m-%d %H:%M:%S")
    except ValueError:
        return None


def date_from_directory(path: Path) -> Optional[datetime]:
    """
    Walks the containing directories innermost first and returns the first
    name that reads as a date once separators are stripped.
    """
    for segment in reversed(path.parent.parts):
        cleaned = "".join(ch for ch in segment if ch not in config.DIR_DATE_STRIP)
        if sum(ch.isdigit() for ch in cleaned) < config.DIR_DATE_MIN_DIGITS:
            continue

        try:
            # Missing fields fall back to Jan 1st, midnight
            return dateparser.parse(cleaned, default=datetime(2000, 1, 1))
        except (ValueError, OverflowError):
            continue
    return None


def date_from_mtime(path: Path) -> Optional[datetime]:
    try:
        return datetime.fromtimestamp(path.stat().st_mtime)
    except OSError:
        return None


def normalize_device_part(value: str) -> str:
    """Capitalizes each word and removes the spaces: "CANON EOS 80D" -> "CanonEos80d"."""
    return "".join(word.capitalize() for word in value.split())


def device_tag(tags: Dict[str, str], suffix: Optional[str] = None) -> str:
    """Make/Model based device identifier used as the filename suffix."""
    if suffix is not None:
        return "".join(suffix.split())

    make = tags.get('Make', "").strip()
    model = tags.get('Model', "").strip()

    # Some Kodak cameras only fill in a free-form Information tag
    if not make and not model:
        words = tags.get('Information', "").split()
        if words and words[0].lower().startswith('kodak'):
            make = words[0]
            model = words[1] if len(words) > 1 else ""

    make = normalize_device_part(make)
    model = normalize_device_part(model)

    for prefix, replacement in config.DEVICE_REWRITES:
        if make.startswith(prefix):
            make = replacement
            break

    if model and model.startswith(make):
        return model
    if make or model:
        return make + model
    return config.UNKNOWN_DEVICE
