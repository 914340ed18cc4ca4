"""
Computes which timestamp tags to rewrite after a date delta.
"""
from datetime import datetime
from typing import Dict, Optional

from .. import config
from .resolver import parse_exif_date


def format_exif_date(dt: datetime, subsec: Optional[int] = None) -> str:
    value = dt.strftime(config.EXIF_DATE_FORMAT)
    if subsec is not None:
        value += f".{subsec:02d}"
    return value


def compute_tag_updates(tags: Dict[str, str],
                        original: datetime,
                        adjusted: datetime,
                        subsec: int = 0) -> Dict[str, str]:
    """
    Returns {tag: new value} for every rewritable timestamp tag whose current
    value equals the pre-delta timestamp. Tags holding any other time are left
    alone.
    """
    updates = {}
    for tag, has_subsec in config.REWRITE_TAGS.items():
        value = tags.get(tag)
        if not value:
            continue

        current = parse_exif_date(value)
        if current is None or current != original:
            continue

        updates[tag] = format_exif_date(adjusted, subsec if has_subsec else None)
    return updates
