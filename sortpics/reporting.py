from typing import List

from .models import RunCounters


def format_summary(counters: RunCounters, dry_run: bool = False) -> str:
    """Human-readable counters block printed at the end of a run."""
    lines: List[str] = []
    title = "Summary (dry run)" if dry_run else "Summary"
    lines.append(f"=== {title} ===")
    lines.append(f"Total:      {counters.total}")
    lines.append(f"Copied:     {counters.copied}")
    lines.append(f"Duplicate:  {counters.duplicate}")
    lines.append(f"Skipped:    {counters.skipped}")
    if counters.failed:
        lines.append(f"Failed:     {counters.failed}")
    return "\n".join(lines)
