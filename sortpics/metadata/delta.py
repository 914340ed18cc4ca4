"""
Date delta expressions for --date, e.g. "+1d -2h", "-1y 3mo", "+90s".
"""
import re
from datetime import datetime
from typing import Optional

from dateutil.relativedelta import relativedelta

from ..exceptions import DateDeltaError

_UNITS = {
    'y': 'years', 'year': 'years', 'years': 'years',
    'mo': 'months', 'month': 'months', 'months': 'months',
    'w': 'weeks', 'week': 'weeks', 'weeks': 'weeks',
    'd': 'days', 'day': 'days', 'days': 'days',
    'h': 'hours', 'hour': 'hours', 'hours': 'hours',
    'm': 'minutes', 'min': 'minutes', 'minute': 'minutes', 'minutes': 'minutes',
    's': 'seconds', 'sec': 'seconds', 'second': 'seconds', 'seconds': 'seconds',
}

_TOKEN = re.compile(r'\s*([+-]?)\s*(\d+)\s*([a-zA-Z]+)\s*')


def parse_date_delta(expr: str) -> relativedelta:
    """
    Parses a sequence of signed <number><unit> tokens. A sign carries over to
    the following unsigned tokens until another sign appears.
    """
    if not expr or not expr.strip():
        raise DateDeltaError("Empty date delta")

    amounts = {}
    sign = 1
    pos = 0
    while pos < len(expr):
        match = _TOKEN.match(expr, pos)
        if not match:
            raise DateDeltaError(f"Invalid date delta near {expr[pos:]!r}")

        sign_str, number, unit = match.groups()
        field = _UNITS.get(unit.lower())
        if field is None:
            raise DateDeltaError(f"Unknown date delta unit {unit!r}")
        if sign_str:
            sign = -1 if sign_str == '-' else 1

        amounts[field] = amounts.get(field, 0) + sign * int(number)
        pos = match.end()

    return relativedelta(**amounts)


def apply_delta(dt: datetime, delta: Optional[relativedelta]) -> datetime:
    if not delta:
        return dt
    return dt + delta
