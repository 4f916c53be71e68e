"""
Report Analytics

Derived metrics computed in memory from report listings. Quantities, values
and turnaround times are free text or need row-level arithmetic, so they are
aggregated here with pandas rather than in SQL.

Author: AgriShield Platform Team
Copyright: © 2025 AgriShield District Agriculture Enforcement
"""

import math
import re
from datetime import datetime, timedelta
from typing import Optional, List, Dict, Any, Iterable, Tuple

import pandas as pd

_NON_NUMERIC = re.compile(r'[^0-9.]')
_LEADING_NUMBER = re.compile(r'\d+(?:\.\d*)?|\.\d+')

SECONDS_PER_HOUR = 60 * 60
SECONDS_PER_DAY = 24 * SECONDS_PER_HOUR


def parse_numeric_text(value: Optional[str]) -> Optional[float]:
    """
    Canonical parser for user-entered amounts such as '₹12,500.50 approx'.

    Every character other than digits and '.' is stripped and the leading
    number of what remains is read ('12500.50' -> 12500.5, '1.2.3' -> 1.2).
    Returns None when nothing numeric is left ('N/A', '', '.') or the number
    overflows a float.
    """
    if value is None:
        return None
    cleaned = _NON_NUMERIC.sub('', str(value))
    match = _LEADING_NUMBER.match(cleaned)
    if not match:
        return None
    number = float(match.group(0))
    return number if math.isfinite(number) else None


def to_naive_utc(values: Iterable[Any]) -> pd.Series:
    """Timestamps as naive UTC; offset-aware values are converted, naive ones taken as UTC"""
    stamps = pd.to_datetime(pd.Series(list(values), dtype='object'), utc=True)
    return stamps.dt.tz_localize(None)


def round_half_up(value: float) -> int:
    """Round to the nearest integer with .5 going up (not banker's rounding)"""
    return int(math.floor(value + 0.5))


def format_rate(part: int, total: int) -> str:
    """Percentage with one decimal place; '0.0' for an empty set"""
    if not total:
        return "0.0"
    return f"{part / total * 100:.1f}"


def value_analysis(values: Iterable[Optional[str]]) -> Dict[str, Any]:
    """
    Sum, average and count of the parseable estimated values.

    Unparseable values are excluded from all three figures.
    """
    parsed = pd.Series([parse_numeric_text(v) for v in values], dtype='float64').dropna()
    count = int(parsed.size)
    total = float(parsed.sum()) if count else 0.0
    return {
        "sum": total,
        "avg": total / count if count else 0.0,
        "count": count
    }


def frequency_table(
    items: Iterable[Optional[str]],
    label: str,
    limit: Optional[int] = None
) -> List[Dict[str, Any]]:
    """Count occurrences of each value, most frequent first"""
    series = pd.Series(list(items), dtype='object').dropna()
    if series.empty:
        return []
    counts = series.value_counts(sort=True, ascending=False)
    if limit:
        counts = counts.head(limit)
    return [{label: str(value), "count": int(count)} for value, count in counts.items()]


def equipment_usage(equipment_lists: Iterable[List[str]]) -> List[Dict[str, Any]]:
    """Frequency of every equipment tag across all inspections"""
    return frequency_table(
        (tag for tags in equipment_lists for tag in (tags or [])),
        label="equipment"
    )


def turnaround_analysis(
    records: Iterable[Tuple[str, datetime, datetime]],
    done_status: str,
    unit_seconds: int
) -> Tuple[int, int, int]:
    """
    Average createdAt -> updatedAt duration of finished records.

    Args:
        records: (status, created_at, updated_at) per record
        done_status: Status that marks a record as finished
        unit_seconds: Length of the reporting unit (hour, day) in seconds

    Returns:
        (average duration rounded half-up, finished count, total count)
    """
    frame = pd.DataFrame(list(records), columns=['status', 'created_at', 'updated_at'])
    total = int(len(frame))
    done = frame[frame['status'] == done_status]
    if done.empty:
        return 0, 0, total

    durations = (
        to_naive_utc(done['updated_at']) - to_naive_utc(done['created_at'])
    ).dt.total_seconds() / unit_seconds
    return round_half_up(float(durations.mean())), int(len(done)), total


def completion_analytics(records: Iterable[Tuple[str, datetime, datetime]]) -> Dict[str, Any]:
    """Lab sample turnaround: hours to completion and completion rate"""
    avg_hours, completed, total = turnaround_analysis(records, 'completed', SECONDS_PER_HOUR)
    return {
        "avgCompletionTimeHours": avg_hours,
        "completionRate": format_rate(completed, total)
    }


def resolution_analytics(records: Iterable[Tuple[str, datetime, datetime]]) -> Dict[str, Any]:
    """FIR case turnaround: days to closure and resolution rate"""
    avg_days, closed, total = turnaround_analysis(records, 'closed', SECONDS_PER_DAY)
    return {
        "avgResolutionTimeDays": avg_days,
        "resolutionRate": format_rate(closed, total)
    }


def compliance_rate(statuses: Iterable[str]) -> float:
    """Share of completed inspections, one decimal place"""
    statuses = list(statuses)
    completed = sum(1 for status in statuses if status == 'completed')
    return float(format_rate(completed, len(statuses)))


def trend(total: int, created_at: Iterable[datetime], now: datetime, window_days: int) -> Dict[str, Any]:
    """Records created inside the trailing window, relative to the running total"""
    cutoff = to_naive_utc([now]).iloc[0] - timedelta(days=window_days)
    stamps = to_naive_utc(created_at)
    recent = int((stamps >= cutoff).sum()) if not stamps.empty else 0
    return {
        "current": total,
        "recent": recent,
        "change": f"+{recent}" if recent > 0 else "0"
    }
