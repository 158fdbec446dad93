from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Iterable, Optional

from app.schemas.meeting import MeetingRecord, MeetingStatus
from app.schemas.statistics import MeetingStatistics

# External statistic key -> local counter it overrides.
EXTERNAL_OVERRIDES = {
    "totalCount": "total",
    "pendingCount": "pending",
    "approvedCount": "approved",
}


def _parse_timestamp(value: str) -> Optional[datetime]:
    """
    Parse an ISO-8601 timestamp and normalize to UTC.

    Returns None if parsing fails.
    """
    if not value:
        return None
    try:
        dt = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return None

    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def count_this_week(
    records: Iterable[MeetingRecord],
    now: Optional[datetime] = None,
) -> int:
    """
    Number of records whose timestamp falls within the trailing 7 days.
    """
    now = now or datetime.now(tz=timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    one_week_ago = now - timedelta(days=7)

    count = 0
    for record in records:
        submitted = _parse_timestamp(record.timestamp)
        if submitted is not None and submitted >= one_week_ago:
            count += 1
    return count


def compute_statistics(
    records: list[MeetingRecord],
    external: Optional[Dict[str, Any]] = None,
    now: Optional[datetime] = None,
) -> MeetingStatistics:
    """
    Compute dashboard counters for a canonical meeting list.

    Steps
    -----
    1) Count records per status, urgency and meeting type, case-insensitively.
       Unrecognised values only count toward `total`.
    2) If the workflow supplied its own statistics, its `totalCount`,
       `pendingCount` and `approvedCount` replace the local values.
    3) `this_week` is always computed locally; external statistics never
       carry it.
    """
    stats = MeetingStatistics(total=len(records))

    for record in records:
        status = (record.status or "").strip().lower()
        if status in {s.value for s in MeetingStatus}:
            setattr(stats, status, getattr(stats, status) + 1)

        priority = record.priority_enum
        if priority is not None:
            stats.by_priority[priority.value] += 1

        meeting_type = record.type_enum
        if meeting_type is not None:
            stats.by_meeting_type[meeting_type.value] += 1

    if external:
        overridden = False
        for external_key, local_field in EXTERNAL_OVERRIDES.items():
            value = external.get(external_key)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                continue
            setattr(stats, local_field, int(value))
            overridden = True
        if overridden:
            stats.source = "external"

    stats.this_week = count_this_week(records, now=now)
    return stats
