from __future__ import annotations

import csv
import io
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence

from pydantic import ValidationError

from app.schemas.meeting import MeetingRecord
from app.services.field_aliases import as_text, resolve_field_name

logger = logging.getLogger(__name__)

_REQUIRED = ("userName", "userEmail", "meetingPurpose")
DEFAULT_URGENCY = "medium"


def parse_csv(content: str) -> List[List[str]]:
    """
    Parse a spreadsheet CSV export into rows of trimmed cells.

    Rows where every cell is blank are dropped.
    """
    rows: List[List[str]] = []
    reader = csv.reader(io.StringIO(content))
    for raw in reader:
        cells = [cell.strip() for cell in raw]
        if any(cells):
            rows.append(cells)
    return rows


def build_record(
    fields: Dict[str, Any],
    default_request_id: str,
    now: Optional[datetime] = None,
) -> Optional[MeetingRecord]:
    """
    Apply defaults to aliased fields and turn them into a MeetingRecord.

    Returns None when the record fails the validity rule (name, email and
    purpose all non-blank) or cannot be validated at all.
    """
    if not all(as_text(fields.get(name)) for name in _REQUIRED):
        return None

    data = dict(fields)
    if not data.get("status"):
        data["status"] = "Pending"
    if not data.get("requestId"):
        data["requestId"] = default_request_id
    if not data.get("timestamp"):
        data["timestamp"] = data.get("createdDate") or (
            now or datetime.now(tz=timezone.utc)
        ).isoformat()
    data["urgency"] = (data.get("urgency") or DEFAULT_URGENCY).lower()

    try:
        return MeetingRecord.model_validate(data)
    except ValidationError as exc:
        logger.warning("Dropping meeting %s: %s", data["requestId"], exc)
        return None


def ensure_unique_ids(records: List[MeetingRecord]) -> List[MeetingRecord]:
    """
    Suffix repeated request ids (`R1`, `R1_2`, `R1_3`, ...) keeping order.
    """
    taken = {record.request_id for record in records}
    seen: Dict[str, int] = {}
    unique: List[MeetingRecord] = []
    for record in records:
        count = seen.get(record.request_id, 0) + 1
        seen[record.request_id] = count
        if count > 1:
            # Skip suffixes that collide with ids already in the list.
            new_id = f"{record.request_id}_{count}"
            while new_id in taken:
                count += 1
                new_id = f"{record.request_id}_{count}"
            seen[record.request_id] = count
            taken.add(new_id)
            logger.info("Duplicate request id %s renamed to %s", record.request_id, new_id)
            record = record.model_copy(update={"request_id": new_id})
        unique.append(record)
    return unique


class RowDecoder:
    """
    Converts tabular spreadsheet data into canonical meeting records.

    Rules
    -----
    - Each header is resolved through the field alias table; cells missing
      from short rows read as empty strings.
    - Duplicate headers: the right-most column wins.
    - `status` defaults to "Pending", `requestId` to `sheet_<n>` (1-based
      data row number) and `timestamp` to `createdDate` or the current time.
    - `urgency` is lower-cased; blank or missing means "medium".
    - Rows without name, email or purpose are dropped; order is preserved.
    - A missing or malformed header row yields an empty list.
    """

    @staticmethod
    def decode(
        headers: Sequence[Any],
        rows: Sequence[Sequence[Any]],
        now: Optional[datetime] = None,
    ) -> List[MeetingRecord]:
        if not isinstance(headers, (list, tuple)) or not headers:
            logger.warning("Spreadsheet has no header row; nothing to decode")
            return []

        resolved = [resolve_field_name(header) for header in headers]
        if all(resolution is None for resolution in resolved):
            logger.warning("Spreadsheet header row has no usable column names")
            return []

        records: List[MeetingRecord] = []
        for index, row in enumerate(rows, start=1):
            if not isinstance(row, (list, tuple)):
                continue

            fields: Dict[str, Any] = {}
            for col, resolution in enumerate(resolved):
                if resolution is None:
                    continue
                value = as_text(row[col]) if col < len(row) else ""
                fields[resolution.canonical] = value

            record = build_record(fields, default_request_id=f"sheet_{index}", now=now)
            if record is None:
                if any(as_text(cell) for cell in row):
                    logger.info(
                        "Filtering out row %d: missing name, email or purpose", index
                    )
                continue
            records.append(record)

        logger.info("Decoded %d valid meetings from %d rows", len(records), len(rows))
        return ensure_unique_ids(records)

    @classmethod
    def decode_table(
        cls,
        values: Sequence[Sequence[Any]],
        now: Optional[datetime] = None,
    ) -> List[MeetingRecord]:
        """
        Decode a full table whose first row holds the column headers.
        """
        if not values:
            return []
        return cls.decode(values[0], values[1:], now=now)
