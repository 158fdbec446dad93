from __future__ import annotations

import logging
import secrets
import string
import time
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional

from app.schemas.meeting import MeetingRecord
from app.services.field_aliases import alias_record
from app.services.row_decoder import build_record, ensure_unique_ids

logger = logging.getLogger(__name__)

_CONTAINER_KEYS = ("items", "response", "result")
_RECORD_HINTS = ("requestId", "userName", "meetingPurpose")
_WORKFLOW_STARTED = "Workflow was started"


def generate_request_id() -> str:
    """
    `<epoch-millis>_<random>` id used when an upstream record carries none.
    """
    alphabet = string.ascii_lowercase + string.digits
    suffix = "".join(secrets.choice(alphabet) for _ in range(6))
    return f"{int(time.time() * 1000)}_{suffix}"


@dataclass
class NormalizedPayload:
    """
    Result of normalizing a workflow reply.

    `shape` names the structure that matched (e.g. "array", "meetings",
    "auto:customData") or "unknown" when nothing did.
    """

    records: List[MeetingRecord] = field(default_factory=list)
    statistics: Optional[Dict[str, Any]] = None
    last_updated: Optional[str] = None
    message: str = ""
    shape: str = "unknown"


@dataclass
class _Match:
    items: List[Any]
    shape: str
    statistics: Optional[Dict[str, Any]] = None
    last_updated: Optional[str] = None
    message: str = ""


def _match_array(payload: Any) -> Optional[_Match]:
    if isinstance(payload, list):
        return _Match(items=payload, shape="array")
    return None


def _match_meetings(payload: Any) -> Optional[_Match]:
    if isinstance(payload, dict) and isinstance(payload.get("meetings"), list):
        statistics = payload.get("statistics")
        last_updated = payload.get("lastUpdated")
        message = payload.get("message")
        return _Match(
            items=payload["meetings"],
            shape="meetings",
            statistics=statistics if isinstance(statistics, dict) else None,
            last_updated=str(last_updated) if last_updated else None,
            message=message if isinstance(message, str) else "",
        )
    return None


def _match_data(payload: Any) -> Optional[_Match]:
    if isinstance(payload, dict) and isinstance(payload.get("data"), list):
        return _Match(items=payload["data"], shape="data")
    return None


def _match_container(payload: Any) -> Optional[_Match]:
    if not isinstance(payload, dict):
        return None
    for key in _CONTAINER_KEYS:
        if isinstance(payload.get(key), list):
            return _Match(items=payload[key], shape=key)
    return None


def _match_single_record(payload: Any) -> Optional[_Match]:
    if isinstance(payload, dict) and (payload.get("requestId") or payload.get("id")):
        return _Match(items=[payload], shape="single")
    return None


def _match_auto_detect(payload: Any) -> Optional[_Match]:
    if not isinstance(payload, dict):
        return None
    for key, value in payload.items():
        if not isinstance(value, list) or not value:
            continue
        first = value[0]
        if isinstance(first, dict) and any(first.get(hint) for hint in _RECORD_HINTS):
            return _Match(items=value, shape=f"auto:{key}")
    return None


# Order matters: the first matcher returning a match wins.
MATCHERS: tuple[Callable[[Any], Optional[_Match]], ...] = (
    _match_array,
    _match_meetings,
    _match_data,
    _match_container,
    _match_single_record,
    _match_auto_detect,
)


class ResponseNormalizer:
    """
    Locates the meeting records inside an arbitrary workflow reply.

    The workflow engine's reply shape depends on how its "respond" step is
    configured, so this is a best-effort extraction that always returns a
    result and never raises.

    Resolution order
    ----------------
    1) A bare list is the record list.
    2) A dict holding a dict/list under `json` is unwrapped and re-checked.
    3) `meetings` list (with sibling `statistics`, `lastUpdated`, `message`).
    4) `data` list.
    5) `items`, `response`, then `result` list.
    6) A dict with `requestId` or `id` is a single record.
    7) The first list property whose first element looks like a meeting.
    8) Otherwise: no records, with a diagnostic message.
    """

    @staticmethod
    def unwrap(payload: Any) -> Any:
        """
        Descend through nested `json` wrappers.
        """
        depth = 0
        while (
            isinstance(payload, dict)
            and isinstance(payload.get("json"), (dict, list))
            and depth < 10
        ):
            payload = payload["json"]
            depth += 1
        return payload

    @classmethod
    def locate(cls, payload: Any) -> Optional[_Match]:
        payload = cls.unwrap(payload)
        for matcher in MATCHERS:
            match = matcher(payload)
            if match is not None:
                return match
        return None

    @classmethod
    def normalize(
        cls,
        payload: Any,
        now: Optional[datetime] = None,
    ) -> NormalizedPayload:
        try:
            match = cls.locate(payload)
        except Exception:  # noqa: BLE001 - normalization must stay total
            logger.exception("Unexpected error while inspecting workflow payload")
            match = None

        if match is None:
            return NormalizedPayload(message=cls._diagnose(payload))

        records: List[MeetingRecord] = []
        dropped = 0
        for item in match.items:
            if not isinstance(item, dict):
                dropped += 1
                continue
            record = build_record(alias_record(item), generate_request_id(), now=now)
            if record is None:
                dropped += 1
                continue
            records.append(record)

        logger.info(
            "Workflow payload matched shape '%s': %d records kept, %d dropped",
            match.shape,
            len(records),
            dropped,
        )

        return NormalizedPayload(
            records=ensure_unique_ids(records),
            statistics=match.statistics,
            last_updated=match.last_updated,
            message=match.message,
            shape=match.shape,
        )

    @classmethod
    def _diagnose(cls, payload: Any) -> str:
        inner = cls.unwrap(payload)
        if isinstance(inner, dict) and inner.get("message") == _WORKFLOW_STARTED:
            logger.warning(
                "Workflow started but returned no data; "
                "its webhook must answer through a respond step"
            )
            return (
                "Workflow was started but returned no meeting data. "
                "Configure the workflow to respond with the meeting list."
            )

        if isinstance(inner, dict):
            logger.warning(
                "Unknown workflow payload structure, properties: %s", sorted(inner)
            )
            return "No meeting data found in workflow response."

        logger.warning("Unsupported workflow payload type: %s", type(inner).__name__)
        return "No meeting data found in workflow response."
