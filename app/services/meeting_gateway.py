from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from app.core.config import get_settings
from app.schemas.meeting import MeetingRecord, MeetingRequestCreate
from app.schemas.statistics import MeetingStatistics
from app.services.errors import (
    ActionRejectedError,
    MissingFieldsError,
    UpstreamUnavailableError,
)
from app.services.meeting_statistics import compute_statistics
from app.services.response_normalizer import ResponseNormalizer, generate_request_id
from app.services.row_decoder import DEFAULT_URGENCY, RowDecoder
from app.services.sample_data import sample_meetings
from app.services.sheets_client import SheetsClient
from app.services.webhook_client import WebhookClient, WebhookClientError

logger = logging.getLogger(__name__)

VALID_ACTIONS = ("approve", "reject", "reschedule")
ACTION_DETAIL_FIELDS = ("newDate", "newTime", "newDuration", "newLocation", "newMeetingType")
AUTH_RACE_STATUSES = (401, 403)


@dataclass
class MeetingListResult:
    """
    Outcome of one fetch of the meeting list.

    On failure `success` is False, `error` carries the reason and
    `meetings` is empty (or the sample list when the fallback is enabled).
    """

    success: bool
    meetings: List[MeetingRecord]
    statistics: MeetingStatistics
    message: str
    source: str
    fetched_at: datetime
    last_updated: Optional[str] = None
    error: Optional[str] = None
    shape: Optional[str] = None
    used_sample_data: bool = False


@dataclass
class ActionResult:
    success: bool
    action: str
    request_id: str
    message: str
    error: Optional[str] = None
    forwarded: Dict[str, Any] = field(default_factory=dict)


def filter_meetings(
    records: Iterable[MeetingRecord],
    status: Optional[str] = None,
    priority: Optional[str] = None,
    meeting_type: Optional[str] = None,
) -> List[MeetingRecord]:
    """
    Case-insensitive filtering used by the admin list.

    Missing values are read as status "pending", priority "medium" and
    type "online".
    """

    def _norm(value: Optional[str], default: str) -> str:
        return (value or "").strip().lower() or default

    wanted_status = _norm(status, "")
    wanted_priority = _norm(priority, "")
    wanted_type = _norm(meeting_type, "")

    result: List[MeetingRecord] = []
    for record in records:
        if wanted_status and _norm(record.status, "pending") != wanted_status:
            continue
        if wanted_priority and _norm(record.urgency, DEFAULT_URGENCY) != wanted_priority:
            continue
        if wanted_type and _norm(record.meeting_type, "online") != wanted_type:
            continue
        result.append(record)
    return result


def _parse_reschedule_instant(new_date: str, new_time: str) -> datetime:
    try:
        return datetime.fromisoformat(f"{new_date.strip()}T{new_time.strip()}")
    except ValueError as exc:
        raise ActionRejectedError(
            "newDate/newTime must be a valid date (YYYY-MM-DD) and time (HH:MM)."
        ) from exc


class MeetingLifecycleGateway:
    """
    Orchestrates reading the meeting list and submitting admin actions.

    Responsibilities
    ----------------
    - Fetch meetings from the configured source (workflow webhook or
      spreadsheet) and normalize them into canonical records + statistics.
    - Hold the last successful result. It is replaced with a single
      assignment, so readers never observe a partially updated list; when
      two fetches overlap, the one finishing last wins.
    - Validate and forward approve/reject/reschedule actions. Local state is
      never changed by an action; callers re-fetch to observe its effect.
    - Forward new meeting requests to the intake webhook.
    """

    def __init__(
        self,
        settings: Any,
        webhook_client: Optional[WebhookClient] = None,
        sheets_client: Optional[SheetsClient] = None,
    ) -> None:
        self.settings = settings
        self.webhook = webhook_client or WebhookClient(
            timeout_seconds=settings.WEBHOOK_TIMEOUT_SECONDS
        )
        self._sheets_client = sheets_client
        self._current: Optional[MeetingListResult] = None

    @property
    def source(self) -> str:
        return (self.settings.MEETINGS_SOURCE or "webhook").strip().lower()

    def current(self) -> Optional[MeetingListResult]:
        """
        Last successfully fetched list, or None before the first fetch.
        """
        return self._current

    # ------------------------------------------------------------------
    # Reading
    # ------------------------------------------------------------------
    async def fetch(self, sync: bool = False, now: Optional[datetime] = None) -> MeetingListResult:
        """
        Fetch and normalize the meeting list. Never raises.
        """
        now = now or datetime.now(tz=timezone.utc)
        try:
            if self.source == "sheets":
                result = await self._fetch_from_sheets(now)
            else:
                result = await self._fetch_from_webhook(sync, now)
        except UpstreamUnavailableError as exc:
            logger.error("Failed to fetch meetings from %s: %s", self.source, exc)
            result = self._failure(str(exc), now)
        except Exception as exc:  # noqa: BLE001 - the admin list must always answer
            logger.exception("Unexpected error while fetching meetings")
            result = self._failure(str(exc), now)

        if result.success:
            self._current = result
        logger.info(
            "Meeting fetch from %s finished: success=%s, %d meetings",
            self.source,
            result.success,
            len(result.meetings),
        )
        return result

    async def refresh(self, now: Optional[datetime] = None) -> MeetingListResult:
        """
        Admin-triggered re-fetch (uses the sync timeout and marks the request).
        """
        return await self.fetch(sync=True, now=now)

    async def _fetch_from_webhook(self, sync: bool, now: datetime) -> MeetingListResult:
        url = self.settings.ADMIN_MEETINGS_WEBHOOK
        if not url:
            logger.warning("Admin meetings webhook URL not configured")
            return MeetingListResult(
                success=True,
                meetings=[],
                statistics=compute_statistics([], now=now),
                message="Workflow webhook not configured",
                source="webhook",
                fetched_at=now,
            )

        method = (self.settings.ADMIN_MEETINGS_WEBHOOK_METHOD or "GET").strip().upper()
        params: Optional[Dict[str, Any]] = None
        timeout = self.settings.WEBHOOK_TIMEOUT_SECONDS
        if sync:
            params = {"sync": "true", "triggeredBy": "admin", "timestamp": now.isoformat()}
            timeout = self.settings.SYNC_TIMEOUT_SECONDS

        try:
            payload = await self.webhook.send(method, url, params=params, timeout_seconds=timeout)
        except WebhookClientError as exc:
            if exc.status_code not in AUTH_RACE_STATUSES:
                raise
            logger.warning("Meetings webhook answered %s, retrying once", exc.status_code)
            payload = await self.webhook.send(method, url, params=params, timeout_seconds=timeout)

        normalized = ResponseNormalizer.normalize(payload, now=now)
        meetings = normalized.records
        return MeetingListResult(
            success=True,
            meetings=meetings,
            statistics=compute_statistics(meetings, external=normalized.statistics, now=now),
            message=normalized.message or f"Successfully loaded {len(meetings)} meetings",
            source="webhook",
            fetched_at=now,
            last_updated=normalized.last_updated,
            shape=normalized.shape,
        )

    def _sheets(self) -> SheetsClient:
        if self._sheets_client is None:
            if not self.settings.GOOGLE_SHEETS_ID:
                raise UpstreamUnavailableError(
                    "GOOGLE_SHEETS_ID not configured; cannot read the spreadsheet."
                )
            self._sheets_client = SheetsClient(
                spreadsheet_id=self.settings.GOOGLE_SHEETS_ID,
                api_key=self.settings.GOOGLE_API_KEY,
                value_range=self.settings.GOOGLE_SHEETS_RANGE,
                timeout_seconds=self.settings.WEBHOOK_TIMEOUT_SECONDS,
            )
        return self._sheets_client

    async def _fetch_from_sheets(self, now: datetime) -> MeetingListResult:
        values = await self._sheets().fetch_values()
        meetings = RowDecoder.decode_table(values, now=now)
        return MeetingListResult(
            success=True,
            meetings=meetings,
            statistics=compute_statistics(meetings, now=now),
            message=f"Successfully loaded {len(meetings)} meetings",
            source="sheets",
            fetched_at=now,
            shape="table",
        )

    def _failure(self, error: str, now: datetime) -> MeetingListResult:
        if self.source == "sheets" and self.settings.SAMPLE_DATA_FALLBACK:
            logger.warning("Falling back to sample meetings; fix the spreadsheet connection")
            meetings = sample_meetings(now=now)
            return MeetingListResult(
                success=False,
                meetings=meetings,
                statistics=compute_statistics(meetings, now=now),
                message="Spreadsheet unavailable, showing sample data",
                source=self.source,
                fetched_at=now,
                error=error,
                used_sample_data=True,
            )

        return MeetingListResult(
            success=False,
            meetings=[],
            statistics=compute_statistics([], now=now),
            message="Failed to fetch meetings",
            source=self.source,
            fetched_at=now,
            error=error,
        )

    # ------------------------------------------------------------------
    # Writing
    # ------------------------------------------------------------------
    @staticmethod
    def validate_action(
        request_id: str,
        action: str,
        details: Dict[str, Any],
        now: Optional[datetime] = None,
    ) -> None:
        """
        Raise ActionRejectedError when the action cannot be forwarded.

        A reschedule needs `newDate` and `newTime`, and the combined instant
        must be strictly in the future. Naive instants are read as server
        local time.
        """
        if not request_id or not str(request_id).strip():
            raise ActionRejectedError("Request ID and action are required")
        if action not in VALID_ACTIONS:
            raise ActionRejectedError("Invalid action. Must be: approve, reject, or reschedule")

        if action != "reschedule":
            return

        new_date = str(details.get("newDate") or "").strip()
        new_time = str(details.get("newTime") or "").strip()
        if not new_date or not new_time:
            raise ActionRejectedError("Please provide new date and time for rescheduling.")

        instant = _parse_reschedule_instant(new_date, new_time)
        now = now or datetime.now(tz=timezone.utc)
        if instant.tzinfo is None:
            reference = now.astimezone().replace(tzinfo=None)
        else:
            reference = now if now.tzinfo else now.replace(tzinfo=timezone.utc)
        if instant <= reference:
            raise ActionRejectedError("Please select a future date and time.")

    async def submit_action(
        self,
        request_id: str,
        action: str,
        details: Optional[Dict[str, Any]] = None,
        admin_email: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ActionResult:
        """
        Validate an admin action and forward it to the action webhook.

        Raises ActionRejectedError for invalid actions; transport failures
        are returned as an unsuccessful ActionResult.
        """
        details = details or {}
        action = (action or "").strip().lower()
        self.validate_action(request_id, action, details, now=now)

        now = now or datetime.now(tz=timezone.utc)
        forwarded: Dict[str, Any] = {
            "requestId": request_id,
            "action": action,
            "adminEmail": admin_email or self.settings.ADMIN_EMAIL,
            "adminNotes": details.get("adminNotes") or "",
        }
        for name in ACTION_DETAIL_FIELDS:
            forwarded[name] = details.get(name) or None
        forwarded["timestamp"] = now.isoformat()

        url = self.settings.ADMIN_ACTION_WEBHOOK
        if not url:
            logger.error("Admin action webhook URL not configured")
            return ActionResult(
                success=False,
                action=action,
                request_id=request_id,
                message="Failed to process admin action",
                error="Admin action webhook not configured",
                forwarded=forwarded,
            )

        try:
            await self.webhook.post_json(url, json=forwarded)
        except WebhookClientError as exc:
            logger.error("Admin action %s for %s failed: %s", action, request_id, exc)
            return ActionResult(
                success=False,
                action=action,
                request_id=request_id,
                message="Failed to process admin action",
                error=str(exc),
                forwarded=forwarded,
            )

        logger.info("Admin action %s sent for %s", action, request_id)
        return ActionResult(
            success=True,
            action=action,
            request_id=request_id,
            message=f"Meeting {action} successfully",
            forwarded=forwarded,
        )

    async def submit_request(
        self,
        request: MeetingRequestCreate,
        now: Optional[datetime] = None,
    ) -> tuple[str, Dict[str, Any]]:
        """
        Forward a validated meeting request to the intake webhook.

        Returns the synthesized request id and the forwarded payload.
        Raises MissingFieldsError for incomplete requests and
        UpstreamUnavailableError when the webhook is missing or fails.
        """
        missing = request.missing_fields()
        if missing:
            raise MissingFieldsError(missing)

        now = now or datetime.now(tz=timezone.utc)
        payload = request.model_dump(by_alias=True)
        payload["estimatedDuration"] = payload["estimatedDuration"] or "60"
        payload["urgency"] = payload["urgency"] or "normal"
        payload["timestamp"] = now.isoformat()
        payload["source"] = "web-panel"

        url = self.settings.MEETING_REQUEST_WEBHOOK
        if not url:
            raise UpstreamUnavailableError("Meeting request webhook URL not configured")

        await self.webhook.post_json(url, json=payload)
        request_id = generate_request_id()
        logger.info("Meeting request %s forwarded to workflow", request_id)
        return request_id, payload


_gateway_instance: Optional[MeetingLifecycleGateway] = None


def get_meeting_gateway() -> MeetingLifecycleGateway:
    """
    Lazily construct the shared gateway wired to application settings.

    Shared so the last fetched list survives between requests; also used as
    a FastAPI dependency.
    """
    global _gateway_instance
    if _gateway_instance is None:
        _gateway_instance = MeetingLifecycleGateway(settings=get_settings())
    return _gateway_instance
