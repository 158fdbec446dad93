import logging
import secrets
from datetime import datetime, timezone
from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException, Query, Request

from app.api.dependencies.admin_auth import require_admin_session
from app.core.config import get_settings
from app.schemas.admin import (
    AdminActionRequest,
    AdminActionResponse,
    AdminLoginRequest,
    AdminLoginResponse,
    AdminMeetingsResponse,
    AdminSessionStatus,
    SyncMetadata,
    SyncResponse,
)
from app.services.errors import ActionRejectedError
from app.services.meeting_gateway import (
    MeetingLifecycleGateway,
    filter_meetings,
    get_meeting_gateway,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/admin", tags=["Admin"])


@router.post(
    "/login",
    response_model=AdminLoginResponse,
    summary="Log in as administrator",
    description=(
        "Checks the credentials against `ADMIN_USERNAME` / `ADMIN_PASSWORD` and "
        "marks the session cookie as authenticated."
    ),
    responses={
        400: {"description": "Username or password missing."},
        401: {"description": "Invalid credentials."},
    },
)
async def login(payload: AdminLoginRequest, request: Request) -> AdminLoginResponse:
    if not payload.username or not payload.password:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="Username and password are required",
        )

    settings = get_settings()
    expected_user = settings.ADMIN_USERNAME or ""
    expected_password = settings.ADMIN_PASSWORD or ""
    # Compared as bytes; compare_digest rejects non-ASCII str.
    user_ok = secrets.compare_digest(
        payload.username.encode("utf-8"), expected_user.encode("utf-8")
    )
    password_ok = secrets.compare_digest(
        payload.password.encode("utf-8"), expected_password.encode("utf-8")
    )
    if not (expected_user and expected_password and user_ok and password_ok):
        logger.warning("Rejected admin login for user %r", payload.username)
        raise HTTPException(status_code=HTTPStatus.UNAUTHORIZED, detail="Invalid credentials")

    request.session["is_admin"] = True
    request.session["admin_email"] = settings.ADMIN_EMAIL
    request.session["login_time"] = datetime.now(tz=timezone.utc).isoformat()
    logger.info("Admin %s logged in", settings.ADMIN_EMAIL)
    return AdminLoginResponse(message="Login successful")


@router.post("/logout", summary="Log out the current administrator")
async def logout(request: Request) -> dict:
    request.session.clear()
    return {"success": True, "message": "Logged out successfully"}


@router.get(
    "/session",
    response_model=AdminSessionStatus,
    summary="Check the admin session",
    responses={401: {"description": "Not logged in."}},
)
async def session_status(admin_email: str = Depends(require_admin_session)) -> AdminSessionStatus:
    return AdminSessionStatus(admin=admin_email)


@router.get(
    "/meetings",
    response_model=AdminMeetingsResponse,
    summary="List meeting requests for the admin panel",
    description=(
        "Fetches the current meeting list from the configured source (workflow "
        "webhook or spreadsheet), normalizes it into canonical records and "
        "returns it with dashboard statistics.\n\n"
        "Upstream failures are reported with `success=false` instead of an error "
        "status, so the panel can keep rendering. The list is then the last "
        "successfully fetched one (`usedCachedData=true`), or empty when nothing "
        "was fetched yet.\n\n"
        "Statistics always describe the full list; the optional filters only "
        "narrow `meetings`."
    ),
    responses={401: {"description": "Not logged in."}},
)
async def list_meetings(
    status: str | None = Query(default=None, description="Filter by status.", example="pending"),
    priority: str | None = Query(default=None, description="Filter by urgency.", example="high"),
    meeting_type: str | None = Query(
        default=None,
        alias="meetingType",
        description="Filter by meeting type.",
        example="online",
    ),
    _admin: str = Depends(require_admin_session),
    gateway: MeetingLifecycleGateway = Depends(get_meeting_gateway),
) -> AdminMeetingsResponse:
    result = await gateway.fetch()
    listed = result
    used_cached_data = False
    cached = gateway.current()
    if not result.success and cached is not None:
        # Keep the failure visible but show the last good list.
        logger.warning("Serving cached meetings fetched at %s", cached.fetched_at.isoformat())
        listed = cached
        used_cached_data = True

    meetings = filter_meetings(
        listed.meetings,
        status=status,
        priority=priority,
        meeting_type=meeting_type,
    )
    return AdminMeetingsResponse(
        success=result.success,
        meetings=meetings,
        statistics=listed.statistics,
        last_updated=listed.last_updated,
        message=result.message,
        count=len(meetings),
        error=result.error,
        source=result.source,
        used_sample_data=listed.used_sample_data,
        used_cached_data=used_cached_data,
    )


@router.post(
    "/meeting/action",
    response_model=AdminActionResponse,
    summary="Approve, reject or reschedule a meeting request",
    description=(
        "Validates the action and forwards it to the workflow's action webhook. "
        "A reschedule requires `newDate` and `newTime` in the future.\n\n"
        "The meeting list is not changed locally; re-fetch it to see the result."
    ),
    responses={
        400: {"description": "Invalid action, missing request id or past reschedule time."},
        401: {"description": "Not logged in."},
        502: {"description": "The workflow could not be reached."},
    },
)
async def meeting_action(
    payload: AdminActionRequest,
    admin_email: str = Depends(require_admin_session),
    gateway: MeetingLifecycleGateway = Depends(get_meeting_gateway),
) -> AdminActionResponse:
    details = payload.model_dump(by_alias=True, exclude={"request_id", "action"})
    try:
        result = await gateway.submit_action(
            payload.request_id,
            payload.action,
            details=details,
            admin_email=admin_email,
        )
    except ActionRejectedError as exc:
        raise HTTPException(status_code=HTTPStatus.BAD_REQUEST, detail=str(exc)) from exc

    if not result.success:
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail="Failed to process admin action. Please try again.",
        )

    return AdminActionResponse(
        message=result.message,
        action=result.action,
        request_id=result.request_id,
    )


@router.post(
    "/sync-n8n",
    response_model=SyncResponse,
    summary="Trigger a fresh sync of the meeting list",
    description=(
        "Asks the workflow (or spreadsheet) for fresh data using the longer sync "
        "timeout and returns the normalized list."
    ),
    responses={
        400: {"description": "No meetings webhook configured."},
        401: {"description": "Not logged in."},
        502: {"description": "The sync failed upstream."},
    },
)
async def sync_meetings(
    _admin: str = Depends(require_admin_session),
    gateway: MeetingLifecycleGateway = Depends(get_meeting_gateway),
) -> SyncResponse:
    settings = gateway.settings
    if gateway.source == "webhook" and not settings.ADMIN_MEETINGS_WEBHOOK:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail="No workflow webhook configured for sync. Set ADMIN_MEETINGS_WEBHOOK.",
        )

    logger.info("Admin triggered meeting sync")
    result = await gateway.refresh()
    if not result.success:
        raise HTTPException(
            status_code=HTTPStatus.BAD_GATEWAY,
            detail=f"Failed to sync meetings: {result.error}",
        )

    return SyncResponse(
        message=f"Sync completed successfully - {len(result.meetings)} meetings retrieved",
        meetings=result.meetings,
        synced_at=result.fetched_at,
        statistics=result.statistics,
        metadata=SyncMetadata(response_type=result.shape, source=result.source),
    )
