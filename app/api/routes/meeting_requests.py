from http import HTTPStatus

from fastapi import APIRouter, Depends, HTTPException

from app.schemas.meeting import MeetingRequestCreate, MeetingRequestSubmitted
from app.services.errors import MissingFieldsError, UpstreamUnavailableError
from app.services.meeting_gateway import MeetingLifecycleGateway, get_meeting_gateway

router = APIRouter(prefix="/meeting", tags=["Meeting Requests"])


@router.post(
    "/request",
    response_model=MeetingRequestSubmitted,
    status_code=HTTPStatus.OK,
    summary="Submit a new meeting request",
    description=(
        "Public endpoint used by the request form. The request is validated and "
        "forwarded to the workflow's intake webhook.\n\n"
        "Required: `userName`, `userEmail`, `userPhone`, `meetingPurpose`, "
        "`preferredDate`, `preferredTime`, `meetingType`; `location` is also "
        "required for offline and hybrid meetings."
    ),
    responses={
        200: {
            "description": "Request accepted by the workflow.",
            "content": {
                "application/json": {
                    "example": {
                        "success": True,
                        "message": "Meeting request submitted successfully",
                        "requestId": "1725184800000_k3j9x2",
                        "data": {"userName": "John Doe", "source": "web-panel"},
                    }
                }
            },
        },
        400: {
            "description": "Required fields are missing.",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "Missing required fields",
                            "missingFields": ["userPhone"],
                        }
                    }
                }
            },
        },
        503: {"description": "The workflow is unreachable or not configured."},
    },
)
async def submit_meeting_request(
    payload: MeetingRequestCreate,
    gateway: MeetingLifecycleGateway = Depends(get_meeting_gateway),
) -> MeetingRequestSubmitted:
    try:
        request_id, forwarded = await gateway.submit_request(payload)
    except MissingFieldsError as exc:
        raise HTTPException(
            status_code=HTTPStatus.BAD_REQUEST,
            detail={"error": "Missing required fields", "missingFields": exc.missing_fields},
        ) from exc
    except UpstreamUnavailableError as exc:
        raise HTTPException(
            status_code=HTTPStatus.SERVICE_UNAVAILABLE,
            detail="Meeting service temporarily unavailable. Please try again later.",
        ) from exc

    return MeetingRequestSubmitted(
        message="Meeting request submitted successfully",
        request_id=request_id,
        data=forwarded,
    )
