from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from app.schemas.meeting import MeetingRecord
from app.schemas.statistics import MeetingStatistics


class _CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class AdminLoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class AdminLoginResponse(_CamelModel):
    success: bool = True
    message: str = Field(..., examples=["Login successful"])
    redirect_url: str = Field("/admin/dashboard")


class AdminSessionStatus(_CamelModel):
    success: bool = True
    authenticated: bool = True
    admin: str = Field(..., examples=["admin@company.com"])


class AdminMeetingsResponse(_CamelModel):
    """
    Payload of GET /api/admin/meetings.

    `success` is False when the upstream source failed and `error` explains
    why. The list is then the last successful one (`used_cached_data`), the
    sample list (`used_sample_data`) or empty.
    """

    success: bool
    meetings: list[MeetingRecord]
    statistics: MeetingStatistics
    last_updated: str | None = None
    message: str
    count: int
    error: str | None = None
    source: str = Field(..., examples=["webhook"])
    used_sample_data: bool = False
    used_cached_data: bool = Field(
        False,
        description="True when the upstream failed and the last successful list is shown.",
    )


class AdminActionRequest(_CamelModel):
    """
    Body of POST /api/admin/meeting/action.
    """

    request_id: str = Field("", examples=["req_001"])
    action: str = Field("", description="approve, reject or reschedule.", examples=["approve"])
    admin_notes: str | None = None
    new_date: str | None = Field(None, examples=["2025-10-01"])
    new_time: str | None = Field(None, examples=["14:30"])
    new_duration: str | None = None
    new_location: str | None = None
    new_meeting_type: str | None = None


class AdminActionResponse(_CamelModel):
    success: bool = True
    message: str = Field(..., examples=["Meeting approve successfully"])
    action: str
    request_id: str


class SyncMetadata(_CamelModel):
    triggered_by: str = "admin"
    response_type: str | None = Field(None, description="Detected shape of the workflow reply.")
    source: str


class SyncResponse(_CamelModel):
    success: bool = True
    message: str
    meetings: list[MeetingRecord]
    sync_triggered: bool = True
    synced_at: datetime
    statistics: MeetingStatistics
    metadata: SyncMetadata
