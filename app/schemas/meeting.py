from enum import Enum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class MeetingType(str, Enum):
    ONLINE = "online"
    OFFLINE = "offline"
    HYBRID = "hybrid"


class MeetingPriority(str, Enum):
    LOW = "low"
    NORMAL = "normal"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class MeetingStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"
    RESCHEDULED = "rescheduled"


def _lookup(enum_cls, value: str | None):
    try:
        return enum_cls((value or "").strip().lower())
    except ValueError:
        return None


class MeetingRecord(BaseModel):
    """
    Canonical representation of a meeting request, independent of whether it
    came from a workflow webhook reply or a spreadsheet row.

    Attributes are snake_case; the JSON names are the camelCase canonical
    names (`requestId`, `userName`, ...). Keys that do not map onto a
    canonical field are kept as extra attributes so nothing is lost.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
        coerce_numbers_to_str=True,
    )

    request_id: str = Field(..., description="Unique request identifier.", examples=["req_001"])
    timestamp: str = Field(
        ...,
        description="ISO-8601 submission time.",
        examples=["2025-09-01T10:00:00+00:00"],
    )
    user_name: str = Field(..., examples=["John Doe"])
    user_email: str = Field(..., examples=["john.doe@example.com"])
    user_phone: str = ""
    user_company: str = ""
    user_position: str = ""
    meeting_type: str = Field("", description="online / offline / hybrid (case-insensitive).")
    meeting_purpose: str = Field(..., examples=["Project Discussion"])
    meeting_description: str = ""
    preferred_date: str = ""
    preferred_time: str = ""
    estimated_duration: str = Field("", description="Duration in minutes.")
    location: str = ""
    urgency: str = Field("", description="low / normal / medium / high / urgent.")
    status: str = Field("Pending", description="pending / approved / rejected / rescheduled.")
    admin_notes: str = ""
    additional_notes: str = ""
    confirmed_date: str = ""
    confirmed_time: str = ""
    meeting_link: str = ""
    created_date: str = ""
    last_updated: str = ""
    attachments: str = ""
    proposed_start_time: str = ""
    proposed_end_time: str = ""

    @property
    def status_enum(self) -> MeetingStatus:
        return _lookup(MeetingStatus, self.status) or MeetingStatus.PENDING

    @property
    def priority_enum(self) -> MeetingPriority | None:
        return _lookup(MeetingPriority, self.urgency)

    @property
    def type_enum(self) -> MeetingType | None:
        return _lookup(MeetingType, self.meeting_type)

    def is_valid(self) -> bool:
        """
        A record is usable only when name, email and purpose are all present.
        """
        return all(
            value.strip()
            for value in (self.user_name, self.user_email, self.meeting_purpose)
        )


class MeetingRequestCreate(BaseModel):
    """
    Payload posted by the public meeting request form.

    Every field is optional at the schema level so the endpoint can report
    the complete list of missing fields in one response.
    """

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        coerce_numbers_to_str=True,
    )

    REQUIRED_FIELDS: ClassVar[tuple[str, ...]] = (
        "userName",
        "userEmail",
        "userPhone",
        "meetingPurpose",
        "preferredDate",
        "preferredTime",
        "meetingType",
    )

    user_name: str = ""
    user_email: str = ""
    user_phone: str = ""
    user_company: str = ""
    user_position: str = ""
    meeting_purpose: str = ""
    meeting_description: str = ""
    preferred_date: str = ""
    preferred_time: str = ""
    estimated_duration: str = ""
    meeting_type: str = ""
    location: str = ""
    urgency: str = ""
    additional_notes: str = ""

    @field_validator("meeting_type")
    @classmethod
    def validate_meeting_type(cls, value: str) -> str:
        value = value.strip().lower()
        if value and value not in {t.value for t in MeetingType}:
            raise ValueError("meetingType must be one of: online, offline, hybrid")
        return value

    @field_validator("urgency")
    @classmethod
    def validate_urgency(cls, value: str) -> str:
        value = value.strip().lower()
        if value and value not in {p.value for p in MeetingPriority}:
            raise ValueError("urgency must be one of: low, normal, medium, high, urgent")
        return value

    def missing_fields(self) -> list[str]:
        data = self.model_dump(by_alias=True)
        missing = [name for name in self.REQUIRED_FIELDS if not str(data[name]).strip()]
        # In-person meetings need somewhere to happen.
        if self.meeting_type in (MeetingType.OFFLINE.value, MeetingType.HYBRID.value):
            if not self.location.strip():
                missing.append("location")
        return missing


class MeetingRequestSubmitted(BaseModel):
    """
    Response returned after a meeting request was handed to the workflow.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    message: str = Field(..., examples=["Meeting request submitted successfully"])
    request_id: str = Field(..., examples=["1725184800000_k3j9x2"])
    data: dict = Field(..., description="Payload forwarded to the workflow.")
