from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _zero_buckets(*names: str) -> dict[str, int]:
    return {name: 0 for name in names}


class MeetingStatistics(BaseModel):
    """
    Aggregated counters for the admin dashboard, derived from a canonical
    meeting list.

    Recomputed on every fetch and never persisted.
    """

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    total: int = Field(..., description="Number of meetings in the list.", examples=[3])
    pending: int = Field(0, examples=[2])
    approved: int = Field(0, examples=[1])
    rejected: int = Field(0, examples=[0])
    rescheduled: int = Field(0, examples=[0])

    by_priority: dict[str, int] = Field(
        default_factory=lambda: _zero_buckets("low", "normal", "medium", "high", "urgent"),
        description="Meetings per urgency level. Unrecognised levels are not bucketed.",
    )
    by_meeting_type: dict[str, int] = Field(
        default_factory=lambda: _zero_buckets("online", "offline", "hybrid"),
        description="Meetings per meeting type. Unrecognised types are not bucketed.",
    )
    this_week: int = Field(
        0,
        description="Meetings submitted within the trailing 7 days (always computed locally).",
        examples=[1],
    )
    source: str = Field(
        "local",
        description=(
            "'external' when total/pending/approved were taken from statistics "
            "supplied by the workflow, otherwise 'local'."
        ),
    )
