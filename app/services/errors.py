from __future__ import annotations

from typing import Optional


class UpstreamUnavailableError(RuntimeError):
    """
    Raised when the workflow engine or the spreadsheet cannot be reached,
    times out, or answers with a non-2xx status.
    """

    def __init__(self, message: str, status_code: Optional[int] = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ActionRejectedError(ValueError):
    """
    Raised when an admin action is invalid (unknown action kind, missing
    reschedule date/time, reschedule in the past). Always raised before
    any outbound call is made.
    """


class MissingFieldsError(ValueError):
    """
    Raised when an inbound meeting request lacks required fields.
    """

    def __init__(self, missing_fields: list[str]) -> None:
        super().__init__("Missing required fields")
        self.missing_fields = missing_fields
