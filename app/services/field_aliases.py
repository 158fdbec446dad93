from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional

# Canonical field name -> every external spelling observed for it. Lookups
# go through `normalize_key`, so case and separators do not matter here.
FIELD_ALIASES: Dict[str, tuple[str, ...]] = {
    "requestId": ("Request_ID", "requestId", "request_id", "id"),
    "timestamp": ("Timestamp", "timestamp"),
    "userName": ("User_Name", "userName", "name"),
    "userEmail": ("User_Email", "userEmail", "email"),
    "userPhone": ("User_Phone", "userPhone", "phone"),
    "userCompany": ("User_Company", "userCompany", "company"),
    "userPosition": ("User_Position", "userPosition", "position"),
    "meetingType": ("Meeting_Type", "meetingType", "type"),
    "meetingPurpose": ("Meeting_Purpose", "meetingPurpose", "purpose"),
    "meetingDescription": ("Meeting_Details", "meetingDescription", "description"),
    "preferredDate": ("Preferred_Date", "preferredDate"),
    "preferredTime": ("Preferred_Time", "preferredTime"),
    "estimatedDuration": ("Duration_Minutes", "estimatedDuration", "duration"),
    "location": ("Location", "location"),
    "urgency": ("Priority", "priority", "urgency"),
    "status": ("Status", "status"),
    "adminNotes": ("Admin_Response", "adminNotes", "adminEmail"),
    "additionalNotes": ("Additional_Notes", "additionalNotes"),
    "confirmedDate": ("Confirmed_Date", "confirmedDate"),
    "confirmedTime": ("Confirmed_Time", "confirmedTime"),
    "meetingLink": ("Meeting_Link", "meetingLink"),
    "createdDate": ("Created_Date", "createdDate"),
    "lastUpdated": ("Last_Updated", "lastUpdated"),
    "attachments": ("Attachments", "attachments"),
    "proposedStartTime": ("Proposed_Start_Time", "proposedStartTime"),
    "proposedEndTime": ("Proposed_End_Time", "proposedEndTime"),
}

_SEPARATORS = re.compile(r"[\s_\-]+")


def normalize_key(name: str) -> str:
    """
    Case- and separator-insensitive form of a field name.

    `Request_ID`, `request-id`, `requestId` and `REQUEST ID` all become
    `requestid`.
    """
    return _SEPARATORS.sub("", name.strip()).lower()


_LOOKUP: Dict[str, str] = {
    normalize_key(alias): canonical
    for canonical, aliases in FIELD_ALIASES.items()
    for alias in (canonical, *aliases)
}


@dataclass(frozen=True)
class FieldResolution:
    canonical: str
    known: bool


def resolve_field_name(name: Any) -> Optional[FieldResolution]:
    """
    Map an external field name onto the canonical meeting schema.

    Unknown names pass through under their normalized key so the value is
    still stored. Blank or non-string names resolve to None.
    """
    if not isinstance(name, str) or not name.strip():
        return None

    key = normalize_key(name)
    canonical = _LOOKUP.get(key)
    if canonical is not None:
        return FieldResolution(canonical=canonical, known=True)

    # Unknown headers keep the lower-cased, underscore-free spelling.
    return FieldResolution(canonical=name.strip().lower().replace("_", ""), known=False)


def as_text(value: Any) -> str:
    """
    Flatten a scalar cell/JSON value into the string form used by canonical fields.
    """
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def alias_record(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """
    Re-key a raw mapping onto canonical field names.

    Canonical values are flattened to text; unknown keys keep their raw
    value. When several source keys land on the same canonical field, a
    non-empty canonical spelling wins, then the first non-empty synonym.
    """
    result: Dict[str, Any] = {}
    exact: set[str] = set()
    for name, value in raw.items():
        resolution = resolve_field_name(name)
        if resolution is None:
            continue

        if not resolution.known:
            result[resolution.canonical] = value
            continue

        canonical = resolution.canonical
        text = "" if isinstance(value, (dict, list)) else as_text(value)
        if name == canonical and (text or canonical not in result):
            result[canonical] = text
            if text:
                exact.add(canonical)
        elif canonical not in exact and (text and not result.get(canonical)):
            result[canonical] = text
        elif canonical not in result:
            result[canonical] = text
    return result
