from __future__ import annotations

from datetime import datetime, timedelta, timezone
from typing import List, Optional

from app.schemas.meeting import MeetingRecord


def sample_meetings(now: Optional[datetime] = None) -> List[MeetingRecord]:
    """
    Built-in meetings served when the spreadsheet is unreachable and
    SAMPLE_DATA_FALLBACK is enabled, so the admin view is never blank
    during local development.
    """
    now = now or datetime.now(tz=timezone.utc)
    two_days_ago = (now - timedelta(days=2)).isoformat()
    yesterday = (now - timedelta(days=1)).isoformat()
    today = now.isoformat()

    return [
        MeetingRecord(
            request_id="sample_001",
            timestamp=two_days_ago,
            user_name="John Doe",
            user_email="john.doe@example.com",
            user_phone="+1-555-0123",
            user_company="Tech Corp",
            meeting_type="Online",
            meeting_purpose="Project Discussion",
            preferred_date=(now + timedelta(days=3)).date().isoformat(),
            preferred_time="10:00",
            estimated_duration="60",
            meeting_description="Discuss upcoming project milestones and deliverables",
            status="Pending",
            urgency="medium",
            created_date=two_days_ago,
        ),
        MeetingRecord(
            request_id="sample_002",
            timestamp=yesterday,
            user_name="Jane Smith",
            user_email="jane.smith@company.com",
            user_phone="+1-555-0456",
            user_company="Business Solutions Inc",
            meeting_type="Offline",
            meeting_purpose="Contract Review",
            preferred_date=(now + timedelta(days=4)).date().isoformat(),
            preferred_time="14:00",
            estimated_duration="90",
            meeting_description="Review and finalize the service contract terms",
            status="Approved",
            admin_notes="Meeting confirmed for conference room A",
            urgency="high",
            location="Conference Room A",
            created_date=yesterday,
        ),
        MeetingRecord(
            request_id="sample_003",
            timestamp=today,
            user_name="Bob Johnson",
            user_email="bob.johnson@startup.io",
            user_phone="+1-555-0789",
            user_company="Startup Innovations",
            meeting_type="Hybrid",
            meeting_purpose="Partnership Discussion",
            preferred_date=(now + timedelta(days=5)).date().isoformat(),
            preferred_time="11:30",
            estimated_duration="45",
            meeting_description="Explore potential partnership opportunities",
            status="Pending",
            urgency="low",
            location="Meeting Room B + Online",
            created_date=today,
        ),
    ]
