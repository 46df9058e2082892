import datetime as dt
from pydantic import BaseModel, Field
from typing import Dict, Optional

from ...models.store_models import AttendanceStatus


class MarkAttendanceRequest(BaseModel):
    """Request model for saving the attendance of a whole batch for one day."""
    batch: str = Field(..., min_length=1)
    date: Optional[dt.date] = Field(None, description="Day being marked (YYYY-MM-DD); today when omitted.")
    marks: Dict[str, AttendanceStatus] = Field(
        default_factory=dict,
        description="Status per student id. Students left out are marked present.",
    )
