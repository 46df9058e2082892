import datetime as dt
from pydantic import BaseModel, ConfigDict, Field
from typing import Optional


class TrainingCreateRequest(BaseModel):
    """Request model for logging a training session."""
    model_config = ConfigDict(populate_by_name=True)

    date: Optional[dt.date] = Field(None, description="Session day (YYYY-MM-DD); today when omitted.")
    batch: str = Field(..., min_length=1)
    topic: str = Field(..., min_length=1, description="e.g. 'React Hooks', 'Data Structures'.")
    duration: int = Field(1, ge=0, description="Length of the session in whole hours.")
    notes: str = ""
    file_link: str = Field("", alias="fileLink", description="Link to the session materials.")
