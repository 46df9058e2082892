from pydantic import BaseModel, Field
from typing import Optional


class StudentCreateRequest(BaseModel):
    """Request model for enrolling a new student."""
    id: Optional[str] = Field(None, min_length=1, description="Optional explicit id; generated when omitted.")
    name: str = Field(..., min_length=1, description="Full name of the student.")
    batch: str = Field(..., min_length=1, description="Existing batch name, e.g. 'BCA-Sem3'.")
    course: str = Field(..., min_length=1, description="Course name, e.g. 'BCA'.")
    contact: str = Field(..., min_length=1, description="Email address or phone number.")


class StudentUpdateRequest(BaseModel):
    """Request model for editing a student; every field is replaced."""
    name: str = Field(..., min_length=1)
    batch: str = Field(..., min_length=1)
    course: str = Field(..., min_length=1)
    contact: str = Field(..., min_length=1)


class BatchCreateRequest(BaseModel):
    # Batch names appear as a single URL path segment.
    name: str = Field(..., min_length=1, pattern=r"^[^/]+$", description="Unique batch name without '/', e.g. 'Python-BatchA'.")
