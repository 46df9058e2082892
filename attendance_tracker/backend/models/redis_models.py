from enum import Enum
from pydantic import BaseModel, Field
from datetime import datetime
from uuid import UUID


class Role(str, Enum):
    ADMIN = "admin"
    TRAINER = "trainer"
    STUDENT = "student"


class User(BaseModel):
    """
    An authenticated user. For students the username is the student id.
    """
    username: str = Field(..., description="Login name; the student id for students.")
    full_name: str
    role: Role


class UserSession(BaseModel):
    """
    Represents a user's session data stored in Redis.
    """
    user_data: User = Field(..., description="The user this session belongs to.")
    session_id: UUID = Field(..., description="Unique ID for this specific session.")
    session_start_time: datetime = Field(..., description="The time this session began.")
    session_end_time: datetime = Field(..., description="The time this session will expire.")
