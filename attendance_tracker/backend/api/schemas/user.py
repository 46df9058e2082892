# attendance_tracker/backend/api/schemas/user.py
from pydantic import BaseModel, ConfigDict
from typing import Optional

from ...models.redis_models import Role


class LoginRequest(BaseModel):
    username: str
    password: str


class Token(BaseModel):
    access_token: str
    token_type: str = "bearer"


class UserResponse(BaseModel):
    username: str
    full_name: str
    role: Role

    model_config = ConfigDict(from_attributes=True)


class LoginResponse(BaseModel):
    token: Token
    user: UserResponse


# Internal representation of JWT data
class TokenData(BaseModel):
    sub: Optional[str] = None
    role: Optional[Role] = None
