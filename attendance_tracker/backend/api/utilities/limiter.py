# attendance_tracker/backend/api/utilities/limiter.py

from fastapi import Request
import jwt

from slowapi import Limiter
from slowapi.util import get_remote_address

from ...config.config import settings


def get_limiter_key(request: Request) -> str:
    """
    Returns the rate-limit key for a request.

    Requests carrying a decodable bearer token are limited per user (the
    token's subject); anonymous requests fall back to the client IP.
    """
    auth_header = request.headers.get("authorization")
    if auth_header and auth_header.lower().startswith("bearer "):
        token = auth_header.split(" ")[1]
        try:
            # Only the identity is needed here, expiry is checked by get_current_user.
            payload = jwt.decode(
                token,
                settings.SECRET_KEY,
                algorithms=[settings.ALGORITHM],
                options={"verify_exp": False}
            )
            username = payload.get("sub")
            if username:
                return username
        except jwt.PyJWTError:
            pass

    return get_remote_address(request)


limiter = Limiter(
    key_func=get_limiter_key,
    storage_uri=settings.RATE_LIMITER_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)
