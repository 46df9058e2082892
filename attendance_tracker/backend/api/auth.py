import hmac
import logging
from fastapi import APIRouter, Depends, HTTPException, status, Response, Request
from fastapi.security import OAuth2PasswordBearer, OAuth2PasswordRequestForm
from datetime import datetime, timedelta, timezone
from uuid import uuid4
from typing import Optional
import jwt
from pydantic import ValidationError

from .schemas.user import Token, TokenData, LoginRequest, UserResponse, LoginResponse
from ..models.redis_models import Role, User, UserSession
from ..db.redis_client import RedisClient, StorageError
from ..config.config import settings
from .dependencies import get_redis_client
from .utilities.limiter import limiter

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/auth",
    tags=["Authentication"]
)
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/v1/auth/token")

STORE_UNAVAILABLE = "The record store is currently unavailable."


def _session_ttl(role: Role) -> int:
    return {
        Role.ADMIN: settings.ADMIN_SESSION_TTL_SECONDS,
        Role.TRAINER: settings.TRAINER_SESSION_TTL_SECONDS,
        Role.STUDENT: settings.STUDENT_SESSION_TTL_SECONDS,
    }[role]


def _password_matches(given: str, expected: str) -> bool:
    return hmac.compare_digest(given.encode("utf-8"), expected.encode("utf-8"))


def create_access_token(data: dict, expires_delta: timedelta):
    """Creates a signed JWT carrying `data` that expires after `expires_delta`."""
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + expires_delta
    to_encode.update({"exp": expire})
    encoded_jwt = jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)
    return encoded_jwt


# --- Dependency for protected routes ---
async def get_current_user(
    token: str = Depends(oauth2_scheme),
    redis_client: RedisClient = Depends(get_redis_client)
) -> User:
    """
    Decodes the token, validates its payload and checks that the user still
    has a live session in Redis. Returns the user stored in that session.
    """
    credentials_exception = HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
        token_data = TokenData.model_validate(payload)
    except (jwt.PyJWTError, ValidationError) as e:
        # Expired or badly signed tokens as well as payloads of the wrong shape.
        logger.warning(f"Token validation error: {e}")
        raise credentials_exception

    if token_data.sub is None:
        logger.warning(f"Token is valid but missing 'sub': {payload}")
        raise credentials_exception

    try:
        user_session = await redis_client.get_user_session(token_data.sub)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORE_UNAVAILABLE)
    if user_session is None:
        logger.warning(f"User '{token_data.sub}' has a valid token but no active session. Denying access.")
        raise credentials_exception

    return user_session.user_data


def verify_role(user: User, *roles: Role):
    """Raises 403 unless the user holds one of `roles`."""
    if user.role not in roles:
        allowed = ", ".join(role.value for role in roles)
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail=f"This operation is only valid for: {allowed}."
        )


# --- Login ---

async def _authenticate(username: str, password: str, redis_client: RedisClient) -> Optional[User]:
    """Resolves the credentials to a user: the configured admin or trainer, or a student by id."""
    if username == settings.ADMIN_USERNAME and _password_matches(password, settings.ADMIN_PASSWORD):
        return User(username=username, full_name="Administrator", role=Role.ADMIN)

    if username == settings.TRAINER_USERNAME and _password_matches(password, settings.TRAINER_PASSWORD):
        return User(username=username, full_name="Trainer", role=Role.TRAINER)

    if _password_matches(password, settings.STUDENT_PASSWORD):
        students = await redis_client.get_students()
        for student in students:
            if student.id == username:
                return User(username=student.id, full_name=student.name, role=Role.STUDENT)

    return None


async def _perform_login(username: str, password: str, redis_client: RedisClient) -> LoginResponse:
    logger.info(f"Login attempt for user '{username}'.")
    try:
        user = await _authenticate(username, password, redis_client)
        if user is None:
            logger.warning(f"Failed login for user '{username}'.")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail="Incorrect username or password",
                headers={"WWW-Authenticate": "Bearer"},
            )

        ttl = _session_ttl(user.role)
        now = datetime.now(timezone.utc)
        session = UserSession(
            user_data=user,
            session_id=uuid4(),
            session_start_time=now,
            session_end_time=now + timedelta(seconds=ttl),
        )
        await redis_client.save_user_session(session, ttl=ttl)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORE_UNAVAILABLE)

    access_token = create_access_token(
        data={"sub": user.username, "role": user.role.value},
        expires_delta=timedelta(seconds=ttl),
    )
    logger.info(f"User '{username}' logged in as {user.role.value}.")
    return LoginResponse(token=Token(access_token=access_token), user=UserResponse.model_validate(user))


@router.post("/login", response_model=LoginResponse, summary="Log in with a JSON body")
@limiter.limit("10/minute")
async def login(request: Request, login_request: LoginRequest, redis_client: RedisClient = Depends(get_redis_client)):
    return await _perform_login(login_request.username, login_request.password, redis_client)


@router.post("/token", response_model=Token, summary="OAuth2 password flow (used by the interactive docs)")
@limiter.limit("10/minute")
async def login_for_access_token(request: Request, form_data: OAuth2PasswordRequestForm = Depends(), redis_client: RedisClient = Depends(get_redis_client)):
    login_response = await _perform_login(form_data.username, form_data.password, redis_client)
    return login_response.token


@router.post("/logout", status_code=status.HTTP_204_NO_CONTENT, summary="End the current session")
async def logout(user: User = Depends(get_current_user), redis_client: RedisClient = Depends(get_redis_client)):
    try:
        await redis_client.delete_user_session(user.username)
    except StorageError:
        raise HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=STORE_UNAVAILABLE)
    logger.info(f"User '{user.username}' logged out.")
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@router.get("/me", response_model=UserResponse, summary="Get the logged-in user")
async def read_current_user(user: User = Depends(get_current_user)):
    return user
