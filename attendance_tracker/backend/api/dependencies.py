#attendance_tracker/backend/api/dependencies.py
from fastapi import Request, Depends
import redis.asyncio as redis

from ..db.redis_client import RedisClient
from ..services.admin_service import AdminService
from ..services.trainer_service import TrainerService
from ..services.student_service import StudentService
from ..services.report_service import ReportService


def get_redis_connection(request: Request) -> redis.Redis:
    """
    Wraps the shared connection pool created at startup in a Redis client for
    the current request.
    """
    return redis.Redis(connection_pool=request.app.state.redis_pool)


def get_redis_client(connection: redis.Redis = Depends(get_redis_connection)) -> RedisClient:
    return RedisClient(connection)


def get_admin_service(redis_client: RedisClient = Depends(get_redis_client)) -> AdminService:
    """
    Builds a fresh AdminService for every request.

    FastAPI runs this for each call of an admin endpoint; the service gets a
    client over the pool shared by the whole application.
    """
    return AdminService(redis_client=redis_client)


def get_trainer_service(redis_client: RedisClient = Depends(get_redis_client)) -> TrainerService:
    return TrainerService(redis_client=redis_client)


def get_student_service(redis_client: RedisClient = Depends(get_redis_client)) -> StudentService:
    return StudentService(redis_client=redis_client)


def get_report_service(redis_client: RedisClient = Depends(get_redis_client)) -> ReportService:
    return ReportService(redis_client=redis_client)
