import datetime as dt
from fastapi import APIRouter, Depends, status, Request
from typing import List, Optional

from ..services.trainer_service import TrainerService, RosterEntry
from ..services.errors import ServiceError
from ..models.redis_models import Role, User
from ..models.store_models import AttendanceRecord, TrainingRecord
from .schemas.attendance import MarkAttendanceRequest
from .schemas.training import TrainingCreateRequest
from .auth import get_current_user, verify_role
from .dependencies import get_trainer_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/trainer", tags=["Trainer Endpoints"])


def _verify_trainer_role(user: User):
    # Admins can do everything a trainer can.
    verify_role(user, Role.TRAINER, Role.ADMIN)


# === SECTION 1: ATTENDANCE ===

@router.get("/batches", response_model=List[str], summary="List batch names")
@limiter.limit("60/minute")
async def list_batches(request: Request, user: User = Depends(get_current_user), service: TrainerService = Depends(get_trainer_service)):
    _verify_trainer_role(user)
    try:
        return await service.list_batches()
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/batches/{batch}/roster", response_model=List[RosterEntry], summary="Students of a batch with the day's marks")
@limiter.limit("60/minute")
async def get_roster(request: Request, batch: str, date: Optional[dt.date] = None, user: User = Depends(get_current_user), service: TrainerService = Depends(get_trainer_service)):
    _verify_trainer_role(user)
    try:
        return await service.get_roster(batch, day=date)
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("/attendance", response_model=List[AttendanceRecord], status_code=status.HTTP_201_CREATED, summary="Save a batch's attendance for a day")
@limiter.limit("30/minute")
async def mark_attendance(request: Request, mark_request: MarkAttendanceRequest, user: User = Depends(get_current_user), service: TrainerService = Depends(get_trainer_service)):
    """
    Replaces whatever was recorded for the batch on that day. Students not
    listed in `marks` are saved as present.
    """
    _verify_trainer_role(user)
    try:
        return await service.mark_attendance(mark_request.batch, mark_request.marks, day=mark_request.date)
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/attendance", response_model=List[AttendanceRecord], summary="List attendance records by batch and/or day")
@limiter.limit("60/minute")
async def list_attendance(request: Request, batch: Optional[str] = None, date: Optional[dt.date] = None, user: User = Depends(get_current_user), service: TrainerService = Depends(get_trainer_service)):
    _verify_trainer_role(user)
    try:
        return await service.list_attendance(batch=batch, day=date)
    except ServiceError as e:
        raise to_http_exception(e)


# === SECTION 2: TRAINING LOGS ===

@router.post("/trainings", response_model=TrainingRecord, status_code=status.HTTP_201_CREATED, summary="Log a training session")
@limiter.limit("30/minute")
async def log_training(request: Request, create_request: TrainingCreateRequest, user: User = Depends(get_current_user), service: TrainerService = Depends(get_trainer_service)):
    _verify_trainer_role(user)
    try:
        return await service.log_training(
            batch=create_request.batch,
            topic=create_request.topic,
            duration=create_request.duration,
            notes=create_request.notes,
            file_link=create_request.file_link,
            day=create_request.date,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/trainings/recent", response_model=List[TrainingRecord], summary="Today's latest training logs, newest first")
@limiter.limit("60/minute")
async def recent_trainings(request: Request, user: User = Depends(get_current_user), service: TrainerService = Depends(get_trainer_service)):
    _verify_trainer_role(user)
    try:
        return await service.recent_trainings()
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/trainings", response_model=List[TrainingRecord], summary="List training logs by batch and/or day")
@limiter.limit("60/minute")
async def list_trainings(request: Request, batch: Optional[str] = None, date: Optional[dt.date] = None, user: User = Depends(get_current_user), service: TrainerService = Depends(get_trainer_service)):
    _verify_trainer_role(user)
    try:
        return await service.list_trainings(batch=batch, day=date)
    except ServiceError as e:
        raise to_http_exception(e)
