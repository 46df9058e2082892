from fastapi import APIRouter, Depends, status, Response, Request
from typing import List, Optional

from ..services.admin_service import AdminService, BatchDeletion, DashboardSummary, StudentOverview
from ..services.errors import ServiceError
from ..services.stats import BatchStats
from ..models.redis_models import Role, User
from ..models.store_models import Student
from .schemas.student import StudentCreateRequest, StudentUpdateRequest, BatchCreateRequest
from .auth import get_current_user, verify_role
from .dependencies import get_admin_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/admin", tags=["Admin Endpoints"])


def _verify_admin_role(user: User):
    verify_role(user, Role.ADMIN)


# === SECTION 1: DASHBOARD ===

@router.get("/summary", response_model=DashboardSummary, summary="Institute-wide attendance summary")
@limiter.limit("60/minute")
async def get_summary(request: Request, user: User = Depends(get_current_user), service: AdminService = Depends(get_admin_service)):
    _verify_admin_role(user)
    try:
        return await service.get_summary()
    except ServiceError as e:
        raise to_http_exception(e)


# === SECTION 2: STUDENTS ===

@router.get("/students", response_model=List[StudentOverview], summary="List students with their attendance")
@limiter.limit("60/minute")
async def list_students(request: Request, batch: Optional[str] = None, user: User = Depends(get_current_user), service: AdminService = Depends(get_admin_service)):
    _verify_admin_role(user)
    try:
        return await service.list_students(batch=batch)
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("/students", response_model=Student, status_code=status.HTTP_201_CREATED, summary="Enrol a new student")
@limiter.limit("30/minute")
async def create_student(request: Request, create_request: StudentCreateRequest, user: User = Depends(get_current_user), service: AdminService = Depends(get_admin_service)):
    _verify_admin_role(user)
    try:
        return await service.create_student(
            name=create_request.name,
            batch=create_request.batch,
            course=create_request.course,
            contact=create_request.contact,
            student_id=create_request.id,
        )
    except ServiceError as e:
        raise to_http_exception(e)


@router.put("/students/{student_id}", response_model=Student, summary="Edit a student")
@limiter.limit("30/minute")
async def update_student(request: Request, student_id: str, update_request: StudentUpdateRequest, user: User = Depends(get_current_user), service: AdminService = Depends(get_admin_service)):
    _verify_admin_role(user)
    try:
        return await service.update_student(student_id, **update_request.model_dump())
    except ServiceError as e:
        raise to_http_exception(e)


@router.delete("/students/{student_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a student and their attendance")
@limiter.limit("30/minute")
async def delete_student(request: Request, student_id: str, user: User = Depends(get_current_user), service: AdminService = Depends(get_admin_service)):
    _verify_admin_role(user)
    try:
        await service.delete_student(student_id)
    except ServiceError as e:
        raise to_http_exception(e)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# === SECTION 3: BATCHES ===

@router.get("/batches", response_model=List[BatchStats], summary="List batches with size and average attendance")
@limiter.limit("60/minute")
async def list_batches(request: Request, user: User = Depends(get_current_user), service: AdminService = Depends(get_admin_service)):
    _verify_admin_role(user)
    try:
        return await service.list_batches()
    except ServiceError as e:
        raise to_http_exception(e)


@router.post("/batches", status_code=status.HTTP_201_CREATED, summary="Create a batch")
@limiter.limit("30/minute")
async def create_batch(request: Request, create_request: BatchCreateRequest, user: User = Depends(get_current_user), service: AdminService = Depends(get_admin_service)):
    _verify_admin_role(user)
    try:
        name = await service.create_batch(create_request.name)
    except ServiceError as e:
        raise to_http_exception(e)
    return {"status": "success", "name": name}


@router.delete("/batches/{name}", response_model=BatchDeletion, summary="Delete a batch with its students and their attendance")
@limiter.limit("30/minute")
async def delete_batch(request: Request, name: str, user: User = Depends(get_current_user), service: AdminService = Depends(get_admin_service)):
    _verify_admin_role(user)
    try:
        return await service.delete_batch(name)
    except ServiceError as e:
        raise to_http_exception(e)
