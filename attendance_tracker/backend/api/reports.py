from fastapi import APIRouter, Depends, Request, Response
from typing import Optional

from ..services.report_service import ReportService, BatchReport, render_csv, report_filename
from ..services.errors import ServiceError
from ..models.redis_models import Role, User
from .auth import get_current_user, verify_role
from .dependencies import get_report_service
from .utilities.errors import to_http_exception
from .utilities.limiter import limiter

router = APIRouter(prefix="/reports", tags=["Reports"])


@router.get("/batch", response_model=BatchReport, summary="Attendance report for all students or one batch")
@limiter.limit("30/minute")
async def get_batch_report(request: Request, batch: Optional[str] = None, user: User = Depends(get_current_user), service: ReportService = Depends(get_report_service)):
    verify_role(user, Role.ADMIN)
    try:
        return await service.build_batch_report(batch=batch)
    except ServiceError as e:
        raise to_http_exception(e)


@router.get("/batch.csv", summary="Download the attendance report as CSV")
@limiter.limit("10/minute")
async def export_batch_report(request: Request, batch: Optional[str] = None, user: User = Depends(get_current_user), service: ReportService = Depends(get_report_service)):
    verify_role(user, Role.ADMIN)
    try:
        report = await service.build_batch_report(batch=batch)
    except ServiceError as e:
        raise to_http_exception(e)
    return Response(
        content=render_csv(report),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{report_filename(report.generated_on)}"'},
    )
