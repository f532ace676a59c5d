"""
Listing report endpoint.
"""

from fastapi import APIRouter, BackgroundTasks, Depends, status

from sublets.models.user import User
from sublets.services.report import ReportService
from sublets.schemas.report import ReportCreate, ReportResponse
from sublets.schemas.error import error_responses
from sublets.utils.dependencies import get_current_user, get_report_service


router = APIRouter(prefix="/reports", tags=["Reports"])


@router.post(
    "",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Report a listing",
    description="File a report for moderators. The support inbox is notified by email.",
    responses=error_responses(401, 404, 422)
)
async def create_report(
    report_data: ReportCreate,
    background_tasks: BackgroundTasks,
    current_user: User = Depends(get_current_user),
    report_service: ReportService = Depends(get_report_service)
) -> ReportResponse:
    report = await report_service.create_report(report_data, current_user)
    background_tasks.add_task(report_service.notify_support, report)
    return ReportResponse.model_validate(report.to_dict())
