"""
Admin moderation endpoints. Every route requires the ADMIN role.
"""

from fastapi import APIRouter, Depends, status, Query, Path
from typing import Optional
from uuid import UUID

from sublets.config import settings
from sublets.models.user import User
from sublets.models.report import ReportStatus
from sublets.services.admin import AdminService
from sublets.services.report import ReportService
from sublets.schemas.user import (
    UserResponse,
    AdminUserSummary,
    AdminUserListResponse,
    AdminUserDetail,
    AdminUserUpdate,
    AdminStatsResponse
)
from sublets.schemas.listing import ListingResponse, ListingListResponse
from sublets.schemas.report import ReportResponse, ReportListResponse, ReportStatusUpdate
from sublets.schemas.error import error_responses
from sublets.utils.dependencies import (
    get_current_admin_user,
    get_admin_service,
    get_report_service
)


router = APIRouter(
    prefix="/admin",
    tags=["Admin"],
    responses=error_responses(401, 403)
)


@router.get("/stats", response_model=AdminStatsResponse, summary="Dashboard counters")
async def get_stats(
    admin: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminStatsResponse:
    return AdminStatsResponse(**await admin_service.get_stats())


@router.get("/users", response_model=AdminUserListResponse, summary="List users")
async def list_users(
    search: Optional[str] = Query(None, description="Substring of name or email"),
    verified: Optional[bool] = Query(None, description="Filter by verification state"),
    skip: int = Query(0, ge=0),
    limit: int = Query(50, ge=1, le=settings.max_page_size),
    admin: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminUserListResponse:
    users, total = await admin_service.list_users(search, verified, skip=skip, limit=limit)
    return AdminUserListResponse(
        users=[AdminUserSummary.model_validate(user) for user in users],
        total=total
    )


@router.get(
    "/users/{user_id}",
    response_model=AdminUserDetail,
    summary="Get user with activity",
    responses=error_responses(404)
)
async def get_user(
    user_id: UUID = Path(..., description="User ID"),
    admin: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> AdminUserDetail:
    return AdminUserDetail.model_validate(await admin_service.get_user_detail(user_id))


@router.put(
    "/users/{user_id}",
    response_model=UserResponse,
    summary="Update user name or role",
    responses=error_responses(400, 404, 422)
)
async def update_user(
    update: AdminUserUpdate,
    user_id: UUID = Path(..., description="User ID"),
    admin: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> UserResponse:
    user = await admin_service.update_user(user_id, update, admin)
    return UserResponse.model_validate(user.to_dict())


@router.delete(
    "/users/{user_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete user",
    responses=error_responses(400, 404)
)
async def delete_user(
    user_id: UUID = Path(..., description="User ID"),
    admin: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> None:
    await admin_service.delete_user(user_id, admin)


@router.get("/listings", response_model=ListingListResponse, summary="List every listing")
async def list_listings(
    skip: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1),
    admin: User = Depends(get_current_admin_user),
    admin_service: AdminService = Depends(get_admin_service)
) -> ListingListResponse:
    listings = await admin_service.list_listings(skip=skip, limit=limit)
    return ListingListResponse(listings=[ListingResponse.model_validate(l.to_dict()) for l in listings])


@router.get("/reports", response_model=ReportListResponse, summary="List reports")
async def list_reports(
    status_filter: Optional[ReportStatus] = Query(None, alias="status", description="Only reports in this state"),
    admin: User = Depends(get_current_admin_user),
    report_service: ReportService = Depends(get_report_service)
) -> ReportListResponse:
    reports = await report_service.get_reports(status_filter)
    return ReportListResponse(reports=[ReportResponse.model_validate(r.to_dict()) for r in reports])


@router.get(
    "/reports/{report_id}",
    response_model=ReportResponse,
    summary="Get report",
    responses=error_responses(404)
)
async def get_report(
    report_id: UUID = Path(..., description="Report ID"),
    admin: User = Depends(get_current_admin_user),
    report_service: ReportService = Depends(get_report_service)
) -> ReportResponse:
    report = await report_service.get_report(report_id)
    return ReportResponse.model_validate(report.to_dict())


@router.put(
    "/reports/{report_id}",
    response_model=ReportResponse,
    summary="Update report status",
    responses=error_responses(404, 422)
)
async def update_report(
    update: ReportStatusUpdate,
    report_id: UUID = Path(..., description="Report ID"),
    admin: User = Depends(get_current_admin_user),
    report_service: ReportService = Depends(get_report_service)
) -> ReportResponse:
    report = await report_service.update_status(report_id, update.status, admin)
    return ReportResponse.model_validate(report.to_dict())
