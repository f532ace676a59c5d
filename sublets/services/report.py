"""
Report service: users flag listings, admins moderate the reports.
"""

from typing import Optional, List
from sqlalchemy.ext.asyncio import AsyncSession
from sublets.repositories.report import ReportRepository
from sublets.repositories.listing import ListingRepository
from sublets.models.report import Report, ReportStatus
from sublets.models.user import User
from sublets.schemas.report import ReportCreate
from sublets.services.email import EmailService
from sublets.utils.exceptions import (
    APIException,
    ListingNotFoundError,
    NotFoundError,
    EmailDeliveryError,
    BadRequestError
)
import uuid
import logging

logger = logging.getLogger(__name__)


class ReportService:
    """Creates reports and notifies the support inbox about them."""

    def __init__(self, db_session: AsyncSession, email_service: Optional[EmailService] = None):
        self.db = db_session
        self.report_repo = ReportRepository(db_session)
        self.listing_repo = ListingRepository(db_session)
        self.email_service = email_service or EmailService()

    async def create_report(self, report_data: ReportCreate, current_user: User) -> Report:
        """
        File a report against a listing.

        Raises:
            ListingNotFoundError: If the listing doesn't exist
        """
        try:
            if not await self.listing_repo.exists(report_data.listing_id):
                raise ListingNotFoundError(str(report_data.listing_id))

            return await self.report_repo.create_report(
                reporter_id=current_user.id,
                listing_id=report_data.listing_id,
                reason=report_data.reason,
                details=report_data.details,
            )

        except APIException:
            raise
        except Exception as e:
            logger.error(f"Failed to create report for listing {report_data.listing_id}: {e}")
            raise BadRequestError(f"Failed to create report: {str(e)}")

    async def notify_support(self, report: Report) -> None:
        """Email the support inbox. Runs after the response; failures are only logged."""
        try:
            await self.email_service.send_report_notification(
                report_id=str(report.id),
                listing_id=str(report.listing_id),
                listing_title=report.listing.title if report.listing else "",
                reporter_email=report.reporter.email if report.reporter else "",
                reason=report.reason,
                details=report.details,
            )
        except EmailDeliveryError as e:
            logger.warning(f"Support notification for report {report.id} failed: {e}")

    async def get_reports(self, status: Optional[ReportStatus] = None) -> List[Report]:
        return await self.report_repo.get_reports(status)

    async def get_report(self, report_id: uuid.UUID) -> Report:
        report = await self.report_repo.get_by_id(report_id)
        if not report:
            raise NotFoundError("Report", str(report_id))
        return report

    async def update_status(self, report_id: uuid.UUID, status: ReportStatus, current_user: User) -> Report:
        """
        Resolve or dismiss a report.

        Raises:
            NotFoundError: If the report doesn't exist
        """
        report = await self.report_repo.update_status(report_id, status)
        if not report:
            raise NotFoundError("Report", str(report_id))
        logger.info(f"Admin {current_user.email} set report {report_id} to {status.value}")
        return report
