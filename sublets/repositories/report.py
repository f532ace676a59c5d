"""
Report repository for listing moderation.
"""

from sqlalchemy.ext.asyncio import AsyncSession
from sublets.repositories.base import BaseRepository
from sublets.models.report import Report, ReportStatus
from typing import Optional, List
import uuid
import logging

logger = logging.getLogger(__name__)


class ReportRepository(BaseRepository[Report]):
    """Repository for reports filed against listings."""

    def __init__(self, db: AsyncSession):
        super().__init__(Report, db)

    async def create_report(
        self,
        reporter_id: uuid.UUID,
        listing_id: uuid.UUID,
        reason: str,
        details: str
    ) -> Report:
        report = await self.create({
            "reporter_id": reporter_id,
            "listing_id": listing_id,
            "reason": reason,
            "details": details,
            "status": ReportStatus.PENDING,
        })
        logger.info(f"Report {report.id} filed against listing {listing_id} by {reporter_id}")
        return report

    async def get_reports(self, status: Optional[ReportStatus] = None) -> List[Report]:
        """All reports newest first, optionally narrowed to one status."""
        filters = {"status": status} if status else None
        return await self.get_multi(limit=None, filters=filters)

    async def update_status(self, report_id: uuid.UUID, status: ReportStatus) -> Optional[Report]:
        report = await self.update(report_id, {"status": status})
        if report:
            logger.info(f"Report {report_id} marked {status.value}")
        return report

    async def count_pending(self) -> int:
        return await self.count({"status": ReportStatus.PENDING})
