"""
Database models for the sublets API.
Includes users, listings with amenities, saved listings, messages and reports.
"""

from sublets.models.user import User, UserRole
from sublets.models.listing import Listing, ListingAmenity
from sublets.models.saved_listing import SavedListing
from sublets.models.message import Message
from sublets.models.report import Report, ReportStatus

__all__ = [
    "User",
    "UserRole",
    "Listing",
    "ListingAmenity",
    "SavedListing",
    "Message",
    "Report",
    "ReportStatus",
]
