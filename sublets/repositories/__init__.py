"""
Repository layer for data access operations.
Each repository wraps one aggregate and owns its transactions.
"""

from sublets.repositories.base import BaseRepository
from sublets.repositories.user import UserRepository
from sublets.repositories.listing import ListingRepository
from sublets.repositories.saved_listing import SavedListingRepository
from sublets.repositories.message import MessageRepository
from sublets.repositories.report import ReportRepository

__all__ = [
    "BaseRepository",
    "UserRepository",
    "ListingRepository",
    "SavedListingRepository",
    "MessageRepository",
    "ReportRepository",
]
