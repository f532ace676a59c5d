"""
Tests for repository classes.
Covers CRUD, account token handling, bookmarks, messages and reports.
"""

import pytest
import uuid
from datetime import timedelta

from sublets.database import utcnow
from sublets.models.user import User, UserRole
from sublets.models.listing import Listing
from sublets.models.report import ReportStatus
from sublets.repositories.user import UserRepository
from sublets.repositories.listing import ListingRepository
from sublets.repositories.saved_listing import SavedListingRepository
from sublets.repositories.message import MessageRepository
from sublets.repositories.report import ReportRepository
from tests.conftest import UserFactory, ListingFactory, MessageFactory, DEFAULT_PASSWORD


class TestUserRepository:
    """Test UserRepository functionality."""

    @pytest.mark.asyncio
    async def test_create_user_hashes_password(self, user_repository: UserRepository):
        user = await UserFactory.create_user(user_repository, email="New.Student@WISC.edu")

        assert user.id is not None
        assert user.email == "new.student@wisc.edu"
        assert user.hashed_password != DEFAULT_PASSWORD
        assert user.verify_password(DEFAULT_PASSWORD)
        assert user.role == UserRole.USER

    @pytest.mark.asyncio
    async def test_create_user_duplicate_email(self, user_repository: UserRepository, test_user: User):
        with pytest.raises(ValueError, match="already exists"):
            await UserFactory.create_user(user_repository, email=test_user.email.upper())

    @pytest.mark.asyncio
    async def test_get_by_email_case_insensitive(self, user_repository: UserRepository, test_user: User):
        found = await user_repository.get_by_email("BUCKY@wisc.edu")
        assert found.id == test_user.id
        assert await user_repository.get_by_email("nobody@wisc.edu") is None

    @pytest.mark.asyncio
    async def test_authenticate_user(self, user_repository: UserRepository, test_user: User):
        assert (await user_repository.authenticate_user(test_user.email, DEFAULT_PASSWORD)).id == test_user.id
        assert await user_repository.authenticate_user(test_user.email, "wrongpassword") is None
        assert await user_repository.authenticate_user("nobody@wisc.edu", DEFAULT_PASSWORD) is None

    @pytest.mark.asyncio
    async def test_account_token_lifecycle(self, user_repository: UserRepository, unverified_user: User):
        expiry = utcnow() + timedelta(hours=1)
        await user_repository.set_account_token(unverified_user.id, "token-value", expiry)

        holder = await user_repository.get_by_token("token-value")
        assert holder.id == unverified_user.id
        assert holder.has_valid_token("token-value")

        verified = await user_repository.mark_email_verified(unverified_user.id, utcnow())
        assert verified.is_verified
        assert verified.verification_token is None
        assert await user_repository.get_by_token("token-value") is None

    @pytest.mark.asyncio
    async def test_get_by_token_empty(self, user_repository: UserRepository, test_user: User):
        assert await user_repository.get_by_token("") is None

    @pytest.mark.asyncio
    async def test_update_password_clears_token(self, user_repository: UserRepository, test_user: User):
        await user_repository.set_account_token(test_user.id, "reset-token", utcnow() + timedelta(hours=1))

        updated = await user_repository.update_password(test_user.id, "brandnewpassword")

        assert updated.verify_password("brandnewpassword")
        assert updated.verification_token is None
        assert updated.token_expiry is None

    @pytest.mark.asyncio
    async def test_check_email_availability(self, user_repository: UserRepository, test_user: User):
        assert not await user_repository.check_email_availability(test_user.email)
        assert await user_repository.check_email_availability(test_user.email, exclude_user_id=test_user.id)
        assert await user_repository.check_email_availability("free@wisc.edu")

    @pytest.mark.asyncio
    async def test_get_by_ids(self, user_repository: UserRepository, test_user: User, other_user: User):
        users = await user_repository.get_by_ids([test_user.id, other_user.id, test_user.id])

        assert set(users) == {test_user.id, other_user.id}
        assert await user_repository.get_by_ids([]) == {}

    @pytest.mark.asyncio
    async def test_search_users_with_listing_counts(
        self,
        user_repository: UserRepository,
        listing_repository: ListingRepository,
        test_user: User,
        other_user: User,
        unverified_user: User
    ):
        await ListingFactory.create_listing(listing_repository, test_user.id)
        await ListingFactory.create_listing(listing_repository, test_user.id)

        rows = await user_repository.search_users("bucky")
        assert [(user.id, count) for user, count in rows] == [(test_user.id, 2)]

        rows = await user_repository.search_users("becky")
        assert rows[0][1] == 0

        unverified = await user_repository.search_users(verified=False)
        assert [user.id for user, _ in unverified] == [unverified_user.id]

    @pytest.mark.asyncio
    async def test_search_users_matches_wildcards_literally(
        self,
        user_repository: UserRepository,
        test_user: User
    ):
        underscored = await UserFactory.create_user(user_repository, email="first_last@wisc.edu", name="First Last")

        rows = await user_repository.search_users("_")
        assert [user.id for user, _ in rows] == [underscored.id]

        assert await user_repository.search_users("%") == []

    @pytest.mark.asyncio
    async def test_count_verified(self, user_repository: UserRepository, test_user: User, unverified_user: User):
        assert await user_repository.count() == 2
        assert await user_repository.count_verified() == 1

    @pytest.mark.asyncio
    async def test_update_user_role(self, user_repository: UserRepository, test_user: User):
        updated = await user_repository.update_user_role(test_user.id, UserRole.ADMIN)
        assert updated.is_admin

    @pytest.mark.asyncio
    async def test_update_missing_user(self, user_repository: UserRepository):
        assert await user_repository.update(uuid.uuid4(), {"name": "Ghost"}) is None


class TestListingRepository:
    """Test ListingRepository functionality."""

    @pytest.mark.asyncio
    async def test_create_listing_with_amenities(self, listing_repository: ListingRepository, test_user: User):
        listing = await ListingFactory.create_listing(
            listing_repository, test_user.id, amenities=["Parking", "WiFi", "Parking"]
        )

        assert listing.amenities == ["Parking", "WiFi"]
        assert listing.owner.id == test_user.id

    @pytest.mark.asyncio
    async def test_update_listing_fields(self, listing_repository: ListingRepository, test_listing: Listing):
        updated = await listing_repository.update_listing(test_listing.id, {"title": "Renamed studio", "bedrooms": 2})

        assert updated.title == "Renamed studio"
        assert updated.bedrooms == 2
        assert updated.amenities == ["Laundry", "WiFi"]

    @pytest.mark.asyncio
    async def test_update_listing_cannot_change_owner(
        self,
        listing_repository: ListingRepository,
        test_listing: Listing,
        other_user: User
    ):
        updated = await listing_repository.update_listing(test_listing.id, {"owner_id": other_user.id})
        assert updated.owner_id == test_listing.owner_id

    @pytest.mark.asyncio
    async def test_update_missing_listing(self, listing_repository: ListingRepository):
        assert await listing_repository.update_listing(uuid.uuid4(), {"title": "Nothing here"}) is None

    @pytest.mark.asyncio
    async def test_owner_listings_and_counts(
        self,
        listing_repository: ListingRepository,
        test_user: User,
        other_user: User
    ):
        await ListingFactory.create_listing(listing_repository, test_user.id)
        await ListingFactory.create_listing(listing_repository, test_user.id, is_draft=True)
        await ListingFactory.create_listing(listing_repository, other_user.id, published=False)

        assert len(await listing_repository.get_listings_by_owner(test_user.id)) == 2
        assert len(await listing_repository.get_all_listings()) == 3
        assert await listing_repository.count_active() == 1

    @pytest.mark.asyncio
    async def test_delete_listing(self, listing_repository: ListingRepository, test_listing: Listing):
        assert await listing_repository.delete(test_listing.id)
        assert await listing_repository.get_by_id(test_listing.id) is None
        assert not await listing_repository.delete(test_listing.id)


class TestSavedListingRepository:
    """Test SavedListingRepository functionality."""

    @pytest.mark.asyncio
    async def test_save_and_unsave(
        self,
        saved_listing_repository: SavedListingRepository,
        test_listing: Listing,
        other_user: User
    ):
        saved = await saved_listing_repository.save(other_user.id, test_listing.id)
        assert saved.listing.id == test_listing.id
        assert await saved_listing_repository.get_saved(other_user.id, test_listing.id) is not None

        assert await saved_listing_repository.unsave(other_user.id, test_listing.id)
        assert not await saved_listing_repository.unsave(other_user.id, test_listing.id)
        assert await saved_listing_repository.get_saved(other_user.id, test_listing.id) is None

    @pytest.mark.asyncio
    async def test_get_saved_ids_batch(
        self,
        saved_listing_repository: SavedListingRepository,
        listing_repository: ListingRepository,
        test_user: User,
        other_user: User
    ):
        first = await ListingFactory.create_listing(listing_repository, test_user.id)
        second = await ListingFactory.create_listing(listing_repository, test_user.id)
        await saved_listing_repository.save(other_user.id, first.id)

        saved_ids = await saved_listing_repository.get_saved_ids(other_user.id, [first.id, second.id])

        assert saved_ids == {first.id}
        assert await saved_listing_repository.get_saved_ids(other_user.id, []) == set()

    @pytest.mark.asyncio
    async def test_user_saved_listings_newest_first(
        self,
        saved_listing_repository: SavedListingRepository,
        listing_repository: ListingRepository,
        test_user: User,
        other_user: User
    ):
        first = await ListingFactory.create_listing(listing_repository, test_user.id, title="Saved first")
        second = await ListingFactory.create_listing(listing_repository, test_user.id, title="Saved second")
        await saved_listing_repository.save(other_user.id, first.id)
        await saved_listing_repository.save(other_user.id, second.id)

        saved = await saved_listing_repository.get_user_saved_listings(other_user.id)

        assert [entry.listing.title for entry in saved] == ["Saved second", "Saved first"]


class TestMessageRepository:
    """Test MessageRepository functionality."""

    @pytest.mark.asyncio
    async def test_messages_for_user_oldest_first(
        self,
        message_repository: MessageRepository,
        test_user: User,
        other_user: User,
        test_admin: User
    ):
        await MessageFactory.create_message(message_repository, test_user.id, other_user.id, "one")
        await MessageFactory.create_message(message_repository, other_user.id, test_user.id, "two")
        await MessageFactory.create_message(message_repository, test_admin.id, test_user.id, "three")

        everything = await message_repository.get_messages_for_user(test_user.id)
        assert [m.content for m in everything] == ["one", "two", "three"]

        thread = await message_repository.get_thread(test_user.id, other_user.id)
        assert [m.content for m in thread] == ["one", "two"]

    @pytest.mark.asyncio
    async def test_filter_by_listing(
        self,
        message_repository: MessageRepository,
        test_user: User,
        other_user: User,
        test_listing: Listing
    ):
        await MessageFactory.create_message(message_repository, other_user.id, test_user.id, "about it", test_listing.id)
        await MessageFactory.create_message(message_repository, other_user.id, test_user.id, "general")

        messages = await message_repository.get_messages_for_user(test_user.id, listing_id=test_listing.id)

        assert [m.content for m in messages] == ["about it"]
        assert messages[0].to_dict()["listing"] == {"id": str(test_listing.id), "title": test_listing.title}

    @pytest.mark.asyncio
    async def test_counterparts_and_unread(
        self,
        message_repository: MessageRepository,
        test_user: User,
        other_user: User,
        test_admin: User
    ):
        await MessageFactory.create_message(message_repository, test_user.id, other_user.id)
        await MessageFactory.create_message(message_repository, other_user.id, test_user.id)
        await MessageFactory.create_message(message_repository, test_admin.id, test_user.id)

        assert set(await message_repository.get_counterpart_ids(test_user.id)) == {other_user.id, test_admin.id}
        assert await message_repository.count_unread(test_user.id) == 2
        assert await message_repository.count_unread(test_user.id, sender_id=other_user.id) == 1

    @pytest.mark.asyncio
    async def test_mark_thread_read(
        self,
        message_repository: MessageRepository,
        test_user: User,
        other_user: User
    ):
        await MessageFactory.create_message(message_repository, other_user.id, test_user.id)
        await MessageFactory.create_message(message_repository, other_user.id, test_user.id)
        await MessageFactory.create_message(message_repository, test_user.id, other_user.id)

        assert await message_repository.mark_thread_read(receiver_id=test_user.id, sender_id=other_user.id) == 2
        assert await message_repository.mark_thread_read(receiver_id=test_user.id, sender_id=other_user.id) == 0
        assert await message_repository.count_unread(other_user.id) == 1

    @pytest.mark.asyncio
    async def test_deleting_listing_keeps_messages(
        self,
        message_repository: MessageRepository,
        listing_repository: ListingRepository,
        test_user: User,
        other_user: User,
        test_listing: Listing
    ):
        message = await MessageFactory.create_message(
            message_repository, other_user.id, test_user.id, "Still there?", test_listing.id
        )

        await listing_repository.delete(test_listing.id)

        kept = await message_repository.get_by_id(message.id)
        assert kept.content == "Still there?"
        assert kept.listing_id is None


class TestReportRepository:
    """Test ReportRepository functionality."""

    @pytest.mark.asyncio
    async def test_create_and_moderate(
        self,
        report_repository: ReportRepository,
        test_listing: Listing,
        other_user: User
    ):
        report = await report_repository.create_report(
            reporter_id=other_user.id,
            listing_id=test_listing.id,
            reason="Scam",
            details="The owner asked for a wire transfer."
        )

        assert report.status == ReportStatus.PENDING
        assert report.reporter.id == other_user.id
        assert await report_repository.count_pending() == 1

        resolved = await report_repository.update_status(report.id, ReportStatus.RESOLVED)
        assert resolved.status == ReportStatus.RESOLVED
        assert await report_repository.count_pending() == 0

        assert len(await report_repository.get_reports()) == 1
        assert await report_repository.get_reports(ReportStatus.PENDING) == []
