"""
User-initiated email endpoints.
"""

from fastapi import APIRouter, Depends
import logging

from sublets.models.user import User
from sublets.services.listing import ListingService
from sublets.services.email import EmailService
from sublets.schemas.email import ContactOwnerRequest, ContactOwnerResponse
from sublets.schemas.error import error_responses
from sublets.utils.dependencies import (
    get_current_verified_user,
    get_listing_service,
    get_email_service
)
from sublets.utils.exceptions import EmailDeliveryError, BadRequestError, ServiceUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/email", tags=["Email"])


@router.post(
    "/contact",
    response_model=ContactOwnerResponse,
    summary="Email a listing owner",
    description="Relay a question to the owner of a visible listing. Replies go straight to the sender.",
    responses=error_responses(400, 401, 403, 404, 422)
)
async def contact_owner(
    request_data: ContactOwnerRequest,
    current_user: User = Depends(get_current_verified_user),
    listing_service: ListingService = Depends(get_listing_service),
    email_service: EmailService = Depends(get_email_service)
) -> ContactOwnerResponse:
    """
    Raises:
        ListingNotFoundError: If the listing doesn't exist or is hidden
        BadRequestError: If the caller owns the listing
        ServiceUnavailableError: If the email could not be delivered
    """
    listing = await listing_service.get_listing(request_data.listing_id, current_user)
    owner = listing["owner"]

    if owner["id"] == str(current_user.id):
        raise BadRequestError("You cannot contact yourself about your own listing")

    try:
        await email_service.send_contact_owner_email(
            to=owner["email"],
            sender_name=current_user.name,
            sender_email=current_user.email,
            listing_title=listing["title"],
            subject=request_data.subject,
            message=request_data.message,
        )
    except EmailDeliveryError as e:
        logger.error(f"Contact email for listing {request_data.listing_id} failed: {e}")
        raise ServiceUnavailableError("Email could not be sent. Please try again later.")

    return ContactOwnerResponse(message="Your message has been sent to the owner")
