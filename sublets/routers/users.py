"""
Own-profile endpoints for the authenticated user.
"""

from fastapi import APIRouter, Depends, status

from sublets.models.user import User
from sublets.services.auth import AuthService
from sublets.schemas.user import (
    UserResponse,
    ProfileUpdate,
    PasswordChangeRequest,
    ProfileResponse
)
from sublets.schemas.listing import ListingResponse
from sublets.schemas.auth import MessageResponse
from sublets.schemas.error import error_responses
from sublets.utils.dependencies import get_current_user, get_auth_service


router = APIRouter(prefix="/user", tags=["User"])


@router.get(
    "",
    response_model=ProfileResponse,
    summary="Get own profile",
    description="Profile, listings in any state and the number of unread messages",
    responses=error_responses(401)
)
async def get_profile(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> ProfileResponse:
    user, listings, unread = await auth_service.get_profile(current_user)
    return ProfileResponse(
        user=UserResponse.model_validate(user.to_dict()),
        listings=[ListingResponse.model_validate(listing.to_dict()) for listing in listings],
        unread_messages=unread
    )


@router.put(
    "/profile",
    response_model=UserResponse,
    summary="Update own profile",
    responses=error_responses(401, 409, 422)
)
async def update_profile(
    profile: ProfileUpdate,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> UserResponse:
    user = await auth_service.update_profile(current_user, profile)
    return UserResponse.model_validate(user.to_dict())


@router.put(
    "/password",
    response_model=MessageResponse,
    summary="Change password",
    responses=error_responses(400, 401, 422)
)
async def change_password(
    password_data: PasswordChangeRequest,
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.change_password(current_user, password_data.current_password, password_data.new_password)
    return MessageResponse(message="Password updated")


@router.delete(
    "",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete own account",
    description="Removes the account with its listings, saved listings, messages and reports",
    responses=error_responses(401)
)
async def delete_account(
    current_user: User = Depends(get_current_user),
    auth_service: AuthService = Depends(get_auth_service)
) -> None:
    await auth_service.delete_account(current_user)
