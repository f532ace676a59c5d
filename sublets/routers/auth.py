"""
Authentication API endpoints for signup, email verification, login and password recovery.
Provides JWT-based authentication with role-based access control.
"""

from fastapi import APIRouter, Depends, status
from sublets.models.user import User
from sublets.services.auth import AuthService
from sublets.schemas.auth import (
    SignupRequest,
    SignupResponse,
    VerifyEmailRequest,
    LoginRequest,
    LoginResponse,
    TokenResponse,
    RefreshTokenRequest,
    AccessTokenResponse,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    MessageResponse
)
from sublets.schemas.user import UserResponse
from sublets.schemas.error import error_responses
from sublets.utils.dependencies import get_auth_service, get_current_user
from sublets.config import settings


router = APIRouter(prefix="/auth", tags=["Authentication"])


@router.post(
    "/signup",
    response_model=SignupResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
    description="Register with a university email address; a verification link is emailed",
    responses=error_responses(400, 409, 422)
)
async def signup(
    signup_data: SignupRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> SignupResponse:
    user = await auth_service.signup(signup_data)
    return SignupResponse(
        message="Account created. Check your email to verify your address.",
        user_id=str(user.id)
    )


@router.post(
    "/verify-email",
    response_model=MessageResponse,
    summary="Verify email address",
    responses=error_responses(400, 422)
)
async def verify_email(
    verify_data: VerifyEmailRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.verify_email(verify_data.token)
    return MessageResponse(message="Email verified. You can now log in.")


@router.post(
    "/resend-verification",
    response_model=MessageResponse,
    summary="Resend the verification email",
    responses=error_responses(422)
)
async def resend_verification(
    request_data: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.resend_verification(request_data.email)
    return MessageResponse(message="If the account needs verification, a new link has been sent")


@router.post(
    "/login",
    response_model=LoginResponse,
    status_code=status.HTTP_200_OK,
    summary="User login",
    description="Authenticate user with email and password, returns JWT tokens",
    responses=error_responses(401, 403, 422)
)
async def login(
    login_data: LoginRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> LoginResponse:
    """
    Authenticate user and return JWT tokens.

    Raises:
        InvalidCredentialsError: If credentials are invalid
        EmailNotVerifiedError: If the account has not been verified
    """
    user, access_token, refresh_token = await auth_service.login(
        email=login_data.email,
        password=login_data.password
    )

    return LoginResponse(
        user=UserResponse.model_validate(user.to_dict()),
        tokens=TokenResponse(
            access_token=access_token,
            refresh_token=refresh_token,
            token_type="bearer",
            expires_in=settings.access_token_expire_minutes * 60
        )
    )


@router.post(
    "/refresh",
    response_model=AccessTokenResponse,
    status_code=status.HTTP_200_OK,
    summary="Refresh access token",
    description="Generate new access token using refresh token",
    responses=error_responses(401)
)
async def refresh_token(
    refresh_data: RefreshTokenRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> AccessTokenResponse:
    access_token = await auth_service.refresh_access_token(refresh_token=refresh_data.refresh_token)

    return AccessTokenResponse(
        access_token=access_token,
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60
    )


@router.post(
    "/forgot-password",
    response_model=MessageResponse,
    summary="Request a password reset link",
    responses=error_responses(422)
)
async def forgot_password(
    request_data: ForgotPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    message = await auth_service.forgot_password(request_data.email)
    return MessageResponse(message=message)


@router.post(
    "/reset-password",
    response_model=MessageResponse,
    summary="Reset password with a token",
    responses=error_responses(400, 422)
)
async def reset_password(
    reset_data: ResetPasswordRequest,
    auth_service: AuthService = Depends(get_auth_service)
) -> MessageResponse:
    await auth_service.reset_password(reset_data.token, reset_data.password)
    return MessageResponse(message="Password has been reset. You can now log in.")


@router.get(
    "/me",
    response_model=UserResponse,
    status_code=status.HTTP_200_OK,
    summary="Get current user",
    responses=error_responses(401)
)
async def get_current_user_info(
    current_user: User = Depends(get_current_user)
) -> UserResponse:
    return UserResponse.model_validate(current_user.to_dict())


@router.post(
    "/logout",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="User logout",
    description="Logout user (client-side token removal)"
)
async def logout(
    current_user: User = Depends(get_current_user)
) -> None:
    """
    JWTs are stateless, so logging out means the client discards its tokens.
    The endpoint only confirms the caller was authenticated.
    """
    return None
