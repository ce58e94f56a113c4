"""Authentication API endpoints: register, login and profile."""

from fastapi import APIRouter, HTTPException, status

from skillhub.auth.dependencies import AuthServiceDep, CurrentUser, handle_auth_error
from skillhub.auth.schemas import AuthResponse, LoginRequest, RegisterRequest, UserResponse
from skillhub.auth.service import AuthError, UserNotFoundError


router = APIRouter(prefix="/auth", tags=["auth"])


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a student or faculty account",
    responses={
        409: {"description": "Email already registered"},
        422: {"description": "Validation error"},
    },
)
async def register(
    data: RegisterRequest,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    """Create the account and sign the new user in."""
    try:
        user = await auth_service.register_user(data)
    except AuthError as e:
        raise handle_auth_error(e) from e
    return auth_service.issue_token(user)


@router.post(
    "/login",
    response_model=AuthResponse,
    summary="User login",
    responses={
        401: {"description": "Invalid credentials"},
        403: {"description": "Account inactive"},
    },
)
async def login(
    data: LoginRequest,
    auth_service: AuthServiceDep,
) -> AuthResponse:
    try:
        user = await auth_service.authenticate_user(data.email, data.password)
    except AuthError as e:
        raise handle_auth_error(e) from e
    return auth_service.issue_token(user)


@router.get(
    "/profile",
    response_model=UserResponse,
    summary="Current user's profile",
)
async def get_profile(
    user: CurrentUser,
    auth_service: AuthServiceDep,
) -> UserResponse:
    account = await auth_service.get_user_by_id(user.id)
    if account is None:
        raise handle_auth_error(UserNotFoundError())
    if not account.is_active:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN, detail="Account is inactive"
        )
    return auth_service.to_response(account)
