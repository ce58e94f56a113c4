"""FastAPI dependencies for authentication and role guards."""

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError

from skillhub.auth.permissions import UserRole, has_permission
from skillhub.auth.schemas import TokenUser
from skillhub.auth.security import decode_access_token
from skillhub.auth.service import AuthError, AuthService
from skillhub.core.context import set_user


def get_token_from_header(request: Request) -> str | None:
    """Extract the Bearer token from the Authorization header."""
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None

    expected_parts = 2
    parts = auth_header.split()
    if len(parts) != expected_parts or parts[0].lower() != "bearer":
        return None
    return parts[1]


def _user_from_token(token: str) -> TokenUser:
    payload = decode_access_token(token)
    user = TokenUser(
        id=payload["sub"],
        email=payload["email"],
        role=payload["role"],
        name=payload.get("name", ""),
    )
    set_user(user.id, user.role)
    return user


async def get_current_user(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> TokenUser:
    """Resolve the caller from the access token.

    Raises:
        HTTPException(401): If the token is missing, invalid or expired
    """
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Access token required",
            headers={"WWW-Authenticate": "Bearer"},
        )
    try:
        return _user_from_token(token)
    except (JWTError, KeyError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid or expired token",
            headers={"WWW-Authenticate": "Bearer"},
        ) from e


async def get_current_user_optional(
    token: Annotated[str | None, Depends(get_token_from_header)],
) -> TokenUser | None:
    """Resolve the caller when a valid token is sent, None otherwise."""
    if not token:
        return None
    try:
        return _user_from_token(token)
    except (JWTError, KeyError, ValueError):
        return None


def require_role(*allowed_roles: UserRole):
    """Dependency that allows only the listed roles (exact match)."""

    async def role_checker(
        user: Annotated[TokenUser, Depends(get_current_user)],
    ) -> TokenUser:
        if user.role not in {role.value for role in allowed_roles}:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return role_checker


def require_permission(required_role: UserRole):
    """Dependency that allows ``required_role`` and every role above it."""

    async def permission_checker(
        user: Annotated[TokenUser, Depends(get_current_user)],
    ) -> TokenUser:
        if not has_permission(user.role, required_role):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Insufficient permissions",
            )
        return user

    return permission_checker


async def get_auth_service(request: Request) -> AuthService:
    """Get auth service from app state."""
    service = getattr(request.app.state, "auth_service", None)
    if service is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Authentication service unavailable",
        )
    return service


def handle_auth_error(error: AuthError) -> HTTPException:
    """Convert auth errors to HTTP exceptions."""
    status_map = {
        "invalid_credentials": status.HTTP_401_UNAUTHORIZED,
        "invalid_token": status.HTTP_401_UNAUTHORIZED,
        "user_inactive": status.HTTP_403_FORBIDDEN,
        "permission_denied": status.HTTP_403_FORBIDDEN,
        "user_exists": status.HTTP_409_CONFLICT,
        "user_not_found": status.HTTP_404_NOT_FOUND,
    }
    return HTTPException(
        status_code=status_map.get(error.code, status.HTTP_400_BAD_REQUEST),
        detail=error.message,
    )


# ==============================================================================
# Type Aliases
# ==============================================================================

CurrentUser = Annotated[TokenUser, Depends(get_current_user)]
OptionalUser = Annotated[TokenUser | None, Depends(get_current_user_optional)]

# Enrolling, watching and chatting are student-only actions
StudentUser = Annotated[TokenUser, Depends(require_role(UserRole.STUDENT))]
FacultyUser = Annotated[TokenUser, Depends(require_permission(UserRole.FACULTY))]
AdminUser = Annotated[TokenUser, Depends(require_role(UserRole.ADMIN))]

AuthServiceDep = Annotated[AuthService, Depends(get_auth_service)]
