"""Authentication service layer.

Business logic for registration, login, token issuing and profile lookup.
"""

from datetime import UTC, datetime
from typing import TYPE_CHECKING
from uuid import UUID

from skillhub.auth.models import User
from skillhub.auth.permissions import UserRole
from skillhub.auth.schemas import AuthResponse, RegisterRequest, UserResponse
from skillhub.auth.security import create_access_token, hash_password, verify_password
from skillhub.config.settings import get_settings
from skillhub.core.logging import get_logger


if TYPE_CHECKING:
    from cassandra.cluster import Session


logger = get_logger(__name__)


# ==============================================================================
# Custom Exceptions
# ==============================================================================


class AuthError(Exception):
    """Base authentication error."""

    def __init__(self, message: str, code: str = "auth_error"):
        self.message = message
        self.code = code
        super().__init__(message)


class InvalidCredentialsError(AuthError):
    """Invalid email or password."""

    def __init__(self, message: str = "Invalid email or password"):
        super().__init__(message, "invalid_credentials")


class UserExistsError(AuthError):
    """Email already registered."""

    def __init__(self, message: str = "An account with this email already exists"):
        super().__init__(message, "user_exists")


class UserNotFoundError(AuthError):
    def __init__(self, message: str = "User not found"):
        super().__init__(message, "user_not_found")


class UserInactiveError(AuthError):
    def __init__(self, message: str = "Account is inactive"):
        super().__init__(message, "user_inactive")


class InvalidTokenError(AuthError):
    def __init__(self, message: str = "Invalid or expired token"):
        super().__init__(message, "invalid_token")


class PermissionDeniedError(AuthError):
    def __init__(self, message: str = "Permission denied"):
        super().__init__(message, "permission_denied")


# ==============================================================================
# Auth Service
# ==============================================================================


class AuthService:
    """Account management and token issuing."""

    def __init__(self, session: "Session", keyspace: str):
        """Initialize with Cassandra session.

        Args:
            session: Cassandra session with aexecute() support
            keyspace: Keyspace name for queries
        """
        self.session = session
        self.keyspace = keyspace
        self._prepare_statements()

    def _prepare_statements(self) -> None:
        """Prepare CQL statements for better performance."""
        self._get_user_by_id = self.session.prepare(
            f"SELECT * FROM {self.keyspace}.users WHERE id = ?"
        )
        self._get_user_id_by_email = self.session.prepare(
            f"SELECT user_id FROM {self.keyspace}.users_by_email WHERE email = ?"
        )
        self._insert_user = self.session.prepare(f"""
            INSERT INTO {self.keyspace}.users (
                id, email, name, password_hash, role, registration_number,
                department, is_active, created_at, updated_at
            ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
        """)
        self._insert_email_lookup = self.session.prepare(
            f"INSERT INTO {self.keyspace}.users_by_email (email, user_id) VALUES (?, ?)"
        )
        self._update_password = self.session.prepare(
            f"UPDATE {self.keyspace}.users SET password_hash = ?, updated_at = ? WHERE id = ?"
        )

    # ==========================================================================
    # User Operations
    # ==========================================================================

    async def get_user_by_id(self, user_id: UUID) -> User | None:
        """Find user by ID."""
        result = await self.session.aexecute(self._get_user_by_id, [user_id])
        row = result.one()
        return User.from_row(row) if row else None

    async def get_user_by_email(self, email: str) -> User | None:
        """Find user by email through the lookup table."""
        result = await self.session.aexecute(
            self._get_user_id_by_email, [email.lower().strip()]
        )
        row = result.one()
        if not row:
            return None
        return await self.get_user_by_id(row.user_id)

    async def register_user(self, data: RegisterRequest) -> User:
        """Create a student or faculty account.

        Raises:
            UserExistsError: If the email is taken
        """
        if await self.get_user_by_email(data.email):
            raise UserExistsError

        settings = get_settings()
        is_faculty = data.role == UserRole.FACULTY
        user = User(
            email=data.email,
            name=data.name,
            password_hash=hash_password(data.password),
            role=data.role.value,
            registration_number=None if is_faculty else data.registration_number,
            department=(
                data.department or settings.auth_default_faculty_department
                if is_faculty
                else None
            ),
            is_active=True,
        )

        await self.session.aexecute(
            self._insert_user,
            [
                user.id,
                user.email,
                user.name,
                user.password_hash,
                user.role,
                user.registration_number,
                user.department,
                user.is_active,
                user.created_at,
                user.updated_at,
            ],
        )
        await self.session.aexecute(self._insert_email_lookup, [user.email, user.id])

        logger.info("user_registered", user_id=str(user.id), role=user.role)
        return user

    async def authenticate_user(self, email: str, password: str) -> User:
        """Check credentials and return the user.

        Raises:
            InvalidCredentialsError: If email or password is wrong
            UserInactiveError: If the account is disabled
        """
        user = await self.get_user_by_email(email)
        if not user:
            raise InvalidCredentialsError

        is_valid, new_hash = verify_password(password, user.password_hash)
        if not is_valid:
            logger.info("login_failed", user_id=str(user.id))
            raise InvalidCredentialsError

        if not user.is_active:
            raise UserInactiveError

        if new_hash:
            await self.session.aexecute(
                self._update_password, [new_hash, datetime.now(UTC), user.id]
            )
            user.password_hash = new_hash

        logger.info("user_logged_in", user_id=str(user.id), role=user.role)
        return user

    # ==========================================================================
    # Tokens
    # ==========================================================================

    def issue_token(self, user: User) -> AuthResponse:
        """Build the ``{token, user}`` payload for a signed-in user."""
        settings = get_settings()
        token = create_access_token(
            {
                "sub": str(user.id),
                "email": user.email,
                "role": user.role,
                "name": user.name,
            }
        )
        return AuthResponse(
            token=token,
            expires_in=settings.auth_access_token_expire_minutes * 60,
            user=self.to_response(user),
        )

    def to_response(self, user: User) -> UserResponse:
        return UserResponse.model_validate(user)
