"""
Service layer for staff and admin accounts.

Covers account creation, credential checks, staff department assignments
and the password reset flow.
"""

from datetime import timedelta
from typing import Any, Iterable, List, Optional

from sqlalchemy import delete, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from registrar.core.config import settings
from registrar.core.email import EmailService, dispatch
from registrar.core.errors import ConflictError, NotFoundError, UnexpectedError, ValidationError
from registrar.core.logging import logger
from registrar.core.security import SecurityUtils, get_password_hash, verify_password
from registrar.models.department import Department, staff_departments
from registrar.models.user import User
from registrar.schemas.user import UserCreate
from registrar.utils.dates import as_utc, utcnow


class UserService:
    """Service class for user operations."""

    @staticmethod
    async def create(db: AsyncSession, user_in: UserCreate) -> User:
        """
        Create a new user.

        Args:
            db: Database session
            user_in: User creation data

        Returns:
            Created user

        Raises:
            ConflictError: Username or email already taken
            ValidationError: Unknown department id
        """
        logger.info(f"Creating new {user_in.role} user: {user_in.username}")

        user_data = user_in.model_dump(exclude={"password", "department_ids"})
        user = User(**user_data, hashed_password=get_password_hash(user_in.password))
        user.departments = await UserService._departments(db, user_in.department_ids)
        db.add(user)
        try:
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            logger.warning(f"User already exists: {user_in.username} / {user_in.email}")
            raise ConflictError("A user with this username or email already exists") from e

        logger.info(f"Created user with ID: {user.id}")
        return user

    @staticmethod
    async def authenticate(db: AsyncSession, username: str, password: str) -> Optional[User]:
        """
        Check a username/password pair and stamp the login time.

        Returns:
            User if authentication succeeds, None otherwise
        """
        user = await UserService.get_by_username(db, username)
        if not user:
            logger.warning(f"Authentication failed: User not found - {username}")
            return None
        if not user.is_active:
            logger.warning(f"Authentication failed: Inactive user - {username}")
            return None
        if not verify_password(password, user.hashed_password):
            logger.warning(f"Authentication failed: Invalid password for user - {username}")
            return None

        user.last_login = utcnow()
        await db.commit()
        return user

    @staticmethod
    async def get_by_id(db: AsyncSession, user_id: int) -> Optional[User]:
        result = await db.execute(select(User).where(User.id == user_id))
        return result.scalars().first()

    @staticmethod
    async def get_by_username(db: AsyncSession, username: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.username == username))
        return result.scalars().first()

    @staticmethod
    async def get_by_email(db: AsyncSession, email: str) -> Optional[User]:
        result = await db.execute(select(User).where(User.email == email))
        return result.scalars().first()

    @staticmethod
    async def list_users(db: AsyncSession, role: Optional[str] = None) -> List[User]:
        query = select(User).order_by(User.id.asc())
        if role:
            query = query.where(User.role == role)
        result = await db.execute(query)
        return list(result.scalars().all())

    @staticmethod
    async def get_staff_departments(db: AsyncSession, user_id: int) -> List[int]:
        """
        Raises:
            NotFoundError: No such user
        """
        user = await UserService.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        return user.department_ids

    @staticmethod
    async def set_staff_departments(
        db: AsyncSession,
        user_id: int,
        department_ids: Iterable[int],
    ) -> List[int]:
        """
        Replace a staff member's department assignments.

        Args:
            db: Database session
            user_id: Staff user
            department_ids: Complete new assignment set (may be empty)

        Returns:
            The stored assignment set, ascending

        Raises:
            NotFoundError: No such user
            ValidationError: User is not staff, or unknown department id
        """
        user = await UserService.get_by_id(db, user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")
        if user.role != "staff":
            raise ValidationError.for_field("userId", "Departments can only be assigned to staff users")

        wanted = sorted(set(department_ids))
        departments = await UserService._departments(db, wanted)

        await db.execute(delete(staff_departments).where(staff_departments.c.user_id == user_id))
        if departments:
            await db.execute(
                insert(staff_departments),
                [{"user_id": user_id, "department_id": department.id} for department in departments],
            )
        await db.commit()
        logger.info(f"Staff user {user.username} assigned to departments {wanted}")

        await db.refresh(user, attribute_names=["departments"])
        return user.department_ids

    @staticmethod
    async def request_password_reset(
        db: AsyncSession,
        email: str,
        notifier: Any = EmailService,
    ) -> None:
        """
        Issue a reset token and email it. Unknown emails are ignored silently.
        """
        user = await UserService.get_by_email(db, email)
        if user is None:
            logger.info(f"Password reset requested for non-existent email: {email}")
            return

        user.reset_token = SecurityUtils.generate_reset_token()
        user.reset_token_expires = utcnow() + timedelta(
            minutes=settings.security.password_reset_token_expire_minutes
        )
        await db.commit()
        logger.info(f"Password reset token issued for user: {user.username}")

        await dispatch(notifier.send_password_reset_email, user.email, user.reset_token)

    @staticmethod
    async def reset_password(db: AsyncSession, token: str, new_password: str) -> User:
        """
        Set a new password from a reset token.

        The hash update and token clearing are committed together, then the
        row is read back to confirm the write landed.

        Raises:
            ValidationError: Invalid or expired token, or weak password
            UnexpectedError: The stored row does not reflect the reset
        """
        result = await db.execute(select(User).where(User.reset_token == token))
        user = result.scalars().first()
        if user is None or user.reset_token_expires is None or as_utc(user.reset_token_expires) < utcnow():
            logger.warning("Password reset attempt with invalid or expired token")
            raise ValidationError.for_field("token", "Invalid or expired reset token")

        if len(new_password) < settings.security.password_min_length:
            raise ValidationError.for_field(
                "new_password",
                f"Password must be at least {settings.security.password_min_length} characters",
            )

        user.hashed_password = get_password_hash(new_password)
        user.reset_token = None
        user.reset_token_expires = None
        user.updated_at = utcnow()
        await db.commit()

        if not await UserService.verify_password_reset(db, user.id):
            logger.error(f"Password reset for user {user.id} could not be verified after commit")
            raise UnexpectedError("Password reset could not be confirmed. Please try again.")

        logger.info(f"Password reset successful for user: {user.username}")
        return user

    @staticmethod
    async def verify_password_reset(db: AsyncSession, user_id: int) -> bool:
        """
        Re-read a user after a reset and check the write is visible.

        Checks that the password hash is non-empty, both reset token fields
        are cleared and the row was updated within the verification window.
        """
        result = await db.execute(
            select(User).where(User.id == user_id).execution_options(populate_existing=True)
        )
        user = result.scalars().first()
        if user is None:
            return False

        window = timedelta(minutes=settings.security.password_reset_verify_window_minutes)
        updated_at = as_utc(user.updated_at)
        return (
            bool(user.hashed_password)
            and user.reset_token is None
            and user.reset_token_expires is None
            and updated_at is not None
            and utcnow() - updated_at <= window
        )

    @staticmethod
    async def _departments(db: AsyncSession, department_ids: Iterable[int]) -> List[Department]:
        wanted = sorted(set(department_ids))
        if not wanted:
            return []
        result = await db.execute(select(Department).where(Department.id.in_(wanted)))
        departments = list(result.scalars().all())
        missing = set(wanted) - {department.id for department in departments}
        if missing:
            raise ValidationError.for_field("departmentIds", f"Unknown department ids: {sorted(missing)}")
        return departments
