"""
OneSim Backend: User Service
============================

What:  Signup, login and the student listing.
How:   Parameterized SQLAlchemy statements against `users`; password work is
       delegated to the injected PasswordHasher (bcrypt, off the event loop).
Who:   Called by routes/users.py.
When:  Every signup, login, and teacher dashboard load.

Login outcomes:
    missing email/password/role   → ValidationError (400)
    no (email, role) match        → InvalidCredentialsError (401)
                                    UserNotFoundError (404) with
                                    LOGIN_REVEAL_UNKNOWN_USER=true
    wrong password                → InvalidCredentialsError (401)
    match                         → LoginResponse with the public profile
"""

import logging
from typing import List

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from onesim.exceptions import (
    DuplicateUserError,
    InvalidCredentialsError,
    StorageError,
    UserNotFoundError,
    ValidationError,
)
from onesim.models.user import User
from onesim.schemas.user import (
    LoginRequest,
    LoginResponse,
    SignupRequest,
    StudentItem,
    UserProfile,
)
from onesim.services.password_hasher import MAX_PASSWORD_BYTES, PasswordHasher

logger = logging.getLogger(__name__)

STUDENT_ROLE = "student"


class UserService:
    """
    Account operations over the `users` table.

    Stateless: the session and the hasher arrive with each call.
    """

    async def list_students(self, db: AsyncSession) -> List[StudentItem]:
        try:
            result = await db.execute(
                select(User.id, User.name, User.email)
                .where(User.role == STUDENT_ROLE)
                .order_by(User.id)
            )
            rows = result.all()
        except SQLAlchemyError as e:
            logger.error("Error fetching students: %s", str(e))
            raise StorageError(
                message="Failed to fetch students.",
                context={"error_type": type(e).__name__},
            )
        return [StudentItem(id=row.id, name=row.name, email=row.email) for row in rows]

    async def signup(
        self,
        db: AsyncSession,
        payload: SignupRequest,
        hasher: PasswordHasher,
    ) -> User:
        """
        Create an account with a bcrypt-hashed password.

        Raises:
            ValidationError: a field is missing, or the password is over 72 bytes.
            DuplicateUserError: the email already has an account.
            StorageError: the insert failed for any other reason.
        """
        if not (payload.name and payload.email and payload.password and payload.role):
            raise ValidationError(message="All fields are required.")

        if len(payload.password.encode("utf-8")) > MAX_PASSWORD_BYTES:
            raise ValidationError(
                message=f"Password must be at most {MAX_PASSWORD_BYTES} bytes.",
                field="password",
            )

        try:
            existing = await db.execute(select(User.id).where(User.email == payload.email))
            if existing.scalar_one_or_none() is not None:
                raise DuplicateUserError(context={"email": payload.email})

            hashed = await hasher.hash_async(payload.password)
            user = User(
                name=payload.name,
                email=payload.email,
                password=hashed,
                role=payload.role,
            )
            db.add(user)
            await db.flush()
        except IntegrityError:
            # Lost a race with a concurrent signup for the same email
            await db.rollback()
            raise DuplicateUserError(context={"email": payload.email})
        except SQLAlchemyError as e:
            logger.error("Error inserting user: %s", str(e))
            raise StorageError(
                message="An error occurred while processing your request.",
                context={"error_type": type(e).__name__},
            )

        logger.info("User created: id=%s role=%s", user.id, user.role)
        return user

    async def login(
        self,
        db: AsyncSession,
        payload: LoginRequest,
        hasher: PasswordHasher,
        reveal_unknown_user: bool = False,
    ) -> LoginResponse:
        """
        One-shot credential check. No session or token is issued.

        Raises:
            ValidationError: email, password or role missing.
            InvalidCredentialsError: wrong password, or unknown user.
            UserNotFoundError: unknown user, only when `reveal_unknown_user`.
            StorageError: the lookup failed.
        """
        if not (payload.email and payload.password and payload.role):
            raise ValidationError(message="Email, password, and role are required.")

        try:
            result = await db.execute(
                select(User).where(User.email == payload.email, User.role == payload.role)
            )
            user = result.scalars().first()
        except SQLAlchemyError as e:
            logger.error("Database error during login: %s", str(e))
            raise StorageError(
                message="Database error occurred.",
                context={"error_type": type(e).__name__},
            )

        if user is None:
            logger.info("Login rejected: no %s account for the given email", payload.role)
            if reveal_unknown_user:
                raise UserNotFoundError()
            raise InvalidCredentialsError()

        if not await hasher.verify_async(payload.password, user.password):
            logger.info("Login rejected: wrong password for user id=%s", user.id)
            raise InvalidCredentialsError()

        return LoginResponse(user=UserProfile.model_validate(user))


# ── Singleton Instance ────────────────────────────────────────────────────
user_service = UserService()
