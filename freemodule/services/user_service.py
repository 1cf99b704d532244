"""
freemodule/services/user_service.py
Credential store and self-service profile operations
"""
import logging
from typing import Optional

from sqlalchemy import delete, insert, select, update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from freemodule.errors import (
    ConflictError,
    EmailConflictError,
    InvalidCredentialsError,
    NoFieldsError,
    NotFoundError,
    ValidationError,
    is_unique_violation,
    translate_integrity_error,
)
from freemodule.orm.note import Note
from freemodule.orm.user import User
from freemodule.security.passwords import PasswordHasher
from freemodule.services.file_store import FileStore

logger = logging.getLogger(__name__)

PUBLIC_COLUMNS = (User.id, User.name, User.email, User.created_at)


def require_institution_email(email: str, domain: str) -> str:
    email = email.strip().lower()
    if not email.endswith("@" + domain):
        message = f"Must use a @{domain} email address"
        raise ValidationError(
            message,
            details=[{"loc": ["body", "email"], "msg": message, "type": "value_error"}],
        )
    return email


class UserService:
    def __init__(self, hasher: PasswordHasher, files: FileStore, email_domain: str):
        self.hasher = hasher
        self.files = files
        self.email_domain = email_domain

    async def create(self, db: AsyncSession, name: str, email: str, password: str) -> dict:
        """Register a new account; duplicate email is EMAIL_CONFLICT."""
        email = require_institution_email(email, self.email_domain)
        password_hash = await self.hasher.hash(password)
        try:
            result = await db.execute(
                insert(User)
                .values(name=name, email=email, password_hash=password_hash)
                .returning(*PUBLIC_COLUMNS)
            )
            user = dict(result.mappings().one())
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if is_unique_violation(e):
                logger.info(f"Signup rejected, email already registered: {email}")
                raise EmailConflictError("Email already in use")
            raise translate_integrity_error(e)
        logger.info(f"User {user['id']} registered ({email})")
        return user

    async def authenticate(self, db: AsyncSession, email: str, password: str) -> User:
        """
        Check credentials.

        Unknown email and wrong password fail identically, and both paths pay
        for one bcrypt verification.
        """
        email = email.strip().lower()
        result = await db.execute(select(User).where(User.email == email))
        user = result.scalar_one_or_none()
        if user is None:
            await self.hasher.verify_dummy(password)
            logger.info(f"Failed login for {email}")
            raise InvalidCredentialsError()
        if not await self.hasher.verify(password, user.password_hash):
            logger.info(f"Failed login for {email}")
            raise InvalidCredentialsError()
        return user

    async def get(self, db: AsyncSession, user_id: int) -> dict:
        row = (await db.execute(select(*PUBLIC_COLUMNS).where(User.id == user_id))).mappings().first()
        if row is None:
            raise NotFoundError("User")
        return dict(row)

    async def update_profile(
        self,
        db: AsyncSession,
        user_id: int,
        name: Optional[str] = None,
        email: Optional[str] = None,
    ) -> dict:
        values = {}
        if name is not None:
            values["name"] = name
        if email is not None:
            values["email"] = require_institution_email(email, self.email_domain)
        if not values:
            raise NoFieldsError("At least one field (name or email) is required to update")

        try:
            result = await db.execute(
                update(User).where(User.id == user_id).values(**values).returning(*PUBLIC_COLUMNS)
            )
            row = result.mappings().first()
            if row is None:
                await db.rollback()
                raise NotFoundError("User")
            user = dict(row)
            await db.commit()
        except IntegrityError as e:
            await db.rollback()
            if is_unique_violation(e):
                raise ConflictError("Email already exists")
            raise translate_integrity_error(e)
        return user

    async def change_password(self, db: AsyncSession, user_id: int, current_password: str, new_password: str) -> None:
        result = await db.execute(select(User.password_hash).where(User.id == user_id))
        current_hash = result.scalar_one_or_none()
        if current_hash is None:
            raise NotFoundError("User")
        if not await self.hasher.verify(current_password, current_hash):
            raise InvalidCredentialsError()

        new_hash = await self.hasher.hash(new_password)
        await db.execute(update(User).where(User.id == user_id).values(password_hash=new_hash))
        await db.commit()
        logger.info(f"User {user_id} changed password")

    async def delete(self, db: AsyncSession, user_id: int) -> dict:
        """
        Delete the account and everything it owns.

        Notes are deleted explicitly so their file URLs come back in the same
        transaction; the remaining rows go through ON DELETE CASCADE. Files are
        removed once the delete has committed.
        """
        removed_notes = await db.execute(
            delete(Note).where(Note.user_id == user_id).returning(Note.file_url)
        )
        file_urls = removed_notes.scalars().all()
        result = await db.execute(delete(User).where(User.id == user_id).returning(*PUBLIC_COLUMNS))
        row = result.mappings().first()
        if row is None:
            await db.rollback()
            raise NotFoundError("User")
        deleted = dict(row)
        await db.commit()
        logger.info(f"User {user_id} deleted with {len(file_urls)} note file(s)")

        await self.files.delete_many(file_urls)
        return deleted
