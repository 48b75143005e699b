"""
User Directory

Owns user identity, profile attributes and the single role assignment per
user. The system-admin account (``settings.SYSTEM_ADMIN_EMAIL``) can never
be deleted or moved off the protected role.
"""
import logging
import re
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import settings
from database import transaction
from models.users import User
from schemas.user import UserCreate, UserPatch
from services.role_store import RoleStore
from utils.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from utils.hashing import get_password_hash

logger = logging.getLogger(__name__)

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")

# Blank values for these mean "not supplied" on update
_KEEP_IF_BLANK = ("first_name", "last_name", "email", "password")


def normalize_email(email: Optional[str]) -> str:
    return (email or "").strip().lower()


def is_system_admin_email(email: Optional[str]) -> bool:
    return normalize_email(email) == normalize_email(settings.SYSTEM_ADMIN_EMAIL)


def _blank(value) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _validate_email(email: str) -> str:
    email = normalize_email(email)
    if not EMAIL_RE.match(email):
        raise ValidationError("Invalid email format")
    return email


class UserDirectory:

    def __init__(self, db: Session, roles: Optional[RoleStore] = None):
        self.db = db
        self.roles = roles or RoleStore(db)

    def list(self) -> List[User]:
        with transaction(self.db, "fetch users"):
            return list(
                self.db.execute(
                    select(User).order_by(User.created_at.desc(), User.id.desc())
                ).scalars().unique().all()
            )

    def get(self, user_id: int) -> User:
        with transaction(self.db, "fetch user"):
            user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def get_by_email(self, email: Optional[str]) -> Optional[User]:
        email = normalize_email(email)
        if not email:
            return None
        with transaction(self.db, "fetch user"):
            return self.db.execute(select(User).where(User.email == email)).unique().scalar_one_or_none()

    def _resolve_role_id(self, role_name: str) -> int:
        role = self.roles.find_by_name(role_name)
        if role is None:
            logger.warning("Role not found: %r", role_name)
            raise ValidationError(f'Role "{role_name}" does not exist. Please select a valid role.')
        return role.id

    def _email_taken(self, email: str, exclude_id: Optional[int] = None) -> bool:
        query = select(User.id).where(User.email == email)
        if exclude_id is not None:
            query = query.where(User.id != exclude_id)
        return self.db.execute(query).first() is not None

    def check_create(self, fields: UserCreate):
        """Input checks for create that need no write; returns (email, role_id)."""
        if any(_blank(getattr(fields, f)) for f in ("first_name", "last_name", "email", "password")):
            raise ValidationError("First name, last name, email, and password are required")
        email = _validate_email(fields.email)

        role_id = None
        if not _blank(fields.role):
            role_id = self._resolve_role_id(fields.role)
        return email, role_id

    def create(self, fields: UserCreate, profile_picture_url: Optional[str] = None) -> User:
        email, role_id = self.check_create(fields)

        user = User(
            first_name=fields.first_name.strip(),
            last_name=fields.last_name.strip(),
            email=email,
            phone=fields.phone or None,
            password_hash=get_password_hash(fields.password),
            company=fields.company or None,
            profile_picture_url=profile_picture_url,
            role_id=role_id,
        )
        try:
            with transaction(self.db, "create user"):
                if self._email_taken(email):
                    raise ConflictError("Email already exists")
                self.db.add(user)
        except IntegrityError:
            # Email unique index, or the role was deleted while we were resolving it
            if self._email_taken(email):
                raise ConflictError("Email already exists")
            raise ValidationError(f'Role "{fields.role}" does not exist. Please select a valid role.')
        self.db.refresh(user)
        logger.info("Created user %s (id=%s, role_id=%s)", user.email, user.id, user.role_id)
        return user

    def update(self, user_id: int, patch: UserPatch, profile_picture_url: Optional[str] = None) -> User:
        user = self.get(user_id)

        changes = {
            k: v for k, v in patch.supplied().items()
            if not (k in _KEEP_IF_BLANK and _blank(v))
        }
        role_name = changes.pop("role", None)
        password = changes.pop("password", None)

        if "email" in changes:
            changes["email"] = _validate_email(changes["email"])
        for key in ("first_name", "last_name"):
            if key in changes:
                changes[key] = changes[key].strip()
        for key in ("phone", "company"):
            if key in changes:
                changes[key] = changes[key] or None

        if not _blank(role_name):
            role_id = self._resolve_role_id(role_name)
            if role_id != user.role_id and is_system_admin_email(user.email):
                raise ForbiddenError("Cannot change the role of the System Admin user.")
            changes["role_id"] = role_id
        if password:
            changes["password_hash"] = get_password_hash(password)
        if profile_picture_url is not None:
            changes["profile_picture_url"] = profile_picture_url

        if not changes:
            raise ValidationError("No fields to update")

        if "email" in changes and is_system_admin_email(user.email) and not is_system_admin_email(changes["email"]):
            raise ForbiddenError("Cannot change the email of the System Admin user.")

        try:
            with transaction(self.db, "update user"):
                if "email" in changes and self._email_taken(changes["email"], exclude_id=user_id):
                    raise ConflictError("Email already in use by another user")
                for key, value in changes.items():
                    setattr(user, key, value)
        except IntegrityError:
            if "email" in changes and self._email_taken(changes["email"], exclude_id=user_id):
                raise ConflictError("Email already in use by another user")
            raise ValidationError(f'Role "{role_name}" does not exist. Please select a valid role.')
        self.db.refresh(user)
        return user

    def delete(self, user_id: int, acting_user_id: Optional[int] = None) -> None:
        user = self.get(user_id)
        if is_system_admin_email(user.email):
            logger.warning("Rejected delete of system admin account %s", user.email)
            raise ForbiddenError("Cannot delete the System Admin user. At least one system admin must exist.")
        # Prevent self-deletion
        if acting_user_id is not None and acting_user_id == user_id:
            raise ValidationError("You cannot delete your own account")
        email = user.email
        with transaction(self.db, "delete user"):
            self.db.delete(user)
        logger.info("Deleted user %s (id=%s)", email, user_id)
