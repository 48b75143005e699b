"""
Role Store

Owns role identity (id, unique name, description) and the protection rule
for the provisioned Admin role. Protection is read from ``Role.is_protected``,
which only provisioning sets.
"""
import logging
from typing import List, Optional

from sqlalchemy import delete, func, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import transaction
from models.role import Role, RoleModule
from models.users import User
from utils.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def _clean_name(name: Optional[str]) -> str:
    name = (name or "").strip()
    if not name:
        raise ValidationError("Role name is required")
    return name


class RoleStore:
    """Create, rename and delete roles while keeping the Admin role intact."""

    def __init__(self, db: Session):
        self.db = db

    def list(self) -> List[Role]:
        with transaction(self.db, "fetch roles"):
            return list(self.db.execute(select(Role).order_by(Role.name.asc())).scalars().all())

    def get(self, role_id: int) -> Role:
        with transaction(self.db, "fetch role"):
            role = self.db.get(Role, role_id)
        if role is None:
            raise NotFoundError("Role not found")
        return role

    def find_by_name(self, name: Optional[str]) -> Optional[Role]:
        """
        Resolve a role by display name.

        An exact match wins. Otherwise a case-insensitive match is accepted
        only when it is unambiguous.
        """
        name = (name or "").strip()
        if not name:
            return None
        with transaction(self.db, "resolve role"):
            exact = self.db.execute(select(Role).where(Role.name == name)).scalar_one_or_none()
            if exact is not None:
                return exact
            matches = self.db.execute(
                select(Role).where(func.lower(Role.name) == name.lower())
            ).scalars().all()
        return matches[0] if len(matches) == 1 else None

    def user_count(self, role_id: int) -> int:
        return self.db.execute(
            select(func.count(User.id)).where(User.role_id == role_id)
        ).scalar_one()

    def create(self, name: Optional[str], description: Optional[str] = None) -> Role:
        name = _clean_name(name)
        role = Role(name=name, description=description or "", is_protected=False)
        try:
            with transaction(self.db, "create role"):
                exists = self.db.execute(select(Role.id).where(Role.name == name)).first()
                if exists:
                    raise ConflictError("Role name already exists")
                self.db.add(role)
        except IntegrityError:
            # Lost a race against a concurrent create with the same name
            raise ConflictError("Role name already exists")
        self.db.refresh(role)
        logger.info("Created role %s (id=%s)", role.name, role.id)
        return role

    def update(self, role_id: int, name: Optional[str], description: Optional[str] = None) -> Role:
        role = self.get(role_id)
        if role.is_protected:
            logger.warning("Rejected update of protected role %s", role.name)
            raise ForbiddenError(
                f"Cannot edit {role.name} role. The {role.name} role is protected and cannot be modified."
            )
        name = _clean_name(name)
        try:
            with transaction(self.db, "update role"):
                clash = self.db.execute(
                    select(Role.id).where(Role.name == name, Role.id != role_id)
                ).first()
                if clash:
                    raise ConflictError("Role name already exists")
                role.name = name
                role.description = description or ""
        except IntegrityError:
            raise ConflictError("Role name already exists")
        self.db.refresh(role)
        return role

    def delete(self, role_id: int) -> None:
        role = self.get(role_id)
        if role.is_protected:
            logger.warning("Rejected delete of protected role %s", role.name)
            raise ForbiddenError(
                f"Cannot delete {role.name} role. The {role.name} role is protected and cannot be deleted."
            )
        name = role.name

        # Conditional delete closes the window between "count users" and "delete"
        in_use = select(User.id).where(User.role_id == role_id).exists()
        stmt = (
            delete(Role)
            .where(Role.id == role_id, Role.is_protected.is_(False), ~in_use)
            .execution_options(synchronize_session=False)
        )
        try:
            with transaction(self.db, "delete role"):
                deleted = self.db.execute(stmt).rowcount
                if deleted == 0:
                    count = self.user_count(role_id)
                    if count == 0:
                        # Removed concurrently by someone else
                        raise NotFoundError("Role not found")
                    raise ConflictError(
                        f"Cannot delete role. {count} user(s) are assigned to this role.",
                        user_count=count,
                    )
                self.db.execute(delete(RoleModule).where(RoleModule.role_id == role_id))
        except IntegrityError:
            # A user was assigned between the check and the commit
            count = self.user_count(role_id)
            raise ConflictError(
                f"Cannot delete role. {count} user(s) are assigned to this role.",
                user_count=count,
            )
        # Row is gone; drop the stale instance without touching its expired attributes
        self.db.expunge(role)
        logger.info("Deleted role %s (id=%s)", name, role_id)
