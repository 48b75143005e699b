"""
Module Grant Set

Many-to-many association between a role and the subset of the module
catalog it may access. Grants are never edited in place; the whole set for
a role is replaced in one transaction.
"""
import logging
from typing import Iterable, List

from sqlalchemy import delete, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from database import transaction
from models.module_catalog import is_known_module
from models.role import Role, RoleModule
from utils.errors import ForbiddenError, NotFoundError, ValidationError

logger = logging.getLogger(__name__)


def normalize_modules(modules) -> List[str]:
    """Validate a requested grant set and return it deduplicated and sorted."""
    if isinstance(modules, (str, bytes)) or not isinstance(modules, (list, tuple, set, frozenset)):
        raise ValidationError("Modules must be an array")
    if not all(isinstance(m, str) for m in modules):
        raise ValidationError("Modules must be an array of module names")
    unknown = sorted({m for m in modules if not is_known_module(m)})
    if unknown:
        raise ValidationError(f"Unknown module(s): {', '.join(unknown)}")
    return sorted(set(modules))


class ModuleGrantSet:

    def __init__(self, db: Session):
        self.db = db

    def get_modules(self, role_id: int) -> List[str]:
        # An unknown role simply has no grants
        with transaction(self.db, "fetch modules"):
            rows = self.db.execute(
                select(RoleModule.module)
                .where(RoleModule.role_id == role_id)
                .order_by(RoleModule.module.asc())
            ).scalars().all()
        return list(rows)

    def replace_modules(self, role_id: int, modules: Iterable[str]) -> List[str]:
        """
        Atomically swap the role's grants for ``modules``.

        Delete and insert share one transaction, so readers see either the
        old set or the new one. The role row is locked first (``FOR UPDATE``
        where the backend supports it) which serializes concurrent replaces
        of the same role. An empty set is valid and means "no module access".
        """
        wanted = normalize_modules(modules)
        try:
            with transaction(self.db, "update modules"):
                role = self.db.execute(
                    select(Role).where(Role.id == role_id).with_for_update()
                ).scalar_one_or_none()
                if role is None:
                    raise NotFoundError("Role not found")
                if role.is_protected:
                    logger.warning("Rejected module change for protected role %s", role.name)
                    raise ForbiddenError(f"Cannot modify {role.name} role access. The {role.name} role is protected.")

                self.db.execute(
                    delete(RoleModule)
                    .where(RoleModule.role_id == role_id)
                    .execution_options(synchronize_session=False)
                )
                self.db.add_all([RoleModule(role_id=role_id, module=m) for m in wanted])
        except IntegrityError:
            # Role vanished between the lock and the insert
            raise NotFoundError("Role not found")
        self.db.expire_all()
        logger.info("Role %s now grants %s", role_id, wanted or "no modules")
        return wanted
