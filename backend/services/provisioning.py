"""
One-time setup of the protected Admin role and the system-admin account.

Safe to run on every start: existing rows are left as they are apart from
restoring the invariants (Admin is protected, holds every module, and the
system admin is assigned to it).
"""
import logging

from sqlalchemy import select
from sqlalchemy.orm import Session

from config import settings
from database import transaction
from models.module_catalog import ALL_MODULES
from models.role import Role, RoleModule
from models.users import User
from utils.hashing import get_password_hash

logger = logging.getLogger(__name__)


def provision(db: Session) -> Role:
    with transaction(db, "provision admin role"):
        admin = db.execute(select(Role).where(Role.name == settings.ADMIN_ROLE_NAME)).scalar_one_or_none()
        if admin is None:
            admin = Role(
                name=settings.ADMIN_ROLE_NAME,
                description="Full access to every module",
                is_protected=True,
            )
            db.add(admin)
            db.flush()
            logger.info("Provisioned %s role (id=%s)", admin.name, admin.id)
        elif not admin.is_protected:
            admin.is_protected = True

        granted = set(db.execute(
            select(RoleModule.module).where(RoleModule.role_id == admin.id)
        ).scalars().all())
        missing = sorted(ALL_MODULES - granted)
        db.add_all([RoleModule(role_id=admin.id, module=m) for m in missing])

        email = settings.SYSTEM_ADMIN_EMAIL.strip().lower()
        sysadmin = db.execute(select(User).where(User.email == email)).unique().scalar_one_or_none()
        if sysadmin is None:
            db.add(User(
                first_name="System",
                last_name="Admin",
                email=email,
                password_hash=get_password_hash(settings.SYSTEM_ADMIN_PASSWORD),
                role_id=admin.id,
            ))
            logger.info("Provisioned system admin account %s", email)
        elif sysadmin.role_id != admin.id:
            sysadmin.role_id = admin.id
    db.refresh(admin)
    return admin
