"""
Access Resolver

Single authoritative computation of "what can this user do":
user -> role -> module grants, read in one query so the answer is always a
consistent snapshot of the store. Nothing here is cached.
"""
import logging
from typing import Iterable, List

from sqlalchemy import select
from sqlalchemy.orm import Session

from database import transaction
from models.role import RoleModule
from models.users import User

logger = logging.getLogger(__name__)


class AccessResolver:

    def __init__(self, db: Session):
        self.db = db

    def resolve_modules(self, user_id: int) -> List[str]:
        """Sorted, deduplicated modules granted to the user's role; empty without a role."""
        with transaction(self.db, "resolve modules"):
            rows = self.db.execute(
                select(RoleModule.module)
                .join(User, User.role_id == RoleModule.role_id)
                .where(User.id == user_id)
                .distinct()
                .order_by(RoleModule.module.asc())
            ).scalars().all()
        return list(rows)

    def has_any_module(self, user_id: int, modules: Iterable[str]) -> bool:
        wanted = {getattr(m, "value", m) for m in modules}
        if not wanted:
            return True
        return bool(wanted.intersection(self.resolve_modules(user_id)))
