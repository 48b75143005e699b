"""
Client-side snapshot of a user's effective module list.

The cache is pull-based: it is filled at login and replaced wholesale when
the user asks for a refresh (typically after an administrator changed their
role's grants). It is never merged and never treated as authoritative;
route guards always ask the resolver.
"""
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Tuple

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModuleSnapshot:
    user_id: int
    modules: Tuple[str, ...]
    fetched_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class SessionCache:

    def __init__(self, resolve: Callable[[int], object]):
        self._resolve = resolve
        self._snapshot: Optional[ModuleSnapshot] = None

    @property
    def snapshot(self) -> Optional[ModuleSnapshot]:
        return self._snapshot

    @property
    def modules(self) -> Tuple[str, ...]:
        return self._snapshot.modules if self._snapshot else ()

    @property
    def fetched_at(self) -> Optional[datetime]:
        return self._snapshot.fetched_at if self._snapshot else None

    def bootstrap(self, user_id: int, modules=None) -> ModuleSnapshot:
        """Fill the cache at login; ``modules`` may come straight from the login response."""
        if modules is None:
            modules = self._resolve(user_id)
        self._snapshot = ModuleSnapshot(user_id=user_id, modules=tuple(sorted(set(modules))))
        return self._snapshot

    def refresh(self) -> ModuleSnapshot:
        # A failed pull leaves the previous snapshot in place
        if self._snapshot is None:
            raise RuntimeError("Session cache has not been bootstrapped")
        user_id = self._snapshot.user_id
        modules = self._resolve(user_id)
        previous = set(self._snapshot.modules)
        self._snapshot = ModuleSnapshot(user_id=user_id, modules=tuple(sorted(set(modules))))
        if previous != set(self._snapshot.modules):
            logger.info("Module access for user %s changed: %s -> %s",
                        user_id, sorted(previous), list(self._snapshot.modules))
        return self._snapshot

    def allows(self, module) -> bool:
        return getattr(module, "value", module) in self.modules

    def clear(self) -> None:
        self._snapshot = None
