"""Tests for module resolution and the pull-based session cache."""
import pytest

from schemas.user import UserPatch
from services.access_resolver import AccessResolver
from services.session_cache import SessionCache
from models.module_catalog import ALL_MODULES, AppModule


@pytest.fixture
def resolver(db):
    return AccessResolver(db)


def test_user_without_role_has_no_modules(resolver, make_user):
    user = make_user("norole@acme.com")
    assert resolver.resolve_modules(user.id) == []


def test_unknown_user_has_no_modules(resolver):
    assert resolver.resolve_modules(9999) == []


def test_modules_follow_role_grants(resolver, roles, grants, make_user):
    role = roles.create("Warehouse")
    grants.replace_modules(role.id, ["stock", "invoices"])
    user = make_user("bob@acme.com", role="Warehouse")
    assert resolver.resolve_modules(user.id) == ["invoices", "stock"]


def test_role_without_grants(resolver, roles, make_user):
    roles.create("Intern")
    user = make_user("intern@acme.com", role="Intern")
    assert resolver.resolve_modules(user.id) == []


def test_grant_changes_are_visible_immediately(resolver, roles, grants, make_user):
    role = roles.create("Support")
    user = make_user("alice@acme.com", role="Support")
    grants.replace_modules(role.id, ["customers"])
    assert resolver.resolve_modules(user.id) == ["customers"]
    grants.replace_modules(role.id, ["customers", "expenses"])
    assert resolver.resolve_modules(user.id) == ["customers", "expenses"]


def test_role_reassignment_changes_modules(resolver, roles, grants, users, make_user):
    sales = roles.create("Sales")
    grants.replace_modules(sales.id, ["dashboard"])
    user = make_user("carol@acme.com")
    users.update(user.id, UserPatch(role="Sales"))
    assert resolver.resolve_modules(user.id) == ["dashboard"]


def test_system_admin_holds_whole_catalog(resolver, users):
    admin = users.get_by_email("admin@digious.com")
    assert resolver.resolve_modules(admin.id) == sorted(ALL_MODULES)


def test_has_any_module(resolver, roles, grants, make_user):
    role = roles.create("Support")
    grants.replace_modules(role.id, ["customers"])
    user = make_user("alice@acme.com", role="Support")
    assert resolver.has_any_module(user.id, [AppModule.CUSTOMERS])
    assert resolver.has_any_module(user.id, ["settings", "customers"])
    assert not resolver.has_any_module(user.id, [AppModule.SETTINGS])


def test_session_cache_is_stale_until_refreshed(resolver, roles, grants, make_user):
    role = roles.create("Support")
    grants.replace_modules(role.id, ["customers"])
    user = make_user("alice@acme.com", role="Support")

    cache = SessionCache(resolver.resolve_modules)
    cache.bootstrap(user.id)
    assert cache.modules == ("customers",)

    grants.replace_modules(role.id, ["expenses", "stock"])
    assert cache.allows("customers")
    assert not cache.allows(AppModule.STOCK)

    cache.refresh()
    assert cache.modules == ("expenses", "stock")
    assert not cache.allows("customers")
    assert cache.allows(AppModule.STOCK)


def test_session_cache_bootstrap_from_login_payload():
    calls = []
    cache = SessionCache(lambda user_id: calls.append(user_id) or [])
    snapshot = cache.bootstrap(7, modules=["stock", "invoices", "stock"])
    assert snapshot.modules == ("invoices", "stock")
    assert snapshot.user_id == 7
    assert cache.fetched_at is not None
    assert calls == []


def test_failed_refresh_keeps_previous_snapshot():
    answers = [["customers"]]

    def resolve(user_id):
        if not answers:
            raise ConnectionError("store unavailable")
        return answers.pop()

    cache = SessionCache(resolve)
    first = cache.bootstrap(1)
    with pytest.raises(ConnectionError):
        cache.refresh()
    assert cache.snapshot is first
    assert cache.modules == ("customers",)


def test_refresh_requires_bootstrap():
    cache = SessionCache(lambda user_id: [])
    with pytest.raises(RuntimeError):
        cache.refresh()
    cache.bootstrap(1)
    cache.clear()
    assert cache.modules == ()
