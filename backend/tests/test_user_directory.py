"""Tests for the user directory: validation, partial updates and the protected account."""
import pytest

from schemas.user import UserCreate, UserPatch
from utils.errors import ConflictError, ForbiddenError, NotFoundError, ValidationError
from utils.hashing import verify_password


@pytest.fixture
def support(roles):
    return roles.create("Support", "Customer support")


@pytest.fixture
def sysadmin(users):
    return users.get_by_email("admin@digious.com")


@pytest.mark.parametrize("missing", ["first_name", "last_name", "email", "password"])
def test_create_requires_mandatory_fields(users, missing):
    fields = dict(first_name="Alice", last_name="Smith", email="alice@acme.com", password="pw")
    fields[missing] = "  " if missing != "email" else None
    with pytest.raises(ValidationError):
        users.create(UserCreate(**fields))


@pytest.mark.parametrize("email", ["alice", "alice@acme", "al ice@acme.com", "@acme.com"])
def test_create_rejects_malformed_email(users, email):
    with pytest.raises(ValidationError) as exc:
        users.create(UserCreate(first_name="A", last_name="B", email=email, password="pw"))
    assert exc.value.message == "Invalid email format"


def test_create_resolves_role_and_hashes_password(users, support):
    user = users.create(UserCreate(
        first_name="Alice", last_name="Smith", email=" Alice@Acme.com ",
        password="s3cret", role="support", company="Acme",
    ))
    assert user.id is not None
    assert user.email == "alice@acme.com"
    assert user.role_id == support.id
    assert user.role_name == "Support"
    assert user.password_hash != "s3cret"
    assert verify_password("s3cret", user.password_hash)


def test_create_without_role(make_user):
    user = make_user("norole@acme.com")
    assert user.role_id is None
    assert user.role_name is None


def test_create_with_unknown_role_names_it(users):
    with pytest.raises(ValidationError) as exc:
        users.create(UserCreate(first_name="A", last_name="B", email="a@acme.com", password="pw", role="Ghost"))
    assert '"Ghost"' in exc.value.message
    assert users.get_by_email("a@acme.com") is None


def test_create_duplicate_email_conflicts(make_user):
    make_user("alice@acme.com")
    with pytest.raises(ConflictError):
        make_user("ALICE@acme.com")


def test_create_keeps_profile_picture_reference(users):
    user = users.create(
        UserCreate(first_name="A", last_name="B", email="pic@acme.com", password="pw"),
        profile_picture_url="/uploads/abc.png",
    )
    assert user.profile_picture_url == "/uploads/abc.png"


def test_update_changes_only_supplied_fields(users, make_user):
    user = make_user("alice@acme.com", phone="555-0100", company="Acme")
    users.update(user.id, UserPatch(last_name="Jones"))
    fresh = users.get(user.id)
    assert fresh.last_name == "Jones"
    assert fresh.first_name == "Test"
    assert fresh.phone == "555-0100"
    assert fresh.company == "Acme"


def test_update_password_only_when_non_empty(users, make_user):
    user = make_user("alice@acme.com", password="first")
    users.update(user.id, UserPatch(password="", first_name="Alice"))
    assert verify_password("first", users.get(user.id).password_hash)
    users.update(user.id, UserPatch(password="second"))
    assert verify_password("second", users.get(user.id).password_hash)


def test_update_blank_phone_clears_it(users, make_user):
    user = make_user("alice@acme.com", phone="555-0100")
    users.update(user.id, UserPatch(phone=""))
    assert users.get(user.id).phone is None


def test_update_without_fields(users, make_user):
    user = make_user("alice@acme.com")
    with pytest.raises(ValidationError):
        users.update(user.id, UserPatch())


def test_update_unknown_user(users):
    with pytest.raises(NotFoundError):
        users.update(9999, UserPatch(first_name="Ghost"))


def test_update_email_colliding_with_other_user(users, make_user):
    make_user("alice@acme.com")
    bob = make_user("bob@acme.com")
    with pytest.raises(ConflictError):
        users.update(bob.id, UserPatch(email="Alice@acme.com"))
    # Re-saving one's own address is fine
    users.update(bob.id, UserPatch(email="bob@acme.com"))


def test_update_assigns_resolved_role(users, make_user, support):
    user = make_user("alice@acme.com")
    users.update(user.id, UserPatch(role="Support"))
    assert users.get(user.id).role_id == support.id


def test_update_unknown_role_is_rejected_and_role_kept(users, make_user, support):
    user = make_user("alice@acme.com", role="Support")
    with pytest.raises(ValidationError):
        users.update(user.id, UserPatch(role="Ghost", first_name="Changed"))
    fresh = users.get(user.id)
    assert fresh.role_id == support.id
    assert fresh.first_name == "Test"


def test_system_admin_cannot_be_deleted(users, sysadmin, make_user):
    other = make_user("ops@acme.com", role="Admin")
    with pytest.raises(ForbiddenError):
        users.delete(sysadmin.id, acting_user_id=other.id)
    with pytest.raises(ForbiddenError):
        users.delete(sysadmin.id, acting_user_id=sysadmin.id)
    with pytest.raises(ForbiddenError):
        users.delete(sysadmin.id)
    assert users.get(sysadmin.id).email == "admin@digious.com"


def test_system_admin_stays_on_admin_role(users, sysadmin, support):
    with pytest.raises(ForbiddenError):
        users.update(sysadmin.id, UserPatch(role="Support"))
    users.update(sysadmin.id, UserPatch(phone="555-0199"))
    assert users.get(sysadmin.id).role_name == "Admin"


def test_delete_user(users, make_user):
    user = make_user("alice@acme.com")
    users.delete(user.id)
    with pytest.raises(NotFoundError):
        users.get(user.id)


def test_delete_self_is_rejected(users, make_user):
    user = make_user("alice@acme.com")
    with pytest.raises(ValidationError):
        users.delete(user.id, acting_user_id=user.id)


def test_delete_unknown_user(users):
    with pytest.raises(NotFoundError):
        users.delete(9999)


def test_list_joins_role_fields(users, make_user, support):
    make_user("alice@acme.com", role="Support")
    listed = {u.email: u for u in users.list()}
    assert listed["alice@acme.com"].role_name == "Support"
    assert listed["alice@acme.com"].role_description == "Customer support"
    assert listed["admin@digious.com"].role_name == "Admin"
