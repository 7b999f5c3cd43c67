from __future__ import annotations

import pytest
from werkzeug.security import check_password_hash

from virtual_queue.core.enums import Role
from virtual_queue.core.exceptions import AuthorizationError, NotFoundError, StorageError, ValidationError
from virtual_queue.users.service import StaffAccountService


@pytest.fixture
def staff_service(users):
    return StaffAccountService(users)


def _payload(**overrides):
    data = dict(
        email="mai@example.com",
        password="secret1",
        full_name="Mai Tran",
        phone_number="0908888888",
    )
    data.update(overrides)
    return data


def test_admin_creates_staff_account(staff_service, users):
    user = staff_service.create_staff(current_role=Role.ADMIN, **_payload(email="Mai@Example.com"))

    stored = users.get_by_id(user.user_id)
    assert stored.email == "mai@example.com"
    assert users.get_roles(user.user_id) == {Role.STAFF}
    assert check_password_hash(stored.password_hash, "secret1")
    assert user.password_hash == ""


@pytest.mark.parametrize("role", [Role.STAFF, Role.CUSTOMER])
def test_only_admins_create_staff(staff_service, role):
    with pytest.raises(AuthorizationError, match="Admin access required"):
        staff_service.create_staff(current_role=role, **_payload())


@pytest.mark.parametrize("field", ["email", "password", "full_name", "phone_number"])
def test_all_fields_are_required(staff_service, field):
    with pytest.raises(ValidationError, match="Missing required fields"):
        staff_service.create_staff(current_role=Role.ADMIN, **_payload(**{field: ""}))


def test_password_minimum_length(staff_service):
    with pytest.raises(ValidationError, match="at least 6"):
        staff_service.create_staff(current_role=Role.ADMIN, **_payload(password="12345"))


def test_email_must_be_valid(staff_service):
    with pytest.raises(ValidationError, match="Invalid email"):
        staff_service.create_staff(current_role=Role.ADMIN, **_payload(email="not-an-email"))


def test_duplicate_email_rejected(staff_service, users):
    users.add(email="mai@example.com", password_hash="x")
    with pytest.raises(ValidationError, match="already exists"):
        staff_service.create_staff(current_role=Role.ADMIN, **_payload())


def test_role_failure_leaves_no_account(staff_service, users):
    users.fail_role_insert = True

    with pytest.raises(StorageError, match="Failed to assign role"):
        staff_service.create_staff(current_role=Role.ADMIN, **_payload())

    assert users.get_by_email("mai@example.com") is None


def test_list_staff(staff_service, users):
    users.add(email="a@example.com", password_hash="x", roles=(Role.ADMIN,))
    s = users.add(email="s@example.com", password_hash="x", roles=(Role.STAFF,))

    assert [u.user_id for u in staff_service.list_staff(current_role=Role.ADMIN)] == [s.user_id]
    with pytest.raises(AuthorizationError):
        staff_service.list_staff(current_role=Role.STAFF)


def test_delete_staff_rules(staff_service, users):
    admin = users.add(email="a@example.com", password_hash="x", roles=(Role.ADMIN, Role.STAFF))
    customer = users.add(email="c@example.com", password_hash="x")
    staff = users.add(email="s@example.com", password_hash="x", roles=(Role.STAFF,))

    with pytest.raises(ValidationError, match="Admin accounts"):
        staff_service.delete_staff(current_role=Role.ADMIN, user_id=admin.user_id)
    with pytest.raises(ValidationError, match="not a staff member"):
        staff_service.delete_staff(current_role=Role.ADMIN, user_id=customer.user_id)
    with pytest.raises(NotFoundError):
        staff_service.delete_staff(current_role=Role.ADMIN, user_id=999)

    staff_service.delete_staff(current_role=Role.ADMIN, user_id=staff.user_id)
    assert users.get_by_id(staff.user_id) is None
