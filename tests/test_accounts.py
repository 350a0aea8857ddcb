import pytest

from app.core.config import settings
from app.core.events import Topic
from app.core.exceptions import AppException, UsernameUnavailableError
from app.core.security import generate_password, hash_password, verify_password
from app.schemas.employee import Employee
from app.schemas.user import User, UserRole
from app.services import mappers
from app.services.accounts import AccountService, choose_unique_username, generate_base_username


def _user(id, username, employee_id=None):
    return User(id=id, username=username, password_hash="x", name=username, employee_id=employee_id)


def test_base_username_from_email_local_part():
    assert generate_base_username("Jane Roe", "Jane.Roe+hr@acme.io") == "janeroehr"


def test_base_username_from_name():
    assert generate_base_username("  John   Doe ", None) == "john.doe"
    assert generate_base_username("Zoë O'Neil") == "zo.oneil"


def test_unique_username_first_free_suffix():
    assert choose_unique_username("john.doe", []) == "john.doe"
    assert choose_unique_username("john.doe", ["John.Doe"]) == "john.doe1"
    assert choose_unique_username("john.doe", ["john.doe", "john.doe1", "john.doe2"]) == "john.doe3"


def test_unique_username_timestamp_after_max_attempts():
    taken = ["sam"] + [f"sam{n}" for n in range(1, 4)]
    name = choose_unique_username("sam", taken, max_attempts=3)
    assert name.startswith("sam")
    assert name not in taken
    assert name[3:].isdigit()


def test_password_helpers():
    password = generate_password(8)
    assert len(password) == 8
    hashed = hash_password(password)
    assert hashed != password
    assert verify_password(password, hashed)
    assert not verify_password("wrong", hashed)
    assert not verify_password(password, "not-a-hash")


def test_collision_produces_numbered_username(local_storage, bus):
    created = []
    bus.subscribe(Topic.USER_CREATED, created.append)
    local_storage.save_user(_user("u0", "john.doe"))
    employee = local_storage.save_employee(Employee(id="e1", name="John Doe"))

    account = AccountService(local_storage).create_account_for_employee(employee)

    assert account.user.username == "john.doe1"
    assert account.user.employee_id == "e1"
    assert account.user.role == UserRole.STAFF
    assert account.user.must_change_password is True
    assert len(account.password) == 8
    assert verify_password(account.password, account.user.password_hash)
    assert {"user_id": account.user.id, "employee_id": "e1"} in created


def test_second_check_picks_next_candidate(storage, remote, monkeypatch):
    employee = Employee(id="e1", name="John Doe")
    service = AccountService(storage)
    # The merged list never shows the remote row; the direct lookup does
    monkeypatch.setattr(storage, "get_users", lambda: [])
    remote.seed("users", [mappers.USERS.to_row(_user("u0", "john.doe"))])

    account = service.create_account_for_employee(employee)

    assert account.user.username == "john.doe1"
    assert remote.tables["users"][account.user.id]["username"] == "john.doe1"


def test_second_check_gives_up_after_bounded_rounds(local_storage, monkeypatch):
    monkeypatch.setattr(settings, "username_max_attempts", 3)
    checked = []

    def always_taken(username):
        checked.append(username)
        return _user("other", username)

    monkeypatch.setattr(local_storage, "get_user_by_username", always_taken)

    with pytest.raises(UsernameUnavailableError) as exc:
        AccountService(local_storage).create_account_for_employee(Employee(id="e1", name="John Doe"))
    assert checked == ["john.doe", "john.doe1", "john.doe2"]
    assert exc.value.details["attempts"] == 3


def test_employee_with_account_is_refused(local_storage):
    local_storage.save_user(_user("u0", "ann", employee_id="e1"))
    employee = Employee(id="e1", name="Ann")
    with pytest.raises(AppException) as exc:
        AccountService(local_storage).create_account_for_employee(employee)
    assert exc.value.error_code == "ACCOUNT_EXISTS"


def test_lookup_retried_until_visible(local_storage, monkeypatch):
    monkeypatch.setattr(settings, "account_lookup_retries", 3)
    monkeypatch.setattr(settings, "account_lookup_delay_seconds", 0)
    real_lookup = local_storage.get_user_by_employee_id
    calls = {"n": 0}

    def lagging(employee_id):
        calls["n"] += 1
        # First call is the "already has an account" check, the next one lags
        if calls["n"] == 2:
            return None
        return real_lookup(employee_id)

    monkeypatch.setattr(local_storage, "get_user_by_employee_id", lagging)
    account = AccountService(local_storage).create_account_for_employee(Employee(id="e1", name="Lee Chan"))

    assert account.user.username == "lee.chan"
    assert calls["n"] == 3


def test_lookup_falls_back_to_user_id(local_storage, monkeypatch):
    monkeypatch.setattr(settings, "account_lookup_retries", 2)
    monkeypatch.setattr(settings, "account_lookup_delay_seconds", 0)
    monkeypatch.setattr(local_storage, "get_user_by_employee_id", lambda employee_id: None)

    account = AccountService(local_storage).create_account_for_employee(Employee(id="e1", name="Lee Chan"))

    assert local_storage.get_user(account.user.id) is not None


def test_unlink_user(local_storage):
    local_storage.save_user(_user("u0", "ann", employee_id="e1"))
    service = AccountService(local_storage)

    assert service.unlink_user("e1").employee_id is None
    assert service.unlink_user("e1") is None
    assert local_storage.get_user("u0") is not None
