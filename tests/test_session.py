import pytest

from app.core.exceptions import SessionInvalidError
from app.core.session import SessionContext
from app.schemas.employee import Employee, EmploymentStatus
from app.schemas.user import User, UserRole


@pytest.fixture
def user():
    return User(id="u1", username="Dana.K", password_hash="x", name="Dana", employee_id="e1")


@pytest.fixture
def employee():
    return Employee(id="e1", name="Dana")


def test_for_user_copies_identity(user):
    session = SessionContext.for_user(user)
    assert session.username == "dana.k"
    assert session.employee_id == "e1"
    assert not session.is_admin
    assert SessionContext(user_id="a", username="admin", role=UserRole.ADMIN).is_admin


def test_valid_session_stays_active(user, employee):
    session = SessionContext.for_user(user)
    assert session.revalidate(user, employee)
    session.require_active()


@pytest.mark.parametrize("change,reason", [
    ("missing_user", "user no longer exists"),
    ("inactive_user", "user is inactive"),
    ("missing_employee", "linked employee no longer exists"),
    ("terminated", "linked employee is terminated"),
])
def test_session_invalidated(user, employee, change, reason):
    session = SessionContext.for_user(user)
    current_user, current_employee = user, employee
    if change == "missing_user":
        current_user = None
    elif change == "inactive_user":
        current_user = user.model_copy(update={"active": False})
    elif change == "missing_employee":
        current_employee = None
    else:
        current_employee = employee.model_copy(update={"employment_status": EmploymentStatus.TERMINATED})

    assert not session.revalidate(current_user, current_employee)
    assert session.invalid_reason == reason
    with pytest.raises(SessionInvalidError) as exc:
        session.require_active()
    assert exc.value.status_code == 401

    # Once dead, a session does not come back
    assert not session.revalidate(user, employee)


def test_user_without_employee_needs_no_employee_record():
    admin = User(id="a1", username="admin", password_hash="x", name="Admin", role=UserRole.ADMIN)
    session = SessionContext.for_user(admin)
    assert session.revalidate(admin, None)
