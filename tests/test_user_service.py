from unittest.mock import MagicMock

import pytest

from ChatBackend.crud.users import get_user
from ChatBackend.errors import AuthenticationError, RateLimitError, ValidationError
from ChatBackend.rate_limiters.auth_rate_limiter import RateLimitDecision
from ChatBackend.services.user_service import UserService


@pytest.fixture
def svc(db_session):
    return UserService(db_session)


def test_register_normalizes_email_and_hashes_password(svc, db_session):
    out = svc.register(email="  Shopper@Example.COM ", password="pw123")
    assert out.message == "User registered successfully"
    assert out.user.email == "shopper@example.com"

    stored = get_user(db_session, out.user.id)
    assert stored.password != "pw123"
    assert stored.password.startswith("$2")


def test_register_rejects_duplicate_email_case_insensitively(svc):
    svc.register(email="dup@example.com", password="pw")
    with pytest.raises(ValidationError, match="already exists"):
        svc.register(email="DUP@example.com ", password="other")


@pytest.mark.parametrize("email,password", [(None, "pw"), ("a@example.com", None), ("  ", "pw"), ("a@example.com", "")])
def test_register_requires_email_and_password(svc, email, password):
    with pytest.raises(ValidationError):
        svc.register(email=email, password=password)


def test_login(svc):
    registered = svc.register(email="buyer@example.com", password="pw")

    out = svc.login(email=" BUYER@example.com", password="pw")
    assert out.message == "Login successful"
    assert out.user.id == registered.user.id

    with pytest.raises(AuthenticationError):
        svc.login(email="buyer@example.com", password="wrong")
    with pytest.raises(AuthenticationError):
        svc.login(email="nobody@example.com", password="pw")


def test_list_other_users_excludes_current(svc):
    a = svc.register(email="a@example.com", password="pw").user
    b = svc.register(email="b@example.com", password="pw").user
    c = svc.register(email="c@example.com", password="pw").user

    assert [u.id for u in svc.list_other_users(current_user_id=b.id)] == [a.id, c.id]


def test_enforce_rate_limit(db_session):
    limiter = MagicMock()
    limiter.check.return_value = RateLimitDecision(allowed=True)
    svc = UserService(db_session, limiter=limiter)
    svc.enforce_rate_limit("10.0.0.1")
    limiter.check.assert_called_once_with("10.0.0.1")

    limiter.check.return_value = RateLimitDecision(allowed=False, wait_seconds=30)
    with pytest.raises(RateLimitError) as exc_info:
        svc.enforce_rate_limit("10.0.0.1")
    assert exc_info.value.wait_seconds == 30
    assert exc_info.value.status_code == 429
