from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ChatBackend.crud import users as users_crud
from ChatBackend.errors import AuthenticationError, RateLimitError, ValidationError
from ChatBackend.rate_limiters.auth_rate_limiter import RedisAuthRateLimiter, get_auth_rate_limiter
from ChatBackend.schemas.users import AuthOut, UserOut
from ChatBackend.security import get_password_hash, verify_password


logger = logging.getLogger(__name__)


def _require_credentials(email: Optional[str], password: Optional[str]) -> tuple[str, str]:
    if not isinstance(email, str) or not email.strip() or not isinstance(password, str) or not password:
        raise ValidationError("Email and password are required")
    return users_crud.normalize_email(email), password


# Registration, login and the user picker behind the chat UI
class UserService:
    def __init__(self, db: Session, *, limiter: Optional[RedisAuthRateLimiter] = None):
        self.db = db
        self.limiter = limiter if limiter is not None else get_auth_rate_limiter()

    # Applies per-client rate limiting on auth endpoints; raises 429 when the client must wait
    def enforce_rate_limit(self, client_key: str) -> None:
        if self.limiter is None:
            return
        decision = self.limiter.check(client_key)
        if decision.allowed:
            return
        logger.warning(f"Auth rate limit hit for {client_key}")
        raise RateLimitError(
            f"Too many authentication attempts. Please wait {decision.wait_seconds} seconds before trying again.",
            wait_seconds=decision.wait_seconds,
        )

    def register(self, *, email: Optional[str], password: Optional[str]) -> AuthOut:
        email, password = _require_credentials(email, password)

        if users_crud.get_user_by_email(self.db, email):
            raise ValidationError("User already exists")

        try:
            user = users_crud.create_user(self.db, email, get_password_hash(password))
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent registration for the same email
            self.db.rollback()
            raise ValidationError("User already exists")

        logger.info(f"Registered user {user.id}")
        return AuthOut(message="User registered successfully", user=UserOut(id=user.id, email=user.email))

    def login(self, *, email: Optional[str], password: Optional[str]) -> AuthOut:
        email, password = _require_credentials(email, password)

        user = users_crud.get_user_by_email(self.db, email)
        if user is None or not verify_password(password, user.password):
            raise AuthenticationError("Invalid credentials")
        return AuthOut(message="Login successful", user=UserOut(id=user.id, email=user.email))

    def list_other_users(self, *, current_user_id: int) -> list[UserOut]:
        return [UserOut(id=u.id, email=u.email) for u in users_crud.list_users_excluding(self.db, current_user_id)]
