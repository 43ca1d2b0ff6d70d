from __future__ import annotations

from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ChatBackend.models.user_model import User


def normalize_email(email: str) -> str:
    return email.strip().lower()


# Get user row by id
def get_user(db: Session, user_id: int) -> Optional[User]:
    return db.get(User, user_id)


# Get user row by (already normalized) email
def get_user_by_email(db: Session, email: str) -> Optional[User]:
    stmt = select(User).where(User.email == email)
    return db.execute(stmt).scalar_one_or_none()


def create_user(db: Session, email: str, password_hash: str) -> User:
    user = User(email=email, password=password_hash)
    db.add(user)
    db.flush()
    db.refresh(user)
    return user


# Everyone except the given user, for picking a chat partner
def list_users_excluding(db: Session, user_id: int) -> list[User]:
    stmt = select(User).where(User.id != user_id).order_by(User.id)
    return list(db.execute(stmt).scalars().all())
