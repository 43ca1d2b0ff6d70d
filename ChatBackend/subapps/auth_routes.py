from fastapi import APIRouter, Depends, Request, status
from sqlalchemy.orm import Session

from ChatBackend.database import get_db
from ChatBackend.schemas.users import AuthOut, CredentialsRequest, UserOut
from ChatBackend.services.user_service import UserService


router = APIRouter(tags=["users"])


def _client_key(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/register", status_code=status.HTTP_201_CREATED)
def register(
    payload: CredentialsRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> AuthOut:
    svc = UserService(db)
    svc.enforce_rate_limit(_client_key(request))
    return svc.register(email=payload.email, password=payload.password)


@router.post("/login")
def login(
    payload: CredentialsRequest,
    request: Request,
    db: Session = Depends(get_db),
) -> AuthOut:
    svc = UserService(db)
    svc.enforce_rate_limit(_client_key(request))
    return svc.login(email=payload.email, password=payload.password)


# Lists everyone except the current user (for finding people to chat with)
@router.get("/users/{current_user_id}")
def list_users(
    current_user_id: int,
    db: Session = Depends(get_db),
) -> list[UserOut]:
    svc = UserService(db)
    return svc.list_other_users(current_user_id=current_user_id)
