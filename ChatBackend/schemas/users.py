from typing import Optional
from pydantic import BaseModel, ConfigDict


# Request body for /register and /login
class CredentialsRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")
    email: Optional[str] = None
    password: Optional[str] = None


# Public profile fields exposed to other users
class UserOut(BaseModel):
    id: int
    email: str


# Response payload for register/login
class AuthOut(BaseModel):
    message: str
    user: UserOut
