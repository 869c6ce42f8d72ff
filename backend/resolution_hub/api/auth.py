from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import BaseModel

from resolution_hub.core.auth import create_access_token, get_current_user, verify_password
from resolution_hub.storage.case_store import get_admin_user, get_admin_user_by_id
from resolution_hub.utils.logger import get_logger

logger = get_logger(__name__)
router = APIRouter(prefix="/api/auth", tags=["auth"])


class LoginRequest(BaseModel):
    username: str
    password: str


class HubUser(BaseModel):
    id: int
    username: str
    name: Optional[str] = None
    role: str = "user"


class LoginResponse(BaseModel):
    success: bool = True
    token: str
    user: HubUser


@router.post("/login", response_model=LoginResponse)
def login(credentials: LoginRequest):
    """Authenticate a hub user and return a bearer token"""
    logger.info(f"Auth: Login request for {credentials.username}")

    user = get_admin_user(credentials.username)
    if not user or not verify_password(credentials.password, user.password_hash):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid credentials"
        )

    return LoginResponse(
        token=create_access_token(user.id, user.username),
        user=HubUser(id=user.id, username=user.username, name=user.name, role=user.role),
    )


@router.get("/verify")
def verify(current: dict = Depends(get_current_user)):
    user = get_admin_user_by_id(current["userId"])
    if not user:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="User not found")
    return {
        "valid": True,
        "user": HubUser(id=user.id, username=user.username, name=user.name, role=user.role).model_dump(),
    }
