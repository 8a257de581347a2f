"""
Account endpoints: signup, login, logout.

Authentication is a signed session cookie. Login stores the member id in
the session; every protected route reads it back through require_user.
"""

import asyncio
import logging

from fastapi import APIRouter, HTTPException, Request, status
from pydantic import BaseModel, Field

from ...core.community.models import User, normalize_email, normalize_username
from ...infrastructure.security.passwords import (
    PasswordTooLongError,
    hash_password,
    verify_password,
)
from ..dependencies import SESSION_USER_KEY, CurrentUser, SettingsDep, UserRepositoryDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class SignupRequest(BaseModel):
    username: str = Field(default="", description="Case-insensitive, must be unique")
    email: str = Field(default="")
    password: str = Field(default="")


class LoginRequest(BaseModel):
    username: str = ""
    password: str = ""


class AccountResponse(BaseModel):
    """The logged-in member's own account."""
    id: str
    username: str
    email: str
    is_admin: bool
    verified: bool
    profile_pic: str
    about: str
    subscriber_count: int


def to_account(user: User) -> AccountResponse:
    return AccountResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        is_admin=user.is_admin,
        verified=user.verified,
        profile_pic=user.profile_pic,
        about=user.about,
        subscriber_count=user.subscriber_count,
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.post(
    "/signup",
    response_model=AccountResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create an account",
)
async def signup(
    body: SignupRequest,
    users: UserRepositoryDep,
    settings: SettingsDep,
) -> AccountResponse:
    username = normalize_username(body.username)
    email = normalize_email(body.email)

    if not username or not email or not body.password:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="All fields are required.",
        )

    if users.find_by_username(username):
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail="Username already taken.",
        )

    try:
        password_hash = await asyncio.to_thread(
            hash_password, body.password, settings.password_hash_rounds
        )
    except PasswordTooLongError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e))

    user = User(username=username, email=email, password_hash=password_hash)
    users.save(user)

    logger.info("User signed up", extra={"user_id": user.id, "username": user.username})

    return to_account(user)


@router.post(
    "/login",
    response_model=AccountResponse,
    summary="Log in",
    responses={401: {"description": "Invalid credentials"}, 403: {"description": "Account banned"}},
)
async def login(
    body: LoginRequest,
    request: Request,
    users: UserRepositoryDep,
) -> AccountResponse:
    user = users.find_by_username(body.username)

    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password.",
        )

    if user.banned:
        logger.warning("Banned user tried to log in", extra={"user_id": user.id})
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Your account has been banned.",
        )

    valid = await asyncio.to_thread(verify_password, body.password, user.password_hash)
    if not valid:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid username or password.",
        )

    request.session[SESSION_USER_KEY] = user.id
    request.session["username"] = user.username
    request.session["is_admin"] = user.is_admin

    logger.info("User logged in", extra={"user_id": user.id})

    return to_account(user)


@router.post("/logout", summary="Log out")
async def logout(request: Request) -> dict:
    request.session.clear()
    return {"message": "Logged out."}


@router.get("/me", response_model=AccountResponse, summary="Current account")
async def me(user: CurrentUser) -> AccountResponse:
    return to_account(user)
