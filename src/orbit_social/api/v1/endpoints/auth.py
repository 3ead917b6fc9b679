# src/orbit_social/api/v1/endpoints/auth.py
"""Authentication endpoints for the Orbit API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from orbit_social.core.security import create_access_token
from orbit_social.core.settings import settings
from orbit_social.schemas.common import MessageResponse
from orbit_social.schemas.user import (
    ChangePasswordRequest,
    LoginRequest,
    LoginResponse,
    RegisterRequest,
    RegisterResponse,
    SessionResponse,
    UserResponse,
)
from orbit_social.services import user_service

from ..dependencies import CurrentUserDep, SessionDep

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/register",
    summary="Register a new account",
    status_code=status.HTTP_201_CREATED,
    response_model=RegisterResponse,
)
async def register_user(payload: RegisterRequest, db: SessionDep) -> RegisterResponse:
    """Create an account; email and username must both be unused."""
    try:
        user = user_service.register_user(db, payload)
    except user_service.RegistrationConflictError as err:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(err)) from err
    return RegisterResponse.model_validate(user)


@router.post(
    "/login",
    summary="Authenticate with email or username",
    response_model=LoginResponse,
)
async def login_user(payload: LoginRequest, db: SessionDep) -> LoginResponse:
    """Exchange credentials for a bearer token."""
    try:
        user = user_service.authenticate(db, payload.identifier, payload.password)
    except user_service.InvalidCredentialsError as err:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(err),
        ) from err
    except user_service.AccountDeactivatedError as err:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail=str(err)) from err

    return LoginResponse(
        access_token=create_access_token(user.id),
        token_type="bearer",
        expires_in=settings.access_token_expire_minutes * 60,
        profile=UserResponse.model_validate(user),
    )


@router.post("/logout", response_model=MessageResponse)
async def logout_user(current_user: CurrentUserDep) -> MessageResponse:
    """Acknowledge a logout. Tokens are stateless; the client discards its copy."""
    return MessageResponse(message="Logged out successfully")


@router.get("/session", response_model=SessionResponse)
async def get_session(current_user: CurrentUserDep) -> SessionResponse:
    """Return the identity behind the presented token."""
    return SessionResponse(
        id=current_user.id,
        email=current_user.email,
        username=current_user.username,
        role=current_user.role,
    )


@router.post("/change-password", response_model=MessageResponse)
async def change_password(
    payload: ChangePasswordRequest,
    current_user: CurrentUserDep,
    db: SessionDep,
) -> MessageResponse:
    """Replace the caller's password."""
    try:
        user_service.change_password(
            db,
            current_user,
            payload.current_password,
            payload.new_password,
        )
    except user_service.InvalidCredentialsError as err:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(err)) from err
    return MessageResponse(message="Password changed successfully")


@router.post("/update-last-login", response_model=MessageResponse)
async def update_last_login(current_user: CurrentUserDep, db: SessionDep) -> MessageResponse:
    """Stamp ``last_login`` for clients that resume a stored session."""
    user_service.touch_last_login(db, current_user)
    return MessageResponse(message="Last login updated")
