"""Auth API router: login, password reset and the current user."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from backoffice.core.response import create_response
from backoffice.core.security import AuthContext, get_current_user
from backoffice.db.session import get_db
from backoffice.schemas.schemas import (
    ForgotPasswordRequest, LoginRequest, ResetPasswordRequest,
)
from backoffice.services.auth_service import auth_service
from backoffice.services.user_service import user_service

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/login")
async def login(body: LoginRequest, db: Session = Depends(get_db)):
    """Authenticate and return a JWT."""
    result = auth_service.authenticate(db, body.email, body.password)
    return create_response(
        {"token": result["token"], "user": result["user"].model_dump(mode="json")},
        "Login successful",
    )


@router.post("/forgot-password")
async def forgot_password(body: ForgotPasswordRequest, db: Session = Depends(get_db)):
    """Send a reset link if the email belongs to a user."""
    auth_service.request_password_reset(db, body.email)
    return create_response(None, "If the email exists, a reset link has been sent")


@router.post("/reset-password")
async def reset_password(body: ResetPasswordRequest, db: Session = Depends(get_db)):
    """Set a new password with a reset token."""
    auth_service.reset_password(db, body.user_id, body.token, body.new_password)
    return create_response(None, "Password has been reset")


@router.get("/me")
async def get_me(
    db: Session = Depends(get_db),
    auth: AuthContext = Depends(get_current_user),
):
    """Get current user profile."""
    user = user_service.get_user(db, auth.user_id)
    return create_response(user.model_dump(mode="json"))
