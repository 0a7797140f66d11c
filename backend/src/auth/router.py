"""Authentication endpoints for NotaryFlow API

Provides endpoints for registration, login and retrieving current user information.
"""

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, status
from sqlalchemy.orm import Session

from database import get_db
from errors import BadRequestError, UnauthorizedError
from models.user import User
from .schemas import LoginRequest, LoginResponse, MeResponse, RegisterRequest, RegisterResponse, UserResponse
from .password import hash_password, verify_password
from .jwt import create_access_token, get_jwt_expiry_minutes
from .dependencies import CurrentUser
from .rate_limit import check_rate_limit
from .roles import UserRole

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["Authentication"])


def _issue_token(user: User) -> LoginResponse:
    return LoginResponse(
        access_token=create_access_token(user_id=user.id, role=user.role, email=user.email),
        token_type="bearer",
        expires_in=get_jwt_expiry_minutes() * 60,
    )


@router.post("/register", response_model=RegisterResponse, status_code=status.HTTP_201_CREATED)
def register(
    body: RegisterRequest,
    db: Annotated[Session, Depends(get_db)],
    _: None = Depends(check_rate_limit)
):
    """Create a ``user``-role account and log it in."""
    email = body.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise BadRequestError("Email already taken")

    user = User(
        email=email,
        name=body.name,
        role=UserRole.USER.value,
        password_hash=hash_password(body.password),
    )
    db.add(user)
    db.commit()
    db.refresh(user)

    logger.info(f"User registered: user_id={user.id}")

    return RegisterResponse(user=UserResponse.model_validate(user), tokens=_issue_token(user))


@router.post("/login", response_model=LoginResponse)
def login(
    credentials: LoginRequest,
    db: Annotated[Session, Depends(get_db)],
    _: None = Depends(check_rate_limit)
):
    """Authenticate user and return JWT access token.

    Security measures:
    - Sliding-window rate limiting per client fingerprint
    - Constant-time password verification
    - Same message for unknown email and wrong password
    - Non-active accounts are rejected
    """
    user = db.query(User).filter(User.email == credentials.email.lower()).first()

    if not user or not verify_password(credentials.password, user.password_hash):
        logger.warning("Login failed: invalid credentials")
        raise UnauthorizedError("Incorrect email or password")

    if user.status != "active":
        logger.warning(f"Login failed: account {user.id} is {user.status}")
        raise UnauthorizedError("Account is not active")

    logger.info(f"Login succeeded: user_id={user.id}")
    return _issue_token(user)


@router.get("/me", response_model=MeResponse)
def get_me(current_user: CurrentUser):
    """Get current authenticated user information."""
    return MeResponse(user=UserResponse.model_validate(current_user))
