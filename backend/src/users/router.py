"""User management endpoints.

Admins can create, list, update and soft-delete accounts. Any role holding
``searchUsers`` can look an account up by email (used when inviting people to
a session).
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from auth.dependencies import require_permission
from auth.password import hash_password
from auth.schemas import UserResponse
from database import get_db
from errors import BadRequestError, NotFoundError
from models.user import User
from schemas import Page, PageParams, apply_sort, paginate
from .schemas import UserCreate, UserUpdate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users", tags=["User Management"])

SORTABLE_COLUMNS = {
    "name": User.name,
    "email": User.email,
    "role": User.role,
    "createdAt": User.created_at,
}


def _get_user_or_404(db: Session, user_id: UUID) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User not found")
    return user


@router.post(
    "",
    response_model=UserResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a new user (admin only)",
)
def create_user(
    data: UserCreate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("manageUsers")),
):
    email = data.email.lower()
    if db.query(User).filter(User.email == email).first():
        raise BadRequestError("Email already taken")

    user = User(
        email=email,
        name=data.name,
        role=data.role,
        password_hash=hash_password(data.password),
    )
    try:
        db.add(user)
        db.commit()
    except IntegrityError:
        db.rollback()
        raise BadRequestError("Email already taken")
    db.refresh(user)

    logger.info(f"User created: user_id={user.id}, role={user.role}, by={current_user.id}")
    return user


@router.get("", response_model=Page[UserResponse], summary="List users (admin only)")
def list_users(
    name: Optional[str] = None,
    role: Optional[str] = None,
    sortBy: Optional[str] = None,
    limit: int = Query(10, ge=1, le=100),
    page: int = Query(1, ge=1),
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("getUsers")),
):
    query = db.query(User)
    if name:
        query = query.filter(User.name == name)
    if role:
        query = query.filter(User.role == role)

    query = apply_sort(query, sortBy, SORTABLE_COLUMNS, User.created_at.desc())
    return paginate(query, PageParams(sortBy=sortBy, limit=limit, page=page))


@router.get("/search/{email}", response_model=UserResponse, summary="Find a user by email")
def search_user_by_email(
    email: str,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("searchUsers")),
):
    user = db.query(User).filter(User.email == email.lower()).first()
    if not user or user.status == "deleted":
        raise NotFoundError("User not found")
    return user


@router.get("/{user_id}", response_model=UserResponse)
def get_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("getUsers")),
):
    return _get_user_or_404(db, user_id)


@router.patch("/{user_id}", response_model=UserResponse)
def update_user(
    user_id: UUID,
    data: UserUpdate,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("manageUsers")),
):
    """Update profile fields, role or status of a user."""
    user = _get_user_or_404(db, user_id)

    changes = data.model_dump(exclude_unset=True)
    if "email" in changes:
        changes["email"] = changes["email"].lower()
        taken = db.query(User).filter(User.email == changes["email"], User.id != user.id).first()
        if taken:
            raise BadRequestError("Email already taken")

    for field, value in changes.items():
        setattr(user, field, value)

    db.commit()
    db.refresh(user)

    logger.info(f"User updated: user_id={user.id}, fields={sorted(changes)}, by={current_user.id}")
    return user


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: UUID,
    db: Session = Depends(get_db),
    current_user: User = Depends(require_permission("manageUsers")),
):
    """Soft-delete a user. Their notarization history is kept."""
    user = _get_user_or_404(db, user_id)
    user.status = "deleted"
    db.commit()

    logger.info(f"User deleted: user_id={user.id}, by={current_user.id}")
