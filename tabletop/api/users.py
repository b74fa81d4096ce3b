"""
User endpoints, including password login and a user's image listing.
"""
from fastapi import Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..managers.image_manager import image_manager
from ..managers.user_manager import user_manager
from ..schemas import LoginRequest, UserCreate, UserUpdate
from .common import ListParams, build_crud_router, dump, success

router = build_crud_router("/users", user_manager, UserCreate, UserUpdate)


@router.post("/login")
def login(credentials: LoginRequest, db: Session = Depends(get_db)):
    """
    Verify an email/password pair.

    Returns the user with a refreshed last login time, or 401 when the
    credentials do not match an active account.
    """
    user = user_manager.verify_password(db, credentials.email, credentials.password)
    if user is None:
        raise HTTPException(status_code=401, detail="Invalid email or password")
    return success(dump(user), message="Login successful")


@router.get("/{user_id}/images")
def list_user_images(user_id: int, params: ListParams = Depends(), db: Session = Depends(get_db)):
    """List the images owned by a user."""
    images, pagination = image_manager.get_user_images(
        db,
        user_id,
        page=params.page,
        page_size=params.page_size,
        order_by=params.order_by,
        direction=params.direction,
    )
    return success([dump(image) for image in images], pagination=pagination)
