"""
User management.

Passwords are stored as Argon2id hashes and never leave this module.
"""
import logging
import re
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from argon2 import PasswordHasher, Type
from argon2.exceptions import InvalidHashError, VerificationError
from sqlalchemy.orm import Session

from ..errors import EntityNotFoundError, ValidationError
from ..models import Character, Image, User
from ..schemas import UserResponse
from .base import BaseManager, atomic, clean_name, clean_text, validate_id

logger = logging.getLogger(__name__)

USER_NAME_RE = re.compile(r"^[a-zA-Z0-9\s]+$")
EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
MIN_PASSWORD_LENGTH = 8

# Argon2id hasher with library defaults for cost parameters
password_hasher = PasswordHasher(type=Type.ID)


def normalize_email(email: Any) -> str:
    """Trim, lowercase and check an email address."""
    if not isinstance(email, str):
        raise ValidationError("User email must be a string")

    normalized = email.strip().lower()
    if not normalized:
        raise ValidationError("User email cannot be empty")
    if not EMAIL_RE.match(normalized):
        raise ValidationError("User email must be a valid email address")
    return normalized


class UserManager(BaseManager):
    """Manages user accounts."""

    model = User
    response_model = UserResponse
    entity_name = "User"
    unique_field = "email"
    searchable_fields = ("name", "email")
    hidden_fields = ("password",)

    def prepare(self, db: Session, values: Dict[str, Any], existing=None) -> Dict[str, Any]:
        if "name" in values:
            name = clean_name(values["name"], "User name", 50)
            if len(name) < 2:
                raise ValidationError("User name must be between 2 and 50 characters")
            if not USER_NAME_RE.match(name):
                raise ValidationError("User name can only contain letters, numbers, and spaces")
            values["name"] = name

        if "email" in values:
            values["email"] = normalize_email(values["email"])

        if "password" in values:
            password = values["password"]
            if not isinstance(password, str):
                raise ValidationError("User password must be a string")
            if len(password) < MIN_PASSWORD_LENGTH:
                raise ValidationError(
                    f"User password must be at least {MIN_PASSWORD_LENGTH} characters long"
                )
            values["password"] = password_hasher.hash(password)

        for flag in ("is_verified", "is_active"):
            if flag in values and not isinstance(values[flag], bool):
                raise ValidationError(f"{flag} must be a boolean")

        if "avatar_path" in values:
            values["avatar_path"] = clean_text(values["avatar_path"], "avatarPath")

        return values

    def name_exists(self, db: Session, name: str, exclude_id: Optional[int] = None) -> bool:
        """Check whether an email address is already registered."""
        email = normalize_email(name)
        if exclude_id is not None:
            validate_id(exclude_id, "Exclude ID")

        query = db.query(User.id).filter(User.email == email)
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        return query.first() is not None

    email_exists = name_exists

    def reference_counts(self, db: Session, entity) -> Dict[str, int]:
        return {
            "characters": db.query(Character).filter(Character.user_id == entity.id).count(),
            "images": db.query(Image).filter(Image.user_id == entity.id).count(),
        }

    def deletion_blocked_message(self, entity, counts: Dict[str, int]) -> str:
        return (
            f'Cannot delete user "{entity.name}" ({entity.email}) as they have associated data '
            f'(characters: {counts["characters"]}, images: {counts["images"]})'
        )

    def verify_password(self, db: Session, email: str, password: str) -> Optional[UserResponse]:
        """
        Verify credentials of an active user.

        Args:
            db: Database session
            email: Email address (case-insensitive)
            password: Plain-text password

        Returns:
            The user with a fresh last-login timestamp, or None if the
            credentials do not match an active password account
        """
        if not isinstance(email, str) or not email.strip():
            raise ValidationError("Email is required and must be a string")
        if not isinstance(password, str) or not password:
            raise ValidationError("Password is required and must be a string")

        user = (
            db.query(User)
            .filter(User.email == email.strip().lower(), User.is_active.is_(True))
            .first()
        )
        if user is None or not user.password:
            return None

        try:
            password_hasher.verify(user.password, password)
        except (VerificationError, InvalidHashError):
            logger.info(f"Failed login attempt for user {user.id}")
            return None

        with atomic(db):
            user.last_login_at = datetime.now(timezone.utc)

        logger.info(f"User {user.id} logged in")
        return self.to_response(user)

    def update_last_login(self, db: Session, user_id: int) -> None:
        """Stamp the user's last login time."""
        validate_id(user_id, "User ID")

        with atomic(db):
            user = db.query(User).filter(User.id == user_id).first()
            if user is None:
                raise EntityNotFoundError("User", user_id)
            user.last_login_at = datetime.now(timezone.utc)


# Global user manager instance
user_manager = UserManager()
