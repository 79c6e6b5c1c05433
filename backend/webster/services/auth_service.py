# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service

WHY: Every record is owned by a user account, so every request must be
attributable. Uses bcrypt for secure password hashing and validates
password strength.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters required
- Must contain uppercase, lowercase, digit, and special char
- Session tokens managed separately (see session_service.py)
"""

import bcrypt
import re
from flask import current_app

from ..extensions import db
from ..models import User
from webster.time_utils import utcnow


class PasswordValidationError(Exception):
    """Raised when password doesn't meet strength requirements."""
    pass


class UserValidationError(Exception):
    """Raised when user profile data fails validation."""
    pass


def validate_password_strength(password: str) -> None:
    """
    Validate password meets strength requirements.

    Requirements:
    - Minimum 8 characters
    - At least one uppercase letter
    - At least one lowercase letter
    - At least one digit
    - At least one special character (!@#$%^&*(),.'":{}|<>)

    Raises PasswordValidationError if requirements not met.
    """
    if len(password) < 8:
        raise PasswordValidationError("Password must be at least 8 characters long")

    if not re.search(r'[A-Z]', password):
        raise PasswordValidationError("Password must contain at least one uppercase letter")

    if not re.search(r'[a-z]', password):
        raise PasswordValidationError("Password must contain at least one lowercase letter")

    if not re.search(r'\d', password):
        raise PasswordValidationError("Password must contain at least one digit")

    if not re.search(r"[!@#$%^&*(),.'\":{}|<>]", password):
        raise PasswordValidationError("Password must contain at least one special character")


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing. The cost factor
    comes from BCRYPT_ROUNDS so test runs can lower it.
    """
    validate_password_strength(password)
    rounds = current_app.config.get("BCRYPT_ROUNDS", 12)
    salt = bcrypt.gensalt(rounds=rounds)
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')  # Store as string in database


def verify_password(password: str, password_hash: str) -> bool:
    """
    Verify password against bcrypt hash.

    Returns True if password matches hash, False otherwise (including
    malformed hashes).
    """
    try:
        return bcrypt.checkpw(password.encode('utf-8'), password_hash.encode('utf-8'))
    except ValueError:
        return False


def _normalize_email(email: str | None) -> str:
    email = (email or "").strip().lower()
    if not email or "@" not in email:
        raise UserValidationError("A valid email address is required")
    return email


def create_user(email: str, password: str, name: str | None = None) -> User:
    """
    Create new user with bcrypt password hashing.

    Raises:
        UserValidationError: If the email is missing or already registered
        PasswordValidationError: If password doesn't meet requirements
    """
    email = _normalize_email(email)

    existing = db.session.query(User).filter_by(email=email).first()
    if existing:
        raise UserValidationError("Email already registered")

    password_hash = hash_password(password)

    user = User(
        email=email,
        name=(name or "").strip() or None,
        password_hash=password_hash,
    )

    db.session.add(user)
    db.session.commit()
    return user


def authenticate(email: str, password: str) -> User | None:
    """
    Authenticate user with email and password.

    Returns User if credentials valid, None otherwise.
    Updates last_login_at timestamp on successful authentication.
    """
    email = (email or "").strip().lower()
    user = db.session.query(User).filter(
        User.email == email,
        User.is_active.is_(True),
    ).first()

    if not user:
        return None

    if verify_password(password, user.password_hash):
        user.last_login_at = utcnow()
        db.session.commit()
        return user

    return None


def update_profile(user: User, *, name: str | None, email: str | None) -> User:
    """
    Update the caller's own profile (display name and email).

    Raises UserValidationError if the email is invalid or taken by another
    account.
    """
    email = _normalize_email(email)

    if email != user.email:
        existing = db.session.query(User).filter(
            User.email == email,
            User.id != user.id,
        ).first()
        if existing:
            raise UserValidationError("Email already registered")

    user.email = email
    user.name = (name or "").strip() or None
    db.session.commit()
    return user
