# Overview: Service-layer operations for auth; encapsulates business logic and database work.

"""
Authentication Service with Multi-Tenant Support

Every action must be attributable. Uses bcrypt for password hashing and
validates password strength when accounts are created.

MULTI-TENANT: Users belong to exactly one client (client_id). Login names a
client first; username/email lookups are scoped to that client.

SECURITY NOTES:
- Passwords hashed with bcrypt (cost factor from BCRYPT_ROUNDS, default 12)
- Minimum 8 characters, upper, lower, digit, and special char required
- Unknown accounts still pay for a bcrypt comparison so timing and
  message match a wrong password
- Tokens are issued and verified in token_service.py
"""

import re
from functools import lru_cache

import bcrypt
from flask import current_app, has_app_context
from sqlalchemy.exc import IntegrityError

from ..errors import AccessDenied, Conflict, NotFound, Unauthorized, ValidationError
from ..extensions import db
from ..models import Client, Store, User, ROLE_CLIENT_USER, USER_ROLES
from ..time_utils import utcnow
from . import security_service


INVALID_CREDENTIALS = "Invalid credentials"


class PasswordValidationError(ValidationError):
    """Raised when password doesn't meet strength requirements."""


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
    if not isinstance(password, str):
        raise PasswordValidationError("Password must be a string")

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


def _bcrypt_rounds() -> int:
    if has_app_context():
        return int(current_app.config.get("BCRYPT_ROUNDS", 12))
    return 12


def hash_password(password: str) -> str:
    """
    Hash password using bcrypt.

    Password is validated for strength before hashing.
    """
    validate_password_strength(password)
    salt = bcrypt.gensalt(rounds=_bcrypt_rounds())
    hashed = bcrypt.hashpw(password.encode('utf-8'), salt)
    return hashed.decode('utf-8')


@lru_cache(maxsize=4)
def _dummy_hash(rounds: int) -> bytes:
    return bcrypt.hashpw(b"storebooks-dummy-password", bcrypt.gensalt(rounds=rounds))


def verify_password(password: str, password_hash: str | None) -> bool:
    """
    Verify password against bcrypt hash.

    A missing hash is compared against a dummy hash of the same cost so the
    call takes the same time either way; it never matches.
    """
    candidate = password.encode('utf-8')
    if not password_hash:
        bcrypt.checkpw(candidate, _dummy_hash(_bcrypt_rounds()))
        return False
    try:
        return bcrypt.checkpw(candidate, password_hash.encode('utf-8'))
    except ValueError:
        # Malformed stored hash
        return False


def create_user(
    *,
    client_id: int,
    username: str,
    email: str,
    password: str,
    role: str = ROLE_CLIENT_USER,
    store_id: int | None = None,
) -> User:
    """
    Create new user with bcrypt password hashing.

    MULTI-TENANT: Users must belong to a client (client_id required).
    Username and email uniqueness is scoped to the client.

    Raises:
        NotFound: client or store does not exist
        ValidationError: bad role, weak password, or store of another client
        Conflict: username or email already used in this client
    """
    if role not in USER_ROLES:
        raise ValidationError(f"role must be one of: {', '.join(USER_ROLES)}")
    if any(value is not None and not isinstance(value, str) for value in (username, email)):
        raise ValidationError("username and email must be strings")

    username = (username or "").strip()
    email = (email or "").strip().lower()
    if not username or not email:
        raise ValidationError("username and email are required")

    client = db.session.get(Client, client_id)
    if client is None:
        raise NotFound("Client not found")
    if not client.is_active:
        raise ValidationError("Client is not active")

    existing = db.session.query(User).filter(
        User.client_id == client_id,
        db.or_(User.username == username, User.email == email),
    ).first()
    if existing:
        raise Conflict("Username or email already exists")

    if store_id is not None:
        store = db.session.get(Store, store_id)
        if store is None:
            raise NotFound("Store not found")
        if store.client_id != client_id:
            raise ValidationError("Store does not belong to this client")

    user = User(
        client_id=client_id,
        username=username,
        email=email,
        password_hash=hash_password(password),
        role=role,
        store_id=store_id,
    )

    db.session.add(user)
    try:
        db.session.commit()
    except IntegrityError:
        db.session.rollback()
        raise Conflict("Username or email already exists") from None
    return user


def register_user(*, client_id: int, username: str, email: str, password: str) -> User:
    """
    Self-service sign-up.

    Only ever creates client_user accounts, and only when
    ALLOW_SELF_REGISTRATION is enabled.
    """
    if not current_app.config.get("ALLOW_SELF_REGISTRATION"):
        security_service.log_security_event(
            user_id=None,
            event_type=security_service.SELF_REGISTRATION_DENIED,
            success=False,
            reason="Self-registration is disabled",
            client_id=client_id,
        )
        raise AccessDenied("Self-registration is disabled. Contact an administrator to create an account.")
    return create_user(
        client_id=client_id,
        username=username,
        email=email,
        password=password,
        role=ROLE_CLIENT_USER,
    )


def authenticate(client_id: int, identifier: str, password: str) -> User:
    """
    Authenticate a user of one client by username or email.

    Returns the User and updates last_login_at on success.

    Raises:
        NotFound: the client does not exist
        ValidationError: username or password is not a string
        Unauthorized: unknown account or wrong password (same message)
    """
    if not isinstance(identifier, str) or not isinstance(password, str):
        raise ValidationError("username and password must be strings")

    client = db.session.get(Client, client_id)
    if client is None:
        raise NotFound("Client not found")

    identifier = (identifier or "").strip()
    user = db.session.query(User).filter(
        User.client_id == client_id,
        db.or_(User.username == identifier, User.email == identifier.lower()),
    ).first()

    password_ok = verify_password(password or "", user.password_hash if user else None)

    if user is None or not password_ok or not client.is_active:
        security_service.log_security_event(
            user_id=user.id if user else None,
            event_type=security_service.LOGIN_FAILED,
            success=False,
            reason=INVALID_CREDENTIALS,
            client_id=client_id,
        )
        raise Unauthorized(INVALID_CREDENTIALS)

    user.last_login_at = utcnow()
    db.session.commit()
    return user
