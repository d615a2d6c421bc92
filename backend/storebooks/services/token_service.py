# Overview: Signed access tokens (HS256 JWT) for the Bearer auth layer.

"""
Tokens are stateless: there is no session table and no revocation list.
Verification re-fetches the user row, so deleting a user invalidates every
token issued to them.

Claims:
- sub: user id (string, as JWT requires)
- user: {id, email, role, client_id}
- iat / exp: issue time and a fixed expiry (JWT_EXPIRES_HOURS, 24 by default)
"""

from datetime import timedelta, timezone

from flask import current_app
from jose import ExpiredSignatureError, JWTError, jwt

from ..errors import Unauthorized
from ..extensions import db
from ..models import User
from ..time_utils import utcnow


ALGORITHM = "HS256"


def _secret() -> str:
    return current_app.config["JWT_SECRET_KEY"]


def issue_token(user: User) -> str:
    now = utcnow().replace(tzinfo=timezone.utc)
    expires = now + timedelta(hours=current_app.config.get("JWT_EXPIRES_HOURS", 24))
    claims = {
        "sub": str(user.id),
        "user": {
            "id": user.id,
            "email": user.email,
            "role": user.role,
            "client_id": user.client_id,
        },
        "iat": now,
        "exp": expires,
    }
    return jwt.encode(claims, _secret(), algorithm=ALGORITHM)


def decode_token(token: str) -> dict:
    """
    Verify signature and expiry and return the claims.

    Raises Unauthorized for expired, malformed, or forged tokens.
    """
    try:
        return jwt.decode(token, _secret(), algorithms=[ALGORITHM])
    except ExpiredSignatureError:
        raise Unauthorized("Token has expired") from None
    except JWTError:
        raise Unauthorized("Invalid or expired token") from None


def verify_token(token: str) -> User:
    """Decode a token and load the user it was issued to."""
    claims = decode_token(token)
    try:
        user_id = int(claims.get("sub"))
    except (TypeError, ValueError):
        raise Unauthorized("Invalid or expired token") from None

    user = db.session.get(User, user_id)
    if user is None:
        raise Unauthorized("Invalid or expired token")
    return user
