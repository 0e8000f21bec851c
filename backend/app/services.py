"""Account services used by the auth endpoints.

Users exist only so the authorization gate can learn a caller's roles;
this module registers them, verifies passwords and issues the bearer
tokens that `auth.get_current_user` later decodes.
"""

from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt
from passlib.context import CryptContext
from sqlmodel import Session

from . import models, repositories
from .config import settings

PWD_CTX = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def is_admin_username(username: str) -> bool:
    """Return True if `username` is listed in the ADMIN_USERNAMES setting."""
    return username.strip().lower() in settings.ADMIN_USERNAMES


def issue_token(user: models.User) -> str:
    """Sign a JWT carrying the user's id and name."""
    expire = datetime.now(timezone.utc) + timedelta(hours=settings.JWT_EXPIRE_HOURS)
    payload = {"user_id": user.id, "username": user.username, "exp": int(expire.timestamp())}
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALGORITHM)


class AuthService:
    """Authentication related operations (register + authenticate)."""
    def __init__(self, session: Session):
        self.session = session
        self.user_repo = repositories.UserRepository(session)

    def register(self, username: str, password: str) -> models.User:
        """Create a new user with a hashed password.

        Users named in ADMIN_USERNAMES are stored with the admin flag set.
        Returns the persisted `User` instance.
        """
        hashed = PWD_CTX.hash(password)
        u = models.User(username=username, password_hash=hashed, admin=is_admin_username(username))
        return self.user_repo.save(u)

    def authenticate(self, username: str, password: str) -> Optional[str]:
        """Verify credentials and return a signed JWT token on success.

        Returns `None` if authentication fails.
        """
        user = self.user_repo.get_by_username(username)
        if not user:
            return None
        if not PWD_CTX.verify(password, user.password_hash):
            return None
        return issue_token(user)
