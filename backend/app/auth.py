"""Authentication helpers and the role-based authorization gate.

This module decodes bearer tokens into a `User`, derives the caller's
roles and provides `require_role`, the dependency the route table
attaches to every protected route. The gate runs before query
parameters and the body model are validated and before the handler
body, so a denied request never reaches a repository. A body that is
not valid JSON at all is rejected by FastAPI with a 422 before any
dependency runs; the handler is not reached in that case either.

Role policy:
- no bearer token: no roles
- any authenticated user: USER
- users flagged `admin` (or listed in ADMIN_USERNAMES): USER and ADMIN

A token that is invalid, expired or names a deleted user counts as no
token at all, so the caller has no roles and protected routes answer 403.
"""

import logging
from enum import Enum
from typing import FrozenSet, Iterable, Optional

import jwt
from fastapi import Depends, Security
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlmodel import Session

from . import models, repositories
from .config import settings
from .database import get_session
from .errors import AuthorizationDenied
from .services import is_admin_username

logger = logging.getLogger("app.auth")
bearer_scheme = HTTPBearer(auto_error=False)


class Role(str, Enum):
    USER = "USER"
    ADMIN = "ADMIN"


def authorize(caller_roles: Iterable[Role], required_role: Role) -> bool:
    """Policy function: allow when the caller holds `required_role`."""
    return required_role in set(caller_roles)


def roles_for(user: Optional[models.User]) -> FrozenSet[Role]:
    """Return the roles granted to `user` (empty for anonymous callers)."""
    if user is None:
        return frozenset()
    if user.admin or is_admin_username(user.username):
        return frozenset({Role.USER, Role.ADMIN})
    return frozenset({Role.USER})


def decode_token(token: str):
    """Decode and verify a JWT token.

    Returns the decoded payload, or `None` when the token is expired or
    cannot be verified.
    """
    try:
        return jwt.decode(token, settings.JWT_SECRET, algorithms=[settings.JWT_ALGORITHM])
    except jwt.ExpiredSignatureError:
        logger.info("bearer token expired")
    except jwt.InvalidTokenError:
        logger.info("bearer token rejected")
    return None


def get_current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(bearer_scheme),
    db: Session = Depends(get_session),
) -> Optional[models.User]:
    """FastAPI dependency that returns the authenticated user, if any.

    Returns `None` (an anonymous caller) when no bearer token was sent,
    when the token cannot be trusted or when its user no longer exists.
    """
    if credentials is None:
        return None
    payload = decode_token(credentials.credentials)
    user_id = payload.get('user_id') if payload else None
    if not user_id:
        return None
    user = repositories.UserRepository(db).find_by_id(user_id)
    if not user:
        logger.info("bearer token names missing user %s", user_id)
    return user


def get_caller_roles(user: Optional[models.User] = Depends(get_current_user)) -> FrozenSet[Role]:
    """FastAPI dependency returning the roles of the current caller."""
    return roles_for(user)


def require_role(role: Role):
    """Build the gate dependency for routes that need `role`."""

    def gate(caller_roles: FrozenSet[Role] = Depends(get_caller_roles)) -> None:
        if not authorize(caller_roles, role):
            raise AuthorizationDenied(role.value, [r.value for r in caller_roles])

    gate.__name__ = f"require_{role.value.lower()}"
    return gate
