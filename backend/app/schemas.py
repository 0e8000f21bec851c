"""Pydantic request/response schemas used by the API.

Schemas keep API input/output shapes stable and provide validation for
controller handlers and tests. Resource schemas use camelCase names on
the wire (`requesterEmail`, `orgTranslationShort`, ...) while the Python
attributes stay snake_case.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class RegisterIn(BaseModel):
    """Payload for user registration/login endpoints."""
    username: str
    password: str


class TokenOut(BaseModel):
    """Authentication response containing an access token."""
    access_token: str


class ApiModel(BaseModel):
    """Base for camelCase resource schemas.

    `from_attributes` lets a schema be built straight from an SQLModel row.
    """
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class HelpRequestIn(ApiModel):
    """Full help request body for PUT; an `id` in the body is ignored."""
    requester_email: str
    team_id: str
    table_or_breakout_room: str
    request_time: datetime
    explanation: str
    solved: bool


class HelpRequestOut(HelpRequestIn):
    id: Optional[int] = None


class UCSBOrganizationIn(ApiModel):
    """Organization body for PUT; an `orgcode` in the body is ignored."""
    org_translation: str
    org_translation_short: str
    inactive: bool


class UCSBOrganizationOut(UCSBOrganizationIn):
    orgcode: str


class ErrorOut(BaseModel):
    """Structured error body, e.g. for a missing entity."""
    type: str
    message: str


class MessageOut(BaseModel):
    message: str


class UserOut(ApiModel):
    id: int
    username: str
    admin: bool


class CurrentUserOut(ApiModel):
    """Who the caller is and which roles the authorization gate sees."""
    logged_in: bool
    username: Optional[str] = None
    roles: List[str] = []
