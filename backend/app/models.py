"""SQLModel data models.

This module defines the application's database tables using SQLModel.
Attribute names are snake_case; the camelCase wire names live in
`schemas`.
"""

from typing import Optional
from sqlalchemy import DateTime
from sqlmodel import SQLModel, Field
from datetime import datetime, timezone


class User(SQLModel, table=True):
    """A registered user.

    Fields:
    - `username`: unique login name (normally a course email)
    - `password_hash`: hashed password string (never store plaintext)
    - `admin`: grants the ADMIN role in addition to USER
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    username: str = Field(index=True, nullable=False, unique=True)
    password_hash: str
    admin: bool = False
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class HelpRequest(SQLModel, table=True):
    """A student team's request for help during a lab section.

    `id` is assigned by the database on the first save and never changes
    afterwards. `request_time` is a naive local date-time.
    """
    id: Optional[int] = Field(default=None, primary_key=True)
    requester_email: str
    team_id: str = Field(index=True)
    table_or_breakout_room: str
    request_time: datetime = Field(sa_type=DateTime(timezone=False))
    explanation: str
    solved: bool = False


class UCSBOrganization(SQLModel, table=True):
    """A student organization keyed by its short code (e.g. `ZPR`)."""
    orgcode: str = Field(primary_key=True)
    org_translation: str
    org_translation_short: str
    inactive: bool = False
