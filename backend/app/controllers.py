"""Resource controllers.

A controller answers the requests for one resource using only the
repository it was constructed with. Lookups that miss return an
`EntityNotFound` value rather than raising; the HTTP layer maps it to a
404. Mutating operations call the repository exactly once.
"""

import logging
from datetime import datetime
from typing import List, Union

from sqlmodel import SQLModel

from . import models
from .errors import EntityNotFound
from .repositories import CrudRepository
from .schemas import HelpRequestIn, UCSBOrganizationIn
from .utils.parsers import to_local_datetime

logger = logging.getLogger("app.controllers")


class ResourceController:
    """Read and delete operations shared by every resource."""
    model: type

    def __init__(self, repository: CrudRepository):
        self.repository = repository

    @property
    def entity_name(self) -> str:
        return self.model.__name__

    def list_all(self) -> List:
        """Return every stored record in the store's order."""
        return list(self.repository.find_all())

    def get_by_id(self, key) -> Union[SQLModel, EntityNotFound]:
        found = self.repository.find_by_id(key)
        if found is None:
            return EntityNotFound(self.entity_name, key)
        return found

    def delete(self, key) -> Union[dict, EntityNotFound]:
        """Delete the record stored under `key`."""
        found = self.repository.find_by_id(key)
        if found is None:
            return EntityNotFound(self.entity_name, key)
        self.repository.delete(found)
        logger.info("deleted %s %s", self.entity_name, key)
        return {"message": f"{self.entity_name} with id {key} deleted"}


class HelpRequestController(ResourceController):
    model = models.HelpRequest

    def create(
        self,
        requester_email: str,
        team_id: str,
        table_or_breakout_room: str,
        explanation: str,
        solved: bool,
        request_time: datetime,
    ) -> models.HelpRequest:
        """Store a new help request; the database assigns its id."""
        logger.info("requestTime=%s", request_time.isoformat())
        help_request = models.HelpRequest(
            requester_email=requester_email,
            team_id=team_id,
            table_or_breakout_room=table_or_breakout_room,
            explanation=explanation,
            solved=solved,
            request_time=request_time,
        )
        return self.repository.save(help_request)

    def update(self, key: int, body: HelpRequestIn) -> Union[models.HelpRequest, EntityNotFound]:
        """Overwrite every field of the record found under `key` with `body`.

        `key` locates the record; the stored id is never changed.
        """
        found = self.repository.find_by_id(key)
        if found is None:
            return EntityNotFound(self.entity_name, key)
        found.requester_email = body.requester_email
        found.team_id = body.team_id
        found.table_or_breakout_room = body.table_or_breakout_room
        found.request_time = to_local_datetime(body.request_time)
        found.explanation = body.explanation
        found.solved = body.solved
        logger.info("updated %s %s", self.entity_name, key)
        return self.repository.save(found)


class UCSBOrganizationController(ResourceController):
    model = models.UCSBOrganization

    def create(
        self,
        orgcode: str,
        org_translation: str,
        org_translation_short: str,
        inactive: bool,
    ) -> models.UCSBOrganization:
        """Store a new organization under the caller-supplied `orgcode`."""
        organization = models.UCSBOrganization(
            orgcode=orgcode,
            org_translation=org_translation,
            org_translation_short=org_translation_short,
            inactive=inactive,
        )
        logger.info("creating %s %s", self.entity_name, orgcode)
        return self.repository.save(organization)

    def update(self, key: str, body: UCSBOrganizationIn) -> Union[models.UCSBOrganization, EntityNotFound]:
        found = self.repository.find_by_id(key)
        if found is None:
            return EntityNotFound(self.entity_name, key)
        found.org_translation = body.org_translation
        found.org_translation_short = body.org_translation_short
        found.inactive = body.inactive
        logger.info("updated %s %s", self.entity_name, key)
        return self.repository.save(found)
