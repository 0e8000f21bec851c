"""Repository classes encapsulating database operations.

`CrudRepository` is a small generic key-value store over one SQLModel
table (find all, find by key, save, delete). Controllers only ever talk
to this interface, which keeps them testable against a mock store.
Repositories return SQLModel objects and perform commits/refreshes where
appropriate.
"""

from typing import Generic, List, Optional, Type, TypeVar
from sqlmodel import SQLModel, Session, select
from . import models

EntityT = TypeVar("EntityT", bound=SQLModel)


class CrudRepository(Generic[EntityT]):
    """Find/save/delete operations for a single entity type."""
    model: Type[EntityT]

    def __init__(self, session: Session):
        self.session = session

    def find_all(self) -> List[EntityT]:
        """Return every stored row in the database's native order."""
        return list(self.session.exec(select(self.model)).all())

    def find_by_id(self, key) -> Optional[EntityT]:
        """Return the row with primary key `key` or `None` if not found."""
        return self.session.get(self.model, key)

    def save(self, entity: EntityT) -> EntityT:
        """Insert or update `entity` and return the refreshed instance.

        Saving an entity whose key already exists overwrites the stored
        row. The refresh makes store-assigned values (such as a new `id`)
        visible on the returned object.
        """
        managed = self.session.merge(entity)
        self.session.commit()
        self.session.refresh(managed)
        return managed

    def delete(self, entity: EntityT) -> None:
        """Remove `entity` from the store."""
        self.session.delete(entity)
        self.session.commit()


class HelpRequestRepository(CrudRepository[models.HelpRequest]):
    model = models.HelpRequest


class UCSBOrganizationRepository(CrudRepository[models.UCSBOrganization]):
    model = models.UCSBOrganization


class UserRepository(CrudRepository[models.User]):
    """CRUD operations for `User` objects."""
    model = models.User

    def get_by_username(self, username: str) -> Optional[models.User]:
        """Return a `User` by username or `None` if not found."""
        stmt = select(models.User).where(models.User.username == username)
        return self.session.exec(stmt).first()
