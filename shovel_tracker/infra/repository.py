"""
Repository Pattern Implementation.

Architecture Decision: Why Repository Pattern?
Separates data access logic from business logic. The services work with
typed records; the repositories turn them into the JSON arrays the store
keeps, one whole collection at a time.
"""

import logging
from typing import Generic, List, Type, TypeVar

from pydantic import ValidationError

from shovel_tracker.domain.models import Collection, Project, Record, TeamMember, TimeEntry
from shovel_tracker.infra.store import CollectionStore, StoreError

logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=Record)


class CollectionRepository(Generic[RecordT]):
    """
    Reads and replaces one collection in a CollectionStore.

    Subclasses only pick the collection and the record model.
    """
    collection: Collection
    model: Type[RecordT]

    def __init__(self, store: CollectionStore):
        self.store = store

    async def get_all(self) -> List[RecordT]:
        """
        Fetch every record of the collection.

        A store failure or a malformed record is logged and reads as an empty
        collection, so a broken backend never takes the session down.
        """
        try:
            raw_items = await self.store.get(self.collection)
            return [self.model.model_validate(item) for item in raw_items]
        except StoreError as e:
            logger.error("Failed to fetch %s: %s", self.collection.label, e)
        except ValidationError as e:
            logger.error("Stored %s are malformed: %s", self.collection.label, e)
        return []

    async def replace_all(self, items: List[RecordT]) -> None:
        """
        Overwrite the stored collection with items.

        Raises:
            StoreError: If the write fails
        """
        await self.store.set(self.collection, [item.to_json() for item in items])


class ProjectRepository(CollectionRepository[Project]):
    collection = Collection.PROJECTS
    model = Project


class TeamMemberRepository(CollectionRepository[TeamMember]):
    collection = Collection.TEAM_MEMBERS
    model = TeamMember


class TimeEntryRepository(CollectionRepository[TimeEntry]):
    collection = Collection.TIME_ENTRIES
    model = TimeEntry
