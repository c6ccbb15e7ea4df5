"""Infrastructure layer - Configuration, collection store and persistence"""

from .store import CollectionStore, MemoryStore, SqlStore, UpstashStore, StoreError, create_store
from .repository import ProjectRepository, TeamMemberRepository, TimeEntryRepository

__all__ = [
    "CollectionStore", "MemoryStore", "SqlStore", "UpstashStore", "StoreError", "create_store",
    "ProjectRepository", "TeamMemberRepository", "TimeEntryRepository",
]
