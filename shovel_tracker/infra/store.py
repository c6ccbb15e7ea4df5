"""
Collection store: whole-array persistence behind a two-operation interface.

Architecture Decision: Strategy + Factory Pattern
Each collection lives under one key as a JSON-encoded array. Backends only
implement raw string get/set, so swapping the local SQLite table for a
remote Redis is a configuration change. There are no partial updates and no
versioning: the last write wins.
"""

import asyncio
import json
import logging
from abc import ABC, abstractmethod
from datetime import datetime
from typing import Any, Dict, List, Optional
from urllib.parse import quote

import httpx
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from shovel_tracker.domain.models import Collection
from shovel_tracker.infra.config import Settings
from shovel_tracker.infra.db import CollectionModel, DatabaseEngine

logger = logging.getLogger(__name__)

TEST_KEY = "test-key"


class StoreError(Exception):
    """Raised when the store cannot be read, written, or holds malformed data."""


class CollectionStore(ABC):
    """
    Abstract key-value backend.

    Subclasses implement get_value/set_value; collection-level get/set and
    the JSON encoding live here so every backend stores the same bytes.
    """

    backend_name = "abstract"

    def __init__(self, key_prefix: str = "shovel-"):
        self.key_prefix = key_prefix

    def key_for(self, collection: Collection) -> str:
        return f"{self.key_prefix}{collection.value}"

    @abstractmethod
    async def get_value(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key was never written"""

    @abstractmethod
    async def set_value(self, key: str, value: str) -> None:
        """Store a string under key, replacing any previous value"""

    async def get(self, collection: Collection) -> List[Any]:
        """
        Fetch a whole collection.

        Returns:
            The stored JSON array, or [] if never written

        Raises:
            StoreError: If the backend fails or the value is not a JSON array
        """
        key = self.key_for(collection)
        raw = await self.get_value(key)
        if raw is None:
            return []
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as e:
            raise StoreError(f"Stored value for '{key}' is not valid JSON: {e}") from e
        if not isinstance(data, list):
            raise StoreError(f"Stored value for '{key}' is not a JSON array")
        return data

    async def set(self, collection: Collection, items: List[Any]) -> bool:
        """Replace a whole collection with items. Returns True once stored."""
        if not isinstance(items, list):
            raise StoreError(f"{collection.label} must be a JSON array")
        key = self.key_for(collection)
        try:
            payload = json.dumps(items, allow_nan=False)
        except (TypeError, ValueError) as e:
            raise StoreError(f"Cannot encode {collection.label}: {e}") from e
        await self.set_value(key, payload)
        logger.debug("Stored %d %s under %s", len(items), collection.label, key)
        return True

    async def check_connection(self) -> Optional[str]:
        """
        Round-trip a marker value through the backend.

        Returns:
            The marker left by the previous check, or None on first run
        """
        previous = await self.get_value(TEST_KEY)
        await self.set_value(TEST_KEY, f"Connection working at {datetime.now().isoformat()}")
        return previous

    def describe(self) -> Dict[str, Any]:
        return {"backend": self.backend_name}

    async def close(self) -> None:
        pass


class MemoryStore(CollectionStore):
    """Process-local store, used for tests and throwaway sessions."""

    backend_name = "memory"

    def __init__(self, key_prefix: str = "shovel-", initial: Optional[Dict[str, str]] = None):
        super().__init__(key_prefix)
        self.values: Dict[str, str] = dict(initial or {})

    async def get_value(self, key: str) -> Optional[str]:
        return self.values.get(key)

    async def set_value(self, key: str, value: str) -> None:
        self.values[key] = value


class SqlStore(CollectionStore):
    """
    Stores each key as a row of the `collections` table.

    Tables are created on first use.
    """

    backend_name = "sqlite"

    def __init__(self, engine: DatabaseEngine, key_prefix: str = "shovel-"):
        super().__init__(key_prefix)
        self.engine = engine
        self._tables_ready = False
        self._init_lock = asyncio.Lock()

    async def _ensure_tables(self):
        async with self._init_lock:
            if not self._tables_ready:
                await self.engine.create_tables()
                self._tables_ready = True

    async def get_value(self, key: str) -> Optional[str]:
        try:
            await self._ensure_tables()
            async with self.engine.get_session() as session:
                result = await session.execute(
                    select(CollectionModel.payload).where(CollectionModel.key == key)
                )
                return result.scalar_one_or_none()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to read '{key}': {e}") from e

    async def set_value(self, key: str, value: str) -> None:
        try:
            await self._ensure_tables()
            async with self.engine.get_session() as session:
                model = await session.get(CollectionModel, key)
                if model is None:
                    session.add(CollectionModel(key=key, payload=value))
                else:
                    model.payload = value
                await session.commit()
        except SQLAlchemyError as e:
            raise StoreError(f"Failed to write '{key}': {e}") from e

    def describe(self) -> Dict[str, Any]:
        return {"backend": self.backend_name, "database_url": str(self.engine.engine.url)}

    async def close(self) -> None:
        await self.engine.dispose()


class UpstashStore(CollectionStore):
    """
    Upstash Redis over its REST API.

    GET {url}/get/{key} answers {"result": <string or null>};
    POST {url}/set/{key} takes the value as the request body.
    """

    backend_name = "upstash"

    def __init__(self, url: str, token: str, key_prefix: str = "shovel-",
                 timeout: float = 10.0, transport: Optional[httpx.AsyncBaseTransport] = None):
        super().__init__(key_prefix)
        if not url or not token:
            raise ValueError("Upstash store requires both a REST URL and a token")
        self.url = url.rstrip("/")
        self._http = httpx.AsyncClient(
            base_url=self.url,
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def _call(self, method: str, path: str, content: Optional[str] = None) -> Any:
        try:
            response = await self._http.request(method, path, content=content)
            response.raise_for_status()
            body = response.json()
        except httpx.HTTPError as e:
            raise StoreError(f"Upstash request {method} {path} failed: {e}") from e
        except ValueError as e:
            raise StoreError(f"Upstash returned a non-JSON response for {path}") from e
        if isinstance(body, dict) and body.get("error"):
            raise StoreError(f"Upstash error for {path}: {body['error']}")
        return body.get("result") if isinstance(body, dict) else None

    async def get_value(self, key: str) -> Optional[str]:
        result = await self._call("GET", f"/get/{quote(key, safe='')}")
        return None if result is None else str(result)

    async def set_value(self, key: str, value: str) -> None:
        await self._call("POST", f"/set/{quote(key, safe='')}", content=value)

    def describe(self) -> Dict[str, Any]:
        return {"backend": self.backend_name, "url_exists": bool(self.url), "token_exists": True}

    async def close(self) -> None:
        await self._http.aclose()


def create_store(settings: Settings) -> CollectionStore:
    """
    Create the store configured in settings.store_backend.

    Returns:
        CollectionStore instance for the configured backend
    """
    backend = settings.store_backend

    if backend == "memory":
        return MemoryStore(key_prefix=settings.key_prefix)
    elif backend == "upstash":
        return UpstashStore(
            url=settings.upstash_redis_rest_url or "",
            token=settings.upstash_redis_rest_token or "",
            key_prefix=settings.key_prefix,
            timeout=settings.request_timeout,
        )
    else:
        engine = DatabaseEngine(settings.get_db_url())
        return SqlStore(engine, key_prefix=settings.key_prefix)
