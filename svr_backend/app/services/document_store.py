"""
Document store facade over the SQLAlchemy session factory.

Offers the primitives the rest of the application relies on:

- ``batch()``: one atomic transaction spanning both collections; any
  SQLAlchemy failure rolls back and surfaces as TransientStoreError
- ``snapshot()`` / ``watch()``: immutable full-collection snapshots, pushed
  to subscribers after every committed batch, in commit order
- ``session()``: read session whose SQLAlchemy failures also surface as
  TransientStoreError
- ``wait_for_pending_writes()``: resolves once no batch is in flight

There is no cross-batch locking: two batches built from the same prior
state both commit and the later one wins.
"""

import asyncio
import logging
from collections import defaultdict
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, Dict, List, Set, Tuple

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import async_sessionmaker

from svr_backend.app.core.exceptions import InvalidStateError, TransientStoreError
from svr_backend.app.models.service_request import ServiceRequest
from svr_backend.app.models.trip import Trip
from svr_backend.app.schemas.service_request import RequestRecord
from svr_backend.app.schemas.trip import TripRecord

logger = logging.getLogger("svr.store")

REQUESTS = "requests"
TRIPS = "trips"

COLLECTIONS = {
    REQUESTS: (ServiceRequest, RequestRecord),
    TRIPS: (Trip, TripRecord),
}

_CLOSED = object()


@dataclass(frozen=True)
class Snapshot:
    """Full, immutable contents of one collection at a point in time."""
    collection: str
    documents: Tuple[Any, ...]


class Subscription:
    """
    Live query over one collection.

    Iterating yields the initial snapshot first, then one snapshot per
    committed change, until ``close()`` is called or a snapshot fails.
    """

    def __init__(self, store: "DocumentStore", collection: str):
        self.collection = collection
        self._store = store
        self._queue: asyncio.Queue = asyncio.Queue()
        self.closed = False

    def _deliver(self, snapshot: Snapshot) -> None:
        if not self.closed:
            self._queue.put_nowait(snapshot)

    def _fail(self, error: TransientStoreError) -> None:
        """End the subscription with an error; the iterator raises it."""
        if self.closed:
            return
        self.closed = True
        self._store._unsubscribe(self)
        self._queue.put_nowait(error)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._store._unsubscribe(self)
        self._queue.put_nowait(_CLOSED)

    def __aiter__(self):
        return self

    async def __anext__(self) -> Snapshot:
        item = await self._queue.get()
        if item is _CLOSED:
            raise StopAsyncIteration
        if isinstance(item, TransientStoreError):
            raise item
        return item


class DocumentStore:

    def __init__(self, session_factory: async_sessionmaker):
        self._session_factory = session_factory
        self._subscriptions: Dict[str, List[Subscription]] = defaultdict(list)
        self._publish_lock = asyncio.Lock()
        self._pending_writes = 0
        self._writes_settled = asyncio.Event()
        self._writes_settled.set()
        self._claims: Set[str] = set()

    @property
    def has_pending_writes(self) -> bool:
        return self._pending_writes > 0

    @asynccontextmanager
    async def session(self):
        """Read-only session."""
        async with self._session_factory() as session:
            try:
                yield session
            except SQLAlchemyError as exc:
                logger.error("Read failed: %s", exc)
                raise TransientStoreError("reading from the datastore", str(exc)) from exc

    @asynccontextmanager
    async def batch(self, *collections: str):
        """
        Atomic write across collections.

        Everything added or changed on the yielded session commits together
        or not at all. Subscribers of ``collections`` receive a fresh
        snapshot after the commit.
        """
        self._begin_write()
        try:
            async with self._session_factory() as session:
                try:
                    yield session
                    await session.commit()
                except SQLAlchemyError as exc:
                    await session.rollback()
                    logger.error("Batch on %s rolled back: %s", ", ".join(collections), exc)
                    raise TransientStoreError("writing to the datastore", str(exc)) from exc
                except Exception:
                    await session.rollback()
                    raise
        finally:
            self._end_write()
        await self.publish(*collections)

    @asynccontextmanager
    async def claim(self, key: str):
        """
        Hold an exclusive in-process claim on ``key`` for the duration of an operation.

        A second claim on the same key while the first is held is rejected.
        """
        if key in self._claims:
            raise InvalidStateError(
                message=f"An operation on {key} is already in progress",
                details={"key": key}
            )
        self._claims.add(key)
        try:
            yield
        finally:
            self._claims.discard(key)

    async def snapshot(self, collection: str) -> Snapshot:
        model, record = COLLECTIONS[collection]
        try:
            async with self._session_factory() as session:
                result = await session.execute(select(model))
                documents = tuple(record.model_validate(row) for row in result.scalars().all())
        except SQLAlchemyError as exc:
            logger.error("Error fetching %s: %s", collection, exc)
            raise TransientStoreError(f"fetching {collection}", str(exc)) from exc
        return Snapshot(collection=collection, documents=documents)

    async def watch(self, collection: str) -> Subscription:
        """Open a live subscription; its first item is the current snapshot."""
        if collection not in COLLECTIONS:
            raise KeyError(collection)
        subscription = Subscription(self, collection)
        async with self._publish_lock:
            initial = await self.snapshot(collection)
            subscription._deliver(initial)
            self._subscriptions[collection].append(subscription)
        logger.debug("Subscribed to %s (%d documents)", collection, len(initial.documents))
        return subscription

    async def publish(self, *collections: str) -> None:
        """Push a fresh snapshot of each collection to its subscribers."""
        async with self._publish_lock:
            for collection in collections:
                if not self._subscriptions.get(collection):
                    continue
                try:
                    snapshot = await self.snapshot(collection)
                except TransientStoreError as exc:
                    # The write already committed; only the live views are lost
                    for subscription in list(self._subscriptions[collection]):
                        subscription._fail(exc)
                    continue
                for subscription in list(self._subscriptions[collection]):
                    subscription._deliver(snapshot)

    async def wait_for_pending_writes(self) -> None:
        await self._writes_settled.wait()

    def _unsubscribe(self, subscription: Subscription) -> None:
        subscribers = self._subscriptions.get(subscription.collection, [])
        if subscription in subscribers:
            subscribers.remove(subscription)

    def _begin_write(self) -> None:
        self._pending_writes += 1
        self._writes_settled.clear()

    def _end_write(self) -> None:
        self._pending_writes -= 1
        if self._pending_writes == 0:
            self._writes_settled.set()
