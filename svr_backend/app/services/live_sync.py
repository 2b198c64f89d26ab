"""
Live Collection Synchronizer.

Maintains a sorted in-memory projection of one collection and reports
per-document deltas to a consumer, skipping the initial bulk load.

State machine:

    UNINITIALIZED --start()--> INITIAL_LOAD --first snapshot--> LIVE --close()--> CLOSED

In LIVE, every snapshot is diffed against the current projection (one
callback per changed document) and then replaces it wholesale.
"""

import asyncio
import enum
import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Tuple

from svr_backend.app.core.exceptions import TransientStoreError
from svr_backend.app.models.enums import REQUEST_STATUS_RANK, UNKNOWN_STATUS_RANK
from svr_backend.app.services.document_store import DocumentStore, Snapshot, Subscription

logger = logging.getLogger("svr.sync")


class SyncState(str, enum.Enum):
    UNINITIALIZED = "UNINITIALIZED"
    INITIAL_LOAD = "INITIAL_LOAD"
    LIVE = "LIVE"
    CLOSED = "CLOSED"


class DeltaKind(str, enum.Enum):
    ADDED = "added"
    MODIFIED = "modified"
    REMOVED = "removed"


@dataclass(frozen=True)
class Delta:
    kind: DeltaKind
    document: Any


def request_sort_key(request) -> Tuple[int, float]:
    """Status rank ascending (Pending first), then newest timestamp first."""
    rank = REQUEST_STATUS_RANK.get(request.status, UNKNOWN_STATUS_RANK)
    created = request.timestamp.timestamp() if request.timestamp else 0
    return rank, -created


def trip_sort_key(trip) -> str:
    """Use with ``reverse=True``: trip code descending."""
    return trip.trip_code or ""


def sort_requests(requests) -> List[Any]:
    return sorted(requests, key=request_sort_key)


def sort_trips(trips) -> List[Any]:
    return sorted(trips, key=trip_sort_key, reverse=True)


class LiveCollection:
    """
    Synchronized view of one collection.

    Args:
        store: Store to subscribe to
        collection: Collection name
        sorter: Function ordering a list of documents
        on_change: Optional consumer called once per delta after the initial load
    """

    def __init__(
        self,
        store: DocumentStore,
        collection: str,
        sorter: Callable[[Any], List[Any]],
        on_change: Optional[Callable[[Delta], None]] = None
    ):
        self.store = store
        self.collection = collection
        self.sorter = sorter
        self.on_change = on_change
        self.state = SyncState.UNINITIALIZED
        self.is_initial_load = True
        self._items: List[Any] = []
        self._by_id: Dict[str, Any] = {}
        self._subscription: Optional[Subscription] = None
        self._task: Optional[asyncio.Task] = None
        self._updated = asyncio.Condition()

    @property
    def items(self) -> Tuple[Any, ...]:
        return tuple(self._items)

    def get(self, document_id: str) -> Optional[Any]:
        return self._by_id.get(document_id)

    async def start(self) -> None:
        """Open the subscription and begin consuming snapshots in the background."""
        if self.state != SyncState.UNINITIALIZED:
            raise RuntimeError(f"{self.collection} synchronizer already started")
        self._subscription = await self.store.watch(self.collection)
        self.state = SyncState.INITIAL_LOAD
        self._task = asyncio.create_task(self._run(), name=f"live-sync-{self.collection}")

    async def close(self) -> None:
        """Tear down the subscription. In-flight writes are not affected."""
        self.state = SyncState.CLOSED
        if self._subscription is not None:
            self._subscription.close()
        if self._task is not None:
            await self._task
            self._task = None

    async def wait_closed(self) -> None:
        """Wait until the subscription has ended, by close() or by a store failure."""
        if self._task is not None:
            await self._task

    async def wait_for_version(self, predicate: Callable[[Tuple[Any, ...]], bool], timeout: float = 5.0) -> None:
        """Wait until the projection satisfies ``predicate``."""
        async def _wait():
            async with self._updated:
                await self._updated.wait_for(lambda: predicate(self.items))
        await asyncio.wait_for(_wait(), timeout)

    async def _run(self) -> None:
        try:
            async for snapshot in self._subscription:
                # Settle optimistic local writes before trusting the snapshot
                await self.store.wait_for_pending_writes()
                self.apply_snapshot(snapshot)
                async with self._updated:
                    self._updated.notify_all()
        except TransientStoreError:
            logger.exception("Error fetching %s", self.collection)
        finally:
            self.state = SyncState.CLOSED

    def apply_snapshot(self, snapshot: Snapshot) -> List[Delta]:
        """
        Apply one snapshot and return the deltas it produced.

        The first snapshot only populates the projection; later snapshots
        report added/modified/removed documents to ``on_change``.
        """
        if self.state in (SyncState.UNINITIALIZED, SyncState.CLOSED):
            return []

        deltas: List[Delta] = []
        if not self.is_initial_load:
            deltas = self.diff(self._by_id, snapshot.documents)
            if self.on_change is not None:
                for delta in deltas:
                    try:
                        self.on_change(delta)
                    except Exception:
                        logger.exception("%s consumer failed on %s delta", self.collection, delta.kind.value)

        self._items = self.sorter(list(snapshot.documents))
        self._by_id = {document.id: document for document in snapshot.documents}

        if self.is_initial_load:
            self.is_initial_load = False
            self.state = SyncState.LIVE
            logger.info("Loaded %d %s", len(self._items), self.collection)
        return deltas

    @staticmethod
    def diff(previous: Dict[str, Any], documents) -> List[Delta]:
        deltas = []
        seen = set()
        for document in documents:
            seen.add(document.id)
            before = previous.get(document.id)
            if before is None:
                deltas.append(Delta(DeltaKind.ADDED, document))
            elif before != document:
                deltas.append(Delta(DeltaKind.MODIFIED, document))
        for document_id, document in previous.items():
            if document_id not in seen:
                deltas.append(Delta(DeltaKind.REMOVED, document))
        return deltas
