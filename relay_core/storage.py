"""Per-conversation state storage.

Every conversation owns one record in a Bot Framework ``Storage`` backend.
The record holds independent named properties (the message counter and the
last captured conversation reference). Turns stage property writes in a
:class:`ConversationScope` and commit them together in a single write.

Usage:
    store = ConversationStore()
    scope = store.scope(conversation_id)
    counter = await scope.get(COUNTER_STATE, CounterState)
    counter.turn_count += 1
    await scope.set(COUNTER_STATE, counter)
    await scope.commit()
"""

from __future__ import annotations

import asyncio
from collections import defaultdict
from dataclasses import dataclass
from typing import Any, Callable, Generic, TypeVar

from botbuilder.core import MemoryStorage, Storage
from botbuilder.schema import ConversationReference

from config.logging import get_logger
from relay_core.models import CounterState, deserialize_reference, serialize_reference

logger = get_logger("relay_core.storage")

T = TypeVar("T")

# Backends add this bookkeeping key to dict records; it is not a property.
_ETAG_KEY = "e_tag"


@dataclass(frozen=True)
class StateProperty(Generic[T]):
    """A named property inside a conversation record and its codec."""

    name: str
    encode: Callable[[T], Any]
    decode: Callable[[Any], T]


COUNTER_STATE: StateProperty[CounterState] = StateProperty(
    "counter_state", CounterState.to_dict, CounterState.from_dict
)
CONVERSATION_REFERENCE: StateProperty[ConversationReference] = StateProperty(
    "conversation_reference", serialize_reference, deserialize_reference
)


class ConversationScope:
    """Turn-scoped view of one conversation's record.

    Reads hit storage once, on first access. Writes are staged until
    :meth:`commit`, which persists all of them in one storage write.
    """

    def __init__(self, store: ConversationStore, conversation_id: str) -> None:
        self._store = store
        self.conversation_id = conversation_id
        self._record: dict[str, Any] | None = None
        self._cache: dict[str, Any] = {}
        self._pending: dict[str, tuple[StateProperty[Any], Any]] = {}

    @property
    def has_pending(self) -> bool:
        return bool(self._pending)

    async def _load(self) -> dict[str, Any]:
        if self._record is None:
            self._record = await self._store.read_record(self.conversation_id)
        return self._record

    async def get(
        self,
        prop: StateProperty[T],
        default_factory: Callable[[], T] | None = None,
    ) -> T | None:
        """Return a property value, staging ``default_factory()`` when it is absent."""
        if prop.name in self._pending:
            return self._pending[prop.name][1]

        if prop.name in self._cache:
            return self._cache[prop.name]

        record = await self._load()
        raw = record.get(prop.name)
        if raw is not None:
            value = prop.decode(raw)
            self._cache[prop.name] = value
            return value

        if default_factory is None:
            return None

        value = default_factory()
        self._pending[prop.name] = (prop, value)
        return value

    async def set(self, prop: StateProperty[T], value: T) -> None:
        """Stage a property write; last write in the scope wins."""
        self._pending[prop.name] = (prop, value)

    async def commit(self) -> None:
        """Persist every staged property atomically for this conversation."""
        if not self._pending:
            return

        changes = {name: prop.encode(value) for name, (prop, value) in self._pending.items()}
        self._record = await self._store.merge_record(self.conversation_id, changes)
        self._cache.update({name: value for name, (_, value) in self._pending.items()})
        self._pending.clear()


class ConversationStore:
    """Durable mapping from conversation id to that conversation's state.

    Commits for the same conversation are serialized; different
    conversations never wait on each other. No entry is ever evicted, so a
    long-running process grows with the number of conversations it has seen.
    """

    def __init__(self, storage: Storage | None = None, namespace: str = "conversations") -> None:
        self._storage = storage or MemoryStorage()
        self._namespace = namespace
        self._locks: defaultdict[str, asyncio.Lock] = defaultdict(asyncio.Lock)

    def storage_key(self, conversation_id: str) -> str:
        return f"{self._namespace}/{conversation_id}"

    def scope(self, conversation_id: str) -> ConversationScope:
        """Open a turn-scoped accessor for a conversation."""
        return ConversationScope(self, conversation_id)

    async def read_record(self, conversation_id: str) -> dict[str, Any]:
        key = self.storage_key(conversation_id)
        items = await self._storage.read([key])
        record = items.get(key)
        if not isinstance(record, dict):
            return {}
        record = dict(record)
        record.pop(_ETAG_KEY, None)
        return record

    async def merge_record(self, conversation_id: str, changes: dict[str, Any]) -> dict[str, Any]:
        """Merge property changes into the latest stored record and write it back."""
        key = self.storage_key(conversation_id)
        async with self._locks[key]:
            record = await self.read_record(conversation_id)
            record.update(changes)
            await self._storage.write({key: dict(record)})

        logger.debug(
            f"Committed {', '.join(sorted(changes))}",
            extra={"conversation_id": conversation_id},
        )
        return record

    async def get(self, conversation_id: str) -> ConversationReference | None:
        """Return the last reference captured for a conversation."""
        return await self.scope(conversation_id).get(CONVERSATION_REFERENCE)

    async def set(self, conversation_id: str, reference: ConversationReference) -> None:
        """Store a reference for a conversation, replacing any previous one."""
        scope = self.scope(conversation_id)
        await scope.set(CONVERSATION_REFERENCE, reference)
        await scope.commit()

    async def get_counter(self, conversation_id: str) -> CounterState | None:
        return await self.scope(conversation_id).get(COUNTER_STATE)
