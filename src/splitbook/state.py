"""Per-conversation state of the bot."""

from __future__ import annotations

import asyncio
import weakref
from typing import Optional

from splitbook.db.base import LedgerStore
from splitbook.services.ledger import Ledger


class LedgerRegistry:
    """Hands out one :class:`Ledger` per conversation, all sharing that conversation's lock.

    Locks are only kept while some ledger handle still refers to them, so chats
    that went quiet do not keep a lock around.
    """

    def __init__(self, store: Optional[LedgerStore] = None) -> None:
        self._store = store
        self._locks: weakref.WeakValueDictionary[int, asyncio.Lock] = weakref.WeakValueDictionary()

    def bind(self, store: LedgerStore) -> None:
        self._store = store
        self._locks.clear()

    @property
    def store(self) -> LedgerStore:
        if self._store is None:
            raise RuntimeError("ledger store is not initialized")
        return self._store

    def lock_for(self, conversation_id: int) -> asyncio.Lock:
        lock = self._locks.get(conversation_id)
        if lock is None:
            lock = asyncio.Lock()
            self._locks[conversation_id] = lock
        return lock

    def ledger(self, conversation_id: int) -> Ledger:
        return Ledger(conversation_id, self.store, self.lock_for(conversation_id))


registry = LedgerRegistry()
