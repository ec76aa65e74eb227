"""In-process DocumentLock

Keyed asyncio locks, one per document id with a pending request. Entries are
dropped as soon as nobody holds or waits for them, so the registry does not
grow with the number of documents ever touched.

Combined with SELECT FOR UPDATE in the document repository this closes the
check-then-act window for a single service process; a multi-process
deployment relies on the database row lock alone.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, Dict
from src.app.services.document_lock import DocumentLock

logger = logging.getLogger(__name__)


class InProcessDocumentLock(DocumentLock):
    def __init__(self):
        self._locks: Dict[int, asyncio.Lock] = {}
        self._holders: Dict[int, int] = {}

    @asynccontextmanager
    async def hold(self, document_id: int) -> AsyncIterator[None]:
        lock = self._locks.get(document_id)
        if lock is None:
            lock = self._locks[document_id] = asyncio.Lock()
        self._holders[document_id] = self._holders.get(document_id, 0) + 1

        if lock.locked():
            logger.debug(f"Waiting for document {document_id} lock")

        try:
            async with lock:
                yield
        finally:
            self._holders[document_id] -= 1
            if self._holders[document_id] == 0:
                del self._holders[document_id]
                del self._locks[document_id]

    def active_count(self) -> int:
        """Number of documents currently held or waited on"""
        return len(self._locks)
