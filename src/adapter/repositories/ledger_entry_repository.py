"""SQLAlchemy implementation of LedgerEntryRepository

Append-only persistence for LedgerEntry entities.
"""

from typing import List, Optional
from sqlmodel import select, func
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.ledger_entry_repository import LedgerEntryRepository
from src.domain.ledger_entry import LedgerEntry, LedgerEntryKind, REFERENCE_PREFIXES

FIRST_SEQUENCE = 10001


class SqlAlchemyLedgerEntryRepository(LedgerEntryRepository):
    """
    SQLAlchemy implementation of LedgerEntryRepository

    Features:
    - Immutable append-only entries (no update or delete methods)
    - Entries returned in append (ID) order so folds replay deterministically
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, entry: LedgerEntry) -> LedgerEntry:
        self.session.add(entry)
        await self.session.flush()
        await self.session.refresh(entry)
        return entry

    async def get_by_id(self, entry_id: int) -> Optional[LedgerEntry]:
        stmt = select(LedgerEntry).where(LedgerEntry.id == entry_id)
        result = await self.session.execute(stmt)
        return result.scalar_one_or_none()

    async def list_by_document(self, document_id: int) -> List[LedgerEntry]:
        stmt = (
            select(LedgerEntry)
            .where(LedgerEntry.document_id == document_id)
            .order_by(LedgerEntry.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())

    async def generate_reference(self, kind: LedgerEntryKind) -> str:
        """
        Generate the next reference for an entry kind

        Format: PREFIX-NNNNN starting at 10001 (PMT-10001, IR-10001, ...).
        """
        statement = (
            select(func.count())
            .select_from(LedgerEntry)
            .where(LedgerEntry.kind == kind)
        )
        result = await self.session.execute(statement)
        count = result.scalar_one()

        return f"{REFERENCE_PREFIXES[LedgerEntryKind(kind)]}-{FIRST_SEQUENCE + count}"
