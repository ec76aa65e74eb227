"""SQLAlchemy implementation of StatusTransitionRepository"""

from typing import List
from sqlmodel import select
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.repositories.status_transition_repository import StatusTransitionRepository
from src.domain.status_transition import StatusTransition


class SqlAlchemyStatusTransitionRepository(StatusTransitionRepository):
    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, transition: StatusTransition) -> StatusTransition:
        self.session.add(transition)
        await self.session.flush()
        await self.session.refresh(transition)
        return transition

    async def list_by_document(self, document_id: int) -> List[StatusTransition]:
        stmt = (
            select(StatusTransition)
            .where(StatusTransition.document_id == document_id)
            .order_by(StatusTransition.id)
        )
        result = await self.session.execute(stmt)
        return list(result.scalars().all())
