import logging
from sqlmodel.ext.asyncio.session import AsyncSession
from src.app.services.unit_of_work import UnitOfWork

logger = logging.getLogger(__name__)


class SqlAlchemyUnitOfWork(UnitOfWork):
    """
    Unit of work over one AsyncSession.

    The lifecycle use cases share the session with their repositories, so a
    commit applies the ledger entry, the transition record and the refreshed
    document cache together, and a rollback discards all three.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def commit(self):
        await self.session.commit()

    async def rollback(self):
        if self.session.in_transaction():
            logger.debug("Rolling back lifecycle transaction")
        await self.session.rollback()
