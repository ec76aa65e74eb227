from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.orm import sessionmaker
from sqlmodel.ext.asyncio.session import AsyncSession
from config import ApplicationConfig
from src.adapter.services.document_lock import InProcessDocumentLock
from src.adapter.services.notification_service import create_notification_service

engine = create_async_engine(ApplicationConfig.DB_URI, echo=False, future=True)

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
)

# One lock registry per process; every request for a document id goes through it
document_lock = InProcessDocumentLock()
notification_service = create_notification_service(ApplicationConfig.NOTIFICATION_WEBHOOK)


async def get_session() -> AsyncSession:
    async with AsyncSessionLocal() as session:
        yield session


def get_document_lock() -> InProcessDocumentLock:
    return document_lock


def get_notification_service():
    return notification_service
