from .unit_of_work import UnitOfWork
from .document_lock import DocumentLock
from .notification_service import NotificationService

__all__ = [
    "UnitOfWork",
    "DocumentLock",
    "NotificationService",
]
