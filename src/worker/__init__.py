"""Background workers for the document lifecycle service"""
from .document_reconciler import DocumentReconcilerWorker

__all__ = ["DocumentReconcilerWorker"]
