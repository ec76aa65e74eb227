"""Document Lifecycle API Routes

FastAPI routes for document creation, status changes and ledger events.
"""

from fastapi import APIRouter, Depends, Query, status
from sqlmodel.ext.asyncio.session import AsyncSession

from src.api.schemas.document_request import (
    AmendTotalsRequestSchema,
    CreateDocumentRequestSchema,
    LedgerEventRequestSchema,
    ReverseEntryRequestSchema,
    StatusChangeRequestSchema,
)
from src.app.use_cases.lifecycle.dtos import (
    AmendTotalsCommandDTO,
    CreateDocumentCommandDTO,
    DocumentHistoryResponseDTO,
    DocumentStateResponseDTO,
    LedgerEventCommandDTO,
    LedgerEventResponseDTO,
    ReconciliationResultDTO,
    ReverseEntryCommandDTO,
    StatusChangeCommandDTO,
    TransitionCheckResponseDTO,
)
from src.app.use_cases.lifecycle import (
    AmendDocumentTotals,
    CheckTransition,
    CreateDocument,
    GetDocumentHistory,
    GetDocumentState,
    ReconcileDocuments,
    RequestLedgerEvent,
    RequestStatusChange,
    ReverseLedgerEntry,
)
from src.app.services.document_lock import DocumentLock
from src.app.services.notification_service import NotificationService
from src.adapter.repositories.document_repository import SqlAlchemyDocumentRepository
from src.adapter.repositories.ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from src.adapter.repositories.status_transition_repository import SqlAlchemyStatusTransitionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.depends import get_document_lock, get_notification_service, get_session
from src.api.error import ClientError

router = APIRouter(prefix="/lifecycle/documents", tags=["Document Lifecycle"])


def _error_example(description: str, code: str, message: str) -> dict:
    return {
        "description": description,
        "content": {
            "application/json": {
                "example": {"error": {"code": code, "message": message}}
            }
        },
    }


NOT_FOUND = _error_example("Document not found", "DOCUMENT_NOT_FOUND", "Document 42 not found")
CONFLICT = _error_example(
    "Transition not allowed",
    "INVALID_TRANSITION",
    "Cannot cancel a purchase order that has receipts",
)
BOUND_VIOLATION = _error_example(
    "Balance bound violated",
    "BALANCE_BOUND_VIOLATION",
    "Payment amount (500.00) exceeds balance due (400.00)",
)


def _mutation_use_case(use_case_class, session, document_lock, notification_service):
    return use_case_class(
        uow=SqlAlchemyUnitOfWork(session),
        document_repo=SqlAlchemyDocumentRepository(session),
        entry_repo=SqlAlchemyLedgerEntryRepository(session),
        transition_repo=SqlAlchemyStatusTransitionRepository(session),
        document_lock=document_lock,
        notification_service=notification_service,
    )


@router.post(
    "",
    response_model=DocumentStateResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: _error_example("Validation error", "VALIDATION_ERROR", "An invoice requires total_amount"),
    },
)
async def create_document(
    request: CreateDocumentRequestSchema,
    session: AsyncSession = Depends(get_session),
):
    """
    Create a document in the initial status of its type.

    **Request body:**
    - `document_type` (required): purchase_order, sales_order, work_order, invoice, support_case
    - `total_amount`: required for invoices
    - `planned_quantity`: required for purchase orders and work orders

    **Returns:**
    - 201: Document created (e.g. PO-10001 in draft)
    - 400: Missing or negative totals
    """
    uow = SqlAlchemyUnitOfWork(session)
    document_repo = SqlAlchemyDocumentRepository(session)

    command = CreateDocumentCommandDTO(**request.model_dump())

    result = await CreateDocument(uow, document_repo).execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{document_id}",
    response_model=DocumentStateResponseDTO,
    responses={404: NOT_FOUND},
)
async def get_document_state(document_id: int, session: AsyncSession = Depends(get_session)):
    """Current status and the aggregate replayed from the document's ledger."""
    use_case = GetDocumentState(
        SqlAlchemyDocumentRepository(session), SqlAlchemyLedgerEntryRepository(session)
    )
    result = await use_case.execute(document_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{document_id}/history",
    response_model=DocumentHistoryResponseDTO,
    responses={404: NOT_FOUND},
)
async def get_document_history(document_id: int, session: AsyncSession = Depends(get_session)):
    """Ledger entries and status transitions, oldest first."""
    use_case = GetDocumentHistory(
        SqlAlchemyDocumentRepository(session),
        SqlAlchemyLedgerEntryRepository(session),
        SqlAlchemyStatusTransitionRepository(session),
    )
    result = await use_case.execute(document_id)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.patch(
    "/{document_id}/totals",
    response_model=DocumentStateResponseDTO,
    responses={404: NOT_FOUND, 409: CONFLICT},
)
async def amend_document_totals(
    document_id: int,
    request: AmendTotalsRequestSchema,
    session: AsyncSession = Depends(get_session),
    document_lock: DocumentLock = Depends(get_document_lock),
):
    """Change total_amount / planned_quantity while the document is still editable."""
    use_case = AmendDocumentTotals(
        uow=SqlAlchemyUnitOfWork(session),
        document_repo=SqlAlchemyDocumentRepository(session),
        document_lock=document_lock,
    )
    command = AmendTotalsCommandDTO(document_id=document_id, **request.model_dump())
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.get(
    "/{document_id}/transitions/check",
    response_model=TransitionCheckResponseDTO,
    responses={404: NOT_FOUND},
)
async def check_transition(
    document_id: int,
    target_status: str = Query(..., min_length=1, description="Status to check"),
    override: bool = Query(False, description="Evaluate as if overriding soft guards"),
    session: AsyncSession = Depends(get_session),
):
    """
    Dry-run a status change.

    Always 200 when the document exists; `allowed` and `reason` say whether
    POST /status would succeed right now.
    """
    use_case = CheckTransition(
        SqlAlchemyDocumentRepository(session), SqlAlchemyLedgerEntryRepository(session)
    )
    result = await use_case.execute(document_id, target_status, override)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/{document_id}/status",
    response_model=DocumentStateResponseDTO,
    responses={404: NOT_FOUND, 409: CONFLICT},
)
async def request_status_change(
    document_id: int,
    request: StatusChangeRequestSchema,
    session: AsyncSession = Depends(get_session),
    document_lock: DocumentLock = Depends(get_document_lock),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Move a document to a new status.

    Balance-driven statuses (partially_received, received, partially_paid,
    paid) cannot be requested; they follow from ledger events.

    **Returns:**
    - 200: Status changed
    - 404: Document not found
    - 409: Transition not allowed or document terminal
    """
    use_case = _mutation_use_case(RequestStatusChange, session, document_lock, notification_service)
    command = StatusChangeCommandDTO(
        document_id=document_id,
        target_status=request.target_status,
        override=request.override,
    )
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/{document_id}/ledger",
    response_model=LedgerEventResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={404: NOT_FOUND, 409: CONFLICT, 422: BOUND_VIOLATION},
)
async def request_ledger_event(
    document_id: int,
    request: LedgerEventRequestSchema,
    session: AsyncSession = Depends(get_session),
    document_lock: DocumentLock = Depends(get_document_lock),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """
    Record a payment, receipt, completion or scrap.

    **Example request:**
    ```json
    {"kind": "payment", "amount": "600.00", "reference": "CHK-4411"}
    ```

    **Returns:**
    - 201: Entry recorded; status may have been promoted
    - 404: Document not found
    - 409: Document terminal, or status does not accept this entry
    - 422: Amount would push the balance out of range
    """
    use_case = _mutation_use_case(RequestLedgerEvent, session, document_lock, notification_service)
    command = LedgerEventCommandDTO(document_id=document_id, **request.model_dump())
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/{document_id}/ledger/{entry_id}/reverse",
    response_model=LedgerEventResponseDTO,
    status_code=status.HTTP_201_CREATED,
    responses={404: NOT_FOUND, 409: CONFLICT},
)
async def reverse_ledger_entry(
    document_id: int,
    entry_id: int,
    request: ReverseEntryRequestSchema,
    session: AsyncSession = Depends(get_session),
    document_lock: DocumentLock = Depends(get_document_lock),
    notification_service: NotificationService = Depends(get_notification_service),
):
    """Reverse a payment. A paid invoice drops back to partially_paid or open."""
    use_case = _mutation_use_case(ReverseLedgerEntry, session, document_lock, notification_service)
    command = ReverseEntryCommandDTO(document_id=document_id, entry_id=entry_id, **request.model_dump())
    result = await use_case.execute(command)

    if result.is_err():
        raise ClientError(result.error)

    return result.value


@router.post(
    "/reconciliation",
    response_model=ReconciliationResultDTO,
)
async def reconcile_documents(session: AsyncSession = Depends(get_session)):
    """Compare cached balances and statuses against a replay of every ledger. Read-only."""
    use_case = ReconcileDocuments(
        SqlAlchemyDocumentRepository(session), SqlAlchemyLedgerEntryRepository(session)
    )
    result = await use_case.execute()

    if result.is_err():
        raise ClientError(result.error, status_code=status.HTTP_500_INTERNAL_SERVER_ERROR)

    return result.value
