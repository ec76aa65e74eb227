"""Integration tests for document lifecycles against a real database

Each scenario drives the use cases through SQLAlchemy repositories on a
temporary SQLite database, then checks status, replayed aggregate, cached
columns and history.
"""

import asyncio
import pytest
from decimal import Decimal

from src.adapter.repositories.document_repository import SqlAlchemyDocumentRepository
from src.adapter.repositories.ledger_entry_repository import SqlAlchemyLedgerEntryRepository
from src.adapter.repositories.status_transition_repository import SqlAlchemyStatusTransitionRepository
from src.adapter.services.unit_of_work import SqlAlchemyUnitOfWork
from src.app.use_cases.lifecycle import (
    CreateDocument,
    CreateDocumentCommandDTO,
    GetDocumentHistory,
    GetDocumentState,
    LedgerEventCommandDTO,
    ReconcileDocuments,
    RequestLedgerEvent,
    RequestStatusChange,
    ReverseEntryCommandDTO,
    ReverseLedgerEntry,
    StatusChangeCommandDTO,
)
from src.domain.document import DocumentType
from src.domain.ledger_entry import LedgerEntryKind


class Lifecycle:
    """Wires the lifecycle use cases onto one session"""

    def __init__(self, session, document_lock):
        self.session = session
        self.document_lock = document_lock
        self.uow = SqlAlchemyUnitOfWork(session)
        self.document_repo = SqlAlchemyDocumentRepository(session)
        self.entry_repo = SqlAlchemyLedgerEntryRepository(session)
        self.transition_repo = SqlAlchemyStatusTransitionRepository(session)

    def _mutation(self, use_case_class):
        return use_case_class(
            uow=self.uow,
            document_repo=self.document_repo,
            entry_repo=self.entry_repo,
            transition_repo=self.transition_repo,
            document_lock=self.document_lock,
        )

    async def create(self, document_type, **totals):
        result = await CreateDocument(self.uow, self.document_repo).execute(
            CreateDocumentCommandDTO(document_type=document_type, **totals)
        )
        assert result.is_ok(), result.error
        return result.value

    async def move(self, document_id, target_status, override=False):
        return await self._mutation(RequestStatusChange).execute(
            StatusChangeCommandDTO(document_id=document_id, target_status=target_status, override=override)
        )

    async def record(self, document_id, kind, amount):
        return await self._mutation(RequestLedgerEvent).execute(
            LedgerEventCommandDTO(document_id=document_id, kind=kind, amount=Decimal(amount))
        )

    async def reverse(self, document_id, entry_id):
        return await self._mutation(ReverseLedgerEntry).execute(
            ReverseEntryCommandDTO(document_id=document_id, entry_id=entry_id)
        )

    async def state(self, document_id):
        result = await GetDocumentState(self.document_repo, self.entry_repo).execute(document_id)
        return result.value

    async def history(self, document_id):
        result = await GetDocumentHistory(
            self.document_repo, self.entry_repo, self.transition_repo
        ).execute(document_id)
        return result.value


@pytest.fixture
def lifecycle(db_session, document_lock):
    return Lifecycle(db_session, document_lock)


@pytest.mark.asyncio
class TestInvoiceLifecycle:
    async def test_invoice_paid_in_two_payments(self, lifecycle):
        """
        Given: Invoice of 1000.00, opened
        When: 600 then 400 are paid, then 0.01 more is attempted
        Then: partially_paid/400 due, paid/0 due, then DOCUMENT_TERMINAL
        """
        invoice = await lifecycle.create(DocumentType.INVOICE, total_amount=Decimal("1000.00"))
        assert invoice.status == "draft"
        assert (await lifecycle.move(invoice.document_id, "open")).is_ok()

        first = await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "600")
        assert first.value.status == "partially_paid"
        assert first.value.aggregate["due"] == Decimal("400")

        second = await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "400")
        assert second.value.status == "paid"
        assert second.value.aggregate["due"] == Decimal("0")

        third = await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "0.01")
        assert third.is_err()
        assert third.error.code == "DOCUMENT_TERMINAL"

        state = await lifecycle.state(invoice.document_id)
        assert state.status == "paid"
        assert state.aggregate["paid"] == Decimal("1000")

        history = await lifecycle.history(invoice.document_id)
        assert [e.reference for e in history.entries] == ["PMT-10001", "PMT-10002"]
        assert [(t.from_status, t.to_status, t.trigger) for t in history.transitions] == [
            ("draft", "open", "manual"),
            ("open", "partially_paid", "ledger"),
            ("partially_paid", "paid", "ledger"),
        ]

    async def test_reversal_reopens_paid_invoice_once(self, lifecycle):
        invoice = await lifecycle.create(DocumentType.INVOICE, total_amount=Decimal("1000.00"))
        await lifecycle.move(invoice.document_id, "open")
        await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "600")
        paid = await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "400")

        reversed_ = await lifecycle.reverse(invoice.document_id, paid.value.entry.entry_id)
        again = await lifecycle.reverse(invoice.document_id, paid.value.entry.entry_id)

        assert reversed_.value.status == "partially_paid"
        assert reversed_.value.aggregate["due"] == Decimal("400")
        assert reversed_.value.entry.amount == Decimal("-400")
        assert again.error.code == "INVALID_TRANSITION"

        history = await lifecycle.history(invoice.document_id)
        assert [e.kind for e in history.entries] == ["payment", "payment", "payment_reversal"]

    async def test_payment_and_reversal_fold_to_empty_ledger(self, lifecycle):
        invoice = await lifecycle.create(DocumentType.INVOICE, total_amount=Decimal("250.00"))
        await lifecycle.move(invoice.document_id, "open")
        before = await lifecycle.state(invoice.document_id)

        payment = await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "250")
        assert payment.value.status == "paid"
        await lifecycle.reverse(invoice.document_id, payment.value.entry.entry_id)

        after = await lifecycle.state(invoice.document_id)
        assert after.status == before.status == "open"
        assert after.aggregate == before.aggregate
        assert len((await lifecycle.history(invoice.document_id)).entries) == 2

    async def test_void_requires_reversed_payments(self, lifecycle):
        invoice = await lifecycle.create(DocumentType.INVOICE, total_amount=Decimal("500.00"))
        await lifecycle.move(invoice.document_id, "open")
        payment = await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "100")

        blocked = await lifecycle.move(invoice.document_id, "void")
        assert blocked.error.code == "INVALID_TRANSITION"
        assert blocked.error.message == "Cannot void an invoice with payments. Please reverse payments first."

        await lifecycle.reverse(invoice.document_id, payment.value.entry.entry_id)
        voided = await lifecycle.move(invoice.document_id, "void")
        assert voided.value.status == "void"

        late = await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "1")
        assert late.error.code == "DOCUMENT_TERMINAL"

    async def test_rejected_payment_changes_nothing(self, lifecycle):
        invoice = await lifecycle.create(DocumentType.INVOICE, total_amount=Decimal("100.00"))
        await lifecycle.move(invoice.document_id, "open")
        await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "60")
        before = await lifecycle.state(invoice.document_id)

        result = await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "50")

        assert result.error.code == "BALANCE_BOUND_VIOLATION"
        after = await lifecycle.state(invoice.document_id)
        assert after.status == before.status == "partially_paid"
        assert after.aggregate == before.aggregate
        assert len((await lifecycle.history(invoice.document_id)).entries) == 1


    async def test_payment_finer_than_stored_scale_rejected(self, lifecycle):
        """
        Given: Invoice of 1000, opened
        When: a payment of 999.9999999 is requested
        Then: rejected unchanged; a payment of the full total still settles it
        """
        invoice = await lifecycle.create(DocumentType.INVOICE, total_amount=Decimal("1000"))
        await lifecycle.move(invoice.document_id, "open")

        rejected = await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "999.9999999")
        assert rejected.error.code == "BALANCE_BOUND_VIOLATION"

        state = await lifecycle.state(invoice.document_id)
        assert state.status == "open"
        assert state.aggregate["paid"] == Decimal("0")

        paid = await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "1000")
        assert paid.value.status == "paid"

        replayed = await lifecycle.state(invoice.document_id)
        assert replayed.status == "paid"
        assert replayed.aggregate["due"] == Decimal("0")


@pytest.mark.asyncio
class TestPurchaseOrderLifecycle:
    async def test_fully_received_order_cannot_be_cancelled(self, lifecycle):
        order = await lifecycle.create(DocumentType.PURCHASE_ORDER, planned_quantity=Decimal("10"))
        assert order.document_number == "PO-10001"
        await lifecycle.move(order.document_id, "approved")

        received = await lifecycle.record(order.document_id, LedgerEntryKind.RECEIPT, "10")
        assert received.value.status == "received"
        assert received.value.entry.reference == "IR-10001"

        cancel = await lifecycle.move(order.document_id, "cancelled")
        assert cancel.error.code == "INVALID_TRANSITION"

        closed = await lifecycle.move(order.document_id, "closed")
        assert closed.value.status == "closed"

        late = await lifecycle.record(order.document_id, LedgerEntryKind.RECEIPT, "1")
        assert late.error.code == "DOCUMENT_TERMINAL"

    async def test_partial_receipt_blocks_cancel_and_needs_override_to_close(self, lifecycle):
        order = await lifecycle.create(DocumentType.PURCHASE_ORDER, planned_quantity=Decimal("10"))
        await lifecycle.move(order.document_id, "approved")
        await lifecycle.move(order.document_id, "sent")

        partial = await lifecycle.record(order.document_id, LedgerEntryKind.RECEIPT, "4")
        assert partial.value.status == "partially_received"
        assert partial.value.aggregate["remaining"] == Decimal("6")

        cancel = await lifecycle.move(order.document_id, "cancelled")
        assert cancel.error.message == "Cannot cancel a purchase order that has receipts"

        over = await lifecycle.record(order.document_id, LedgerEntryKind.RECEIPT, "7")
        assert over.error.code == "BALANCE_BOUND_VIOLATION"

        short_close = await lifecycle.move(order.document_id, "closed")
        assert short_close.error.code == "INVALID_TRANSITION"

        forced = await lifecycle.move(order.document_id, "closed", override=True)
        assert forced.value.status == "closed"
        history = await lifecycle.history(order.document_id)
        assert history.transitions[-1].override is True

    async def test_receipt_before_approval_rejected(self, lifecycle):
        order = await lifecycle.create(DocumentType.PURCHASE_ORDER, planned_quantity=Decimal("5"))

        result = await lifecycle.record(order.document_id, LedgerEntryKind.RECEIPT, "1")

        assert result.error.code == "INVALID_TRANSITION"


@pytest.mark.asyncio
class TestWorkOrderLifecycle:
    async def test_completion_and_scrap_complete_the_order(self, lifecycle):
        """
        Given: Work order planned for 20, in progress
        When: 15 completed and 3 scrapped, then 2 more completed
        Then: remaining 2 while in_progress, then 0 and completed
        """
        order = await lifecycle.create(DocumentType.WORK_ORDER, planned_quantity=Decimal("20"))
        assert order.status == "planned"
        started = await lifecycle.move(order.document_id, "in_progress")
        assert started.is_ok()

        await lifecycle.record(order.document_id, LedgerEntryKind.COMPLETION, "15")
        scrap = await lifecycle.record(order.document_id, LedgerEntryKind.SCRAP, "3")
        assert scrap.value.status == "in_progress"
        assert scrap.value.aggregate["remaining"] == Decimal("2")

        done = await lifecycle.record(order.document_id, LedgerEntryKind.COMPLETION, "2")
        assert done.value.status == "completed"
        assert done.value.aggregate["remaining"] == Decimal("0")

        extra = await lifecycle.record(order.document_id, LedgerEntryKind.COMPLETION, "1")
        assert extra.error.code == "INVALID_TRANSITION"

        assert (await lifecycle.move(order.document_id, "closed")).value.status == "closed"

    async def test_zero_planned_quantity_cannot_be_created(self, lifecycle):
        result = await CreateDocument(lifecycle.uow, lifecycle.document_repo).execute(
            CreateDocumentCommandDTO(document_type=DocumentType.WORK_ORDER, planned_quantity=Decimal("0"))
        )

        assert result.error.code == "VALIDATION_ERROR"
        assert await lifecycle.document_repo.get_by_id(1) is None


@pytest.mark.asyncio
class TestStatusOnlyDocuments:
    async def test_sales_order_walks_its_lifecycle(self, lifecycle):
        order = await lifecycle.create(DocumentType.SALES_ORDER)

        for target in ("pending_approval", "approved", "pending_fulfillment", "fulfilled", "closed"):
            result = await lifecycle.move(order.document_id, target)
            assert result.is_ok(), result.error
            assert result.value.status == target

        assert (await lifecycle.move(order.document_id, "draft")).error.code == "DOCUMENT_TERMINAL"

    async def test_support_case_takes_no_ledger_entries(self, lifecycle):
        case = await lifecycle.create(DocumentType.SUPPORT_CASE)
        assert case.document_number == "CASE-10001"

        result = await lifecycle.record(case.document_id, LedgerEntryKind.PAYMENT, "10")

        assert result.error.code == "INVALID_TRANSITION"


@pytest.mark.asyncio
class TestConcurrency:
    async def test_concurrent_payments_serialize(self, session_factory, document_lock):
        """
        Given: Open invoice of 1000.00
        When: Two payments of 600 arrive at the same time on separate sessions
        Then: Exactly one succeeds, the other is a BALANCE_BOUND_VIOLATION
        """
        async with session_factory() as setup_session:
            setup = Lifecycle(setup_session, document_lock)
            invoice = await setup.create(DocumentType.INVOICE, total_amount=Decimal("1000.00"))
            await setup.move(invoice.document_id, "open")

        async def pay():
            async with session_factory() as session:
                return await Lifecycle(session, document_lock).record(
                    invoice.document_id, LedgerEntryKind.PAYMENT, "600"
                )

        results = await asyncio.gather(pay(), pay())

        assert sorted(r.is_ok() for r in results) == [False, True]
        failed = next(r for r in results if r.is_err())
        assert failed.error.code == "BALANCE_BOUND_VIOLATION"

        async with session_factory() as check_session:
            state = await Lifecycle(check_session, document_lock).state(invoice.document_id)
        assert state.status == "partially_paid"
        assert state.aggregate["paid"] == Decimal("600")
        assert document_lock.active_count() == 0


@pytest.mark.asyncio
class TestReconciliation:
    async def test_clean_ledgers_and_tampered_cache(self, lifecycle, db_session):
        invoice = await lifecycle.create(DocumentType.INVOICE, total_amount=Decimal("1000.00"))
        await lifecycle.move(invoice.document_id, "open")
        await lifecycle.record(invoice.document_id, LedgerEntryKind.PAYMENT, "600")
        await lifecycle.create(DocumentType.SUPPORT_CASE)

        use_case = ReconcileDocuments(lifecycle.document_repo, lifecycle.entry_repo)

        clean = await use_case.execute()
        assert clean.value.total_documents_checked == 1
        assert clean.value.discrepancies_found == 0

        document = await lifecycle.document_repo.get_by_id(invoice.document_id)
        document.amount_paid = Decimal("500")
        db_session.add(document)
        await db_session.commit()

        drifted = await use_case.execute()
        assert drifted.value.discrepancies_found == 1
        assert drifted.value.discrepancies[0].replayed["paid"] == Decimal("600")
