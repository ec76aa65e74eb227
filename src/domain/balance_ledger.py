"""Balance Ledger

Derives a document's aggregate (amount due, quantity received, quantity
remaining) by folding its ledger entries left to right, and validates a
prospective entry against the post-entry bounds.

Nothing here touches persistence: callers pass the owning document's fixed
ceiling and the full entry sequence, and get a new immutable aggregate back.
"""

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Dict, Iterable, List, Optional, Sequence, Tuple
from src.domain.document import (
    Document,
    DocumentType,
    InvoiceStatus,
    PurchaseOrderStatus,
    WorkOrderStatus,
)
from src.domain.errors import (
    BalanceBoundViolation,
    InvalidTotals,
    InvalidTransition,
    LedgerEntryNotFound,
)
from src.domain.ledger_entry import LedgerEntry, LedgerEntryKind

ZERO = Decimal("0")

# Decimal places kept by the Numeric(18, 6) amount columns
AMOUNT_SCALE = 6

# Entry kinds each document type can carry
LEDGER_KINDS: Dict[DocumentType, frozenset] = {
    DocumentType.INVOICE: frozenset({LedgerEntryKind.PAYMENT, LedgerEntryKind.PAYMENT_REVERSAL}),
    DocumentType.PURCHASE_ORDER: frozenset({LedgerEntryKind.RECEIPT}),
    DocumentType.WORK_ORDER: frozenset({LedgerEntryKind.COMPLETION, LedgerEntryKind.SCRAP}),
}

# Original kind -> kind of the entry that reverses it
REVERSAL_KINDS: Dict[LedgerEntryKind, LedgerEntryKind] = {
    LedgerEntryKind.PAYMENT: LedgerEntryKind.PAYMENT_REVERSAL,
}


@dataclass(frozen=True)
class BalanceAggregate:
    """
    Derived running balance of one document.

    `ceiling` is the fixed total the ledger counts against: invoice total,
    ordered quantity or planned quantity. Only the component matching the
    document type is ever non-zero.
    """

    document_type: DocumentType
    ceiling: Decimal = ZERO
    paid: Decimal = ZERO
    received: Decimal = ZERO
    completed: Decimal = ZERO
    scrapped: Decimal = ZERO

    @property
    def applied(self) -> Decimal:
        """Total counted against the ceiling so far"""
        return self.paid + self.received + self.completed + self.scrapped

    @property
    def remaining(self) -> Decimal:
        return self.ceiling - self.applied

    def as_dict(self) -> Dict[str, Decimal]:
        if self.document_type == DocumentType.INVOICE:
            return {"total": self.ceiling, "paid": self.paid, "due": self.remaining}
        if self.document_type == DocumentType.PURCHASE_ORDER:
            return {"ordered": self.ceiling, "received": self.received, "remaining": self.remaining}
        if self.document_type == DocumentType.WORK_ORDER:
            return {
                "planned": self.ceiling,
                "completed": self.completed,
                "scrapped": self.scrapped,
                "remaining": self.remaining,
            }
        return {}


def exceeds_scale(value: Decimal) -> bool:
    """True when `value` cannot be stored without rounding"""
    if not value.is_finite():
        return True
    return value.normalize().as_tuple().exponent < -AMOUNT_SCALE


def validate_totals(
    document_type: DocumentType,
    total_amount: Optional[Decimal],
    planned_quantity: Optional[Decimal],
) -> None:
    """
    Check the fixed totals a document is created or amended with.

    Invoices need a positive total_amount, purchase and work orders a
    positive planned_quantity. Values finer than AMOUNT_SCALE are rejected.
    """
    document_type = DocumentType(document_type)
    label = document_type.value.replace("_", " ")

    for name, value in (("total_amount", total_amount), ("planned_quantity", planned_quantity)):
        if value is None:
            continue
        if value < ZERO:
            raise InvalidTotals(f"{name} cannot be negative")
        if exceeds_scale(value):
            raise InvalidTotals(f"{name} cannot have more than {AMOUNT_SCALE} decimal places")

    if document_type == DocumentType.INVOICE:
        if total_amount is None or total_amount <= ZERO:
            raise InvalidTotals(f"An {label} requires a total_amount greater than 0")

    if document_type in (DocumentType.PURCHASE_ORDER, DocumentType.WORK_ORDER):
        if planned_quantity is None or planned_quantity <= ZERO:
            raise InvalidTotals(f"A {label} requires a planned_quantity greater than 0")


def ceiling_for(document: Document) -> Decimal:
    """Fixed total the document's ledger is bounded by"""
    document_type = DocumentType(document.document_type)
    if document_type == DocumentType.INVOICE:
        return document.total_amount or ZERO
    if document_type in (DocumentType.PURCHASE_ORDER, DocumentType.WORK_ORDER):
        return document.planned_quantity or ZERO
    return ZERO


def apply_entry(aggregate: BalanceAggregate, kind: LedgerEntryKind, amount: Decimal) -> BalanceAggregate:
    """Fold one signed entry into the aggregate without validating it"""
    kind = LedgerEntryKind(kind)
    if kind in (LedgerEntryKind.PAYMENT, LedgerEntryKind.PAYMENT_REVERSAL):
        return replace(aggregate, paid=aggregate.paid + amount)
    if kind == LedgerEntryKind.RECEIPT:
        return replace(aggregate, received=aggregate.received + amount)
    if kind == LedgerEntryKind.COMPLETION:
        return replace(aggregate, completed=aggregate.completed + amount)
    return replace(aggregate, scrapped=aggregate.scrapped + amount)


def fold_entries(
    document_type: DocumentType,
    ceiling: Decimal,
    entries: Iterable[LedgerEntry],
) -> BalanceAggregate:
    """Replay the full entry sequence from an empty aggregate"""
    aggregate = BalanceAggregate(document_type=DocumentType(document_type), ceiling=ceiling)
    for entry in entries:
        aggregate = apply_entry(aggregate, entry.kind, entry.amount)
    return aggregate


def current_aggregate(document: Document, entries: Iterable[LedgerEntry]) -> BalanceAggregate:
    return fold_entries(document.document_type, ceiling_for(document), entries)


def cached_aggregate(document: Document) -> BalanceAggregate:
    """Aggregate as stored in the document's cache columns"""
    return BalanceAggregate(
        document_type=DocumentType(document.document_type),
        ceiling=ceiling_for(document),
        paid=document.amount_paid or ZERO,
        received=document.quantity_received or ZERO,
        completed=document.quantity_completed or ZERO,
        scrapped=document.quantity_scrapped or ZERO,
    )


def store_aggregate(document: Document, aggregate: BalanceAggregate) -> None:
    """Write the folded aggregate into the document's cache columns"""
    document.amount_paid = aggregate.paid
    document.quantity_received = aggregate.received
    document.quantity_completed = aggregate.completed
    document.quantity_scrapped = aggregate.scrapped


def validate_entry(
    aggregate: BalanceAggregate,
    kind: LedgerEntryKind,
    amount: Decimal,
) -> BalanceAggregate:
    """
    Check a prospective entry against the post-entry bounds.

    Returns the post-entry aggregate. Raises BalanceBoundViolation when the
    entry would leave the legal range; the caller's state is untouched.
    Over-large amounts are rejected, never clamped to what is left.
    """
    kind = LedgerEntryKind(kind)
    if kind not in LEDGER_KINDS.get(aggregate.document_type, frozenset()):
        raise InvalidTransition(
            f"A {aggregate.document_type.value.replace('_', ' ')} does not accept {kind.value} entries"
        )

    if exceeds_scale(amount):
        raise BalanceBoundViolation(
            f"{kind.value.capitalize()} amount ({amount}) has more than {AMOUNT_SCALE} decimal places"
        )

    if kind not in REVERSAL_KINDS.values() and amount <= ZERO:
        raise BalanceBoundViolation(f"{kind.value.capitalize()} amount must be greater than 0")

    after = apply_entry(aggregate, kind, amount)

    if after.paid < ZERO:
        raise BalanceBoundViolation(
            f"Reversal would reduce amount paid below zero (paid: {aggregate.paid})"
        )
    if after.completed < ZERO or after.scrapped < ZERO or after.received < ZERO:
        raise BalanceBoundViolation("Recorded quantity cannot go below zero")

    if after.applied > after.ceiling:
        if kind == LedgerEntryKind.PAYMENT:
            message = f"Payment amount ({amount}) exceeds balance due ({aggregate.remaining})"
        elif kind == LedgerEntryKind.RECEIPT:
            message = (
                f"Receipt quantity ({amount}) exceeds remaining ordered quantity "
                f"({aggregate.remaining})"
            )
        else:
            message = (
                f"Completed plus scrapped quantity ({after.completed + after.scrapped}) "
                f"would exceed planned quantity ({after.ceiling})"
            )
        raise BalanceBoundViolation(message)

    return after


def unreversed_entries(entries: Sequence[LedgerEntry], kind: LedgerEntryKind) -> List[LedgerEntry]:
    """Entries of `kind` that no later reversal points at"""
    reversed_ids = {e.reverses_entry_id for e in entries if e.reverses_entry_id is not None}
    return [e for e in entries if e.kind == kind and e.id not in reversed_ids]


def build_reversal(entries: Sequence[LedgerEntry], entry_id: int) -> Tuple[LedgerEntryKind, Decimal, LedgerEntry]:
    """
    Work out the reversal for entry `entry_id`.

    Returns (reversal kind, negated amount, original entry). Only kinds in
    REVERSAL_KINDS can be reversed, and each entry at most once.
    """
    original = next((e for e in entries if e.id == entry_id), None)
    if original is None:
        raise LedgerEntryNotFound(f"Ledger entry {entry_id} not found on this document")

    original_kind = LedgerEntryKind(original.kind)
    if original_kind not in REVERSAL_KINDS:
        raise InvalidTransition(f"{original_kind.value.capitalize()} entries cannot be reversed")

    if any(e.reverses_entry_id == entry_id for e in entries):
        raise InvalidTransition(f"Ledger entry {entry_id} has already been reversed")

    return REVERSAL_KINDS[original_kind], -original.amount, original


def infer_status(document_type: DocumentType, status: str, aggregate: BalanceAggregate) -> Optional[str]:
    """
    Status implied by the balance after a ledger mutation.

    Returns the target status, or None when the current status already
    matches the balance (or the status is not balance-driven).
    """
    document_type = DocumentType(document_type)
    target: Optional[str] = None

    if document_type == DocumentType.INVOICE and status in (
        InvoiceStatus.OPEN, InvoiceStatus.PARTIALLY_PAID, InvoiceStatus.PAID
    ):
        if aggregate.paid == ZERO:
            target = InvoiceStatus.OPEN.value
        elif aggregate.paid < aggregate.ceiling:
            target = InvoiceStatus.PARTIALLY_PAID.value
        else:
            target = InvoiceStatus.PAID.value

    elif document_type == DocumentType.PURCHASE_ORDER and status in (
        PurchaseOrderStatus.APPROVED, PurchaseOrderStatus.SENT, PurchaseOrderStatus.PARTIALLY_RECEIVED
    ):
        if aggregate.ceiling > ZERO and aggregate.received >= aggregate.ceiling:
            target = PurchaseOrderStatus.RECEIVED.value
        elif aggregate.received > ZERO:
            target = PurchaseOrderStatus.PARTIALLY_RECEIVED.value

    elif document_type == DocumentType.WORK_ORDER and status == WorkOrderStatus.IN_PROGRESS:
        if aggregate.ceiling > ZERO and aggregate.applied >= aggregate.ceiling:
            target = WorkOrderStatus.COMPLETED.value

    if target == status:
        return None
    return target
