"""Status State Machine

Per document type, a declarative table of

    current status -> (Transition(target, guard, effect, automatic), ...)

Adding a document type means adding a table, not threading new branches
through shared logic.

Guards are pure: they read a TransitionContext (document, replayed aggregate,
ledger entries, override flag) and return a rejection reason or None.
Effects stamp timestamps on the document once the transition is applied.
Automatic edges are entered only through balance-threshold promotion after a
ledger entry; a user cannot request them directly.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Dict, FrozenSet, Mapping, Optional, Sequence, Tuple, Type
from src.domain.balance_ledger import BalanceAggregate, REVERSAL_KINDS, ZERO, unreversed_entries
from src.domain.document import (
    Document,
    DocumentType,
    InvoiceStatus,
    PurchaseOrderStatus,
    SalesOrderStatus,
    SupportCaseStatus,
    WorkOrderStatus,
)
from src.domain.errors import DocumentTerminal, InvalidTransition, LifecycleError
from src.domain.ledger_entry import LedgerEntry, LedgerEntryKind


@dataclass(frozen=True)
class TransitionContext:
    """Everything a guard may look at"""

    document: Document
    aggregate: BalanceAggregate
    entries: Sequence[LedgerEntry] = ()
    override: bool = False


Guard = Callable[[TransitionContext], Optional[str]]
Effect = Callable[[Document, datetime], None]


@dataclass(frozen=True)
class Transition:
    target: str
    guard: Optional[Guard] = None
    effect: Optional[Effect] = None
    automatic: bool = False


@dataclass(frozen=True)
class TransitionCheck:
    allowed: bool
    reason: Optional[str] = None
    error: Optional[Type[LifecycleError]] = None


@dataclass(frozen=True)
class LifecycleTable:
    """
    Complete lifecycle of one document type.

    terminal_statuses accept nothing further. settled_statuses accept only
    reversal entries (a paid invoice can be walked back by reversing a
    payment, nothing else). editable_statuses are the ones in which the
    document's fixed totals may still be amended.
    """

    document_type: DocumentType
    initial_status: str
    transitions: Mapping[str, Tuple[Transition, ...]]
    terminal_statuses: FrozenSet[str]
    editable_statuses: FrozenSet[str]
    ledger_statuses: Mapping[LedgerEntryKind, FrozenSet[str]] = field(default_factory=dict)
    settled_statuses: FrozenSet[str] = frozenset()

    @property
    def statuses(self) -> FrozenSet[str]:
        found = set(self.transitions) | set(self.terminal_statuses) | {self.initial_status}
        for edges in self.transitions.values():
            found.update(t.target for t in edges)
        return frozenset(found)

    def find(self, current: str, target: str) -> Optional[Transition]:
        for transition in self.transitions.get(current, ()):
            if transition.target == target:
                return transition
        return None

    def is_terminal(self, status: str) -> bool:
        return status in self.terminal_statuses


# ---------------------------------------------------------------------------
# Effects
# ---------------------------------------------------------------------------

def _stamp(attribute: str) -> Effect:
    def effect(document: Document, now: datetime) -> None:
        setattr(document, attribute, now)
    return effect


def _clear(attribute: str) -> Effect:
    def effect(document: Document, now: datetime) -> None:
        setattr(document, attribute, None)
    return effect


# ---------------------------------------------------------------------------
# Guards
# ---------------------------------------------------------------------------

def _no_receipts(ctx: TransitionContext) -> Optional[str]:
    if unreversed_entries(ctx.entries, LedgerEntryKind.RECEIPT):
        return "Cannot cancel a purchase order that has receipts"
    return None


def _fully_received_or_override(ctx: TransitionContext) -> Optional[str]:
    if ctx.override or ctx.aggregate.remaining <= ZERO:
        return None
    return (
        f"Purchase order {ctx.document.document_number} still has "
        f"{ctx.aggregate.remaining} units outstanding; close with override to accept a short receipt"
    )


def _production_recorded(ctx: TransitionContext) -> Optional[str]:
    recorded = ctx.aggregate.completed + ctx.aggregate.scrapped
    if recorded <= ZERO:
        return "Record completed or scrapped quantities before completing the work order"
    if recorded > ctx.aggregate.ceiling:
        return (
            f"Completed plus scrapped quantity ({recorded}) exceeds planned quantity "
            f"({ctx.aggregate.ceiling})"
        )
    return None


def _no_unreversed_payments(ctx: TransitionContext) -> Optional[str]:
    if unreversed_entries(ctx.entries, LedgerEntryKind.PAYMENT):
        return "Cannot void an invoice with payments. Please reverse payments first."
    return None


# ---------------------------------------------------------------------------
# Tables
# ---------------------------------------------------------------------------

_PO = PurchaseOrderStatus
_PO_CANCEL = Transition(_PO.CANCELLED.value, guard=_no_receipts, effect=_stamp("cancelled_at"))
_PO_PARTIAL = Transition(_PO.PARTIALLY_RECEIVED.value, automatic=True)
_PO_RECEIVED = Transition(_PO.RECEIVED.value, automatic=True)
_PO_CLOSE = Transition(_PO.CLOSED.value, guard=_fully_received_or_override, effect=_stamp("closed_at"))

PURCHASE_ORDER_LIFECYCLE = LifecycleTable(
    document_type=DocumentType.PURCHASE_ORDER,
    initial_status=_PO.DRAFT.value,
    transitions={
        _PO.DRAFT.value: (
            Transition(_PO.PENDING_APPROVAL.value),
            Transition(_PO.APPROVED.value, effect=_stamp("approved_at")),
            _PO_CANCEL,
        ),
        _PO.PENDING_APPROVAL.value: (
            Transition(_PO.APPROVED.value, effect=_stamp("approved_at")),
            _PO_CANCEL,
        ),
        _PO.APPROVED.value: (
            Transition(_PO.SENT.value, effect=_stamp("sent_at")),
            _PO_PARTIAL,
            _PO_RECEIVED,
            _PO_CANCEL,
        ),
        _PO.SENT.value: (_PO_PARTIAL, _PO_RECEIVED, _PO_CANCEL),
        _PO.PARTIALLY_RECEIVED.value: (_PO_RECEIVED, _PO_CLOSE),
        _PO.RECEIVED.value: (_PO_CLOSE,),
    },
    terminal_statuses=frozenset({_PO.CLOSED.value, _PO.CANCELLED.value}),
    editable_statuses=frozenset({_PO.DRAFT.value, _PO.PENDING_APPROVAL.value}),
    ledger_statuses={
        LedgerEntryKind.RECEIPT: frozenset(
            {_PO.APPROVED.value, _PO.SENT.value, _PO.PARTIALLY_RECEIVED.value}
        ),
    },
)

_SO = SalesOrderStatus

SALES_ORDER_LIFECYCLE = LifecycleTable(
    document_type=DocumentType.SALES_ORDER,
    initial_status=_SO.DRAFT.value,
    transitions={
        _SO.DRAFT.value: (Transition(_SO.PENDING_APPROVAL.value),),
        _SO.PENDING_APPROVAL.value: (
            Transition(_SO.APPROVED.value, effect=_stamp("approved_at")),
            Transition(_SO.CANCELLED.value, effect=_stamp("cancelled_at")),
        ),
        _SO.APPROVED.value: (Transition(_SO.PENDING_FULFILLMENT.value),),
        _SO.PENDING_FULFILLMENT.value: (Transition(_SO.FULFILLED.value, effect=_stamp("completed_at")),),
        _SO.FULFILLED.value: (Transition(_SO.CLOSED.value, effect=_stamp("closed_at")),),
    },
    terminal_statuses=frozenset({_SO.CLOSED.value, _SO.CANCELLED.value}),
    editable_statuses=frozenset({_SO.DRAFT.value, _SO.PENDING_APPROVAL.value}),
)

_WO = WorkOrderStatus
# Production may start straight from planned; purchase orders have no such shortcut.
_WO_START = Transition(_WO.IN_PROGRESS.value, effect=_stamp("started_at"))

WORK_ORDER_LIFECYCLE = LifecycleTable(
    document_type=DocumentType.WORK_ORDER,
    initial_status=_WO.PLANNED.value,
    transitions={
        _WO.PLANNED.value: (Transition(_WO.RELEASED.value), _WO_START),
        _WO.RELEASED.value: (_WO_START,),
        _WO.IN_PROGRESS.value: (
            Transition(_WO.COMPLETED.value, guard=_production_recorded, effect=_stamp("completed_at")),
        ),
        _WO.COMPLETED.value: (Transition(_WO.CLOSED.value, effect=_stamp("closed_at")),),
    },
    terminal_statuses=frozenset({_WO.CLOSED.value}),
    editable_statuses=frozenset({_WO.PLANNED.value}),
    ledger_statuses={
        LedgerEntryKind.COMPLETION: frozenset({_WO.IN_PROGRESS.value}),
        LedgerEntryKind.SCRAP: frozenset({_WO.IN_PROGRESS.value}),
    },
)

_INV = InvoiceStatus
_INV_VOID = Transition(_INV.VOID.value, guard=_no_unreversed_payments, effect=_stamp("voided_at"))

INVOICE_LIFECYCLE = LifecycleTable(
    document_type=DocumentType.INVOICE,
    initial_status=_INV.DRAFT.value,
    transitions={
        _INV.DRAFT.value: (Transition(_INV.OPEN.value),),
        _INV.OPEN.value: (
            Transition(_INV.PARTIALLY_PAID.value, automatic=True),
            Transition(_INV.PAID.value, effect=_stamp("paid_at"), automatic=True),
            _INV_VOID,
        ),
        _INV.PARTIALLY_PAID.value: (
            Transition(_INV.OPEN.value, automatic=True),
            Transition(_INV.PAID.value, effect=_stamp("paid_at"), automatic=True),
            _INV_VOID,
        ),
        _INV.PAID.value: (
            Transition(_INV.PARTIALLY_PAID.value, effect=_clear("paid_at"), automatic=True),
            Transition(_INV.OPEN.value, effect=_clear("paid_at"), automatic=True),
            _INV_VOID,
        ),
    },
    terminal_statuses=frozenset({_INV.VOID.value}),
    editable_statuses=frozenset({_INV.DRAFT.value}),
    ledger_statuses={
        LedgerEntryKind.PAYMENT: frozenset({_INV.OPEN.value, _INV.PARTIALLY_PAID.value}),
        LedgerEntryKind.PAYMENT_REVERSAL: frozenset({_INV.PARTIALLY_PAID.value, _INV.PAID.value}),
    },
    settled_statuses=frozenset({_INV.PAID.value}),
)

_CASE = SupportCaseStatus
_CASE_RESOLVE = Transition(_CASE.RESOLVED.value, effect=_stamp("resolved_at"))

SUPPORT_CASE_LIFECYCLE = LifecycleTable(
    document_type=DocumentType.SUPPORT_CASE,
    initial_status=_CASE.OPEN.value,
    transitions={
        _CASE.OPEN.value: (
            Transition(_CASE.IN_PROGRESS.value),
            Transition(_CASE.WAITING.value),
            _CASE_RESOLVE,
        ),
        _CASE.IN_PROGRESS.value: (Transition(_CASE.WAITING.value), _CASE_RESOLVE),
        _CASE.WAITING.value: (Transition(_CASE.IN_PROGRESS.value), _CASE_RESOLVE),
        _CASE.RESOLVED.value: (
            Transition(_CASE.CLOSED.value, effect=_stamp("closed_at")),
            Transition(_CASE.IN_PROGRESS.value, effect=_clear("resolved_at")),
        ),
    },
    terminal_statuses=frozenset({_CASE.CLOSED.value}),
    editable_statuses=frozenset({_CASE.OPEN.value}),
)

LIFECYCLE_TABLES: Dict[DocumentType, LifecycleTable] = {
    table.document_type: table
    for table in (
        PURCHASE_ORDER_LIFECYCLE,
        SALES_ORDER_LIFECYCLE,
        WORK_ORDER_LIFECYCLE,
        INVOICE_LIFECYCLE,
        SUPPORT_CASE_LIFECYCLE,
    )
}


def table_for(document_type: DocumentType) -> LifecycleTable:
    return LIFECYCLE_TABLES[DocumentType(document_type)]


def type_label(document_type: DocumentType) -> str:
    return DocumentType(document_type).value.replace("_", " ")


def describe(document: Document) -> str:
    """Human label such as 'purchase order PO-10001'"""
    return f"{type_label(document.document_type)} {document.document_number}"


# ---------------------------------------------------------------------------
# Operations
# ---------------------------------------------------------------------------

def can_transition(
    context: TransitionContext,
    target_status: str,
    automatic: bool = False,
) -> TransitionCheck:
    """
    Decide whether `context.document` may move to `target_status`.

    Pure: nothing on the document changes. `automatic` is set only by the
    ledger promotion path and unlocks automatic edges and settled statuses.
    """
    document = context.document
    table = table_for(document.document_type)
    current = document.status

    if target_status not in table.statuses:
        return TransitionCheck(
            allowed=False,
            reason=f"'{target_status}' is not a valid status for a {type_label(document.document_type)}",
            error=InvalidTransition,
        )

    if table.is_terminal(current):
        return TransitionCheck(
            allowed=False,
            reason=f"{describe(document).capitalize()} is {current}; no further status changes are accepted",
            error=DocumentTerminal,
        )

    if current in table.settled_statuses and not automatic:
        return TransitionCheck(
            allowed=False,
            reason=(
                f"{describe(document).capitalize()} is already {current}; "
                f"reverse a payment before changing its status"
            ),
            error=DocumentTerminal,
        )

    transition = table.find(current, target_status)
    if transition is None:
        return TransitionCheck(
            allowed=False,
            reason=f"No such transition for {describe(document)}: {current} -> {target_status}",
            error=InvalidTransition,
        )

    if transition.automatic and not automatic:
        return TransitionCheck(
            allowed=False,
            reason=(
                f"Status '{target_status}' is entered automatically from the ledger balance "
                f"and cannot be requested directly"
            ),
            error=InvalidTransition,
        )

    if transition.guard is not None:
        reason = transition.guard(context)
        if reason:
            return TransitionCheck(allowed=False, reason=reason, error=InvalidTransition)

    return TransitionCheck(allowed=True)


def apply_transition(
    context: TransitionContext,
    target_status: str,
    now: Optional[datetime] = None,
    automatic: bool = False,
) -> Document:
    """
    Move the document to `target_status` and run the edge's effect.

    Raises:
        InvalidTransition: edge missing, automatic-only, or guard rejected
        DocumentTerminal: document is terminal (or settled, for manual requests)
    """
    check = can_transition(context, target_status, automatic=automatic)
    if not check.allowed:
        raise check.error(check.reason)

    document = context.document
    now = now or datetime.utcnow()
    transition = table_for(document.document_type).find(document.status, target_status)

    document.status = target_status
    if transition.effect is not None:
        transition.effect(document, now)
    document.updated_at = now
    return document


def check_ledger_event(document: Document, kind: LedgerEntryKind) -> None:
    """
    Reject ledger events the document cannot take in its current status.

    Terminal documents and settled documents (for anything but a reversal)
    raise DocumentTerminal; kinds the type never carries, or statuses that do
    not take this kind, raise InvalidTransition.
    """
    kind = LedgerEntryKind(kind)
    table = table_for(document.document_type)
    status = document.status

    if table.is_terminal(status):
        raise DocumentTerminal(
            f"{describe(document).capitalize()} is {status}; no further ledger entries are accepted"
        )

    if status in table.settled_statuses and kind not in REVERSAL_KINDS.values():
        raise DocumentTerminal(f"{describe(document).capitalize()} is already fully {status}")

    accepted = table.ledger_statuses.get(kind)
    if accepted is None:
        raise InvalidTransition(f"{describe(document).capitalize()} does not accept {kind.value} entries")

    if status not in accepted:
        raise InvalidTransition(
            f"Cannot record {kind.value} on {describe(document)} while it is {status}"
        )
