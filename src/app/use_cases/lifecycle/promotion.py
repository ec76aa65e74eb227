"""Ledger-driven status promotion

Shared by the use cases that append ledger entries: after the aggregate is
refolded, the status implied by the new balance is entered through the
document's automatic edge and recorded as a ledger-triggered transition.
"""

import logging
from typing import Optional, Sequence
from src.app.repositories.status_transition_repository import StatusTransitionRepository
from src.app.services.notification_service import NotificationService
from src.domain.balance_ledger import BalanceAggregate, infer_status
from src.domain.document import Document
from src.domain.ledger_entry import LedgerEntry
from src.domain.state_machine import TransitionContext, apply_transition
from src.domain.status_transition import StatusTransition, TransitionTrigger

logger = logging.getLogger(__name__)


async def promote_from_balance(
    document: Document,
    aggregate: BalanceAggregate,
    entries: Sequence[LedgerEntry],
    entry: LedgerEntry,
    transition_repo: StatusTransitionRepository,
) -> Optional[StatusTransition]:
    """
    Move the document to the status its post-entry balance implies

    Args:
        document: Locked document the entry was appended to
        aggregate: Aggregate after the entry
        entries: Full entry sequence including the new entry
        entry: The entry that triggered the promotion
        transition_repo: Repository to record the transition in

    Returns:
        The recorded StatusTransition, or None when the status is unchanged
    """
    target = infer_status(document.document_type, document.status, aggregate)
    if target is None:
        return None

    from_status = document.status
    context = TransitionContext(document=document, aggregate=aggregate, entries=tuple(entries))
    apply_transition(context, target, automatic=True)

    transition = await transition_repo.create(
        StatusTransition(
            document_id=document.id,
            from_status=from_status,
            to_status=target,
            trigger=TransitionTrigger.LEDGER,
            ledger_entry_id=entry.id,
        )
    )
    logger.info(
        f"{document.document_number} promoted {from_status} -> {target} by ledger entry {entry.id}"
    )
    return transition


async def notify_status_change(
    notification_service: Optional[NotificationService],
    document: Document,
    transition: Optional[StatusTransition],
) -> None:
    """Announce a committed status change; failures are logged and dropped"""
    if notification_service is None or transition is None:
        return
    try:
        await notification_service.send_status_change(document, transition)
    except Exception as e:
        logger.error(f"Failed to send status change notification for {document.document_number}: {e}")
