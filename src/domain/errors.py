"""Lifecycle Domain Errors

Typed, caller-recoverable errors raised by the state machine and the balance
ledger. Use cases translate them into `libs.result.Error` values carrying the
same code, so callers can tell "illegal now" (INVALID_TRANSITION) from
"illegal forever" (DOCUMENT_TERMINAL).
"""


class LifecycleError(ValueError):
    """
    Base class for document lifecycle rule violations.

    This is a domain error, not a technical error. The message is meant to be
    shown to the user verbatim.
    """

    code = "LIFECYCLE_ERROR"


class InvalidTransition(LifecycleError):
    """Target status not reachable from the current status, or guard failed"""

    code = "INVALID_TRANSITION"


class BalanceBoundViolation(LifecycleError):
    """Ledger entry would push an aggregate outside its legal range"""

    code = "BALANCE_BOUND_VIOLATION"


class DocumentTerminal(LifecycleError):
    """Document is closed, cancelled, void or settled"""

    code = "DOCUMENT_TERMINAL"


class DocumentNotFound(LifecycleError):
    code = "DOCUMENT_NOT_FOUND"


class LedgerEntryNotFound(DocumentNotFound):
    code = "LEDGER_ENTRY_NOT_FOUND"


class InvalidTotals(LifecycleError):
    """Fixed totals missing, non-positive or finer than the stored scale"""

    code = "VALIDATION_ERROR"
