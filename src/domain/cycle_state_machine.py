"""Payment Cycle State Machine

Every allowed cycle_status change is listed in TRANSITIONS. Anything not in
the table is rejected with InvalidCycleTransition.

    PENDING_APPROVAL --approve--> PENDING_PAYMENT --record payment--> PAYMENT_RECORDED
    PENDING_APPROVAL --decline--> REJECTED
    PAYMENT_RECORDED --upload invoice--> INVOICE_UPLOADED --complete--> COMPLETED
    PAYMENT_RECORDED --deadline passed--> CANCELLED
"""

from enum import Enum
from src.domain.payment_cycle import CycleStatus


class CycleAction(str, Enum):
    """Events that move a payment cycle between statuses"""
    POC_APPROVE = "POC_APPROVE"
    POC_DECLINE = "POC_DECLINE"
    RECORD_PAYMENT = "RECORD_PAYMENT"
    UPLOAD_INVOICE = "UPLOAD_INVOICE"
    COMPLETE = "COMPLETE"
    AUTO_CANCEL = "AUTO_CANCEL"
    FINANCE_CANCEL = "FINANCE_CANCEL"


class InvalidCycleTransition(Exception):
    """Raised when an action is not permitted from the current status"""

    def __init__(self, status: CycleStatus, action: CycleAction):
        self.status = status
        self.action = action
        super().__init__(
            f"Cannot apply {action.value} to a payment cycle in {status.value} status"
        )


TRANSITIONS: dict[tuple[CycleStatus, CycleAction], CycleStatus] = {
    (CycleStatus.PENDING_APPROVAL, CycleAction.POC_APPROVE): CycleStatus.PENDING_PAYMENT,
    (CycleStatus.PENDING_APPROVAL, CycleAction.POC_DECLINE): CycleStatus.REJECTED,
    (CycleStatus.PENDING_PAYMENT, CycleAction.RECORD_PAYMENT): CycleStatus.PAYMENT_RECORDED,
    (CycleStatus.APPROVED, CycleAction.RECORD_PAYMENT): CycleStatus.PAYMENT_RECORDED,
    (CycleStatus.PAYMENT_RECORDED, CycleAction.UPLOAD_INVOICE): CycleStatus.INVOICE_UPLOADED,
    (CycleStatus.INVOICE_UPLOADED, CycleAction.COMPLETE): CycleStatus.COMPLETED,
    (CycleStatus.PAYMENT_RECORDED, CycleAction.AUTO_CANCEL): CycleStatus.CANCELLED,
    (CycleStatus.PENDING_APPROVAL, CycleAction.FINANCE_CANCEL): CycleStatus.CANCELLED,
    (CycleStatus.PENDING_PAYMENT, CycleAction.FINANCE_CANCEL): CycleStatus.CANCELLED,
    (CycleStatus.APPROVED, CycleAction.FINANCE_CANCEL): CycleStatus.CANCELLED,
    (CycleStatus.PAYMENT_RECORDED, CycleAction.FINANCE_CANCEL): CycleStatus.CANCELLED,
}

TERMINAL_STATUSES = frozenset({
    CycleStatus.REJECTED,
    CycleStatus.COMPLETED,
    CycleStatus.CANCELLED,
})


def transition(status: CycleStatus, action: CycleAction) -> CycleStatus:
    """
    Resolve the next status for an action

    Args:
        status: Current cycle status
        action: Action being applied

    Returns:
        The status the cycle moves to

    Raises:
        InvalidCycleTransition: If (status, action) is not in the table
    """
    try:
        return TRANSITIONS[(status, action)]
    except KeyError:
        raise InvalidCycleTransition(status, action) from None


def can_apply(status: CycleStatus, action: CycleAction) -> bool:
    return (status, action) in TRANSITIONS


def allowed_actions(status: CycleStatus) -> list[CycleAction]:
    return [action for (source, action) in TRANSITIONS if source == status]


def is_terminal(status: CycleStatus) -> bool:
    return status in TERMINAL_STATUSES


def check_table_covers_all_statuses(table: dict[tuple[CycleStatus, CycleAction], CycleStatus]) -> None:
    """Every terminal status is a dead end and every other status has a way out"""
    sources = {source for (source, _action) in table}
    for status in CycleStatus:
        if is_terminal(status) and status in sources:
            raise RuntimeError(f"terminal status {status.value} has outgoing actions")
        if not is_terminal(status) and status not in sources:
            raise RuntimeError(f"status {status.value} has no outgoing actions")


check_table_covers_all_statuses(TRANSITIONS)
