"""Payment cycle lifecycle use cases"""
from .approve_cycle import ApproveCycle
from .decline_cycle import DeclineCycle
from .record_payment import RecordPayment
from .upload_invoice import UploadInvoice
from .cancel_cycle import CancelCycle
from .create_initial_cycle import CreateInitialCycle
from .list_cycles import ListSubscriptionCycles
from .create_next_cycles import CreateNextCycles
from .auto_cancel_overdue import AutoCancelOverdueCycles
from .send_renewal_reminders import SendRenewalReminders
from .dtos import (
    Actor,
    ApproveCycleCommandDTO,
    DeclineCycleCommandDTO,
    RecordPaymentCommandDTO,
    UploadInvoiceCommandDTO,
    CancelCycleCommandDTO,
    CreateInitialCycleCommandDTO,
    PaymentCycleDTO,
    PaymentCycleListDTO,
    CreatedCycleDTO,
    CycleCreationResultDTO,
    CancelledCycleDTO,
    AutoCancelResultDTO,
    RenewalReminderResultDTO,
)

__all__ = [
    "ApproveCycle",
    "DeclineCycle",
    "RecordPayment",
    "UploadInvoice",
    "CancelCycle",
    "CreateInitialCycle",
    "ListSubscriptionCycles",
    "CreateNextCycles",
    "AutoCancelOverdueCycles",
    "SendRenewalReminders",
    "Actor",
    "ApproveCycleCommandDTO",
    "DeclineCycleCommandDTO",
    "RecordPaymentCommandDTO",
    "UploadInvoiceCommandDTO",
    "CancelCycleCommandDTO",
    "CreateInitialCycleCommandDTO",
    "PaymentCycleDTO",
    "PaymentCycleListDTO",
    "CreatedCycleDTO",
    "CycleCreationResultDTO",
    "CancelledCycleDTO",
    "AutoCancelResultDTO",
    "RenewalReminderResultDTO",
]
