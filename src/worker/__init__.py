"""Background workers for the payment cycle jobs"""
from .cycle_creation import CycleCreationWorker
from .invoice_auto_cancel import InvoiceAutoCancelWorker
from .renewal_reminder import RenewalReminderWorker

__all__ = ["CycleCreationWorker", "InvoiceAutoCancelWorker", "RenewalReminderWorker"]
