"""Payment cycle date math

Cycles have a fixed length per billing frequency (30/90/365 days), not
calendar months, so MONTHLY cycles drift against month boundaries over time.
End dates are inclusive: a 30-day cycle starting Jan 1 ends Jan 30.
"""

from datetime import date, timedelta
from src.domain.subscription import BillingFrequency

CYCLE_DAYS: dict[BillingFrequency, int] = {
    BillingFrequency.MONTHLY: 30,
    BillingFrequency.QUARTERLY: 90,
    BillingFrequency.YEARLY: 365,
    BillingFrequency.USAGE_BASED: 30,
}

DEFAULT_CREATION_WINDOW_DAYS = 10


def days_for_billing_frequency(frequency: BillingFrequency) -> int:
    return CYCLE_DAYS[BillingFrequency(frequency)]


def next_cycle_start_date(previous_cycle_end_date: date) -> date:
    return previous_cycle_end_date + timedelta(days=1)


def cycle_end_date(cycle_start_date: date, frequency: BillingFrequency) -> date:
    return cycle_start_date + timedelta(days=days_for_billing_frequency(frequency) - 1)


def invoice_deadline(end_date: date) -> date:
    return end_date


def first_cycle_dates(subscription_start_date: date, frequency: BillingFrequency) -> tuple[date, date]:
    """Start and end of cycle #1, anchored on the subscription start date"""
    return subscription_start_date, cycle_end_date(subscription_start_date, frequency)


def next_cycle_dates(previous_cycle_end_date: date, frequency: BillingFrequency) -> tuple[date, date]:
    start = next_cycle_start_date(previous_cycle_end_date)
    return start, cycle_end_date(start, frequency)


def days_until(target: date, today: date) -> int:
    return (target - today).days


def should_create_next_cycle(
    last_cycle_end_date: date,
    today: date,
    window_days: int = DEFAULT_CREATION_WINDOW_DAYS,
) -> bool:
    """
    Whether the next cycle is due to be materialized

    True when the next cycle starts within window_days (inclusive) and has
    not already started: 0 <= days_until_next <= window_days.
    """
    days_until_next = days_until(next_cycle_start_date(last_cycle_end_date), today)
    return 0 <= days_until_next <= window_days


def is_invoice_overdue(deadline: date, today: date) -> bool:
    """The deadline day itself is still on time"""
    return deadline < today
