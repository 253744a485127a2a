"""Installment due dates.

Installment ``k`` falls due on the last calendar day of the month that is
``grace_months + k`` months after the registration month. A due date counts
as reached once its whole day has passed in the local UTC+2 offset, i.e. the
cutoff is midnight at the start of the following day.

Every search over installments is bounded by :data:`MAX_INSTALLMENTS` so that
iterative callers always terminate.
"""

from __future__ import annotations

from datetime import date, datetime
from typing import Iterator, List, Optional, Tuple

from .utils import add_months, day_end_exclusive, last_day_of_month

# Upper bound on installment indices searched (50 years of monthly payments).
MAX_INSTALLMENTS = 600


def due_date(registration_date: date, grace_months: int, installment_index: int) -> date:
    """Return the due date of installment ``installment_index`` (1-based)."""
    if installment_index < 1:
        raise ValueError(f"installment_index must be >= 1, got {installment_index}")
    month_start = add_months(date(registration_date.year, registration_date.month, 1),
                             grace_months + installment_index)
    return date(month_start.year, month_start.month,
                last_day_of_month(month_start.year, month_start.month))


def first_payment_due_date(registration_date: date, grace_months: int) -> date:
    return due_date(registration_date, grace_months, 1)


def due_cutoff(day: date) -> datetime:
    """Instant at which a due date counts as passed."""
    return day_end_exclusive(day)


def iter_due_dates(registration_date: date, grace_months: int,
                   first_index: int = 1) -> Iterator[Tuple[int, date]]:
    """Yield ``(index, due_date)`` pairs up to :data:`MAX_INSTALLMENTS`."""
    for index in range(first_index, MAX_INSTALLMENTS + 1):
        yield index, due_date(registration_date, grace_months, index)


def installments_due_by(registration_date: date, grace_months: int, as_of: datetime) -> List[date]:
    """Return every due date whose cutoff is on or before ``as_of``."""
    due: List[date] = []
    for _, day in iter_due_dates(registration_date, grace_months):
        if due_cutoff(day) > as_of:
            break
        due.append(day)
    return due


def next_installment(registration_date: date, grace_months: int,
                     as_of: datetime) -> Optional[Tuple[int, date]]:
    """Return the first installment not yet due at ``as_of``, if any remains."""
    for index, day in iter_due_dates(registration_date, grace_months):
        if due_cutoff(day) > as_of:
            return index, day
    return None
