"""Core calculation engine for the debt calculator.

This module implements the two primitives shared by historical replay and
future projection:

* :func:`interest_accrued` computes simple daily interest (ACT/365) on a
  constant principal over a date range, splitting the range wherever the
  reference rate changes.
* :func:`apply_payment` allocates a payment to accrued interest first and to
  principal second.

On top of them it steps forward one due date at a time to build an upcoming
schedule (:func:`build_upcoming_schedule`) or a payoff projection
(:func:`project_payoff`). Both start from a :class:`LedgerState` and never
modify it.
"""

from __future__ import annotations

import logging
from datetime import datetime
from decimal import Decimal
from typing import Iterable, Iterator, List, Optional, Union

from .data_models import DebtConfig, LedgerState, PaymentApplication, Projection, ScheduleEntry
from .due_dates import due_cutoff, due_date, next_installment
from .rates import RateChange, RateTimeline
from .utils import ZERO, days_between, round_cents

logger = logging.getLogger(__name__)

DAYS_PER_YEAR = Decimal(365)

# Hard cap on projected periods; a projection that uses them all has not converged.
MAX_PROJECTION_PERIODS = 600

DEFAULT_UPCOMING_MONTHS = 12


def effective_rate(reference_rate: Decimal, margin: Decimal) -> Decimal:
    # a reference rate below the margin charges nothing rather than crediting interest
    return max(reference_rate - margin, Decimal(0))


def interest_accrued(
    timeline: Union[RateTimeline, Iterable[RateChange]],
    principal: Decimal,
    margin_below_reference: Decimal,
    start: datetime,
    end: datetime,
) -> Decimal:
    """Return the simple interest on ``principal`` from ``start`` to ``end``.

    Each sub-interval between rate changes is charged at the reference rate in
    effect at its start minus the margin, for ``days / 365`` of a year. A rate
    change effective exactly at ``end`` does not affect the result. The value
    is not rounded; callers round once per charging period.
    """
    if end <= start:
        return Decimal(0)
    if not isinstance(timeline, RateTimeline):
        timeline = RateTimeline(timeline)

    interest = Decimal(0)
    cursor = start
    rate = effective_rate(timeline.rate_at(start), margin_below_reference)
    for change in timeline.changes_between(start, end):
        interest += principal * rate * days_between(cursor, change.effective_from) / DAYS_PER_YEAR
        cursor = change.effective_from
        rate = effective_rate(change.rate, margin_below_reference)
    interest += principal * rate * days_between(cursor, end) / DAYS_PER_YEAR
    return interest


def apply_payment(
    principal_outstanding: Decimal,
    accrued_interest_unpaid: Decimal,
    payment_amount: Decimal,
) -> PaymentApplication:
    """Allocate ``payment_amount`` to interest first, then to principal.

    Whatever exceeds the full outstanding balance is returned as
    ``unapplied_remainder``; callers drop it rather than carrying it forward.
    A zero or negative amount allocates nothing.
    """
    remaining = payment_amount
    interest_portion = Decimal(0)
    principal_portion = Decimal(0)
    if remaining > 0:
        interest_portion = min(accrued_interest_unpaid, remaining)
        remaining -= interest_portion
        principal_portion = min(principal_outstanding, remaining)
        remaining -= principal_portion

    return PaymentApplication(
        principal_outstanding=principal_outstanding - principal_portion,
        accrued_interest_unpaid=accrued_interest_unpaid - interest_portion,
        interest_portion=interest_portion,
        principal_portion=principal_portion,
        unapplied_remainder=remaining,
    )


def check_payment_override(payment_override: Optional[Decimal]) -> None:
    if payment_override is not None and payment_override <= 0:
        raise ValueError(f"Payment override must be positive; got {payment_override}")


def _step_periods(
    config: DebtConfig,
    state: LedgerState,
    as_of: datetime,
    max_periods: int,
    payment_override: Optional[Decimal] = None,
) -> Iterator[ScheduleEntry]:
    """Yield one schedule entry per due date after ``as_of``.

    Stops after ``max_periods`` entries or once the balance reaches zero.
    """
    agreement = config.agreement
    registration = config.property.registration_date
    upcoming = next_installment(registration, agreement.grace_months, as_of)
    if upcoming is None:
        return
    first_index, _ = upcoming

    planned = round_cents(payment_override if payment_override is not None
                          else agreement.minimum_monthly_payment)
    state = state.copy()
    cursor = as_of

    for offset in range(max_periods):
        day = due_date(registration, agreement.grace_months, first_index + offset)
        cutoff = due_cutoff(day)

        interest = round_cents(
            interest_accrued(
                config.rate_timeline,
                state.principal_outstanding,
                agreement.margin_below_reference,
                cursor,
                cutoff,
            )
        )
        state.accrued_interest_unpaid = round_cents(state.accrued_interest_unpaid + interest)
        starting_balance = round_cents(state.balance)
        # never pay more than is owed, so the last payment may be smaller
        payment = min(starting_balance, planned)

        applied = apply_payment(state.principal_outstanding, state.accrued_interest_unpaid, payment)
        state.principal_outstanding = round_cents(applied.principal_outstanding)
        state.accrued_interest_unpaid = round_cents(applied.accrued_interest_unpaid)
        ending_balance = round_cents(state.balance)

        yield ScheduleEntry(
            due_date=day,
            payment_amount=payment,
            interest_charged=interest,
            interest_portion=round_cents(applied.interest_portion),
            principal_portion=round_cents(applied.principal_portion),
            starting_balance=starting_balance,
            ending_balance=ending_balance,
        )

        cursor = cutoff
        if ending_balance <= 0:
            return


def build_upcoming_schedule(
    config: DebtConfig,
    state: LedgerState,
    as_of: datetime,
    months: int = DEFAULT_UPCOMING_MONTHS,
    payment_override: Optional[Decimal] = None,
) -> List[ScheduleEntry]:
    """Return up to ``months`` schedule entries following ``as_of``.

    Each period pays the minimum monthly payment (or ``payment_override``),
    clamped to the balance owed at that due date.
    """
    check_payment_override(payment_override)
    if months <= 0:
        return []
    return list(_step_periods(config, state, as_of, months, payment_override))


def project_payoff(
    config: DebtConfig,
    state: LedgerState,
    as_of: datetime,
    payment_override: Optional[Decimal] = None,
    max_periods: int = MAX_PROJECTION_PERIODS,
) -> Projection:
    """Step forward until the balance is paid off or ``max_periods`` run out.

    If the payment never outpaces accruing interest the loop exhausts the
    cap; the result then has ``converged=False`` and ``payoff_date`` is merely
    the last simulated due date.
    """
    check_payment_override(payment_override)
    if round_cents(state.balance) <= 0:
        return Projection(
            payoff_date=None,
            payments_remaining=0,
            total_interest_remaining=ZERO,
            total_payments_remaining=ZERO,
            converged=True,
        )

    payoff_date = None
    payments_remaining = 0
    total_interest = ZERO
    total_payments = ZERO
    converged = False

    for entry in _step_periods(config, state, as_of, max_periods, payment_override):
        payments_remaining += 1
        total_interest = round_cents(total_interest + entry.interest_charged)
        total_payments = round_cents(total_payments + entry.payment_amount)
        payoff_date = entry.due_date
        if entry.ending_balance <= 0:
            converged = True

    if converged:
        logger.debug("Projected payoff on %s after %d payments", payoff_date, payments_remaining)
    else:
        logger.warning(
            "Projection did not converge after %d payments; balance is never paid off",
            payments_remaining,
        )

    return Projection(
        payoff_date=payoff_date,
        payments_remaining=payments_remaining,
        total_interest_remaining=total_interest,
        total_payments_remaining=total_payments,
        converged=converged,
    )
