"""Ledger replay and snapshots.

The ledger is never stored: every query rebuilds it by replaying the payment
history in chronological order against a fresh :class:`LedgerState`.
Interest for the stretch leading up to a payment is charged (rounded once)
before that payment is applied, so a payment never changes interest charged
for an earlier period.

:func:`snapshot` combines the replayed balances with the arrears status and
hands the final state to the projection engine for the upcoming schedule and
payoff projection.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from typing import Optional, Union

from .data_models import (
    DebtConfig,
    LedgerState,
    NextPayment,
    PaymentComparison,
    PaymentStatus,
    Snapshot,
    Totals,
)
from .due_dates import first_payment_due_date, installments_due_by
from .engine import (
    DEFAULT_UPCOMING_MONTHS,
    apply_payment,
    build_upcoming_schedule,
    check_payment_override,
    effective_rate,
    interest_accrued,
    project_payoff,
)
from .errors import InvalidAsOfError
from .utils import LOCAL_TZ, ZERO, as_datetime, day_start, round_cents

logger = logging.getLogger(__name__)

ASSUMPTIONS = [
    "Interest accrues daily using ACT/365, based on the repo rate timeline provided.",
    "Payments are applied to accrued interest first, then capital.",
    "Due dates are treated as the last calendar day of each month, with the first instalment due after the grace period.",
    "Future projections assume the last known repo rate continues until you add a new change in the JSON.",
]


@dataclass
class Replay:
    """Balances and running totals after replaying payments up to ``as_of``."""

    as_of: datetime
    state: LedgerState
    total_interest_accrued: Decimal = ZERO
    total_interest_paid: Decimal = ZERO
    total_principal_paid: Decimal = ZERO
    actual_paid_to_date: Decimal = ZERO
    payments_applied: int = 0


def resolve_as_of(as_of: Union[str, datetime, None]) -> datetime:
    """Turn an optional ``as_of`` into an instant.

    Bare dates mean the end of that day; ``None`` means now.
    """
    if as_of is None:
        return datetime.now(LOCAL_TZ)
    if isinstance(as_of, datetime):
        if as_of.tzinfo is None:
            return as_of.replace(tzinfo=LOCAL_TZ)
        return as_of
    return as_datetime(as_of, upper_bound=True, field="as_of")


def registration_start(config: DebtConfig) -> datetime:
    return day_start(config.property.registration_date)


def replay_payments(config: DebtConfig, as_of: datetime) -> Replay:
    """Replay every positive payment made on or before ``as_of``.

    Raises
    ------
    InvalidAsOfError
        If ``as_of`` precedes the registration date.
    """
    start = registration_start(config)
    if as_of < start:
        raise InvalidAsOfError(as_of, start)

    agreement = config.agreement
    timeline = config.rate_timeline
    replay = Replay(
        as_of=as_of,
        state=LedgerState(round_cents(agreement.principal), ZERO),
    )
    state = replay.state
    cursor = start

    for payment in sorted(config.payments, key=lambda p: p.paid_at):
        if payment.paid_at > as_of:
            break
        if payment.amount <= 0:
            continue

        interest = round_cents(
            interest_accrued(timeline, state.principal_outstanding,
                             agreement.margin_below_reference, cursor, payment.paid_at)
        )
        replay.total_interest_accrued = round_cents(replay.total_interest_accrued + interest)
        state.accrued_interest_unpaid = round_cents(state.accrued_interest_unpaid + interest)

        amount = round_cents(payment.amount)
        applied = apply_payment(state.principal_outstanding, state.accrued_interest_unpaid, amount)
        state.principal_outstanding = round_cents(applied.principal_outstanding)
        state.accrued_interest_unpaid = round_cents(applied.accrued_interest_unpaid)
        if applied.unapplied_remainder > 0:
            logger.info("Payment on %s overpays the balance by %s; remainder not carried forward",
                        payment.paid_at.isoformat(), round_cents(applied.unapplied_remainder))

        replay.total_interest_paid = round_cents(replay.total_interest_paid + applied.interest_portion)
        replay.total_principal_paid = round_cents(replay.total_principal_paid + applied.principal_portion)
        replay.actual_paid_to_date = round_cents(replay.actual_paid_to_date + amount)
        replay.payments_applied += 1
        cursor = payment.paid_at

        if state.principal_outstanding <= 0 and state.accrued_interest_unpaid <= 0:
            break

    interest = round_cents(
        interest_accrued(timeline, state.principal_outstanding,
                         agreement.margin_below_reference, cursor, as_of)
    )
    replay.total_interest_accrued = round_cents(replay.total_interest_accrued + interest)
    state.accrued_interest_unpaid = round_cents(state.accrued_interest_unpaid + interest)

    logger.debug("Replayed %d payments up to %s", replay.payments_applied, as_of.isoformat())
    return replay


def expected_paid_to_date(config: DebtConfig, as_of: datetime) -> Decimal:
    """Minimum payments required by every installment due on or before ``as_of``."""
    due = installments_due_by(config.property.registration_date, config.agreement.grace_months, as_of)
    return round_cents(config.agreement.minimum_monthly_payment * len(due))


def first_overdue_due_date(config: DebtConfig, as_of: datetime, actual_paid: Decimal) -> Optional[date]:
    """Earliest due date at which cumulative minimum payments exceed ``actual_paid``."""
    minimum = config.agreement.minimum_monthly_payment
    if actual_paid >= expected_paid_to_date(config, as_of):
        return None

    remaining = actual_paid
    for day in installments_due_by(config.property.registration_date, config.agreement.grace_months, as_of):
        if remaining < minimum:
            return day
        remaining -= minimum
    return None


def snapshot(
    config: DebtConfig,
    as_of: Union[str, datetime, None] = None,
    upcoming_months: int = DEFAULT_UPCOMING_MONTHS,
    payment_override: Optional[Decimal] = None,
) -> Snapshot:
    """Compute the standing of ``config`` as of ``as_of``.

    Parameters
    ----------
    config: DebtConfig
        A validated configuration.
    as_of: str, datetime or None
        The instant to report on. Bare dates mean the end of that day and
        ``None`` means now.
    upcoming_months: int
        Number of future due dates to include in ``upcoming_schedule``.
    payment_override: Decimal, optional
        A what-if amount paid at each future due date instead of the minimum
        monthly payment. Affects only the schedule and projection.
    """
    at = resolve_as_of(as_of)
    replay = replay_payments(config, at)
    state = replay.state
    agreement = config.agreement

    current_reference_rate = config.rate_timeline.rate_at(at)
    expected = expected_paid_to_date(config, at)
    actual = replay.actual_paid_to_date
    outstanding = round_cents(state.balance)

    if outstanding > 0:
        schedule = build_upcoming_schedule(config, state, at, upcoming_months, payment_override)
    else:
        schedule = []
    projection = project_payoff(config, state, at, payment_override)

    if schedule:
        head = schedule[0]
        next_payment = NextPayment(
            due_date=head.due_date,
            amount_due=head.payment_amount,
            minimum_amount=round_cents(agreement.minimum_monthly_payment),
            interest_charged_to_due_date=head.interest_charged,
        )
    else:
        next_payment = NextPayment()

    return Snapshot(
        as_of=at,
        property=config.property,
        parties=config.parties,
        agreement=agreement,
        first_payment_due_date=first_payment_due_date(config.property.registration_date, agreement.grace_months),
        current_reference_rate=current_reference_rate,
        current_interest_rate=effective_rate(current_reference_rate, agreement.margin_below_reference),
        totals=Totals(
            principal_original=round_cents(agreement.principal),
            principal_remaining=state.principal_outstanding,
            accrued_interest_unpaid=state.accrued_interest_unpaid,
            total_interest_accrued=replay.total_interest_accrued,
            total_interest_paid=replay.total_interest_paid,
            total_principal_paid=replay.total_principal_paid,
            total_paid=actual,
            outstanding_balance=outstanding,
        ),
        status=PaymentStatus(
            expected_paid_to_date=expected,
            actual_paid_to_date=actual,
            arrears=round_cents(max(ZERO, expected - actual)),
            ahead_by=round_cents(max(ZERO, actual - expected)),
            first_overdue_due_date=first_overdue_due_date(config, at, actual),
        ),
        next_payment=next_payment,
        projection=projection,
        upcoming_schedule=schedule,
        rate_timeline=list(config.rate_timeline),
        assumptions=list(ASSUMPTIONS),
    )


def compare_payment(
    config: DebtConfig,
    payment: Decimal,
    as_of: Union[str, datetime, None] = None,
) -> PaymentComparison:
    """Project payoff paying ``payment`` each month against paying the minimum."""
    check_payment_override(payment)
    at = resolve_as_of(as_of)
    state = replay_payments(config, at).state
    baseline = project_payoff(config, state, at)
    scenario = project_payoff(config, state, at, payment_override=payment)
    return PaymentComparison(
        payment=round_cents(payment),
        baseline=baseline,
        scenario=scenario,
        interest_saved=round_cents(baseline.total_interest_remaining - scenario.total_interest_remaining),
        payments_saved=baseline.payments_remaining - scenario.payments_remaining,
    )
