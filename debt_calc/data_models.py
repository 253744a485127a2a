"""Data models for the debt calculator.

This module defines dataclasses representing the entities used by the
calculator: the validated debt configuration (property, agreement, reference
rate changes and payments), the mutable ledger state used while simulating,
and the immutable results produced by a snapshot (schedule entries, totals,
status and payoff projection).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional, Tuple

from .rates import RateChange, RateTimeline


@dataclass(frozen=True)
class Payment:
    """A payment received from the debtor.

    Attributes
    ----------
    paid_at: datetime
        The instant the payment counts from. Bare dates in the input resolve
        to the end of that day (start of the next day, exclusive).
    amount: Decimal
        The amount paid. Zero or negative amounts are ignored by the ledger.
    note: str, optional
        Free-form remark carried through from the input.
    """

    paid_at: datetime
    amount: Decimal
    note: Optional[str] = None


@dataclass(frozen=True)
class Agreement:
    principal: Decimal
    margin_below_reference: Decimal  # subtracted from the reference rate
    grace_months: int
    minimum_monthly_payment: Decimal


@dataclass(frozen=True)
class Property:
    label: str
    registration_date: date
    erf: Optional[str] = None


@dataclass(frozen=True)
class Parties:
    debtor_display_name: Optional[str] = None
    creditor_display_name: Optional[str] = None


@dataclass(frozen=True)
class DebtConfig:
    """A validated debt configuration.

    Built once per query by :func:`debt_calc.validator.validate_config` and
    never mutated afterwards. ``payments`` keep their input order; the ledger
    sorts them when replaying.
    """

    property: Property
    agreement: Agreement
    rate_timeline: RateTimeline
    payments: Tuple[Payment, ...] = ()
    parties: Optional[Parties] = None
    schema_version: int = 1


@dataclass
class LedgerState:
    """Outstanding balances while replaying or projecting.

    Both values stay non-negative and are kept rounded to cents.
    """

    principal_outstanding: Decimal
    accrued_interest_unpaid: Decimal

    @property
    def balance(self) -> Decimal:
        return self.principal_outstanding + self.accrued_interest_unpaid

    def copy(self) -> "LedgerState":
        return LedgerState(self.principal_outstanding, self.accrued_interest_unpaid)


@dataclass(frozen=True)
class PaymentApplication:
    """Result of running one payment through the interest-first waterfall."""

    principal_outstanding: Decimal
    accrued_interest_unpaid: Decimal
    interest_portion: Decimal
    principal_portion: Decimal
    unapplied_remainder: Decimal


@dataclass(frozen=True)
class ScheduleEntry:
    """One due date in an upcoming schedule or payoff projection.

    ``interest_charged`` is the interest accrued since the previous due date
    (or since ``as_of`` for the first entry), rounded once for the period.
    ``starting_balance`` already includes that interest.
    """

    due_date: date
    payment_amount: Decimal
    interest_charged: Decimal
    interest_portion: Decimal
    principal_portion: Decimal
    starting_balance: Decimal
    ending_balance: Decimal


@dataclass(frozen=True)
class Projection:
    """Summary of stepping forward until payoff or the iteration cap.

    When ``converged`` is false the loop ran out of periods before the balance
    reached zero and ``payoff_date`` is only the last simulated due date.
    """

    payoff_date: Optional[date]
    payments_remaining: int
    total_interest_remaining: Decimal
    total_payments_remaining: Decimal
    converged: bool


@dataclass(frozen=True)
class Totals:
    principal_original: Decimal
    principal_remaining: Decimal
    accrued_interest_unpaid: Decimal
    total_interest_accrued: Decimal
    total_interest_paid: Decimal
    total_principal_paid: Decimal
    total_paid: Decimal
    outstanding_balance: Decimal


@dataclass(frozen=True)
class PaymentStatus:
    expected_paid_to_date: Decimal
    actual_paid_to_date: Decimal
    arrears: Decimal
    ahead_by: Decimal
    first_overdue_due_date: Optional[date]


@dataclass(frozen=True)
class NextPayment:
    due_date: Optional[date] = None
    amount_due: Optional[Decimal] = None
    minimum_amount: Optional[Decimal] = None
    interest_charged_to_due_date: Optional[Decimal] = None


@dataclass(frozen=True)
class Snapshot:
    """Standing of the debt as of one instant, plus the road ahead."""

    as_of: datetime
    property: Property
    parties: Optional[Parties]
    agreement: Agreement
    first_payment_due_date: date
    current_reference_rate: Decimal
    current_interest_rate: Decimal
    totals: Totals
    status: PaymentStatus
    next_payment: NextPayment
    projection: Projection
    upcoming_schedule: List[ScheduleEntry]
    rate_timeline: List[RateChange]
    assumptions: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class PaymentComparison:
    """A what-if payment amount compared against the minimum payment."""

    payment: Decimal
    baseline: Projection
    scenario: Projection
    interest_saved: Decimal
    payments_saved: int
