"""Output helpers for the debt calculator.

This module converts snapshots into JSON-serialisable dictionaries (using the
camelCase keys of the input configuration) and renders snapshots, schedules
and what-if comparisons in a tabular text format for the terminal.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import Any, Dict, Iterable, List, Optional

from .data_models import PaymentComparison, Projection, ScheduleEntry, Snapshot
from .rates import RateChange
from .utils import format_instant


def _money(value: Optional[Decimal]) -> Optional[float]:
    return None if value is None else float(value)


def _day(value: Optional[date]) -> Optional[str]:
    return None if value is None else value.isoformat()


def schedule_entry_to_dict(entry: ScheduleEntry) -> Dict[str, Any]:
    return {
        "dueDate": entry.due_date.isoformat(),
        "paymentAmount": float(entry.payment_amount),
        "interestCharged": float(entry.interest_charged),
        "interestPortion": float(entry.interest_portion),
        "principalPortion": float(entry.principal_portion),
        "startingBalance": float(entry.starting_balance),
        "endingBalance": float(entry.ending_balance),
    }


def projection_to_dict(projection: Projection) -> Dict[str, Any]:
    return {
        "payoffDate": _day(projection.payoff_date),
        "paymentsRemaining": projection.payments_remaining,
        "totalInterestRemaining": float(projection.total_interest_remaining),
        "totalPaymentsRemaining": float(projection.total_payments_remaining),
        "converged": projection.converged,
    }


def rate_change_to_dict(change: RateChange) -> Dict[str, Any]:
    """Serialise a rate change with its parsed instant.

    ``effectiveFrom`` is written as an ISO-8601 timestamp with its offset, so a
    bare-date entry such as ``"2025-01-01"`` comes back as
    ``"2025-01-01T00:00:00+02:00"``.
    """
    return {"effectiveFrom": change.effective_from.isoformat(), "repoRate": float(change.rate)}


def snapshot_to_dict(snap: Snapshot) -> Dict[str, Any]:
    """Convert a snapshot into plain JSON-compatible types."""
    prop: Dict[str, Any] = {
        "label": snap.property.label,
        "registrationDate": snap.property.registration_date.isoformat(),
    }
    if snap.property.erf is not None:
        prop["erf"] = snap.property.erf

    data: Dict[str, Any] = {
        "asOf": format_instant(snap.as_of),
        "property": prop,
    }
    if snap.parties is not None:
        data["parties"] = {
            "debtorDisplayName": snap.parties.debtor_display_name,
            "creditorDisplayName": snap.parties.creditor_display_name,
        }
    agreement = snap.agreement
    totals = snap.totals
    status = snap.status
    nxt = snap.next_payment
    data.update(
        {
            "agreement": {
                "principal": float(agreement.principal),
                "interestMarginBelowRepo": float(agreement.margin_below_reference),
                "graceMonths": agreement.grace_months,
                "minimumMonthlyPayment": float(agreement.minimum_monthly_payment),
                "firstPaymentDueDate": snap.first_payment_due_date.isoformat(),
            },
            "currentRepoRate": float(snap.current_reference_rate),
            "currentInterestRate": float(snap.current_interest_rate),
            "totals": {
                "principalOriginal": float(totals.principal_original),
                "principalRemaining": float(totals.principal_remaining),
                "accruedInterestUnpaid": float(totals.accrued_interest_unpaid),
                "totalInterestAccrued": float(totals.total_interest_accrued),
                "totalInterestPaid": float(totals.total_interest_paid),
                "totalPrincipalPaid": float(totals.total_principal_paid),
                "totalPaid": float(totals.total_paid),
                "outstandingBalance": float(totals.outstanding_balance),
            },
            "status": {
                "expectedPaidToDate": float(status.expected_paid_to_date),
                "actualPaidToDate": float(status.actual_paid_to_date),
                "arrears": float(status.arrears),
                "aheadBy": float(status.ahead_by),
                "firstOverdueDueDate": _day(status.first_overdue_due_date),
            },
            "nextPayment": {
                "dueDate": _day(nxt.due_date),
                "amountDue": _money(nxt.amount_due),
                "minimumAmount": _money(nxt.minimum_amount),
                "interestChargedToDueDate": _money(nxt.interest_charged_to_due_date),
            },
            "projection": projection_to_dict(snap.projection),
            "upcomingSchedule": [schedule_entry_to_dict(e) for e in snap.upcoming_schedule],
            "repoRateTimeline": [rate_change_to_dict(c) for c in snap.rate_timeline],
            "assumptions": list(snap.assumptions),
        }
    )
    return data


def comparison_to_dict(comparison: PaymentComparison) -> Dict[str, Any]:
    return {
        "payment": float(comparison.payment),
        "baseline": projection_to_dict(comparison.baseline),
        "scenario": projection_to_dict(comparison.scenario),
        "interestSaved": float(comparison.interest_saved),
        "paymentsSaved": comparison.payments_saved,
    }


def _percent(rate: Decimal) -> str:
    return f"{rate * 100:.2f}%"


def print_snapshot(snap: Snapshot) -> None:
    """Print the standing of the debt in a human-readable format."""
    totals = snap.totals
    status = snap.status
    print(f"Snapshot: {snap.property.label}")
    print("-" * 72)
    print(f"As of              : {snap.as_of.isoformat()}")
    print(f"First payment due  : {snap.first_payment_due_date.isoformat()}")
    print(f"Repo rate          : {_percent(snap.current_reference_rate)}")
    print(f"Interest rate      : {_percent(snap.current_interest_rate)}")
    print(f"Principal original : {totals.principal_original:.2f}")
    print(f"Principal remaining: {totals.principal_remaining:.2f}")
    print(f"Interest unpaid    : {totals.accrued_interest_unpaid:.2f}")
    print(f"Interest accrued   : {totals.total_interest_accrued:.2f}")
    print(f"Total paid         : {totals.total_paid:.2f}")
    print(f"Outstanding        : {totals.outstanding_balance:.2f}")
    print(f"Expected to date   : {status.expected_paid_to_date:.2f}")
    if status.arrears:
        print(f"Arrears            : {status.arrears:.2f} (since {status.first_overdue_due_date})")
    if status.ahead_by:
        print(f"Ahead by           : {status.ahead_by:.2f}")
    nxt = snap.next_payment
    if nxt.due_date is not None:
        print(f"Next payment       : {nxt.amount_due:.2f} due {nxt.due_date.isoformat()}")
    print_projection(snap.projection)
    print("-" * 72)


def print_projection(projection: Projection) -> None:
    if projection.payoff_date is None:
        print("Payoff             : settled")
        return
    label = projection.payoff_date.isoformat()
    if not projection.converged:
        label = f"not reached by {label}"
    print(f"Payoff             : {label}")
    print(f"Payments remaining : {projection.payments_remaining}")
    print(f"Interest remaining : {projection.total_interest_remaining:.2f}")


def print_schedule(schedule: Iterable[ScheduleEntry]) -> None:
    """Print schedule entries as a simple table."""
    headers = ["DueDate", "StartBal", "Interest", "Payment", "ToInterest", "ToCapital", "EndBal"]
    print("\t".join(headers))
    for entry in schedule:
        row = [
            entry.due_date.isoformat(),
            f"{entry.starting_balance:.2f}",
            f"{entry.interest_charged:.2f}",
            f"{entry.payment_amount:.2f}",
            f"{entry.interest_portion:.2f}",
            f"{entry.principal_portion:.2f}",
            f"{entry.ending_balance:.2f}",
        ]
        print("\t".join(row))


def print_comparison(comparison: PaymentComparison) -> None:
    """Print a what-if payment next to the minimum payment.

    A positive difference in the last column means the what-if payment saves
    that much interest (or that many payments).
    """
    base = comparison.baseline
    what_if = comparison.scenario
    print("Comparison")
    print("=" * 72)
    print(f"{'Metric':20s} {'Minimum':>15s} {'What-if':>15s} {'Saved':>15s}")
    rows: List[tuple] = [
        ("total_interest", base.total_interest_remaining, what_if.total_interest_remaining,
         comparison.interest_saved),
        ("total_payments", base.total_payments_remaining, what_if.total_payments_remaining,
         base.total_payments_remaining - what_if.total_payments_remaining),
    ]
    for key, v1, v2, diff in rows:
        print(f"{key:20s} {v1:15.2f} {v2:15.2f} {diff:15.2f}")
    print(f"{'payments':20s} {base.payments_remaining:15d} {what_if.payments_remaining:15d} "
          f"{comparison.payments_saved:15d}")
    print(f"{'payoff_date':20s} {_day(base.payoff_date) or '-':>15s} {_day(what_if.payoff_date) or '-':>15s}")
    print("=" * 72)
