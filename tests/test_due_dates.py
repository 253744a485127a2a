"""Tests for installment due dates."""

import calendar
from datetime import date, datetime

import pytest

from debt_calc.due_dates import (
    MAX_INSTALLMENTS,
    due_cutoff,
    due_date,
    first_payment_due_date,
    installments_due_by,
    next_installment,
)
from debt_calc.utils import LOCAL_TZ, as_datetime

REGISTRATION = date(2025, 9, 17)


class TestDueDate:

    def test_first_payment_after_grace(self):
        assert first_payment_due_date(REGISTRATION, 5) == date(2026, 3, 31)

    def test_later_installments(self):
        assert due_date(REGISTRATION, 5, 2) == date(2026, 4, 30)
        assert due_date(REGISTRATION, 5, 3) == date(2026, 5, 31)

    def test_month_arithmetic_carries_into_year(self):
        assert due_date(date(2025, 12, 5), 0, 2) == date(2026, 2, 28)
        assert due_date(date(2027, 12, 1), 1, 1) == date(2028, 2, 29)

    @pytest.mark.parametrize("grace", [0, 1, 5, 11, 23])
    def test_always_last_day_of_month(self, grace):
        for k in (1, 2, 7, 13, 100, MAX_INSTALLMENTS):
            day = due_date(date(2024, 1, 31), grace, k)
            assert day.day == calendar.monthrange(day.year, day.month)[1]

    def test_index_must_be_positive(self):
        with pytest.raises(ValueError):
            due_date(REGISTRATION, 5, 0)

    def test_cutoff_is_start_of_next_day(self):
        assert due_cutoff(date(2026, 2, 28)) == datetime(2026, 3, 1, tzinfo=LOCAL_TZ)


class TestInstallmentSearch:

    def test_same_day_counts_as_due(self):
        assert installments_due_by(REGISTRATION, 5, as_datetime("2026-03-31", True)) == [date(2026, 3, 31)]
        assert installments_due_by(REGISTRATION, 5, as_datetime("2026-03-30", True)) == []

    def test_next_installment(self):
        assert next_installment(REGISTRATION, 5, as_datetime("2025-09-17", True)) == (1, date(2026, 3, 31))
        assert next_installment(REGISTRATION, 5, as_datetime("2026-03-31", True)) == (2, date(2026, 4, 30))

    def test_search_is_bounded(self):
        far_future = datetime(2200, 1, 1, tzinfo=LOCAL_TZ)
        assert len(installments_due_by(REGISTRATION, 5, far_future)) == MAX_INSTALLMENTS
        assert next_installment(REGISTRATION, 5, far_future) is None
