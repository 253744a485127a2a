"""Tests for configuration validation."""

import copy
from datetime import date, datetime
from decimal import Decimal

import pytest

from debt_calc.errors import EmptyTimelineError, SchemaError, TimestampParseError, ValidationError
from debt_calc.utils import LOCAL_TZ
from debt_calc.validator import validate_config


class TestValidConfig:

    def test_typed_fields(self, raw_config):
        config = validate_config(raw_config)
        assert config.property.label == "28 Harewood Drive"
        assert config.property.registration_date == date(2025, 9, 17)
        assert config.property.erf == "Erf 10520, East London"
        assert config.agreement.principal == Decimal("333000")
        assert config.agreement.margin_below_reference == Decimal("0.025")
        assert config.agreement.grace_months == 5
        assert config.agreement.minimum_monthly_payment == Decimal("3149.17")
        assert len(config.rate_timeline) == 2
        assert config.parties.debtor_display_name == "Debtor"

    def test_input_is_not_mutated(self, raw_config):
        before = copy.deepcopy(raw_config)
        validate_config(raw_config)
        assert raw_config == before

    def test_unknown_fields_are_ignored(self, raw_config):
        raw_config["somethingNew"] = {"x": 1}
        raw_config["agreement"]["extra"] = "ignored"
        validate_config(raw_config)

    def test_timeline_is_sorted(self, raw_config):
        raw_config["repoRateTimeline"].reverse()
        config = validate_config(raw_config)
        rates = [change.rate for change in config.rate_timeline]
        assert rates == [Decimal("0.07"), Decimal("0.0675")]

    def test_payments_optional_and_bare_dates_resolve_to_end_of_day(self, raw_config):
        del raw_config["payments"]
        assert validate_config(raw_config).payments == ()

        raw_config["payments"] = [{"paidAt": "2026-02-15", "amount": 3149.17, "note": "Feb"}]
        payment = validate_config(raw_config).payments[0]
        assert payment.paid_at == datetime(2026, 2, 16, tzinfo=LOCAL_TZ)
        assert payment.amount == Decimal("3149.17")
        assert payment.note == "Feb"

    def test_non_string_optional_fields_are_dropped(self, raw_config):
        raw_config["property"]["erf"] = 42
        raw_config["parties"] = "nobody"
        config = validate_config(raw_config)
        assert config.property.erf is None
        assert config.parties is None


class TestInvalidConfig:

    def test_not_an_object(self):
        with pytest.raises(SchemaError):
            validate_config(["schemaVersion", 1])

    @pytest.mark.parametrize("version", [None, 2, "1", True])
    def test_schema_version(self, raw_config, version):
        raw_config["schemaVersion"] = version
        with pytest.raises(SchemaError) as exc_info:
            validate_config(raw_config)
        assert exc_info.value.field == "schemaVersion"

    def test_missing_label(self, raw_config):
        del raw_config["property"]["label"]
        with pytest.raises(SchemaError) as exc_info:
            validate_config(raw_config)
        assert exc_info.value.field == "property.label"

    def test_registration_date_format(self, raw_config):
        raw_config["property"]["registrationDate"] = "17/09/2025"
        with pytest.raises(SchemaError) as exc_info:
            validate_config(raw_config)
        assert exc_info.value.field == "property.registrationDate"

    def test_registration_date_not_a_real_day(self, raw_config):
        raw_config["property"]["registrationDate"] = "2025-02-30"
        with pytest.raises(TimestampParseError):
            validate_config(raw_config)

    @pytest.mark.parametrize("key", ["principal", "interestMarginBelowRepo", "graceMonths", "minimumMonthlyPayment"])
    def test_agreement_numbers(self, raw_config, key):
        raw_config["agreement"][key] = "lots"
        with pytest.raises(SchemaError) as exc_info:
            validate_config(raw_config)
        assert exc_info.value.field == f"agreement.{key}"

    @pytest.mark.parametrize("grace", [100000, 10 ** 30])
    def test_grace_months_beyond_calendar(self, raw_config, grace):
        raw_config["agreement"]["graceMonths"] = grace
        with pytest.raises(SchemaError) as exc_info:
            validate_config(raw_config)
        assert exc_info.value.field == "agreement.graceMonths"

    def test_registration_too_late_for_all_installments(self, raw_config):
        raw_config["property"]["registrationDate"] = "9998-06-01"
        with pytest.raises(SchemaError) as exc_info:
            validate_config(raw_config)
        assert exc_info.value.field == "property.registrationDate"

    def test_grace_months_must_be_whole(self, raw_config):
        raw_config["agreement"]["graceMonths"] = 1.5
        with pytest.raises(SchemaError):
            validate_config(raw_config)

    def test_bool_is_not_a_number(self, raw_config):
        raw_config["agreement"]["principal"] = True
        with pytest.raises(SchemaError):
            validate_config(raw_config)

    def test_empty_timeline(self, raw_config):
        raw_config["repoRateTimeline"] = []
        with pytest.raises(EmptyTimelineError):
            validate_config(raw_config)

    def test_missing_timeline(self, raw_config):
        del raw_config["repoRateTimeline"]
        with pytest.raises(SchemaError) as exc_info:
            validate_config(raw_config)
        assert exc_info.value.field == "repoRateTimeline"

    def test_timeline_entry_timestamp(self, raw_config):
        raw_config["repoRateTimeline"][1]["effectiveFrom"] = "soon"
        with pytest.raises(TimestampParseError) as exc_info:
            validate_config(raw_config)
        assert exc_info.value.field == "repoRateTimeline[1].effectiveFrom"

    def test_timeline_entry_rate(self, raw_config):
        raw_config["repoRateTimeline"][0]["repoRate"] = None
        with pytest.raises(SchemaError):
            validate_config(raw_config)

    def test_payments_must_be_a_list(self, raw_config):
        raw_config["payments"] = {"paidAt": "2026-01-01", "amount": 1}
        with pytest.raises(SchemaError):
            validate_config(raw_config)

    def test_payment_entry(self, raw_config):
        raw_config["payments"] = [{"paidAt": "2026-01-01", "amount": "1000"}]
        with pytest.raises(SchemaError) as exc_info:
            validate_config(raw_config)
        assert exc_info.value.field == "payments[0].amount"

    def test_error_message_names_field(self, raw_config):
        raw_config["payments"] = [{"paidAt": "not a date", "amount": 1}]
        with pytest.raises(ValidationError, match=r"^payments\[0\]\.paidAt: "):
            validate_config(raw_config)
