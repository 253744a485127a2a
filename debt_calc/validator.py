"""Validation of raw (JSON-shaped) debt configurations.

:func:`validate_config` turns an untyped mapping into a :class:`DebtConfig`,
or raises a :class:`~debt_calc.errors.ValidationError` naming the first field
that is wrong. The input is never mutated and unknown keys are ignored.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any, List, Mapping, Optional

from .data_models import Agreement, DebtConfig, Parties, Payment, Property
from .due_dates import MAX_INSTALLMENTS, due_cutoff, due_date
from .errors import SchemaError
from .rates import RateChange, RateTimeline
from .utils import as_datetime, is_date_only, parse_date, parse_timestamp, to_decimal

SUPPORTED_SCHEMA_VERSION = 1


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float, Decimal)) and not isinstance(value, bool)


def _require_mapping(value: Any, field: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise SchemaError(field, "must be an object")
    return value


def _require_number(section: Mapping[str, Any], key: str, field: str) -> Decimal:
    value = section.get(key)
    if not _is_number(value):
        raise SchemaError(f"{field}.{key}", f"must be a number, got {value!r}")
    number = to_decimal(value)
    if not number.is_finite():
        raise SchemaError(f"{field}.{key}", f"must be finite, got {value!r}")
    return number


def _optional_str(value: Any) -> Optional[str]:
    return value if isinstance(value, str) else None


def _parse_property(raw: Any) -> Property:
    section = _require_mapping(raw, "property")
    label = section.get("label")
    if not isinstance(label, str):
        raise SchemaError("property.label", "must be a string")
    registration = section.get("registrationDate")
    if not isinstance(registration, str) or not is_date_only(registration):
        raise SchemaError("property.registrationDate", f"must be a YYYY-MM-DD string, got {registration!r}")
    return Property(
        label=label,
        registration_date=parse_date(registration, "property.registrationDate"),
        erf=_optional_str(section.get("erf")),
    )


def _parse_agreement(raw: Any) -> Agreement:
    section = _require_mapping(raw, "agreement")
    principal = _require_number(section, "principal", "agreement")
    margin = _require_number(section, "interestMarginBelowRepo", "agreement")
    grace = _require_number(section, "graceMonths", "agreement")
    minimum = _require_number(section, "minimumMonthlyPayment", "agreement")

    if grace != grace.to_integral_value() or grace < 0:
        raise SchemaError("agreement.graceMonths", f"must be a non-negative integer, got {grace}")
    if principal < 0:
        raise SchemaError("agreement.principal", "must not be negative")
    if minimum < 0:
        raise SchemaError("agreement.minimumMonthlyPayment", "must not be negative")

    return Agreement(
        principal=principal,
        margin_below_reference=margin,
        grace_months=int(grace),
        minimum_monthly_payment=minimum,
    )


def _check_installment_range(prop: Property, agreement: Agreement) -> None:
    """Every installment up to MAX_INSTALLMENTS must fall on a representable date."""
    for grace, field in ((0, "property.registrationDate"), (agreement.grace_months, "agreement.graceMonths")):
        try:
            due_cutoff(due_date(prop.registration_date, grace, MAX_INSTALLMENTS))
        except (OverflowError, ValueError) as exc:
            raise SchemaError(field, f"puts installment {MAX_INSTALLMENTS} past the last supported date") from exc


def _parse_timeline(raw: Any) -> RateTimeline:
    if not isinstance(raw, list):
        raise SchemaError("repoRateTimeline", "must be a non-empty array")
    changes: List[RateChange] = []
    for i, entry in enumerate(raw):
        field = f"repoRateTimeline[{i}]"
        entry = _require_mapping(entry, field)
        effective_from = entry.get("effectiveFrom")
        if not isinstance(effective_from, str):
            raise SchemaError(f"{field}.effectiveFrom", "must be a timestamp string")
        changes.append(
            RateChange(
                effective_from=parse_timestamp(effective_from, f"{field}.effectiveFrom"),
                rate=_require_number(entry, "repoRate", field),
            )
        )
    # RateTimeline raises EmptyTimelineError for an empty list
    return RateTimeline(changes)


def _parse_payments(raw: Any) -> List[Payment]:
    if raw is None:
        return []
    if not isinstance(raw, list):
        raise SchemaError("payments", "must be an array")
    payments: List[Payment] = []
    for i, entry in enumerate(raw):
        field = f"payments[{i}]"
        entry = _require_mapping(entry, field)
        paid_at = entry.get("paidAt")
        if not isinstance(paid_at, str):
            raise SchemaError(f"{field}.paidAt", "must be a timestamp or date string")
        payments.append(
            Payment(
                paid_at=as_datetime(paid_at, upper_bound=True, field=f"{field}.paidAt"),
                amount=_require_number(entry, "amount", field),
                note=_optional_str(entry.get("note")),
            )
        )
    return payments


def _parse_parties(raw: Any) -> Optional[Parties]:
    if not isinstance(raw, Mapping):
        return None
    return Parties(
        debtor_display_name=_optional_str(raw.get("debtorDisplayName")),
        creditor_display_name=_optional_str(raw.get("creditorDisplayName")),
    )


def validate_config(raw: Any) -> DebtConfig:
    """Validate ``raw`` and return a fresh, typed :class:`DebtConfig`.

    Raises
    ------
    SchemaError
        Wrong schema version or a malformed section.
    EmptyTimelineError
        ``repoRateTimeline`` is an empty array.
    TimestampParseError
        A date or timestamp field cannot be parsed.
    """
    config = _require_mapping(raw, "config")
    if config.get("schemaVersion") != SUPPORTED_SCHEMA_VERSION or isinstance(config.get("schemaVersion"), bool):
        raise SchemaError("schemaVersion", f"must be {SUPPORTED_SCHEMA_VERSION}, got {config.get('schemaVersion')!r}")

    prop = _parse_property(config.get("property"))
    agreement = _parse_agreement(config.get("agreement"))
    _check_installment_range(prop, agreement)

    return DebtConfig(
        property=prop,
        agreement=agreement,
        rate_timeline=_parse_timeline(config.get("repoRateTimeline")),
        payments=tuple(_parse_payments(config.get("payments"))),
        parties=_parse_parties(config.get("parties")),
        schema_version=SUPPORTED_SCHEMA_VERSION,
    )
