"""Shared fixtures for the debt calculator tests."""

import copy

import pytest

from debt_calc.validator import validate_config


HAREWOOD_CONFIG = {
    "schemaVersion": 1,
    "property": {
        "label": "28 Harewood Drive",
        "erf": "Erf 10520, East London",
        "registrationDate": "2025-09-17",
    },
    "parties": {"debtorDisplayName": "Debtor", "creditorDisplayName": "Creditor"},
    "agreement": {
        "principal": 333000,
        "interestMarginBelowRepo": 0.025,
        "graceMonths": 5,
        "minimumMonthlyPayment": 3149.17,
    },
    "repoRateTimeline": [
        {"effectiveFrom": "2025-09-01T00:00:00+02:00", "repoRate": 0.07},
        {"effectiveFrom": "2025-11-20T15:00:00+02:00", "repoRate": 0.0675},
    ],
    "payments": [],
}


@pytest.fixture
def raw_config():
    """The worked example: 333 000 at repo minus 2.5 %, five months' grace."""
    return copy.deepcopy(HAREWOOD_CONFIG)


@pytest.fixture
def config(raw_config):
    return validate_config(raw_config)


@pytest.fixture
def interest_free_raw():
    """A small interest-free loan that is paid off in four installments."""
    return {
        "schemaVersion": 1,
        "property": {"label": "Flat 4", "registrationDate": "2025-01-10"},
        "agreement": {
            "principal": 1000,
            "interestMarginBelowRepo": 0,
            "graceMonths": 0,
            "minimumMonthlyPayment": 300,
        },
        "repoRateTimeline": [{"effectiveFrom": "2025-01-01", "repoRate": 0}],
    }


@pytest.fixture
def interest_free_config(interest_free_raw):
    return validate_config(interest_free_raw)
