"""
Shared fixtures for all tests.

Providers read the packaged JSON dataset; sync tests swap in failing
loaders and an in-memory store so nothing touches disk or sleeps.
"""
from datetime import datetime, timezone

import pytest

from dental_cds.dosing import DoseCalculator
from dental_cds.interactions import InteractionChecker
from dental_cds.models import PatientParameters
from dental_cds.reference import DrugProvider, MaterialProvider, ProcedureProvider
from dental_cds.store import MemoryStore
from dental_cds.validation import ContentValidator


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

class FakeClock:
    """Settable clock returning aware UTC datetimes."""

    def __init__(self, now=None):
        self.now = now or datetime(2024, 3, 1, 9, 0, tzinfo=timezone.utc)

    def __call__(self):
        return self.now

    def advance(self, delta):
        self.now = self.now + delta


class FlakyLoader:
    """Loader that fails a fixed number of times before delegating."""

    def __init__(self, records=None, failures=0):
        self.records = records or []
        self.failures = failures
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise ConnectionError(f"fetch failed (call {self.calls})")
        return list(self.records)


def make_drug(**overrides):
    """Minimal valid drug record as it appears in the dataset."""
    record = {
        "id": "testcillin",
        "name": "Testcillin",
        "class": "Penicillins",
        "indications": [{"type": "Treatment", "description": "Dental abscess", "evidence_level": "A"}],
        "dosage": {"adults": {"dose": "500 mg", "regimen": "TID × 7 days", "max_daily": "3 g"}},
        "administration": {"route": "Oral", "instructions": "", "bioavailability": ""},
        "contraindications": ["Penicillin allergy"],
        "interactions": [],
    }
    record.update(overrides)
    return record


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def drugs():
    return DrugProvider()


@pytest.fixture
def procedures():
    return ProcedureProvider()


@pytest.fixture
def materials():
    return MaterialProvider()


@pytest.fixture
def validator():
    return ContentValidator()


@pytest.fixture
def calculator(drugs, validator):
    return DoseCalculator(drugs, validator)


@pytest.fixture
def checker(drugs):
    return InteractionChecker(drugs)


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def adult():
    return PatientParameters(age=35, weight=70, gender="male")


@pytest.fixture
def child():
    return PatientParameters(age=8, weight=30)
