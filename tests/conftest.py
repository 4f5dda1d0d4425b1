"""Shared test fixtures for the early alert engine tests."""
import pytest

from advising.stores import Stores
from advising.early_alerts import ComplianceClock
from fakes import (
    NOW,
    FakeAlertStore,
    FakeCatalog,
    FakeConfigStore,
    FakePersonStore,
    FakeReferenceStore,
    FakeRoutingStore,
    FakeWatcherStore,
    RecordingSender,
    make_campus,
    make_person,
    make_reason,
)


# =============================================================================
# Fixtures
# =============================================================================

@pytest.fixture
def clock():
    """A compliance clock frozen at NOW."""
    return ComplianceClock(now=lambda: NOW)


@pytest.fixture
def sender():
    return RecordingSender()


@pytest.fixture
def stores(sender):
    """In-memory stores sharing one fake unit of work with the sender."""
    return Stores(
        alerts=FakeAlertStore(sender),
        people=FakePersonStore(),
        routing=FakeRoutingStore(),
        watchers=FakeWatcherStore(),
        reference=FakeReferenceStore(),
        catalog=FakeCatalog(),
        config=FakeConfigStore(),
    )


@pytest.fixture
def coach():
    return make_person("coach", email="coach@example.edu")


@pytest.fixture
def coordinator():
    return make_person("coordinator", email="eac@example.edu")


@pytest.fixture
def faculty():
    return make_person("faculty", email="faculty@example.edu", school_id="F100")


@pytest.fixture
def campus(coordinator):
    return make_campus(coordinator_id=coordinator.id)


@pytest.fixture
def reason():
    return make_reason("reason-attendance", "Attendance")


@pytest.fixture
def student(coach):
    return make_person("student", email="student@example.edu", coach=coach, school_id="S200")


@pytest.fixture
def populated(stores, coach, coordinator, faculty, student, campus, reason):
    """Stores seeded with the standard cast of people and reference data."""
    stores.people.add(coach, coordinator, faculty, student)
    stores.reference.campuses[campus.id] = campus
    stores.reference.reasons[reason.id] = reason
    return stores

