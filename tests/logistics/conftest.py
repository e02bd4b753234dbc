import random

import pytest
from logistics.notifier.fake_adapter import FakeNotifier
from logistics.notifier.sink import get_notifier, reset_notifier
from logistics.shared.clock import FrozenClock, reset_clock, set_clock
from logistics.shared.identifiers import (
    IdentifierGenerator,
    reset_identifier_generator,
    set_identifier_generator,
)
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def logistics_bed():
    from logistics.domain import logistics

    bed = DomainFixture(logistics)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(logistics_bed):
    with logistics_bed.domain_context():
        yield


@pytest.fixture
def clock():
    return FrozenClock()


@pytest.fixture(autouse=True)
def _collaborators(clock):
    """Frozen time, seeded identifiers and a clean in-memory notifier per test."""
    set_clock(clock)
    set_identifier_generator(IdentifierGenerator(rng=random.Random(1234), clock=clock))
    reset_notifier()
    yield
    reset_notifier()
    reset_identifier_generator()
    reset_clock()


@pytest.fixture
def notifier() -> FakeNotifier:
    return get_notifier()
