import logging

import pytest

from admin_e2e.field_writer import FieldWriter
from admin_e2e.resolver import ElementResolver

from tests.fakes import FakeClock, FakePage


@pytest.fixture
def logger():
    return logging.getLogger("admin_e2e.tests")


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def page():
    return FakePage()


@pytest.fixture
def resolver(page, clock, logger):
    return ElementResolver(
        page,
        timeout_ms=2000,
        poll_interval_ms=250,
        clock=clock.monotonic,
        sleep=clock.sleep,
        logger=logger,
    )


@pytest.fixture
def writer(clock, logger):
    return FieldWriter(settle_ms=300, sleep=clock.sleep, logger=logger)
