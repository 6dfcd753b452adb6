import os
from pathlib import Path

import pytest
import structlog
from protean.integrations.pytest import DomainFixture


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Initialize the storefront domain and push its context so it can be
    referred to elsewhere as `current_domain`.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from storefront.domain import storefront

    storefront.init()
    storefront.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(scope="session")
def storefront_bed():
    from storefront.domain import storefront

    bed = DomainFixture(storefront)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(scope="session", autouse=True)
def setup_db(storefront_bed):
    from storefront.domain import storefront
    from storefront.utils.db import drop_db, setup_db

    setup_db(storefront)

    yield

    drop_db(storefront)


@pytest.fixture(autouse=True)
def _ctx(storefront_bed):
    with storefront_bed.domain_context():
        yield


@pytest.fixture(autouse=True)
def run_around_tests(_ctx):
    """Fixture to automatically cleanup infrastructure after every test"""
    yield

    from protean import current_domain
    from storefront.payments.gateway import reset_gateways
    from storefront.shared.repository import repositories

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    reset_gateways()
    repositories.clear()


@pytest.fixture
def captured():
    return structlog.testing.CapturingLogger()


@pytest.fixture
def capturing_logger(captured):
    """A bound logger whose calls land in ``captured.calls``."""
    return structlog.wrap_logger(captured, processors=[], wrapper_class=structlog.BoundLogger)


@pytest.fixture
def logged_events(captured):
    """Event names recorded by ``capturing_logger``, optionally for one level."""

    def _events(level=None):
        return [call.kwargs.get("event") for call in captured.calls if level is None or call.method_name == level]

    return _events
