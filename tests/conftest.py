import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Overlay from dispatch/domain.toml to run against (test: in-memory, sqlite: file-backed claims)",
    )


def pytest_sessionstart(session):
    """Initialize the dispatch domain for the whole session.

    ``--env`` picks the overlay in ``domain.toml`` before ``init()`` reads it,
    so ``--env sqlite`` runs the same suite against a SQLite file. The pushed
    context is what ``current_domain`` resolves to in tests and handlers.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env

    from dispatch.domain import dispatch

    dispatch.init()
    dispatch.domain_context().push()


def pytest_collection_modifyitems(config, items):
    """Mark dispatch tests by layer: domain, application, integration or bdd."""
    for item in items:
        test_path = Path(item.fspath)

        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Each test drives the API through TestClient
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)
        elif "/bdd/" in str(test_path):
            item.add_marker(pytest.mark.bdd)


@pytest.fixture(scope="session", autouse=True)
def setup_db(request):
    """Create order, pilot and handoff code tables once per run."""
    from dispatch.domain import dispatch
    from dispatch.utils.db import drop_db, setup_db

    setup_db(dispatch)

    yield

    drop_db(dispatch)


@pytest.fixture(autouse=True)
def run_around_tests():
    """Reset stored orders, pilots, codes and events after every test."""
    yield

    from protean import current_domain

    for _, provider in current_domain.providers.items():
        provider._data_reset()

    current_domain.event_store.store._data_reset()
