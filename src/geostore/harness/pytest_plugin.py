"""pytest fixtures that give every test a bootstrapped, empty GeoStore database.

Requires the ``harness`` extra (``pip install geostore-harness[harness]``),
which brings in pytest.  Enable from a ``conftest.py``::

    pytest_plugins = ["geostore.harness.pytest_plugin"]

then request ``clean_database`` (or mark it autouse in your conftest).
Bootstrap and teardown failures raise during fixture setup, so pytest
reports the test as errored, never skipped.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator

import pytest

from geostore.persistence.dao import DAORegistry

from .context import HarnessContext, get_context
from .teardown import TeardownReport

logger = logging.getLogger(__name__)


@pytest.fixture(scope="session")
def harness_context() -> HarnessContext:
    """The process-wide context; a failed bootstrap errors every test using it."""
    return get_context()


@pytest.fixture
def daos(harness_context: HarnessContext) -> DAORegistry:
    return harness_context.daos


@pytest.fixture
def clean_database(request: pytest.FixtureRequest, harness_context: HarnessContext) -> Iterator[TeardownReport]:
    """Purge every table before the test runs and yield the purge report."""
    logger.info("################ Running %s", request.node.nodeid)
    report = harness_context.remove_all()
    report.raise_for_error()
    logger.info("##### Ending setup for %s ###----------------------", request.node.name)
    yield report
