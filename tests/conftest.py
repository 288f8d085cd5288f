"""Shared pytest fixtures for the retail-graph test suite.

This conftest provides factory fixtures that wrap the helpers in
``tests.fixtures.transactions``. No external service dependencies are
required for unit tests.
"""

from __future__ import annotations

import pytest

from tests.fixtures.transactions import make_payload, make_transaction


@pytest.fixture()
def payload_factory():
    """Return the ``make_payload`` factory callable."""
    return make_payload


@pytest.fixture()
def transaction_factory():
    """Return the ``make_transaction`` factory callable."""
    return make_transaction


@pytest.fixture()
def sample_payload():
    """A single valid ingestion payload."""
    return make_payload()
