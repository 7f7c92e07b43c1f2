"""
Pytest fixtures for the resale dashboard test suite.

Provides:
- Structured logging configured once per session and a log capture fixture
- An ``ApiClient`` wired to ``httpx.MockTransport`` plus a route table,
  so service tests never open a socket

Entity builders live in ``tests/builders.py``.
"""

import json
import logging
from io import StringIO

import httpx
import pytest

from resale_config.schema import ApiSettings
from resale_kernel.logging_config import (
    LogContext,
    StructuredFormatter,
    configure_logging,
    reset_logging,
)
from resale_services.api_client import ApiClient
from resale_services.notifications import CollectingNotifier
from tests.builders import BASE_URL, Backend, logged_in_session


# =============================================================================
# Logging fixtures
# =============================================================================


@pytest.fixture(autouse=True, scope="session")
def _configure_test_logging():
    """Configure structured logging for the test suite."""
    reset_logging()
    configure_logging(level=logging.DEBUG)
    yield
    reset_logging()


@pytest.fixture(autouse=True)
def _clear_log_context():
    """Clear LogContext between tests to prevent cross-test contamination."""
    LogContext.clear()
    yield
    LogContext.clear()


@pytest.fixture
def captured_logs():
    """
    Capture resale logs as parsed JSON dicts.

    Usage::

        def test_something(captured_logs):
            ...
            logs = captured_logs()
            assert any(r["message"] == "budget_would_exceed" for r in logs)
    """
    stream = StringIO()
    handler = logging.StreamHandler(stream)
    handler.setFormatter(StructuredFormatter())
    root = logging.getLogger("resale")
    previous_level = root.level
    root.addHandler(handler)
    root.setLevel(logging.DEBUG)

    def _get_records() -> list[dict]:
        lines = stream.getvalue().strip().split("\n")
        return [json.loads(line) for line in lines if line]

    yield _get_records

    root.removeHandler(handler)
    root.setLevel(previous_level)


# =============================================================================
# HTTP fixtures
# =============================================================================


@pytest.fixture
def backend():
    return Backend()


@pytest.fixture
def session():
    return logged_in_session()


@pytest.fixture
def client(backend, session):
    api = ApiClient(ApiSettings(base_url=BASE_URL), session,
                    transport=httpx.MockTransport(backend.handler))
    yield api
    api.close()


@pytest.fixture
def notifier():
    return CollectingNotifier()
