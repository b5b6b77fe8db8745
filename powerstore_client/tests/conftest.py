"""
Pytest fixtures for PowerStore client tests.
"""

import os
from unittest.mock import MagicMock, patch

import pytest
import responses

from powerstore_client.client import PowerStoreClient
from powerstore_test.simulator import SimulatedArray


@pytest.fixture
def mock_env_vars():
    """Set up mock environment variables for testing."""
    env_vars = {
        "POWERSTORE_ENDPOINT": "https://10.0.0.1/api/rest",
        "POWERSTORE_USERNAME": "admin",
        "POWERSTORE_PASSWORD": "Password123!",
        "POWERSTORE_INSECURE": "true",
        "POWERSTORE_TIMEOUT": "60",
    }
    with patch.dict(os.environ, env_vars):
        yield env_vars


def _mock_response(status_code=200, payload=None, headers=None, reason="OK"):
    response = MagicMock()
    response.status_code = status_code
    response.ok = status_code < 400
    response.reason = reason
    response.headers = headers or {}
    if payload is None:
        response.content = b""
        response.json.side_effect = ValueError("No JSON")
    else:
        response.content = b"{...}"
        response.json.return_value = payload
    return response


@pytest.fixture
def make_response():
    """Factory for mock requests.Response objects."""
    return _mock_response


@pytest.fixture
def mocked_client():
    """Client with a mocked HTTP session."""
    client = PowerStoreClient(
        endpoint="https://10.0.0.1",
        username="admin",
        password="Password123!",
    )
    client.session = MagicMock()
    return client


@pytest.fixture
def simulated_array():
    """Simulated array served through responses."""
    array = SimulatedArray()
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        array.install(rsps)
        yield array


@pytest.fixture
def sim_client(simulated_array):
    """Client talking to the simulated array."""
    return PowerStoreClient(endpoint=simulated_array.base_url, retry_attempts=1)
