"""
Pytest fixtures for PowerStore integration tests.

The suite runs against a live array when POWERSTORE_ENDPOINT (or
POWERSTORE_CLIENT_CONFIG) is set, and against the simulated array otherwise.
"""

import os
from typing import Iterator, List, Optional, Tuple

import pytest
import responses

from powerstore_client.checks import DEFAULT_VOLUME_SIZE, random_name
from powerstore_client.client import PowerStoreClient
from powerstore_client.config import load_config_from_env
from powerstore_client.errors import APIError
from powerstore_test.simulator import SimulatedArray

SNAPSHOT_DESCRIPTION = "just a description"


def live_array_configured() -> bool:
    return bool(
        os.environ.get("POWERSTORE_ENDPOINT") or os.environ.get("POWERSTORE_CLIENT_CONFIG")
    )


@pytest.fixture(scope="session")
def simulated_array() -> Iterator[Optional[SimulatedArray]]:
    """Simulated array, or None when running against a live array."""
    if live_array_configured():
        yield None
        return
    array = SimulatedArray()
    with responses.RequestsMock(assert_all_requests_are_fired=False) as rsps:
        array.install(rsps)
        yield array


@pytest.fixture(scope="session")
def client(simulated_array) -> PowerStoreClient:
    """The one client shared by every test of the run."""
    if simulated_array is None:
        return PowerStoreClient.from_config(load_config_from_env())
    return PowerStoreClient(endpoint=simulated_array.base_url, retry_attempts=1)


def _delete_volume(client: PowerStoreClient, volume_id: str) -> None:
    try:
        client.delete_volume(volume_id)
    except APIError as e:
        # The test itself may already have deleted it
        if not e.volume_is_not_exist():
            raise


@pytest.fixture
def make_volume(client):
    """
    Factory creating uniquely named volumes.

    Every volume it creates is deleted when the test ends, pass or fail.
    """
    created: List[str] = []

    def _make(size: int = DEFAULT_VOLUME_SIZE) -> Tuple[str, str]:
        name = random_name()
        response = client.create_volume(name, size)
        created.append(response.id)
        return response.id, name

    yield _make

    for volume_id in reversed(created):
        _delete_volume(client, volume_id)


@pytest.fixture
def volume(make_volume) -> Tuple[str, str]:
    """A fresh volume as (id, name)."""
    return make_volume()


@pytest.fixture
def snapshot(client, volume):
    """A snapshot of the fresh volume; it goes away with the volume."""
    volume_id, volume_name = volume
    found = client.get_volume(volume_id)
    assert found.name == volume_name
    return client.create_snapshot(volume_id, volume_name + "_snapshot", SNAPSHOT_DESCRIPTION)


@pytest.fixture
def track_volume(client):
    """Register volumes created inside a test for deletion at teardown."""
    tracked: List[str] = []
    yield tracked.append
    for volume_id in reversed(tracked):
        _delete_volume(client, volume_id)
