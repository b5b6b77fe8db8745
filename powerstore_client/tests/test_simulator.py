"""
Tests for the simulated array.

These drive the simulator with plain requests calls to check the REST
dialect it speaks independently of the client.
"""

import requests

from powerstore_test.simulator import NAME_IN_USE_CODE, NOT_FOUND_CODE


class TestSimulatedArray:
    """Tests for SimulatedArray request handling."""

    def test_create_and_filter(self, simulated_array):
        base = simulated_array.base_url
        created = requests.post(f"{base}/volume", json={"name": "vol-a", "size": 10})
        assert created.status_code == 201
        volume_id = created.json()["id"]

        snap = requests.post(f"{base}/volume/{volume_id}/snapshot", json={"name": "snap-a"})
        assert snap.status_code == 201

        listed = requests.get(
            f"{base}/volume",
            params={"protection_data->>parent_id": f"eq.{volume_id}", "type": "eq.Snapshot"},
        )
        assert [r["id"] for r in listed.json()] == [snap.json()["id"]]

    def test_duplicate_name_body(self, simulated_array):
        base = simulated_array.base_url
        requests.post(f"{base}/volume", json={"name": "vol-a", "size": 10})

        duplicate = requests.post(f"{base}/volume", json={"name": "vol-a", "size": 10})

        assert duplicate.status_code == 422
        assert duplicate.json()["messages"][0]["code"] == NAME_IN_USE_CODE

    def test_snapshot_and_volume_names_are_separate(self, simulated_array):
        base = simulated_array.base_url
        volume_id = requests.post(
            f"{base}/volume", json={"name": "shared", "size": 10}
        ).json()["id"]

        snap = requests.post(f"{base}/volume/{volume_id}/snapshot", json={"name": "shared"})

        assert snap.status_code == 201

    def test_missing_record(self, simulated_array):
        response = requests.delete(f"{simulated_array.base_url}/volume/nope")

        assert response.status_code == 404
        assert response.json()["messages"][0]["code"] == NOT_FOUND_CODE

    def test_delete_cascades_to_snapshots(self, simulated_array):
        base = simulated_array.base_url
        volume_id = requests.post(f"{base}/volume", json={"name": "v", "size": 10}).json()["id"]
        requests.post(f"{base}/volume/{volume_id}/snapshot", json={"name": "s"})

        assert requests.delete(f"{base}/volume/{volume_id}").status_code == 204
        assert simulated_array.records == {}

    def test_partial_content(self, simulated_array):
        base = simulated_array.base_url
        for i in range(3):
            requests.post(f"{base}/volume", json={"name": f"v{i}", "size": 10})

        page = requests.get(f"{base}/volume", params={"offset": "0", "limit": "2"})

        assert page.status_code == 206
        assert page.headers["Content-Range"] == "0-1/3"
        assert len(page.json()) == 2

    def test_invalid_volume_body(self, simulated_array):
        response = requests.post(
            f"{simulated_array.base_url}/volume", json={"name": "v", "size": 0}
        )
        assert response.status_code == 400

    def test_unknown_filter_operator(self, simulated_array):
        response = requests.get(
            f"{simulated_array.base_url}/volume", params={"name": "like.v*"}
        )
        assert response.status_code == 400
