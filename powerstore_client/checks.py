"""
Lifecycle checks for a PowerStore array.

Runs create -> act -> assert -> cleanup sequences for volumes, snapshots
and clones against an array and reports the outcome of each step. Every
resource a run creates is deleted again, whichever step fails.
"""

import logging
import random
import string
from typing import Any, Callable, Dict, List, Optional, Tuple

from .client import PowerStoreClient
from .errors import APIError

logger = logging.getLogger(__name__)

TEST_VOLUME_PREFIX = "test_vol_"
DEFAULT_VOLUME_SIZE = 1048576
SNAPSHOT_DESCRIPTION = "just a description"


def random_string(length: int = 8) -> str:
    """Random alphanumeric string used to keep resource names unique."""
    alphabet = string.ascii_letters + string.digits
    return "".join(random.choice(alphabet) for _ in range(length))


def random_name(prefix: str = TEST_VOLUME_PREFIX, length: int = 8) -> str:
    return prefix + random_string(length)


class CheckFailed(Exception):
    """Raised when a check step observes an unexpected result."""


def expect(condition: bool, message: str) -> None:
    if not condition:
        raise CheckFailed(message)


class LifecycleChecks:
    """Volume/snapshot/clone lifecycle checks against one array."""

    def __init__(
        self,
        client: PowerStoreClient,
        size: int = DEFAULT_VOLUME_SIZE,
        prefix: str = TEST_VOLUME_PREFIX,
        trace_id: Optional[str] = None,
    ):
        """
        Initialize the checks.

        Args:
            client: Client connected to the array under test
            size: Size in bytes of the volumes to create
            prefix: Prefix of the generated volume names
            trace_id: Correlation token sent with every call
        """
        self.client = client
        self.size = size
        self.prefix = prefix
        self.trace_id = trace_id
        self.created: List[Tuple[str, str]] = []

    def _step(
        self, checks: Dict[str, Any], name: str, func: Callable[[], Any]
    ) -> Tuple[bool, Any]:
        try:
            value = func()
        except Exception as e:
            logger.error(f"Check {name} failed: {e}")
            checks[name] = False
            checks[f"{name}_error"] = str(e)
            return False, None
        logger.info(f"Check {name} passed")
        checks[name] = True
        return True, value

    def _track_partial(self, kind: str, error: APIError) -> None:
        if error.created_id:
            self.created.append((kind, error.created_id))

    def _forget(self, resource_id: str) -> None:
        self.created = [c for c in self.created if c[1] != resource_id]

    def cleanup(self) -> List[str]:
        """
        Delete every resource still recorded as created.

        Returns:
            Errors met while deleting; resources that are already gone
            are not errors
        """
        errors = []
        for kind, resource_id in reversed(self.created):
            try:
                if kind == "snapshot":
                    self.client.delete_snapshot(resource_id, trace_id=self.trace_id)
                else:
                    self.client.delete_volume(resource_id, trace_id=self.trace_id)
            except APIError as e:
                if not e.not_found():
                    logger.warning(f"Cleanup of {kind} {resource_id} failed: {e}")
                    errors.append(f"{kind} {resource_id}: {e}")
        self.created = []
        return errors

    def run_full_check(self) -> Dict[str, Any]:
        """
        Run the full lifecycle check suite.

        Returns:
            Dictionary with check results
        """
        results: Dict[str, Any] = {
            "endpoint": self.client.endpoint,
            "trace_id": self.trace_id,
            "checks": {},
            "success": True,
        }
        try:
            self._run_steps(results["checks"])
        finally:
            results["cleanup_errors"] = self.cleanup()

        results["success"] = not results["cleanup_errors"] and all(
            v for k, v in results["checks"].items() if not k.endswith("_error")
        )
        return results

    def _run_steps(self, checks: Dict[str, Any]) -> None:
        client = self.client
        trace_id = self.trace_id
        volume_name = random_name(self.prefix)
        snapshot_name = volume_name + "_snapshot"
        clone_name = random_name("new_volume_from_snap")

        def create_volume():
            created = client.create_volume(volume_name, self.size, trace_id=trace_id)
            expect(bool(created.id), "create returned an empty volume id")
            self.created.append(("volume", created.id))
            return created.id

        ok, volume_id = self._step(checks, "create_volume", create_volume)
        if not ok:
            return

        def get_volume():
            volume = client.get_volume(volume_id, trace_id=trace_id)
            expect(volume.name == volume_name, f"got volume named {volume.name}")

        def get_volume_by_name():
            volume = client.get_volume_by_name(volume_name, trace_id=trace_id)
            expect(volume.id == volume_id, f"name lookup returned {volume.id}")

        def duplicate_volume_name():
            try:
                created = client.create_volume(volume_name, self.size, trace_id=trace_id)
            except APIError as e:
                expect(e.volume_name_is_already_use(), f"unexpected error kind {e.kind}")
                return
            self.created.append(("volume", created.id))
            raise CheckFailed("duplicate volume name was accepted")

        self._step(checks, "get_volume", get_volume)
        self._step(checks, "get_volume_by_name", get_volume_by_name)
        self._step(checks, "duplicate_volume_name_rejected", duplicate_volume_name)

        def create_snapshot():
            try:
                snapshot = client.create_snapshot(
                    volume_id, snapshot_name, SNAPSHOT_DESCRIPTION, trace_id=trace_id
                )
            except APIError as e:
                self._track_partial("snapshot", e)
                raise
            expect(bool(snapshot.id), "create returned an empty snapshot id")
            self.created.append(("snapshot", snapshot.id))
            return snapshot

        ok, snapshot = self._step(checks, "create_snapshot", create_snapshot)
        if ok:
            self._snapshot_steps(checks, volume_id, snapshot, clone_name)

        def delete_volume():
            client.delete_volume(volume_id, trace_id=trace_id)
            self._forget(volume_id)

        def deleted_volume_not_found():
            for lookup, key in (
                (client.get_volume, volume_id),
                (client.get_volume_by_name, volume_name),
            ):
                try:
                    lookup(key, trace_id=trace_id)
                except APIError as e:
                    expect(e.volume_is_not_exist(), f"unexpected error kind {e.kind}")
                else:
                    raise CheckFailed(f"deleted volume {key} is still returned")

        ok, _ = self._step(checks, "delete_volume", delete_volume)
        if ok:
            self._step(checks, "deleted_volume_not_found", deleted_volume_not_found)

    def _snapshot_steps(
        self, checks: Dict[str, Any], volume_id: str, snapshot, clone_name: str
    ) -> None:
        client = self.client
        trace_id = self.trace_id

        def duplicate_snapshot_name():
            try:
                created = client.create_snapshot(
                    volume_id, snapshot.name, SNAPSHOT_DESCRIPTION, trace_id=trace_id
                )
            except APIError as e:
                self._track_partial("snapshot", e)
                expect(e.snapshot_name_is_already_use(), f"unexpected error kind {e.kind}")
                return
            self.created.append(("snapshot", created.id))
            raise CheckFailed("duplicate snapshot name was accepted")

        def snapshots_by_volume():
            snapshots = client.get_snapshots_by_volume_id(volume_id, trace_id=trace_id)
            expect(len(snapshots) == 1, f"expected 1 snapshot, got {len(snapshots)}")
            expect(snapshots[0].id == snapshot.id, "listed snapshot id differs")

        def clone_volume():
            try:
                clone = client.create_volume_from_snapshot(
                    snapshot.id, clone_name, trace_id=trace_id
                )
            except APIError as e:
                self._track_partial("volume", e)
                raise
            self.created.append(("volume", clone.id))
            expect(bool(clone.id), "clone returned an empty volume id")
            expect(clone.id != volume_id, "clone reused the parent volume id")
            return clone.id

        self._step(checks, "duplicate_snapshot_name_rejected", duplicate_snapshot_name)
        self._step(checks, "get_snapshots_by_volume_id", snapshots_by_volume)

        ok, clone_id = self._step(checks, "create_volume_from_snapshot", clone_volume)
        if ok:
            def delete_clone():
                client.delete_volume(clone_id, trace_id=trace_id)
                self._forget(clone_id)

            self._step(checks, "delete_clone", delete_clone)

        def delete_snapshot():
            client.delete_snapshot(snapshot.id, trace_id=trace_id)
            self._forget(snapshot.id)

        def deleted_snapshot_not_found():
            try:
                client.get_snapshot(snapshot.id, trace_id=trace_id)
            except APIError as e:
                expect(e.snapshot_is_not_exist(), f"unexpected error kind {e.kind}")
                return
            raise CheckFailed(f"deleted snapshot {snapshot.id} is still returned")

        ok, _ = self._step(checks, "delete_snapshot", delete_snapshot)
        if ok:
            self._step(checks, "deleted_snapshot_not_found", deleted_snapshot_not_found)


def run_lifecycle_checks(
    client: PowerStoreClient,
    size: int = DEFAULT_VOLUME_SIZE,
    trace_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Run the lifecycle checks against an array.

    Args:
        client: Client connected to the array
        size: Volume size in bytes
        trace_id: Correlation token sent with every call

    Returns:
        Dictionary with check results
    """
    return LifecycleChecks(client, size=size, trace_id=trace_id).run_full_check()
