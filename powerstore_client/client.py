"""
PowerStore REST Client

Provides a Python interface to the PowerStore management API for volume,
snapshot and clone management.
"""

import logging
import time
from typing import Any, Dict, List, Optional, Tuple

import requests

from .config import DEFAULT_PAGE_SIZE, DEFAULT_TRACE_HEADER, ClientConfig
from .errors import APIError, ErrorKind, ResourceKind
from .models import (
    VOLUME_FIELDS,
    VOLUME_TYPE_SNAPSHOT,
    CreateResponse,
    Snapshot,
    Volume,
    is_snapshot_record,
)

logger = logging.getLogger(__name__)

API_PATH = "/api/rest"


def parse_content_range(value: Optional[str]) -> Optional[int]:
    """
    Extract the total record count from a Content-Range header.

    Args:
        value: Header value such as "0-99/250"

    Returns:
        The total, or None if the header is missing or malformed
    """
    if not value or "/" not in value:
        return None
    total = value.rsplit("/", 1)[1].strip()
    if not total.isdigit():
        return None
    return int(total)


class PowerStoreClient:
    """Client for the PowerStore management REST API."""

    def __init__(
        self,
        endpoint: str,
        username: Optional[str] = None,
        password: Optional[str] = None,
        insecure: bool = False,
        timeout: int = 30,
        retry_attempts: int = 3,
        retry_delay: float = 1.0,
        trace_header: str = DEFAULT_TRACE_HEADER,
        page_size: int = DEFAULT_PAGE_SIZE,
    ):
        """
        Initialize the PowerStore client.

        Args:
            endpoint: Array management URL (e.g., https://10.0.0.1/api/rest)
            username: API user for basic authentication
            password: API password
            insecure: Skip TLS certificate verification
            timeout: Request timeout in seconds
            retry_attempts: Number of attempts for requests that fail to connect
            retry_delay: Delay between retries in seconds
            trace_header: Header used to carry trace ids
            page_size: Records requested per page on list calls
        """
        endpoint = endpoint.rstrip("/")
        if not endpoint.endswith(API_PATH):
            endpoint += API_PATH
        self.endpoint = endpoint
        self.timeout = timeout
        self.retry_attempts = max(1, retry_attempts)
        self.retry_delay = retry_delay
        self.trace_header = trace_header
        self.page_size = page_size
        self.session = requests.Session()
        self.session.headers.update(
            {
                "Accept": "application/json",
                "Content-Type": "application/json",
            }
        )
        if username:
            self.session.auth = (username, password or "")
        self.session.verify = not insecure

    @classmethod
    def from_config(cls, config: ClientConfig) -> "PowerStoreClient":
        """Build a client from a ClientConfig."""
        return cls(
            endpoint=config.endpoint,
            username=config.username,
            password=config.password,
            insecure=config.insecure,
            timeout=config.timeout,
            retry_attempts=config.retry_attempts,
            retry_delay=config.retry_delay,
            trace_header=config.trace_header,
            page_size=config.page_size,
        )

    def _request(
        self,
        method: str,
        path: str,
        data: Optional[Dict] = None,
        params: Optional[Dict] = None,
        trace_id: Optional[str] = None,
        resource: Optional[ResourceKind] = None,
        reference: Optional[str] = None,
        parent: Optional[Tuple[ResourceKind, str]] = None,
    ) -> requests.Response:
        """
        Make a request to the management API.

        Connection failures are retried; HTTP error statuses are not.

        Args:
            method: HTTP method (GET, POST, DELETE)
            path: API path below the REST root
            data: Request body data
            params: Query parameters
            trace_id: Correlation token sent in the trace header
            resource: Kind of resource the call targets
            reference: Identifier or name the call is about
            parent: Resource reported as missing on a 404, when it is not
                the targeted one

        Returns:
            The successful response

        Raises:
            APIError: If the array rejects the call or cannot be reached
        """
        url = f"{self.endpoint}/{path.lstrip('/')}"
        headers = {}
        if trace_id:
            headers[self.trace_header] = trace_id

        for attempt in range(self.retry_attempts):
            logger.debug(f"{method} {url} params={params} trace={trace_id}")
            try:
                response = self.session.request(
                    method=method,
                    url=url,
                    json=data,
                    params=params,
                    headers=headers,
                    timeout=self.timeout,
                )
                break
            except requests.RequestException as e:
                if attempt < self.retry_attempts - 1:
                    logger.warning(
                        f"Request to {url} failed (attempt {attempt + 1}): {e}"
                    )
                    time.sleep(self.retry_delay * (attempt + 1))
                else:
                    logger.error(
                        f"Request to {url} failed after {self.retry_attempts} attempts"
                    )
                    raise APIError(
                        kind=ErrorKind.TRANSPORT,
                        message=str(e),
                        resource=resource,
                        reference=reference,
                        trace_id=trace_id,
                    ) from e

        if not response.ok:
            error = APIError.from_response(
                response, resource=resource, reference=reference, trace_id=trace_id
            )
            if error.not_found() and parent is not None:
                error.resource, error.reference = parent
            logger.debug(f"{method} {url} failed: {error} trace={trace_id}")
            raise error

        return response

    @staticmethod
    def _json(response: requests.Response) -> Any:
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise APIError(
                kind=ErrorKind.UNKNOWN,
                message=f"Response body is not valid JSON: {e}",
                status_code=response.status_code,
            ) from e

    def _list(
        self,
        params: Dict[str, str],
        trace_id: Optional[str] = None,
        resource: Optional[ResourceKind] = None,
    ) -> List[Dict[str, Any]]:
        """
        Collect every record of a filtered volume query, following pages.

        Args:
            params: Filter query parameters
            trace_id: Correlation token
            resource: Kind of resource being listed

        Returns:
            List of raw records
        """
        records: List[Dict[str, Any]] = []
        while True:
            page_params = dict(params)
            page_params["select"] = ",".join(VOLUME_FIELDS)
            page_params["offset"] = str(len(records))
            page_params["limit"] = str(self.page_size)
            response = self._request(
                "GET", "/volume", params=page_params, trace_id=trace_id, resource=resource
            )
            page = self._json(response) or []
            records.extend(page)

            if response.status_code != 206 or not page:
                return records
            total = parse_content_range(response.headers.get("Content-Range"))
            if total is None or len(records) >= total:
                return records

    def _get_record(
        self, resource_id: str, resource: ResourceKind, trace_id: Optional[str]
    ) -> Dict[str, Any]:
        response = self._request(
            "GET",
            f"/volume/{resource_id}",
            params={"select": ",".join(VOLUME_FIELDS)},
            trace_id=trace_id,
            resource=resource,
            reference=resource_id,
        )
        return self._json(response)

    def get_cluster(self, trace_id: Optional[str] = None) -> List[Dict[str, Any]]:
        """
        Get the cluster records of the array.

        Returns:
            Cluster information
        """
        return self._json(self._request("GET", "/cluster", trace_id=trace_id))

    def wait_for_ready(self, timeout: int = 120, check_interval: float = 2.0) -> bool:
        """
        Wait for the management API to answer.

        Args:
            timeout: Maximum time to wait in seconds
            check_interval: Time between checks

        Returns:
            True once the array answers

        Raises:
            TimeoutError: If the array doesn't answer within timeout
        """
        start_time = time.time()
        while time.time() - start_time < timeout:
            try:
                self.get_cluster()
                logger.info("PowerStore management API is ready")
                return True
            except APIError as e:
                logger.debug(f"Readiness check failed: {e}")
            time.sleep(check_interval)

        raise TimeoutError(f"PowerStore array not ready after {timeout} seconds")

    # Volume Operations
    def create_volume(
        self,
        name: str,
        size: int,
        description: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> CreateResponse:
        """
        Create a new volume.

        Args:
            name: Volume name, unique among live volumes
            size: Volume size in bytes
            description: Optional description
            trace_id: Correlation token

        Returns:
            CreateResponse holding the new volume id

        Raises:
            ValueError: If name is empty or size is not a positive integer
            APIError: NAME_IN_USE if a live volume already has this name
        """
        if not name:
            raise ValueError("Volume name must not be empty")
        if not isinstance(size, int) or isinstance(size, bool) or size <= 0:
            raise ValueError(f"Volume size must be a positive integer, got {size!r}")

        data: Dict[str, Any] = {"name": name, "size": size}
        if description is not None:
            data["description"] = description
        response = self._request(
            "POST",
            "/volume",
            data=data,
            trace_id=trace_id,
            resource=ResourceKind.VOLUME,
            reference=name,
        )
        created = CreateResponse.from_dict(self._json(response))
        logger.info(f"Created volume {name} ({created.id})")
        return created

    def get_volume(self, volume_id: str, trace_id: Optional[str] = None) -> Volume:
        """
        Get a volume by id.

        Raises:
            APIError: NOT_FOUND if no live volume has this id
        """
        record = self._get_record(volume_id, ResourceKind.VOLUME, trace_id)
        if is_snapshot_record(record):
            raise APIError.not_found_for(ResourceKind.VOLUME, volume_id, trace_id)
        return Volume.from_dict(record)

    def get_volume_by_name(self, name: str, trace_id: Optional[str] = None) -> Volume:
        """
        Get a volume by its name.

        Raises:
            APIError: NOT_FOUND if no live volume has this name
        """
        records = self._list(
            {"name": f"eq.{name}", "type": f"neq.{VOLUME_TYPE_SNAPSHOT}"},
            trace_id=trace_id,
            resource=ResourceKind.VOLUME,
        )
        if not records:
            raise APIError.not_found_for(ResourceKind.VOLUME, name, trace_id)
        return Volume.from_dict(records[0])

    def get_volumes(self, trace_id: Optional[str] = None) -> List[Volume]:
        """List all volumes, excluding snapshots."""
        records = self._list(
            {"type": f"neq.{VOLUME_TYPE_SNAPSHOT}"},
            trace_id=trace_id,
            resource=ResourceKind.VOLUME,
        )
        return [Volume.from_dict(r) for r in records]

    def delete_volume(
        self,
        volume_id: str,
        force_internal: Optional[bool] = None,
        trace_id: Optional[str] = None,
    ) -> None:
        """
        Delete a volume.

        Args:
            volume_id: The volume id to delete
            force_internal: Delete even if the array holds internal references
            trace_id: Correlation token

        Raises:
            APIError: NOT_FOUND if no live volume has this id, snapshot ids
                included
        """
        self.get_volume(volume_id, trace_id=trace_id)
        data = None
        if force_internal is not None:
            data = {"force_internal": force_internal}
        self._request(
            "DELETE",
            f"/volume/{volume_id}",
            data=data,
            trace_id=trace_id,
            resource=ResourceKind.VOLUME,
            reference=volume_id,
        )
        logger.info(f"Deleted volume {volume_id}")

    # Snapshot Operations
    def create_snapshot(
        self,
        volume_id: str,
        name: str,
        description: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> Snapshot:
        """
        Take a snapshot of a volume.

        Args:
            volume_id: Id of the parent volume
            name: Snapshot name, unique among live snapshots
            description: Optional description
            trace_id: Correlation token

        Returns:
            The created snapshot

        Raises:
            APIError: NAME_IN_USE for a taken name, NOT_FOUND (volume) for a
                missing parent
        """
        if not name:
            raise ValueError("Snapshot name must not be empty")

        data: Dict[str, Any] = {"name": name}
        if description is not None:
            data["description"] = description
        response = self._request(
            "POST",
            f"/volume/{volume_id}/snapshot",
            data=data,
            trace_id=trace_id,
            resource=ResourceKind.SNAPSHOT,
            reference=name,
            parent=(ResourceKind.VOLUME, volume_id),
        )
        created = CreateResponse.from_dict(self._json(response))
        logger.info(f"Created snapshot {name} ({created.id}) of volume {volume_id}")
        try:
            return self.get_snapshot(created.id, trace_id=trace_id)
        except APIError as e:
            e.created_id = created.id
            raise

    def get_snapshot(self, snapshot_id: str, trace_id: Optional[str] = None) -> Snapshot:
        """
        Get a snapshot by id.

        Raises:
            APIError: NOT_FOUND if no live snapshot has this id
        """
        record = self._get_record(snapshot_id, ResourceKind.SNAPSHOT, trace_id)
        if not is_snapshot_record(record):
            raise APIError.not_found_for(ResourceKind.SNAPSHOT, snapshot_id, trace_id)
        return Snapshot.from_dict(record)

    def get_snapshots_by_volume_id(
        self, volume_id: str, trace_id: Optional[str] = None
    ) -> List[Snapshot]:
        """List the snapshots taken from a volume."""
        records = self._list(
            {
                "protection_data->>parent_id": f"eq.{volume_id}",
                "type": f"eq.{VOLUME_TYPE_SNAPSHOT}",
            },
            trace_id=trace_id,
            resource=ResourceKind.SNAPSHOT,
        )
        return [Snapshot.from_dict(r) for r in records]

    def get_snapshots(self, trace_id: Optional[str] = None) -> List[Snapshot]:
        """List all snapshots."""
        records = self._list(
            {"type": f"eq.{VOLUME_TYPE_SNAPSHOT}"},
            trace_id=trace_id,
            resource=ResourceKind.SNAPSHOT,
        )
        return [Snapshot.from_dict(r) for r in records]

    def delete_snapshot(self, snapshot_id: str, trace_id: Optional[str] = None) -> None:
        """
        Delete a snapshot.

        Raises:
            APIError: NOT_FOUND if no live snapshot has this id, volume ids
                included
        """
        self.get_snapshot(snapshot_id, trace_id=trace_id)
        self._request(
            "DELETE",
            f"/volume/{snapshot_id}",
            trace_id=trace_id,
            resource=ResourceKind.SNAPSHOT,
            reference=snapshot_id,
        )
        logger.info(f"Deleted snapshot {snapshot_id}")

    def create_volume_from_snapshot(
        self,
        snapshot_id: str,
        name: str,
        description: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> Volume:
        """
        Clone a new volume from a snapshot.

        Args:
            snapshot_id: Id of the source snapshot
            name: Name of the new volume
            description: Optional description
            trace_id: Correlation token

        Returns:
            The new volume, with its own id

        Raises:
            APIError: NOT_FOUND (snapshot) for a missing source, NAME_IN_USE
                (volume) for a taken name
        """
        if not name:
            raise ValueError("Volume name must not be empty")

        # Only snapshots are accepted as a source
        self.get_snapshot(snapshot_id, trace_id=trace_id)

        data: Dict[str, Any] = {"name": name}
        if description is not None:
            data["description"] = description
        response = self._request(
            "POST",
            f"/volume/{snapshot_id}/clone",
            data=data,
            trace_id=trace_id,
            resource=ResourceKind.VOLUME,
            reference=name,
            parent=(ResourceKind.SNAPSHOT, snapshot_id),
        )
        created = CreateResponse.from_dict(self._json(response))
        logger.info(f"Cloned volume {name} ({created.id}) from snapshot {snapshot_id}")
        try:
            return self.get_volume(created.id, trace_id=trace_id)
        except APIError as e:
            e.created_id = created.id
            raise
