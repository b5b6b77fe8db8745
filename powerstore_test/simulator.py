"""
Simulated PowerStore array.

An in-memory backend speaking the same REST dialect as the array's
management API. It is mounted under a client's HTTP session with the
responses library, so tests exercise the real request and error paths
without a live array.
"""

import base64
import json
import re
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Tuple
from urllib.parse import parse_qs, urlsplit

import responses

NOT_FOUND_CODE = "0xE0A07001000B"
NAME_IN_USE_CODE = "0xE0A07001000C"
BAD_REQUEST_CODE = "0xE04040020009"
UNAUTHORIZED_CODE = "0xE09010010001"

DEFAULT_BASE_URL = "https://powerstore.simulated/api/rest"

Reply = Tuple[int, Dict[str, str], str]


@dataclass
class RecordedRequest:
    """A request received by the simulated array."""

    method: str
    path: str
    params: Dict[str, str]
    headers: Dict[str, str]
    body: Optional[Dict[str, Any]] = None


def _error(status: int, code: str, message: str, *arguments: str) -> Reply:
    body = {
        "messages": [
            {
                "code": code,
                "severity": "Error",
                "message_l10n": message,
                "arguments": list(arguments),
            }
        ]
    }
    return status, {"Content-Type": "application/json"}, json.dumps(body)


def _ok(payload: Any, status: int = 200, headers: Optional[Dict[str, str]] = None) -> Reply:
    reply_headers = {"Content-Type": "application/json"}
    reply_headers.update(headers or {})
    return status, reply_headers, json.dumps(payload)


def _matches(record: Dict[str, Any], key: str, condition: str) -> bool:
    """Apply a PostgREST-style filter such as "eq.value" or "neq.value"."""
    operator, _, expected = condition.partition(".")
    if "->>" in key:
        column, _, nested = key.partition("->>")
        actual = (record.get(column) or {}).get(nested)
    else:
        actual = record.get(key)
    if operator == "eq":
        return actual == expected
    if operator == "neq":
        return actual != expected
    raise ValueError(f"Unsupported filter operator: {operator}")


@dataclass
class SimulatedArray:
    """In-memory array holding volume, snapshot and clone records."""

    base_url: str = DEFAULT_BASE_URL
    credentials: Optional[Tuple[str, str]] = None
    records: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    requests: List[RecordedRequest] = field(default_factory=list)

    def install(self, rsps: responses.RequestsMock) -> None:
        """
        Register the array's endpoints on a responses mock.

        Args:
            rsps: Active responses mock to register callbacks on
        """
        pattern = re.compile(re.escape(self.base_url.rstrip("/")) + r"/.*")
        for method in (responses.GET, responses.POST, responses.DELETE):
            rsps.add_callback(
                method, pattern, callback=self.handle, content_type="application/json"
            )

    # Request dispatch
    def handle(self, request) -> Reply:
        parts = urlsplit(request.url)
        path = parts.path[len(urlsplit(self.base_url).path):].strip("/")
        params = {k: v[-1] for k, v in parse_qs(parts.query).items()}
        body = None
        if request.body:
            raw = request.body.decode() if isinstance(request.body, bytes) else request.body
            body = json.loads(raw)
        self.requests.append(
            RecordedRequest(
                method=request.method,
                path=path,
                params=params,
                headers=dict(request.headers),
                body=body,
            )
        )

        if self.credentials and not self._authorized(request):
            return _error(401, UNAUTHORIZED_CODE, "Authentication failed")

        segments = path.split("/")
        method = request.method
        if segments == ["cluster"] and method == "GET":
            return _ok([{"id": "0", "name": "simulated", "state": "Configured"}])
        if segments == ["volume"] and method == "GET":
            return self._list(params)
        if segments == ["volume"] and method == "POST":
            return self._create_volume(body or {})
        if len(segments) == 2 and segments[0] == "volume":
            if method == "GET":
                return self._get(segments[1])
            if method == "DELETE":
                return self._delete(segments[1])
        if len(segments) == 3 and segments[0] == "volume" and method == "POST":
            if segments[2] == "snapshot":
                return self._create_snapshot(segments[1], body or {})
            if segments[2] == "clone":
                return self._clone(segments[1], body or {})
        return _error(404, NOT_FOUND_CODE, f"No route for {method} /{path}")

    def _authorized(self, request) -> bool:
        header = request.headers.get("Authorization", "")
        if not header.startswith("Basic "):
            return False
        decoded = base64.b64decode(header[len("Basic "):]).decode()
        return tuple(decoded.split(":", 1)) == self.credentials

    # Record helpers
    def _name_taken(self, name: str, snapshot: bool) -> bool:
        for record in self.records.values():
            if record["name"] == name and (record["type"] == "Snapshot") == snapshot:
                return True
        return False

    def _new_record(self, name: str, size: int, description: str, volume_type: str,
                    protection_data: Dict[str, Any]) -> Dict[str, Any]:
        record = {
            "id": str(uuid.uuid4()),
            "name": name,
            "description": description,
            "size": size,
            "type": volume_type,
            "state": "Ready",
            "creation_timestamp": datetime.now(timezone.utc).isoformat(),
            "protection_data": protection_data,
        }
        self.records[record["id"]] = record
        return record

    def _missing(self, resource_id: str) -> Reply:
        return _error(
            404,
            NOT_FOUND_CODE,
            f"The specified volume ID {resource_id} does not exist.",
            resource_id,
        )

    def _name_conflict(self, name: str) -> Reply:
        return _error(
            422,
            NAME_IN_USE_CODE,
            f"The name {name} is already in use.",
            name,
        )

    # Endpoints
    def _list(self, params: Dict[str, str]) -> Reply:
        filters = {
            k: v for k, v in params.items() if k not in ("select", "offset", "limit")
        }
        try:
            matched = [
                r for r in self.records.values()
                if all(_matches(r, k, v) for k, v in filters.items())
            ]
        except ValueError as e:
            return _error(400, BAD_REQUEST_CODE, str(e))

        total = len(matched)
        offset = int(params.get("offset", 0))
        limit = int(params.get("limit", total or 1))
        page = matched[offset:offset + limit]
        if offset + len(page) < total:
            content_range = f"{offset}-{offset + len(page) - 1}/{total}"
            return _ok(page, status=206, headers={"Content-Range": content_range})
        return _ok(page)

    def _get(self, resource_id: str) -> Reply:
        record = self.records.get(resource_id)
        if record is None:
            return self._missing(resource_id)
        return _ok(record)

    def _delete(self, resource_id: str) -> Reply:
        if resource_id not in self.records:
            return self._missing(resource_id)
        del self.records[resource_id]
        # Snapshots go with their parent volume
        for snapshot_id in [
            r["id"] for r in self.records.values()
            if (r.get("protection_data") or {}).get("parent_id") == resource_id
        ]:
            del self.records[snapshot_id]
        return 204, {}, ""

    def _create_volume(self, body: Dict[str, Any]) -> Reply:
        name = body.get("name")
        size = body.get("size")
        if not name or not isinstance(size, int) or size <= 0:
            return _error(400, BAD_REQUEST_CODE, "A volume needs a name and a positive size.")
        if self._name_taken(name, snapshot=False):
            return self._name_conflict(name)
        record = self._new_record(name, size, body.get("description", ""), "Primary", {})
        return _ok({"id": record["id"]}, status=201)

    def _create_snapshot(self, volume_id: str, body: Dict[str, Any]) -> Reply:
        parent = self.records.get(volume_id)
        if parent is None or parent["type"] == "Snapshot":
            return self._missing(volume_id)
        name = body.get("name")
        if not name:
            return _error(400, BAD_REQUEST_CODE, "A snapshot needs a name.")
        if self._name_taken(name, snapshot=True):
            return self._name_conflict(name)
        record = self._new_record(
            name,
            parent["size"],
            body.get("description", ""),
            "Snapshot",
            {"parent_id": volume_id, "source_id": volume_id},
        )
        return _ok({"id": record["id"]}, status=201)

    def _clone(self, snapshot_id: str, body: Dict[str, Any]) -> Reply:
        source = self.records.get(snapshot_id)
        if source is None:
            return self._missing(snapshot_id)
        name = body.get("name")
        if not name:
            return _error(400, BAD_REQUEST_CODE, "A clone needs a name.")
        if self._name_taken(name, snapshot=False):
            return self._name_conflict(name)
        record = self._new_record(
            name,
            source["size"],
            body.get("description", ""),
            "Clone",
            {"source_id": snapshot_id},
        )
        return _ok({"id": record["id"]}, status=201)
