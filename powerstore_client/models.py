"""
PowerStore resource models

Dataclasses for the volume and snapshot records returned by the array.
On the wire a snapshot is a volume record of type "Snapshot" whose
protection data points at its parent volume.
"""

from dataclasses import dataclass
from typing import Any, Dict, Optional

VOLUME_TYPE_PRIMARY = "Primary"
VOLUME_TYPE_CLONE = "Clone"
VOLUME_TYPE_SNAPSHOT = "Snapshot"

# Fields requested with the "select" query parameter
VOLUME_FIELDS = (
    "id",
    "name",
    "description",
    "size",
    "type",
    "state",
    "creation_timestamp",
    "protection_data",
)


@dataclass
class CreateResponse:
    """Identifier of a newly created resource."""

    id: str

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "CreateResponse":
        return cls(id=data.get("id", ""))


@dataclass
class Volume:
    """A block volume (primary volume or clone)."""

    id: str
    name: str
    size: int
    description: str = ""
    type: str = VOLUME_TYPE_PRIMARY
    state: Optional[str] = None
    creation_timestamp: Optional[str] = None
    source_id: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Volume":
        protection = data.get("protection_data") or {}
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            size=int(data.get("size") or 0),
            description=data.get("description") or "",
            type=data.get("type") or VOLUME_TYPE_PRIMARY,
            state=data.get("state"),
            creation_timestamp=data.get("creation_timestamp"),
            source_id=protection.get("source_id"),
        )


@dataclass
class Snapshot:
    """A point-in-time snapshot of a volume."""

    id: str
    name: str
    volume_id: str
    description: str = ""
    size: int = 0
    state: Optional[str] = None
    creation_timestamp: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Snapshot":
        protection = data.get("protection_data") or {}
        return cls(
            id=data["id"],
            name=data.get("name", ""),
            volume_id=protection.get("parent_id") or "",
            description=data.get("description") or "",
            size=int(data.get("size") or 0),
            state=data.get("state"),
            creation_timestamp=data.get("creation_timestamp"),
        )


def is_snapshot_record(data: Dict[str, Any]) -> bool:
    """Check whether a raw volume record describes a snapshot."""
    return data.get("type") == VOLUME_TYPE_SNAPSHOT
