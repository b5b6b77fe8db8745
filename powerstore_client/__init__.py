"""
PowerStore Client - A Python package for the PowerStore management REST API.

This package provides utilities for:
- Volume creation, lookup and deletion
- Snapshot creation, listing and deletion
- Cloning volumes from snapshots
- Classified API errors
- Lifecycle checks against a live array
"""

from .client import PowerStoreClient
from .config import ClientConfig
from .errors import APIError, ErrorKind, ResourceKind
from .models import CreateResponse, Snapshot, Volume

__version__ = "0.1.0"

__all__ = [
    "APIError",
    "ClientConfig",
    "CreateResponse",
    "ErrorKind",
    "PowerStoreClient",
    "ResourceKind",
    "Snapshot",
    "Volume",
]
