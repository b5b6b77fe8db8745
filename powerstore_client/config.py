"""
PowerStore Client Configuration

Loads client connection settings from a YAML/JSON file or from
environment variables.
"""

import json
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional

import yaml

DEFAULT_TRACE_HEADER = "DELL-VISIBILITY"
DEFAULT_PAGE_SIZE = 1000


@dataclass
class ClientConfig:
    """Connection settings for a PowerStore array."""

    endpoint: str
    username: Optional[str] = None
    password: Optional[str] = None
    insecure: bool = False
    timeout: int = 30
    retry_attempts: int = 3
    retry_delay: float = 1.0
    trace_header: str = DEFAULT_TRACE_HEADER
    page_size: int = DEFAULT_PAGE_SIZE


def str2bool(value: str) -> bool:
    """Convert a string to a boolean using the content of the string"""
    return value.lower() in ["true", "yes", "y", "1"]


def load_config_from_file(config_path: str) -> ClientConfig:
    """
    Load client configuration from a YAML or JSON file.

    Args:
        config_path: Path to the configuration file

    Returns:
        Parsed ClientConfig object
    """
    with open(config_path, "r") as f:
        if config_path.endswith((".yml", ".yaml")):
            data = yaml.safe_load(f)
        else:
            data = json.load(f)

    return parse_config(data or {})


def load_config_from_env() -> ClientConfig:
    """
    Load client configuration from environment variables.

    Environment variables:
        POWERSTORE_CLIENT_CONFIG: JSON string with full configuration
        POWERSTORE_ENDPOINT: Management API endpoint
        POWERSTORE_USERNAME: API user
        POWERSTORE_PASSWORD: API password
        POWERSTORE_INSECURE: Skip TLS verification (true/false)
        POWERSTORE_TIMEOUT: Request timeout in seconds
        POWERSTORE_RETRY_ATTEMPTS: Attempts for failed connections

    Returns:
        Parsed ClientConfig object

    Raises:
        KeyError: If no endpoint is configured
    """
    config_json = os.environ.get("POWERSTORE_CLIENT_CONFIG")
    if config_json:
        return parse_config(json.loads(config_json))

    config = ClientConfig(
        endpoint=os.environ["POWERSTORE_ENDPOINT"],
        username=os.environ.get("POWERSTORE_USERNAME"),
        password=os.environ.get("POWERSTORE_PASSWORD"),
        insecure=str2bool(os.environ.get("POWERSTORE_INSECURE", "false")),
    )
    if os.environ.get("POWERSTORE_TIMEOUT"):
        config.timeout = int(os.environ["POWERSTORE_TIMEOUT"])
    if os.environ.get("POWERSTORE_RETRY_ATTEMPTS"):
        config.retry_attempts = int(os.environ["POWERSTORE_RETRY_ATTEMPTS"])
    return config


def parse_config(data: Dict[str, Any]) -> ClientConfig:
    """
    Parse a configuration dictionary into a ClientConfig object.

    Args:
        data: Configuration dictionary

    Returns:
        ClientConfig object
    """
    defaults = ClientConfig(endpoint="")
    return ClientConfig(
        endpoint=data["endpoint"],
        username=data.get("username"),
        password=data.get("password"),
        insecure=bool(data.get("insecure", defaults.insecure)),
        timeout=int(data.get("timeout", defaults.timeout)),
        retry_attempts=int(data.get("retryAttempts", defaults.retry_attempts)),
        retry_delay=float(data.get("retryDelay", defaults.retry_delay)),
        trace_header=data.get("traceHeader", defaults.trace_header),
        page_size=int(data.get("pageSize", defaults.page_size)),
    )
