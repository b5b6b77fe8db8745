"""
PowerStore API Errors

Classified error type raised by the PowerStore client. Callers inspect the
error kind or its predicates instead of matching on message text.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

import requests


class ErrorKind(Enum):
    """Classification of a failed API call."""

    NOT_FOUND = "not_found"
    NAME_IN_USE = "name_in_use"
    BAD_REQUEST = "bad_request"
    UNAUTHORIZED = "unauthorized"
    FORBIDDEN = "forbidden"
    UNPROCESSABLE = "unprocessable"
    SERVER_ERROR = "server_error"
    TRANSPORT = "transport"
    UNKNOWN = "unknown"


class ResourceKind(Enum):
    """Kind of resource an operation targeted."""

    VOLUME = "volume"
    SNAPSHOT = "snapshot"


# Message codes the array returns with a 422 when a name is taken
NAME_IN_USE_CODES = frozenset(
    {
        "0xE0A07001000C",
        "0xE0A08001000C",
    }
)

_STATUS_KINDS = {
    400: ErrorKind.BAD_REQUEST,
    401: ErrorKind.UNAUTHORIZED,
    403: ErrorKind.FORBIDDEN,
    404: ErrorKind.NOT_FOUND,
}


@dataclass
class ErrorMessage:
    """A single entry of the array's error body."""

    code: str = ""
    severity: str = ""
    message: str = ""
    arguments: List[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ErrorMessage":
        return cls(
            code=data.get("code", ""),
            severity=data.get("severity", ""),
            message=data.get("message_l10n") or data.get("message", ""),
            arguments=list(data.get("arguments") or []),
        )


def classify(status_code: Optional[int], messages: List[ErrorMessage]) -> ErrorKind:
    """
    Map an HTTP status and error body to an ErrorKind.

    Args:
        status_code: HTTP status of the response, None for transport failures
        messages: Parsed error messages from the response body

    Returns:
        The matching ErrorKind
    """
    if status_code is None:
        return ErrorKind.TRANSPORT
    if status_code == 422:
        codes = {m.code for m in messages if m.code}
        if not codes or codes & NAME_IN_USE_CODES:
            return ErrorKind.NAME_IN_USE
        return ErrorKind.UNPROCESSABLE
    if status_code >= 500:
        return ErrorKind.SERVER_ERROR
    return _STATUS_KINDS.get(status_code, ErrorKind.UNKNOWN)


class APIError(Exception):
    """Error returned by the PowerStore management API."""

    def __init__(
        self,
        kind: ErrorKind,
        message: str,
        status_code: Optional[int] = None,
        resource: Optional[ResourceKind] = None,
        reference: Optional[str] = None,
        messages: Optional[List[ErrorMessage]] = None,
        trace_id: Optional[str] = None,
        created_id: Optional[str] = None,
    ):
        super().__init__(message)
        self.kind = kind
        self.message = message
        self.status_code = status_code
        self.resource = resource
        self.reference = reference
        self.messages = messages or []
        self.trace_id = trace_id
        # Id of a resource the failed call had already created on the array
        self.created_id = created_id

    def __str__(self) -> str:
        status = self.status_code if self.status_code is not None else "-"
        return f"APIError({self.kind.value}, status={status}): {self.message}"

    @classmethod
    def from_response(
        cls,
        response: requests.Response,
        resource: Optional[ResourceKind] = None,
        reference: Optional[str] = None,
        trace_id: Optional[str] = None,
    ) -> "APIError":
        """
        Build an APIError from a non-successful HTTP response.

        Args:
            response: The failed response
            resource: Kind of resource the call targeted
            reference: Identifier or name the call was about
            trace_id: Trace id sent with the request

        Returns:
            Classified APIError
        """
        messages = []
        try:
            body = response.json()
        except ValueError:
            body = None
        raw_messages = body.get("messages") if isinstance(body, dict) else None
        if isinstance(raw_messages, list):
            messages = [ErrorMessage.from_dict(m) for m in raw_messages if isinstance(m, dict)]

        if messages and messages[0].message:
            text = messages[0].message
        else:
            text = response.reason or f"HTTP {response.status_code}"

        return cls(
            kind=classify(response.status_code, messages),
            message=text,
            status_code=response.status_code,
            resource=resource,
            reference=reference,
            messages=messages,
            trace_id=trace_id,
        )

    @classmethod
    def not_found_for(
        cls,
        resource: ResourceKind,
        reference: str,
        trace_id: Optional[str] = None,
    ) -> "APIError":
        """Build a NOT_FOUND error for a lookup that matched nothing."""
        return cls(
            kind=ErrorKind.NOT_FOUND,
            message=f"{resource.value} {reference} does not exist",
            status_code=404,
            resource=resource,
            reference=reference,
            trace_id=trace_id,
        )

    def not_found(self) -> bool:
        return self.kind is ErrorKind.NOT_FOUND

    def name_is_already_use(self) -> bool:
        return self.kind is ErrorKind.NAME_IN_USE

    def volume_is_not_exist(self) -> bool:
        """True if the error says the targeted volume does not exist."""
        return self.not_found() and self.resource is ResourceKind.VOLUME

    def volume_name_is_already_use(self) -> bool:
        """True if the error says the volume name is already in use."""
        return self.name_is_already_use() and self.resource is ResourceKind.VOLUME

    def snapshot_is_not_exist(self) -> bool:
        """True if the error says the targeted snapshot does not exist."""
        return self.not_found() and self.resource is ResourceKind.SNAPSHOT

    def snapshot_name_is_already_use(self) -> bool:
        """True if the error says the snapshot name is already in use."""
        return self.name_is_already_use() and self.resource is ResourceKind.SNAPSHOT
