"""
Tests for the errors module.
"""

from unittest.mock import MagicMock

import pytest

from powerstore_client.errors import (
    APIError,
    ErrorKind,
    ErrorMessage,
    ResourceKind,
    classify,
)


class TestClassify:
    """Tests for status/body classification."""

    @pytest.mark.parametrize(
        "status_code, kind",
        [
            (None, ErrorKind.TRANSPORT),
            (400, ErrorKind.BAD_REQUEST),
            (401, ErrorKind.UNAUTHORIZED),
            (403, ErrorKind.FORBIDDEN),
            (404, ErrorKind.NOT_FOUND),
            (409, ErrorKind.UNKNOWN),
            (500, ErrorKind.SERVER_ERROR),
            (503, ErrorKind.SERVER_ERROR),
        ],
    )
    def test_status_codes(self, status_code, kind):
        assert classify(status_code, []) is kind

    def test_unprocessable_without_code_is_name_in_use(self):
        assert classify(422, []) is ErrorKind.NAME_IN_USE

    def test_unprocessable_with_name_code(self):
        messages = [ErrorMessage(code="0xE0A07001000C")]
        assert classify(422, messages) is ErrorKind.NAME_IN_USE

    def test_unprocessable_with_other_code(self):
        messages = [ErrorMessage(code="0xE0A010010004")]
        assert classify(422, messages) is ErrorKind.UNPROCESSABLE


class TestAPIError:
    """Tests for APIError construction and predicates."""

    def test_from_response_parses_messages(self):
        response = MagicMock()
        response.status_code = 422
        response.reason = "Unprocessable Entity"
        response.json.return_value = {
            "messages": [
                {
                    "code": "0xE0A07001000C",
                    "severity": "Error",
                    "message_l10n": "The name test_vol_x is already in use.",
                    "arguments": ["test_vol_x"],
                }
            ]
        }

        error = APIError.from_response(
            response, resource=ResourceKind.VOLUME, reference="test_vol_x", trace_id="t-1"
        )

        assert error.kind is ErrorKind.NAME_IN_USE
        assert error.message == "The name test_vol_x is already in use."
        assert error.messages[0].arguments == ["test_vol_x"]
        assert error.messages[0].severity == "Error"
        assert error.trace_id == "t-1"
        assert error.volume_name_is_already_use()

    def test_from_response_without_json_body(self):
        response = MagicMock()
        response.status_code = 502
        response.reason = "Bad Gateway"
        response.json.side_effect = ValueError("not json")

        error = APIError.from_response(response)

        assert error.kind is ErrorKind.SERVER_ERROR
        assert error.message == "Bad Gateway"
        assert error.messages == []

    @pytest.mark.parametrize(
        "body",
        [
            {"messages": "x"},
            {"messages": None},
            {"messages": ["x", 3]},
            ["not", "a", "dict"],
        ],
    )
    def test_from_response_with_malformed_messages(self, body):
        response = MagicMock()
        response.status_code = 404
        response.reason = "Not Found"
        response.json.return_value = body

        error = APIError.from_response(response, resource=ResourceKind.VOLUME)

        assert error.volume_is_not_exist()
        assert error.message == "Not Found"
        assert error.messages == []

    def test_not_found_for(self):
        error = APIError.not_found_for(ResourceKind.SNAPSHOT, "snap-1")

        assert error.status_code == 404
        assert error.snapshot_is_not_exist()
        assert not error.volume_is_not_exist()
        assert "snap-1" in str(error)

    @pytest.mark.parametrize(
        "kind, resource, predicate",
        [
            (ErrorKind.NOT_FOUND, ResourceKind.VOLUME, "volume_is_not_exist"),
            (ErrorKind.NOT_FOUND, ResourceKind.SNAPSHOT, "snapshot_is_not_exist"),
            (ErrorKind.NAME_IN_USE, ResourceKind.VOLUME, "volume_name_is_already_use"),
            (ErrorKind.NAME_IN_USE, ResourceKind.SNAPSHOT, "snapshot_name_is_already_use"),
        ],
    )
    def test_predicates_are_exclusive(self, kind, resource, predicate):
        error = APIError(kind=kind, message="x", resource=resource)
        predicates = [
            "volume_is_not_exist",
            "snapshot_is_not_exist",
            "volume_name_is_already_use",
            "snapshot_name_is_already_use",
        ]

        for name in predicates:
            assert getattr(error, name)() is (name == predicate)

    def test_str(self):
        error = APIError(kind=ErrorKind.TRANSPORT, message="connection refused")
        assert str(error) == "APIError(transport, status=-): connection refused"
