"""Tests for error classification and messages."""

from area_admin.core.errors import (
    NETWORK_ERROR_MESSAGE,
    ErrorKind,
    FieldValidationError,
    HttpError,
    TransportError,
    UnexpectedError,
    describe_error,
    format_field_errors,
)


def test_errors_are_tagged():
    assert HttpError(404).to_dict()["kind"] == "http"
    assert TransportError("down").to_dict() == {"kind": "transport", "message": "down"}
    assert UnexpectedError("x").kind is ErrorKind.UNEXPECTED

    payload = FieldValidationError({"area_id": ["Please enter area ID"]}).to_dict()
    assert payload["kind"] == "validation"
    assert payload["field_errors"] == {"area_id": ["Please enter area ID"]}


def test_field_errors_are_concatenated():
    body = {"area_id": ["already exists"], "area_name": ["too long", "invalid"]}

    assert format_field_errors(body) == "area_id: already exists, area_name: too long,invalid"


def test_client_error_with_field_map():
    error = HttpError(400, {"area_id": ["already exists"]}, "Bad Request")

    assert describe_error(error, "Failed to create area") == (
        "Failed to create area: area_id: already exists"
    )


def test_server_error_uses_status_text():
    error = HttpError(503, {"detail": "maintenance"}, "Service Unavailable")

    assert describe_error(error, "Failed to update area") == (
        "Failed to update area: 503 Service Unavailable"
    )


def test_client_error_without_structured_body_uses_status_text():
    error = HttpError(404, "Not Found", "Not Found")

    assert describe_error(error, "Failed to load areas") == "Failed to load areas: 404 Not Found"


def test_transport_and_unexpected_errors():
    assert describe_error(TransportError("refused"), "Failed to create area") == NETWORK_ERROR_MESSAGE
    assert (
        describe_error(UnexpectedError("boom"), "Failed to create area", "Error creating area")
        == "Error creating area: boom"
    )
    assert describe_error(RuntimeError("raw"), "Failed") == "Failed: raw"
