"""Prefect API response interpretation."""

from typing import Any, Union

import httpx

from prefect_trigger.exceptions import ApiError, DecodeError, ProtocolError

JsonValue = Union[dict[str, Any], list[Any], str, int, float, bool, None]


def _error_detail(response: httpx.Response) -> str:
    """Extract the error description from an error response.

    Prefers "detail", then "message"; falls back to the raw body.
    """
    body = response.text
    try:
        data = response.json()
    except ValueError:
        return body
    if isinstance(data, dict):
        if "detail" in data:
            return str(data["detail"])
        if "message" in data:
            return str(data["message"])
    return body


def check_error(response: httpx.Response) -> None:
    """Raise ApiError if the response has an HTTP error status."""
    if response.status_code >= 400:
        raise ApiError(response.status_code, _error_detail(response))


def parse_response(response: httpx.Response) -> JsonValue:
    """Check the status and decode the JSON body.

    Raises:
        ApiError: If status >= 400
        DecodeError: If the body is not valid JSON
    """
    check_error(response)
    try:
        return response.json()
    except ValueError as e:
        raise DecodeError(response.text, str(e)) from e


def expect_mapping(value: JsonValue, what: str) -> dict[str, Any]:
    """Return value as a JSON object or raise ProtocolError."""
    if not isinstance(value, dict):
        raise ProtocolError(f"Expected a JSON object for {what}, got {type(value).__name__}")
    return value
