import httpx
import pytest

from hubspot_mcp.core.errors import (
    BcpError,
    ErrorCode,
    code_for_status,
    status_of,
    wrap_error,
)


class UpstreamError(Exception):
    def __init__(self, message, status_code):
        super().__init__(message)
        self.status_code = status_code


def test_default_status_follows_code():
    assert BcpError("bad token", ErrorCode.AUTH_ERROR).http_status == 401
    assert BcpError("missing", ErrorCode.NOT_FOUND).http_status == 404
    assert BcpError("boom").http_status == 500
    assert BcpError("boom").code == ErrorCode.API_ERROR


def test_code_accepts_plain_string():
    error = BcpError("no token", "CONFIG_ERROR", 400)
    assert error.code is ErrorCode.CONFIG_ERROR
    assert error.to_dict() == {"error": "no token", "code": "CONFIG_ERROR", "status": 400}


def test_wrap_error_passes_bcp_error_through_unchanged():
    original = BcpError("Contact not found", ErrorCode.NOT_FOUND, 404)
    assert wrap_error(original, "Tool get_contact failed") is original


def test_wrap_error_without_status_defaults_to_500():
    error = wrap_error(RuntimeError("socket closed"))
    assert error.code == ErrorCode.API_ERROR
    assert error.http_status == 500
    assert error.message == "socket closed"


def test_wrap_error_preserves_upstream_status():
    error = wrap_error(UpstreamError("slow down", 429), "Tool recent_deals failed")
    assert error.code == ErrorCode.API_ERROR
    assert error.http_status == 429
    assert error.message == "Tool recent_deals failed: slow down"


def test_status_of_http_status_error():
    request = httpx.Request("GET", "https://api.hubapi.com/crm/v3/objects/deals/1")
    response = httpx.Response(403, request=request)
    exc = httpx.HTTPStatusError("forbidden", request=request, response=response)
    assert status_of(exc) == 403
    assert status_of(ValueError("plain")) is None


def test_integer_code_attribute_is_not_an_http_status():
    exc = OSError(404, "No such file")
    exc.code = 404

    assert status_of(exc) is None
    assert wrap_error(exc).http_status == 500


@pytest.mark.parametrize(
    "status, code",
    [
        (401, ErrorCode.AUTH_ERROR),
        (403, ErrorCode.PERMISSION_ERROR),
        (404, ErrorCode.NOT_FOUND),
        (409, ErrorCode.VALIDATION_ERROR),
        (429, ErrorCode.RATE_LIMIT),
        (502, ErrorCode.API_ERROR),
    ],
)
def test_code_for_status(status, code):
    assert code_for_status(status) == code
