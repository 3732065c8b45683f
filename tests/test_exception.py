import pytest
import json
from fastapi import HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from app import exceptions


@pytest.mark.asyncio
async def test_api_exception_handler():
    exc = exceptions.ImageNotFoundException("123")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.api_exception_handler(request, exc)

    assert response.status_code == 404
    # JSONResponse body is bytes, need to decode and parse
    body = json.loads(response.body.decode())
    assert body == {"detail": "Image with ID '123' not found."}


@pytest.mark.asyncio
async def test_upstream_exception_hides_vendor_message():
    exc = exceptions.UpstreamException(503, "bucket quota exceeded on node 7")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.api_exception_handler(request, exc)

    assert response.status_code == 500
    body = json.loads(response.body.decode())
    assert "quota" not in body["detail"]
    assert exc.upstream_status == 503


@pytest.mark.asyncio
async def test_http_exception_handler():
    exc = HTTPException(status_code=403, detail="Forbidden")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.http_exception_handler(request, exc)

    assert response.status_code == 403
    body = json.loads(response.body.decode())
    assert body == {"detail": "Forbidden"}


@pytest.mark.asyncio
async def test_validation_exception_handler_returns_400():
    exc = RequestValidationError([{"loc": ("body",), "msg": "field required", "type": "missing"}])
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.validation_exception_handler(request, exc)

    assert response.status_code == 400
    body = json.loads(response.body.decode())
    assert "detail" in body


@pytest.mark.asyncio
async def test_generic_exception_handler():
    exc = ValueError("Something went wrong")
    request = Request(scope={"type": "http"})
    response: JSONResponse = await exceptions.generic_exception_handler(request, exc)

    assert response.status_code == 500
    body = json.loads(response.body.decode())
    assert body == {"detail": "An unexpected error occurred."}


@pytest.mark.parametrize("exc, status", [
    (exceptions.InvalidImageException("Bad format"), 400),
    (exceptions.AuthenticationException(), 401),
    (exceptions.AuthorizationException(), 403),
    (exceptions.ImageNotFoundException("x"), 404),
    (exceptions.UpstreamException(400, "bad"), 500),
    (exceptions.DynamoDBException("boom"), 500),
])
def test_custom_exceptions_inherit_api_exception(exc, status):
    assert isinstance(exc, exceptions.APIException)
    assert exc.status_code == status
