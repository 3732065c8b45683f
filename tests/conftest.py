import os
import io
import base64
import itertools
import json
import pytest
import httpx
import jwt
from moto import mock_aws
from fastapi.testclient import TestClient
from PIL import Image

JWT_SECRET = b"image-service-test-secret-0123456789abcdef"
IMAGE_API_URL = "https://images.test/api/v1/images"

# Set test environment variables BEFORE importing app modules
# Dummy AWS credentials for moto
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["AWS_REGION"] = "us-east-1"
os.environ["DYNAMODB_TABLE"] = "Images"
# Clear the AWS_ENDPOINT_URL so moto mocks are used instead of localstack
os.environ.pop("AWS_ENDPOINT_URL", None)

os.environ["IMAGE_API_URL"] = IMAGE_API_URL
os.environ["IMAGE_API_TOKEN"] = "test-image-token"
os.environ["ACCESS_TOKEN_SECRET"] = base64.b64encode(JWT_SECRET).decode()
os.environ["ACCESS_TOKEN_ALGORITHM"] = "HS256"

from app.main import app
from app.storage.dynamodb import DynamoDBService
from app.storage.image_host import ImageHostClient
from app.dependencies.dependencies import get_dynamodb_service, get_image_host_client


def make_png_bytes(color="red"):
    """Generate a simple valid PNG in-memory."""
    img = Image.new("RGB", (10, 10), color=color)
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def make_token(sub="user1", **claims):
    payload = {"sub": sub, "given_name": "Test", "family_name": "User", "email": f"{sub}@example.com"}
    payload.update(claims)
    return jwt.encode(payload, JWT_SECRET, algorithm="HS256")


def auth_header(sub="user1"):
    return {"Authorization": f"Bearer {make_token(sub)}"}


class FakeImageHost:
    """In-memory stand-in for the image host, used as an httpx.MockTransport handler."""

    def __init__(self):
        self.requests = []
        self.fail_with = None
        self.update_body = None
        self._ids = itertools.count(1)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.fail_with:
            return httpx.Response(
                self.fail_with,
                json={"status_code": self.fail_with, "message": "Vendor says no"},
            )
        if request.method == "POST":
            upstream_id = f"up-{next(self._ids)}"
            content_type = json.loads(request.content)["contentType"]
            return httpx.Response(201, json={
                "id": upstream_id,
                "imageUrl": f"https://images.test/files/{upstream_id}.png",
                "contentType": content_type,
            })
        if request.method in ("PUT", "PATCH") and self.update_body is not None:
            return httpx.Response(201, json=self.update_body)
        return httpx.Response(204)

    def methods(self):
        return [r.method for r in self.requests]


@pytest.fixture
def auth():
    """Returns a function building an Authorization header for a subject."""
    return auth_header


@pytest.fixture
def png_b64():
    return base64.b64encode(make_png_bytes()).decode()


@pytest.fixture
def fake_host():
    return FakeImageHost()


@pytest.fixture
def image_host(fake_host):
    client = ImageHostClient(
        base_url=IMAGE_API_URL,
        token="test-image-token",
        transport=httpx.MockTransport(fake_host),
    )
    yield client
    client.close()


@pytest.fixture(scope="function")
def aws_credentials():
    """Mocked AWS Credentials for moto."""
    os.environ["AWS_ACCESS_KEY_ID"] = "testing"
    os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
    os.environ["AWS_SECURITY_TOKEN"] = "testing"
    os.environ["AWS_SESSION_TOKEN"] = "testing"


@pytest.fixture(scope="function")
def db_service(aws_credentials):
    with mock_aws():
        # Table is created by the service itself inside the moto context
        yield DynamoDBService()


@pytest.fixture(scope="function")
def test_client(db_service, image_host):
    app.dependency_overrides[get_dynamodb_service] = lambda: db_service
    app.dependency_overrides[get_image_host_client] = lambda: image_host
    try:
        with TestClient(app) as client:
            yield client
    finally:
        app.dependency_overrides.clear()
