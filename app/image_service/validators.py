import base64
import binascii
from io import BytesIO
from typing import Iterable

from PIL import Image

from app.settings import settings
from app.exceptions import InvalidImageException
from app.image_service.models import ImagePayload

PIL_FORMATS = {
    "GIF": "image/gif",
    "JPEG": "image/jpeg",
    "PNG": "image/png",
    "WEBP": "image/webp",
}

def decode_base64(data: str) -> bytes:
    """Decodes strict base64, raising a 400 on anything else."""
    try:
        decoded = base64.b64decode(data, validate=True)
    except (binascii.Error, ValueError):
        raise InvalidImageException("The provided data must be base64 encoded.")
    if not decoded:
        raise InvalidImageException("The provided data must be base64 encoded.")
    return decoded

def check_content_type(content_type: str, allowed: Iterable[str]):
    if content_type not in allowed:
        raise InvalidImageException("The provided content type is not valid.")

def check_image_bytes(file_bytes: bytes, content_type: str):
    """Validate that the decoded payload is a real image of the declared type."""
    try:
        img = Image.open(BytesIO(file_bytes))
        img.verify()
        mime_type = PIL_FORMATS.get((img.format or "").upper())
    except Exception:
        raise InvalidImageException("The provided data is not a valid image.")
    if mime_type != content_type:
        raise InvalidImageException("The provided data does not match the content type.")

def validate_image_payload(payload: ImagePayload, partial: bool = False):
    """
        Checks a request body before anything is sent upstream or stored.

        POST and PUT require both data and contentType. PATCH requires at least
        one known field, and checks data/contentType only when present.
    """
    if partial:
        if all(v is None for v in (payload.data, payload.content_type, payload.description, payload.location)):
            raise InvalidImageException("Nothing to update.")
    elif not payload.data or not payload.content_type:
        raise InvalidImageException("Data and/or content type not provided.")

    decoded = None
    if payload.data is not None:
        decoded = decode_base64(payload.data)
    if payload.content_type is not None:
        check_content_type(payload.content_type, settings.allowed_content_types)

    if settings.verify_image_content and decoded is not None and payload.content_type is not None:
        check_image_bytes(decoded, payload.content_type)
