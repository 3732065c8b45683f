from typing import Any, Dict, List, Optional, Tuple
import logging
from botocore.exceptions import BotoCoreError, ClientError
from pydantic import AnyHttpUrl, TypeAdapter, ValidationError

from app.storage.dynamodb import DynamoDBService
from app.storage.image_host import ImageHostClient
from app.image_service.models import (
    CreateImageResponse,
    Identity,
    ImageItem,
    ImageMeta,
    ImagePayload,
    to_image_item,
)
from app.image_service.validators import validate_image_payload
from app.exceptions import DynamoDBException, ImageNotFoundException, UpstreamException

log = logging.getLogger(__name__)

_url_adapter = TypeAdapter(AnyHttpUrl)

def upstream_pair(body: Dict[str, Any]) -> Tuple[str, str]:
    """Extracts (upstream id, image url) from an image host response."""
    upstream_id = body.get("id")
    image_url = body.get("imageUrl")
    if not upstream_id or not image_url:
        raise UpstreamException(None, f"Response is missing id or imageUrl: {body}")
    try:
        _url_adapter.validate_python(image_url)
    except ValidationError:
        raise UpstreamException(None, f"Invalid imageUrl in response: {image_url}")
    return str(upstream_id), image_url

def fetch_images(db: DynamoDBService, owner: str) -> List[ImageItem]:
    """Lists the images owned by the caller."""
    try:
        items = db.find_by_owner(owner)
    except (BotoCoreError, ClientError) as e:
        log.error(f"DynamoDB find_by_owner failed: {e}")
        raise DynamoDBException("Failed to fetch images.")
    return [to_image_item(ImageMeta(**item)) for item in items]

def get_image_meta(db: DynamoDBService, image_id: str) -> ImageMeta:
    """Gets image metadata from DynamoDB, 404 if it does not exist."""
    try:
        item = db.get_metadata(image_id)
    except (BotoCoreError, ClientError) as e:
        log.error(f"DynamoDB get_image_meta failed: {e}")
        raise DynamoDBException("Failed to get image metadata.")
    if not item:
        raise ImageNotFoundException(image_id)
    return ImageMeta(**item)

def create_image(
    db: DynamoDBService,
    host: ImageHostClient,
    identity: Identity,
    payload: ImagePayload,
) -> CreateImageResponse:
    """Uploads the image to the image host, then stores its metadata."""
    validate_image_payload(payload)

    body = host.create(payload.data, payload.content_type)
    upstream_id, image_url = upstream_pair(body)

    try:
        item = db.create_metadata({
            "image_url": image_url,
            "upstream_image_id": upstream_id,
            "description": payload.description,
            "location": payload.location,
            "owner": identity.owner,
        })
    except (BotoCoreError, ClientError) as e:
        log.error(f"DynamoDB create_metadata failed: {e}")
        raise DynamoDBException("Failed to save image metadata.")

    meta = ImageMeta(**item)
    log.info("Saved image metadata %s", meta.id)
    return CreateImageResponse(
        image_url=str(meta.image_url),
        content_type=body.get("contentType", payload.content_type),
        created_at=meta.created_at,
        updated_at=meta.updated_at,
        id=meta.id,
    )

def replace_image(
    db: DynamoDBService,
    host: ImageHostClient,
    meta: ImageMeta,
    payload: ImagePayload,
):
    """Replaces the binary upstream and overwrites description and location."""
    validate_image_payload(payload)

    body = host.update(meta.upstream_image_id, payload.data, payload.content_type)

    item = meta.model_dump(mode="json")
    _apply_upstream(item, body)
    item["description"] = payload.description
    item["location"] = payload.location
    _save(db, item)

def patch_image(
    db: DynamoDBService,
    host: ImageHostClient,
    meta: ImageMeta,
    payload: ImagePayload,
):
    """
        Applies a partial update. The upstream binary and the local fields are
        committed independently: a failed upstream call does not stop the
        description/location change, the upstream error is raised afterwards.
    """
    validate_image_payload(payload, partial=True)

    item = meta.model_dump(mode="json")
    dirty = False
    upstream_error: Optional[UpstreamException] = None

    if payload.data is not None or payload.content_type is not None:
        try:
            body = host.update(meta.upstream_image_id, payload.data, payload.content_type)
            dirty = _apply_upstream(item, body)
        except UpstreamException as e:
            upstream_error = e

    if payload.description is not None:
        item["description"] = payload.description
        dirty = True
    if payload.location is not None:
        item["location"] = payload.location
        dirty = True

    if dirty:
        _save(db, item)
    if upstream_error is not None:
        raise upstream_error

def remove_image(
    db: DynamoDBService,
    host: ImageHostClient,
    meta: ImageMeta,
):
    """Removes the image from the image host, then its metadata."""
    host.delete(meta.upstream_image_id)
    try:
        db.delete_metadata(meta.id)
    except (BotoCoreError, ClientError) as e:
        log.error(f"DynamoDB delete_metadata failed: {e}")
        raise DynamoDBException("Failed to delete image metadata.")
    log.info("Deleted image %s", meta.id)

def _apply_upstream(item: Dict[str, Any], body: Optional[Dict[str, Any]]) -> bool:
    # imageUrl and upstream id only ever change together
    if not body or not (body.get("id") or body.get("imageUrl")):
        return False
    item["upstream_image_id"], item["image_url"] = upstream_pair(body)
    return True

def _save(db: DynamoDBService, item: Dict[str, Any]):
    try:
        db.save_metadata(item)
    except (BotoCoreError, ClientError) as e:
        log.error(f"DynamoDB save_metadata failed: {e}")
        raise DynamoDBException("Failed to save image metadata.")
    log.info("Updated image metadata %s", item["id"])
