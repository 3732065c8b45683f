from fastapi import APIRouter, Depends, Response
from typing import List
import logging

from app.storage.dynamodb import DynamoDBService
from app.storage.image_host import ImageHostClient
from app.dependencies.dependencies import (
    get_current_identity,
    get_dynamodb_service,
    get_image_host_client,
    get_image_payload,
    get_owned_image,
)
from app.image_service.service import (
    create_image,
    fetch_images,
    patch_image,
    remove_image,
    replace_image,
)
from app.image_service.models import (
    CreateImageResponse,
    Identity,
    ImageItem,
    ImageMeta,
    ImagePayload,
    to_image_item,
)

log = logging.getLogger(__name__)

router = APIRouter(
    prefix="/images",
    tags=["images"]
)

@router.get("", response_model=List[ImageItem])
def list_images_handler(
    identity: Identity = Depends(get_current_identity),
    db: DynamoDBService = Depends(get_dynamodb_service),
):
    """Lists the caller's images."""
    return fetch_images(db, identity.owner)

@router.post("", response_model=CreateImageResponse, status_code=201)
def create_image_handler(
    identity: Identity = Depends(get_current_identity),
    payload: ImagePayload = Depends(get_image_payload),
    db: DynamoDBService = Depends(get_dynamodb_service),
    host: ImageHostClient = Depends(get_image_host_client),
):
    """Uploads an image to the image host and stores its metadata."""
    return create_image(db, host, identity, payload)

@router.get("/{image_id}", response_model=ImageItem)
def get_image(meta: ImageMeta = Depends(get_owned_image)):
    """Gets image metadata."""
    return to_image_item(meta)

@router.put("/{image_id}", status_code=204)
def replace_image_handler(
    meta: ImageMeta = Depends(get_owned_image),
    payload: ImagePayload = Depends(get_image_payload),
    db: DynamoDBService = Depends(get_dynamodb_service),
    host: ImageHostClient = Depends(get_image_host_client),
):
    """Replaces the image content and its description/location."""
    replace_image(db, host, meta, payload)
    return Response(status_code=204)

@router.patch("/{image_id}", status_code=204)
def patch_image_handler(
    meta: ImageMeta = Depends(get_owned_image),
    payload: ImagePayload = Depends(get_image_payload),
    db: DynamoDBService = Depends(get_dynamodb_service),
    host: ImageHostClient = Depends(get_image_host_client),
):
    """Partially updates an image."""
    patch_image(db, host, meta, payload)
    return Response(status_code=204)

@router.delete("/{image_id}", status_code=204)
def delete_image(
    meta: ImageMeta = Depends(get_owned_image),
    db: DynamoDBService = Depends(get_dynamodb_service),
    host: ImageHostClient = Depends(get_image_host_client),
):
    """Deletes an image from the image host and its metadata."""
    remove_image(db, host, meta)
    return Response(status_code=204)
