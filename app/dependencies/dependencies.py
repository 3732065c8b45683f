from typing import Optional
from fastapi import Depends, Header, Request
from app.storage.dynamodb import DynamoDBService
from app.storage.image_host import ImageHostClient
from app.security import TokenVerifier, authorize_owner
from app.exceptions import InvalidImageException
from app.image_service.models import Identity, ImageMeta, ImagePayload
from app.image_service.service import get_image_meta

def get_dynamodb_service(request: Request) -> DynamoDBService:
    """Dependency provider for DynamoDBService"""
    return request.app.state.db

def get_image_host_client(request: Request) -> ImageHostClient:
    """Dependency provider for ImageHostClient"""
    return request.app.state.image_host

def get_token_verifier(request: Request) -> TokenVerifier:
    """Dependency provider for TokenVerifier"""
    return request.app.state.verifier

def get_current_identity(
    authorization: Optional[str] = Header(None),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> Identity:
    """Authenticates the caller from the bearer token."""
    return verifier.verify(authorization)

def get_owned_image(
    image_id: str,
    identity: Identity = Depends(get_current_identity),
    db: DynamoDBService = Depends(get_dynamodb_service),
) -> ImageMeta:
    """Resolves the path id to a record (404) the caller owns (403)."""
    meta = get_image_meta(db, image_id)
    return authorize_owner(identity, meta)

async def get_image_payload(request: Request) -> ImagePayload:
    """
        Parses the JSON body. Declared after the identity and record
        dependencies so a bad body never masks a 401, 404 or 403.
    """
    try:
        return ImagePayload.model_validate(await request.json())
    except ValueError:
        raise InvalidImageException("The request body is malformed.")
