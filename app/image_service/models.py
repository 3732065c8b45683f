from typing import Optional
from datetime import datetime
from pydantic import AnyHttpUrl, BaseModel, ConfigDict, field_serializer
from pydantic.alias_generators import to_camel

class ImageMeta(BaseModel):
    """Metadata record as persisted in DynamoDB."""
    id: str
    image_url: AnyHttpUrl
    upstream_image_id: str
    description: Optional[str] = None
    location: Optional[str] = None
    owner: str
    created_at: datetime
    updated_at: datetime

    @field_serializer("image_url")
    def serialize_image_url(self, image_url: AnyHttpUrl) -> str:
        return str(image_url)

class ClientModel(BaseModel):
    """Base for bodies exchanged with API clients, camelCase on the wire."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

class ImagePayload(ClientModel):
    data: Optional[str] = None
    content_type: Optional[str] = None
    description: Optional[str] = None
    location: Optional[str] = None

class ImageItem(ClientModel):
    id: str
    image_url: str
    description: Optional[str] = None
    location: Optional[str] = None
    created_at: datetime
    updated_at: datetime

class CreateImageResponse(ClientModel):
    image_url: str
    content_type: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    id: str

class Identity(BaseModel):
    """Authenticated caller, built from the access token claims."""
    owner: str
    username: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    permission_level: Optional[int] = None

def to_image_item(meta: ImageMeta) -> ImageItem:
    """Projects a stored record to its client view, dropping owner and upstream id."""
    return ImageItem(
        id=meta.id,
        image_url=str(meta.image_url),
        description=meta.description,
        location=meta.location,
        created_at=meta.created_at,
        updated_at=meta.updated_at,
    )
