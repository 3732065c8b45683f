from pydantic_settings import BaseSettings
from pydantic import Field, field_validator
from typing import List, Optional

class Settings(BaseSettings):
    aws_region: str = Field("us-east-1")
    dynamodb_table: str = Field("Images")
    aws_endpoint_url: Optional[str] = Field(None)

    aws_access_key_id: str = Field("test")
    aws_secret_access_key: str = Field("test")

    # Upstream image host
    image_api_url: str = Field("https://courselab.lnu.se/picture-it/images/api/v1/images")
    image_api_token: str
    image_api_timeout: float = Field(10.0, gt=0)

    # Access token verification, key is base64 encoded
    access_token_secret: str
    access_token_algorithm: str = Field("RS256")
    owner_claim: str = Field("sub")

    allowed_content_types: List[str] = Field(["image/gif", "image/jpeg", "image/png"])
    verify_image_content: bool = Field(False)

    app_title: str = Field("Image Resource Service")

    @field_validator("image_api_url")
    @classmethod
    def check_image_api_url(cls, value: str) -> str:
        if not value.startswith(("http://", "https://")):
            raise ValueError("IMAGE_API_URL must be an http(s) URL")
        return value.rstrip("/")

    @field_validator("image_api_token", "access_token_secret")
    @classmethod
    def check_not_blank(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("must not be blank")
        return value

    class Config:
        env_file = ".env"
        extra = "allow"  # tolerate unknown vars if needed

settings = Settings()
