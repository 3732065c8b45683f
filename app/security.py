"""
    Access token verification and ownership checks.
"""
import base64
import binascii
import logging
from typing import Optional

import jwt

from app.settings import settings
from app.exceptions import AuthenticationException, AuthorizationException
from app.image_service.models import Identity, ImageMeta

log = logging.getLogger(__name__)

class TokenVerifier:
    """Verifies bearer JWTs against the configured key and maps claims to an Identity."""
    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        owner_claim: Optional[str] = None,
    ):
        encoded = secret or settings.access_token_secret
        try:
            self.key = base64.b64decode(encoded, validate=True)
        except (binascii.Error, ValueError) as e:
            raise ValueError("ACCESS_TOKEN_SECRET must be base64 encoded") from e
        self.algorithm = algorithm or settings.access_token_algorithm
        self.owner_claim = owner_claim or settings.owner_claim

    def verify(self, authorization: Optional[str]) -> Identity:
        """Parses an Authorization header value and returns the caller identity."""
        try:
            scheme, _, token = (authorization or "").partition(" ")
            if scheme != "Bearer" or not token:
                raise ValueError("Invalid authentication scheme.")

            payload = jwt.decode(token, self.key, algorithms=[self.algorithm])
            owner = payload.get(self.owner_claim)
            if owner is None:
                raise ValueError(f"Claim '{self.owner_claim}' missing from token.")
        except (ValueError, jwt.PyJWTError) as e:
            log.info("Authentication failed: %s", e)
            raise AuthenticationException() from e

        return Identity(
            owner=str(owner),
            username=payload.get("sub"),
            first_name=payload.get("given_name"),
            last_name=payload.get("family_name"),
            email=payload.get("email"),
            permission_level=payload.get("x_permission_level"),
        )

def authorize_owner(identity: Identity, meta: ImageMeta) -> ImageMeta:
    """Returns the record if the caller owns it, raises 403 otherwise."""
    if meta.owner != identity.owner:
        log.info("Owner mismatch on image %s", meta.id)
        raise AuthorizationException()
    return meta
