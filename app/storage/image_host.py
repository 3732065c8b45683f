import httpx
from typing import Optional, Dict, Any, Tuple
from app.settings import settings
from app.exceptions import UpstreamException
import logging

log = logging.getLogger(__name__)

# -------------------------
# Image host client
# -------------------------
class ImageHostClient:
    """
        Thin wrapper around the external image hosting API.
        The binary payload lives there, only metadata is kept locally.
    """
    def __init__(
        self,
        base_url: Optional[str] = None,
        token: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.base_url = (base_url or settings.image_api_url).rstrip("/")
        headers = {
            "Content-Type": "application/json",
            "X-API-Private-Token": token or settings.image_api_token,
        }
        self.client = httpx.Client(
            headers=headers,
            timeout=timeout or settings.image_api_timeout,
            transport=transport,
        )
        log.info("Initialized image host client for %s", self.base_url)

    def create(self, data: str, content_type: str) -> Dict[str, Any]:
        """Uploads a new image, returns the host's {id, imageUrl, contentType}."""
        resp = self._send("POST", self.base_url, {"data": data, "contentType": content_type})
        if resp.status_code != 201:
            raise UpstreamException(resp.status_code, f"Unexpected status on create: {resp.text}")
        body = resp.json()
        log.debug("Created upstream image %s", body.get("id"))
        return body

    def update(
        self,
        upstream_id: str,
        data: Optional[str] = None,
        content_type: Optional[str] = None,
    ) -> Optional[Dict[str, Any]]:
        """
            Replaces the binary content of an upstream image. PUT when both
            fields are supplied, PATCH otherwise.
            Returns the response body when the host sends one, else None.
        """
        payload = {}
        if data is not None:
            payload["data"] = data
        if content_type is not None:
            payload["contentType"] = content_type
        method = "PUT" if len(payload) == 2 else "PATCH"

        resp = self._send(method, self._item_url(upstream_id), payload)
        log.debug("Updated upstream image %s (%s)", upstream_id, resp.status_code)
        if resp.status_code == 204 or not resp.content:
            return None
        return resp.json()

    def delete(self, upstream_id: str):
        """Deletes an upstream image. A 404 means it is already gone."""
        resp = self._send("DELETE", self._item_url(upstream_id), ignore=(404,))
        if resp.status_code == 404:
            log.warning("Upstream image %s already deleted", upstream_id)
        else:
            log.debug("Deleted upstream image %s", upstream_id)

    def close(self):
        self.client.close()
        log.info("Closed image host client")

    def _item_url(self, upstream_id: str) -> str:
        return f"{self.base_url}/{upstream_id}"

    def _send(
        self,
        method: str,
        url: str,
        payload: Optional[Dict[str, Any]] = None,
        ignore: Tuple[int, ...] = (),
    ) -> httpx.Response:
        # Transport errors (connect, timeout) propagate to the generic handler
        resp = self.client.request(method, url, json=payload)
        if resp.status_code >= 400 and resp.status_code not in ignore:
            raise UpstreamException(resp.status_code, _error_message(resp))
        return resp

def _error_message(resp: httpx.Response) -> str:
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict) and "message" in body:
        return str(body["message"])
    return resp.text
