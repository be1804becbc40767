"""Lsky Pro image host client.

Copies a finished image from the fal.ai CDN to a self-hosted Lsky Pro
instance so the gallery keeps working after the upstream URL expires.
"""
import logging

import aiohttp

from .aiohttp_request_manager import AiohttpRequestManager, NetworkError
from .errors import RehostError

logger = logging.getLogger(__name__)


class LskyRehoster:
    """Download an image and upload it to Lsky Pro."""

    def __init__(
        self,
        base_url: str,
        token: str,
        strategy_id: str = "1",
        requests: AiohttpRequestManager | None = None,
    ):
        self.upload_url = base_url.rstrip("/") + "/api/v1/upload"
        self.strategy_id = strategy_id
        self._requests = requests or AiohttpRequestManager(auth_scheme="Bearer")
        self._requests.set_auth(token)

    async def rehost(self, image_url: str) -> str:
        """Return the Lsky URL for ``image_url``.

        Raises:
            RehostError: if the download, the upload, or the Lsky response fails.
        """
        try:
            logger.info(f"Downloading image from: {image_url}")
            data = await self._requests.download(image_url)

            form = aiohttp.FormData()
            form.add_field("file", data, filename="generated-image.png", content_type="image/png")
            form.add_field("strategy_id", str(self.strategy_id))

            logger.info(f"Uploading to Lsky: {self.upload_url}")
            result = await self._requests.post_form(self.upload_url, form)
        except NetworkError as e:
            raise RehostError(f"Lsky Pro upload failed: {e.message}") from e

        data = result.get("data")
        links = data.get("links") if isinstance(data, dict) else None
        url = links.get("url") if isinstance(links, dict) else None
        if result.get("status") is True and isinstance(url, str) and url:
            logger.info(f"Lsky Pro upload successful. New URL: {url}")
            return url
        raise RehostError(f"Lsky Pro returned an error: {result.get('message') or 'Unknown error'}")

    async def close(self):
        await self._requests.close()
