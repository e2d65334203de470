"""HTTP client for the external QR code image service."""

from __future__ import annotations

import logging

import httpx

from backend import config
from engine.kernel.errors import WriteFailed
from engine.kernel.renderer import qr_code_url

logger = logging.getLogger(__name__)


class QRService:
    """Fetches QR code PNGs pointing at a profile's public page."""

    def __init__(self) -> None:
        self._base_url = config.settings.QR_SERVICE_URL

    def url_for(self, data: str, colors: dict[str, str], size: int = 1000) -> str:
        return qr_code_url(data, colors, size=size, service_url=self._base_url)

    async def fetch_png(self, data: str, colors: dict[str, str], size: int = 1000) -> bytes:
        """
        Download a QR code image.

        Raises:
            WriteFailed: the QR service is unreachable or returned an error
        """
        try:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(self.url_for(data, colors, size))
                response.raise_for_status()
                return response.content
        except httpx.HTTPError as e:
            logger.warning("QR fetch failed: %s", e)
            raise WriteFailed("Could not generate the QR code.") from e


qr_service = QRService()
