"""Forwards captured artifacts to a downstream text-extraction service."""

from __future__ import annotations

import logging

import httpx

from holdsteady.domain.models import CaptureArtifact
from holdsteady.sinks.base import CaptureSink, CaptureSinkError

logger = logging.getLogger(__name__)


class HttpCaptureForwarder(CaptureSink):
    """POSTs each capture as multipart form data to ``url``.

    The request carries the encoded crop as ``image``, the optional
    ``debug_image``, and the crop geometry as form fields.
    """

    def __init__(
        self,
        url: str,
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._url = url
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    async def open(self) -> None:
        """Create the HTTP client."""
        self._client = httpx.AsyncClient(timeout=self._timeout, transport=self._transport)
        logger.info("Forwarding captures to %s", self._url)

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def deliver(
        self, artifact: CaptureArtifact, debug_image: bytes | None = None
    ) -> None:
        if self._client is None:
            raise CaptureSinkError("Forwarder is not open", sink="http")
        files = {"image": ("capture.jpg", artifact.image, artifact.media_type)}
        if debug_image is not None:
            files["debug_image"] = ("debug.jpg", debug_image, artifact.media_type)
        crop = artifact.crop
        data = {
            "crop_x": str(crop.x),
            "crop_y": str(crop.y),
            "crop_width": str(crop.width),
            "crop_height": str(crop.height),
            "frame_number": str(artifact.frame_number),
            "captured_at": artifact.timestamp.isoformat(),
        }
        try:
            resp = await self._client.post(self._url, files=files, data=data)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise CaptureSinkError(
                f"Forwarding capture to {self._url} failed: {e}", sink="http"
            ) from e
        logger.info("Forwarded capture (%d bytes) -> %d", len(artifact.image), resp.status_code)
