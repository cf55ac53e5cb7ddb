"""Abstract base class for capture consumers.

A sink receives each captured artifact (and optionally a preprocessed
debug image produced downstream) and hands it to its destination: a file
on disk, a remote text-extraction service, etc.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from holdsteady.domain.models import CaptureArtifact

logger = logging.getLogger(__name__)


class CaptureSink(ABC):
    """Abstract interface for consumers of captured artifacts.

    Sinks are callable, so an opened sink can be passed directly as a
    session's capture callback. They must tolerate being called again
    after a previous capture (a new session may capture again).

    Example usage::

        async with FileCaptureSink("captures") as sink:
            session = CaptureSession(source, detector, on_capture=sink)
            await session.run()
    """

    @abstractmethod
    async def open(self) -> None:
        """Prepare the destination (create directories, connect clients).

        Raises:
            CaptureSinkError: If the destination cannot be prepared.
        """
        ...

    @abstractmethod
    async def close(self) -> None:
        """Release destination resources. Safe to call multiple times."""
        ...

    @abstractmethod
    async def deliver(
        self, artifact: CaptureArtifact, debug_image: bytes | None = None
    ) -> None:
        """Deliver one captured artifact.

        Raises:
            CaptureSinkError: If delivery fails.
        """
        ...

    async def __call__(
        self, artifact: CaptureArtifact, debug_image: bytes | None = None
    ) -> None:
        await self.deliver(artifact, debug_image)

    async def __aenter__(self) -> CaptureSink:
        """Async context manager entry -- opens the destination."""
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        """Async context manager exit -- closes the destination."""
        await self.close()


class CaptureSinkError(Exception):
    """Raised when a captured artifact cannot be delivered."""

    def __init__(self, message: str, sink: str = "") -> None:
        super().__init__(message)
        self.sink = sink
