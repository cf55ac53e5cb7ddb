"""Abstract base class for subject detectors.

A detector turns one frame into at most one bounding box: the best
candidate subject, or ``None``. Detection may take longer than a display
refresh, so the interface is async and the session awaits each call
before scheduling the next.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from holdsteady.domain.models import BoundingBox, Frame

logger = logging.getLogger(__name__)


class DetectionProvider(ABC):
    """Abstract interface for single-subject detectors.

    Example usage::

        detector = HaarFaceDetector()
        await detector.load()
        box = await detector.detect(frame)
    """

    def __init__(self) -> None:
        self._ready = False

    @property
    @abstractmethod
    def subject(self) -> str:
        """What this detector looks for, in words ("face", "document")."""
        ...

    @property
    def is_ready(self) -> bool:
        """Whether ``load()`` has completed successfully."""
        return self._ready

    async def load(self) -> None:
        """Load the underlying model. Does nothing once loaded.

        Raises:
            ProviderUnavailableError: If the model cannot be loaded.
        """
        if self._ready:
            return
        try:
            await self._load()
        except ProviderUnavailableError:
            raise
        except Exception as e:
            raise ProviderUnavailableError(
                f"Failed to load {self.subject} detector: {e}"
            ) from e
        self._ready = True
        logger.info("Loaded %s detector (%s)", self.subject, type(self).__name__)

    @abstractmethod
    async def _load(self) -> None:
        ...

    @abstractmethod
    async def detect(self, frame: Frame) -> BoundingBox | None:
        """Return the best candidate box in the frame, or None.

        Raises:
            DetectionError: If the detector fails on this frame.
        """
        ...

    async def close(self) -> None:
        """Release model resources. Safe to call multiple times."""
        self._ready = False


class DetectionError(Exception):
    """Raised when a detector fails on a frame."""


class ProviderUnavailableError(DetectionError):
    """Raised when a detector cannot be initialized."""
