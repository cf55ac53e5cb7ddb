"""Subject detection module for holdsteady.

Public API:
    DetectionProvider -- Abstract detector base class
    HaarFaceDetector -- OpenCV Haar cascade face detector
    ContourDocumentDetector -- OpenCV contour document detector
    create_detector -- Build the detector for a detection mode
"""

from __future__ import annotations

from holdsteady.detection.base import (
    DetectionError,
    DetectionProvider,
    ProviderUnavailableError,
)
from holdsteady.domain.models import DetectionMode

__all__ = [
    "ContourDocumentDetector",
    "DetectionError",
    "DetectionProvider",
    "HaarFaceDetector",
    "ProviderUnavailableError",
    "create_detector",
]


def create_detector(mode: DetectionMode, config=None) -> DetectionProvider:
    """Build the detector for ``mode`` from a ``DetectionConfig``."""
    from holdsteady.config.settings import DetectionConfig

    config = config or DetectionConfig()
    if mode is DetectionMode.FACE:
        from holdsteady.detection.face import HaarFaceDetector
        return HaarFaceDetector(
            cascade_path=config.face_cascade,
            scale_factor=config.face_scale_factor,
            min_neighbors=config.face_min_neighbors,
            min_size=config.face_min_size,
        )
    from holdsteady.detection.document import ContourDocumentDetector
    return ContourDocumentDetector(
        canny_low=config.document_canny_low,
        canny_high=config.document_canny_high,
        candidates=config.document_candidates,
    )


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "HaarFaceDetector":
        from holdsteady.detection.face import HaarFaceDetector
        return HaarFaceDetector
    if name == "ContourDocumentDetector":
        from holdsteady.detection.document import ContourDocumentDetector
        return ContourDocumentDetector
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
