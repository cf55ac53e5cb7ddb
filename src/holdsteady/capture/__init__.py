"""Frame source module for holdsteady.

Provides the live camera stream the capture session reads from. The
abstract base class allows alternative sources (e.g., file-based or
synthetic frames in tests).

Public API:
    FrameSource -- Abstract base class
    WebcamFrameSource -- OpenCV camera implementation
"""

from holdsteady.capture.base import AcquisitionError, CaptureError, FrameSource

__all__ = ["AcquisitionError", "CaptureError", "FrameSource", "WebcamFrameSource"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "WebcamFrameSource":
        from holdsteady.capture.webcam import WebcamFrameSource
        return WebcamFrameSource
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
