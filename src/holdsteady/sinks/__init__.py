"""Capture consumers for holdsteady.

Public API:
    CaptureSink -- Abstract base class
    CaptureSinkError -- Delivery failure
    FileCaptureSink -- Saves captures to disk
    HttpCaptureForwarder -- Forwards captures over HTTP
"""

from holdsteady.sinks.base import CaptureSink, CaptureSinkError
from holdsteady.sinks.file_sink import FileCaptureSink

__all__ = ["CaptureSink", "CaptureSinkError", "FileCaptureSink", "HttpCaptureForwarder"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "HttpCaptureForwarder":
        from holdsteady.sinks.http_sink import HttpCaptureForwarder
        return HttpCaptureForwarder
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
