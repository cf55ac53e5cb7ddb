"""Capture session module for holdsteady.

Contains the per-tick loop that drives detection, stabilization and
capture, and the controller that manages session lifecycles.

Public API:
    CaptureSession -- One engine run bound to one camera and detector
    CaptureController -- Starts, switches and stops sessions
"""

from holdsteady.session.controller import CaptureController
from holdsteady.session.loop import CaptureSession

__all__ = ["CaptureController", "CaptureSession"]
