"""Stabilization and capture engine for holdsteady.

Public API:
    StabilizationEngine -- Acceptance, smoothing and stability counter
    CaptureEmitter -- Padded crop + JPEG encode
    CropGeometryError -- Raised for empty crop regions
    project_status -- Status line derivation
"""

from holdsteady.engine.emitter import CaptureEmitter, CropGeometryError
from holdsteady.engine.stabilizer import StabilizationEngine
from holdsteady.engine.status import project_status

__all__ = ["CaptureEmitter", "CropGeometryError", "StabilizationEngine", "project_status"]
