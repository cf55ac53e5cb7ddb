"""Derives the user-facing status line from engine state."""

from __future__ import annotations

from holdsteady.domain.models import SessionStatus, StatusKind


def project_status(
    counter: int,
    accepted: bool,
    provider_ready: bool,
    threshold: int,
    subject: str = "face",
    provider_failed: bool = False,
    camera_failed: bool = False,
) -> SessionStatus:
    """Map the current counters and readiness flags to a status."""
    if camera_failed:
        return SessionStatus(kind=StatusKind.CAMERA_ERROR, message="Camera access failed")
    if provider_failed:
        return SessionStatus(
            kind=StatusKind.UNAVAILABLE,
            message=f"{subject.capitalize()} model loading failed",
        )
    if not provider_ready:
        return SessionStatus(kind=StatusKind.LOADING, message=f"Loading {subject} model...")
    if counter > 0:
        progress = min(100, round(100 * counter / threshold))
        return SessionStatus(
            kind=StatusKind.STABILIZING,
            message=f"Hold steady... {progress}%",
            progress=progress,
        )
    if accepted:
        return SessionStatus(kind=StatusKind.HOLD_STEADY, message="Hold steady to capture")
    return SessionStatus(kind=StatusKind.ALIGN, message=f"Align {subject} within frame")
