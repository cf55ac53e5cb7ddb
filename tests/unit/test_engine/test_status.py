"""Tests for status projection."""

from __future__ import annotations

from holdsteady.domain.models import StatusKind
from holdsteady.engine.status import project_status


class TestProjectStatus:
    def test_loading_before_provider_ready(self) -> None:
        status = project_status(0, False, provider_ready=False, threshold=20)
        assert status.kind is StatusKind.LOADING
        assert status.message == "Loading face model..."

    def test_unavailable_when_provider_failed(self) -> None:
        status = project_status(
            0, False, provider_ready=False, threshold=20,
            subject="document", provider_failed=True,
        )
        assert status.kind is StatusKind.UNAVAILABLE
        assert status.message == "Document model loading failed"

    def test_camera_error_wins(self) -> None:
        status = project_status(
            5, True, provider_ready=True, threshold=20, camera_failed=True
        )
        assert status.kind is StatusKind.CAMERA_ERROR

    def test_progress_while_stabilizing(self) -> None:
        status = project_status(9, True, provider_ready=True, threshold=20)
        assert status.kind is StatusKind.STABILIZING
        assert status.progress == 45
        assert status.message == "Hold steady... 45%"

    def test_progress_is_rounded(self) -> None:
        assert project_status(3, True, True, threshold=7).progress == 43

    def test_counter_wins_over_missing_detection(self) -> None:
        status = project_status(4, False, provider_ready=True, threshold=20)
        assert status.kind is StatusKind.STABILIZING

    def test_hold_steady_when_accepted_with_zero_counter(self) -> None:
        status = project_status(0, True, provider_ready=True, threshold=20)
        assert status.kind is StatusKind.HOLD_STEADY
        assert status.message == "Hold steady to capture"

    def test_align_otherwise(self) -> None:
        status = project_status(0, False, provider_ready=True, threshold=20, subject="document")
        assert status.kind is StatusKind.ALIGN
        assert status.message == "Align document within frame"
