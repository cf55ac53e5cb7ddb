"""Tests for the CaptureEmitter."""

from __future__ import annotations

from unittest.mock import patch

import numpy as np
import pytest

from holdsteady.domain.models import BoundingBox, CropRegion, Frame
from holdsteady.engine.emitter import CaptureEmitter, CropGeometryError
from holdsteady.utils.imaging import decode_image


class TestComputeCrop:
    def test_padding_applied_on_every_side(self) -> None:
        emitter = CaptureEmitter()
        crop = emitter.compute_crop(BoundingBox(x=500, y=260, width=280, height=200), 1280, 720)
        assert crop == CropRegion(x=460, y=220, width=360, height=280)

    def test_clamped_at_top_left(self) -> None:
        emitter = CaptureEmitter()
        crop = emitter.compute_crop(BoundingBox(x=10, y=20, width=100, height=100), 1280, 720)
        assert (crop.x, crop.y) == (0, 0)
        assert (crop.width, crop.height) == (180, 180)

    def test_clamped_at_bottom_right(self) -> None:
        emitter = CaptureEmitter()
        crop = emitter.compute_crop(BoundingBox(x=1200, y=650, width=70, height=60), 1280, 720)
        assert crop == CropRegion(x=1160, y=610, width=120, height=110)

    def test_custom_padding(self) -> None:
        emitter = CaptureEmitter(padding=0)
        crop = emitter.compute_crop(BoundingBox(x=100, y=100, width=50, height=40), 1280, 720)
        assert crop == CropRegion(x=100, y=100, width=50, height=40)

    def test_box_outside_frame_is_degenerate(self) -> None:
        emitter = CaptureEmitter()
        with pytest.raises(CropGeometryError, match="Degenerate crop"):
            emitter.compute_crop(BoundingBox(x=2000, y=100, width=50, height=50), 1280, 720)

    def test_empty_frame_is_degenerate(self) -> None:
        emitter = CaptureEmitter()
        with pytest.raises(CropGeometryError):
            emitter.compute_crop(BoundingBox(x=0, y=0, width=10, height=10), 0, 0)


class TestEmit:
    def test_emit_encodes_cropped_region(self, sample_frame: Frame) -> None:
        emitter = CaptureEmitter()
        box = BoundingBox(x=500, y=260, width=280, height=200)
        artifact = emitter.emit(sample_frame, box)

        assert artifact.media_type == "image/jpeg"
        assert artifact.image[:2] == b"\xff\xd8"
        assert artifact.source_box == box
        assert artifact.crop == CropRegion(x=460, y=220, width=360, height=280)
        assert artifact.frame_number == sample_frame.frame_number
        assert decode_image(artifact.image).shape == (280, 360, 3)

    def test_emit_reads_from_the_given_frame_pixels(self) -> None:
        image = np.zeros((720, 1280, 3), dtype=np.uint8)
        image[220:500, 460:820] = (255, 255, 255)
        frame = Frame(image=image, frame_number=7)
        artifact = CaptureEmitter().emit(frame, BoundingBox(x=500, y=260, width=280, height=200))
        decoded = decode_image(artifact.image)
        assert decoded.mean() > 240

    def test_emit_uses_configured_quality(self, sample_frame: Frame) -> None:
        emitter = CaptureEmitter(quality=0.5)
        with patch("holdsteady.engine.emitter.encode_jpeg", return_value=b"jpeg") as enc:
            artifact = emitter.emit(sample_frame, BoundingBox(x=500, y=260, width=280, height=200))
        assert artifact.image == b"jpeg"
        assert enc.call_args.args[1] == 0.5
        assert enc.call_args.args[0].shape == (280, 360, 3)

    def test_encode_failure_raises_geometry_error(self, sample_frame: Frame) -> None:
        emitter = CaptureEmitter()
        with patch(
            "holdsteady.engine.emitter.encode_jpeg", side_effect=ValueError("encoder broke")
        ):
            with pytest.raises(CropGeometryError, match="encoder broke"):
                emitter.emit(sample_frame, BoundingBox(x=500, y=260, width=280, height=200))

    def test_data_uri(self, sample_frame: Frame) -> None:
        artifact = CaptureEmitter().emit(
            sample_frame, BoundingBox(x=500, y=260, width=280, height=200)
        )
        assert artifact.to_data_uri().startswith("data:image/jpeg;base64,/9j/")
