"""Tests for image utilities."""

from __future__ import annotations

from unittest.mock import patch

import numpy as np
import pytest

from holdsteady.domain.models import BoundingBox, SessionStatus, StatusKind
from holdsteady.utils.imaging import decode_image, draw_overlay, encode_jpeg


class TestEncodeJpeg:
    def test_produces_jpeg(self, sample_image: np.ndarray) -> None:
        data = encode_jpeg(sample_image)
        assert data[:3] == b"\xff\xd8\xff"
        assert decode_image(data).shape == (720, 1280, 3)

    def test_quality_is_mapped_to_percent(self, sample_image: np.ndarray) -> None:
        with patch("holdsteady.utils.imaging.cv2.imencode") as imencode:
            imencode.return_value = (True, np.frombuffer(b"jpeg", dtype=np.uint8))
            encode_jpeg(sample_image, quality=0.9)
        params = imencode.call_args.args[2]
        assert params[1] == 90

    def test_lower_quality_is_smaller(self) -> None:
        rng = np.random.default_rng(0)
        noisy = rng.integers(0, 255, size=(240, 320, 3), dtype=np.uint8)
        assert len(encode_jpeg(noisy, 0.3)) < len(encode_jpeg(noisy, 0.95))

    def test_encode_failure(self, sample_image: np.ndarray) -> None:
        with patch("holdsteady.utils.imaging.cv2.imencode", return_value=(False, None)):
            with pytest.raises(ValueError, match="encode"):
                encode_jpeg(sample_image)


class TestDecodeImage:
    def test_garbage_raises(self) -> None:
        with pytest.raises(ValueError, match="decode"):
            decode_image(b"not an image")


class TestDrawOverlay:
    def test_does_not_modify_input(self, sample_image: np.ndarray) -> None:
        status = SessionStatus(kind=StatusKind.STABILIZING, message="Hold steady... 50%", progress=50)
        canvas = draw_overlay(sample_image, BoundingBox(x=440, y=210, width=400, height=300), status)
        assert sample_image.sum() == 0
        assert canvas.shape == sample_image.shape
        assert canvas.sum() > 0

    def test_box_drawn_at_edges(self, sample_image: np.ndarray) -> None:
        canvas = draw_overlay(sample_image, BoundingBox(x=440, y=210, width=400, height=300))
        assert canvas[210, 600].any()
        assert not canvas[360, 640].any()

    def test_nothing_to_draw(self, sample_image: np.ndarray) -> None:
        canvas = draw_overlay(sample_image, None)
        assert canvas.sum() == 0
