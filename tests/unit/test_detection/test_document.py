"""Tests for the contour-based document detector."""

from __future__ import annotations

import cv2
import numpy as np
import pytest

from holdsteady.detection.base import DetectionError
from holdsteady.detection.document import ContourDocumentDetector
from holdsteady.domain.models import Frame


def page_frame(x: int, y: int, w: int, h: int) -> Frame:
    image = np.zeros((720, 1280, 3), dtype=np.uint8)
    cv2.rectangle(image, (x, y), (x + w, y + h), (255, 255, 255), thickness=-1)
    return Frame(image=image)


class TestContourDocumentDetector:
    @pytest.mark.asyncio
    async def test_detect_before_load_raises(self, sample_frame: Frame) -> None:
        with pytest.raises(DetectionError, match="not loaded"):
            await ContourDocumentDetector().detect(sample_frame)

    @pytest.mark.asyncio
    async def test_blank_frame_has_no_document(self, sample_frame: Frame) -> None:
        detector = ContourDocumentDetector()
        await detector.load()
        assert await detector.detect(sample_frame) is None

    @pytest.mark.asyncio
    async def test_finds_bright_page_outline(self) -> None:
        detector = ContourDocumentDetector()
        await detector.load()
        box = await detector.detect(page_frame(440, 210, 400, 300))

        assert box is not None
        assert box.x == pytest.approx(440, abs=12)
        assert box.y == pytest.approx(210, abs=12)
        assert box.width == pytest.approx(400, abs=24)
        assert box.height == pytest.approx(300, abs=24)

    @pytest.mark.asyncio
    async def test_round_blob_is_not_a_document(self) -> None:
        image = np.zeros((720, 1280, 3), dtype=np.uint8)
        cv2.circle(image, (640, 360), 200, (255, 255, 255), thickness=-1)
        detector = ContourDocumentDetector()
        await detector.load()
        assert await detector.detect(Frame(image=image)) is None

    @pytest.mark.asyncio
    async def test_close_unloads(self) -> None:
        detector = ContourDocumentDetector()
        await detector.load()
        await detector.close()
        assert not detector.is_ready
