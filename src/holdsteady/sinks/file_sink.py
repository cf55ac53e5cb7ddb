"""Saves captured artifacts as image files."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from holdsteady.domain.models import CaptureArtifact
from holdsteady.sinks.base import CaptureSink, CaptureSinkError

logger = logging.getLogger(__name__)


class FileCaptureSink(CaptureSink):
    """Writes each capture to ``output_dir`` using ``filename_template``.

    The template may reference ``{mode}``, ``{timestamp}`` and
    ``{frame}``. A debug image, when supplied, is written beside the
    capture with a ``_debug`` suffix.
    """

    def __init__(
        self,
        output_dir: str | Path = "captures",
        filename_template: str = "captured_{mode}_{timestamp}.jpg",
        mode: str = "face",
    ) -> None:
        self._output_dir = Path(output_dir)
        self._template = filename_template
        self._mode = mode
        self._saved: list[Path] = []

    @property
    def mode(self) -> str:
        return self._mode

    @mode.setter
    def mode(self, value: str) -> None:
        self._mode = value

    @property
    def saved(self) -> list[Path]:
        """Paths written so far, in order."""
        return list(self._saved)

    async def open(self) -> None:
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise CaptureSinkError(
                f"Cannot create output directory {self._output_dir}: {e}", sink="file"
            ) from e

    async def close(self) -> None:
        pass

    async def deliver(
        self, artifact: CaptureArtifact, debug_image: bytes | None = None
    ) -> None:
        name = self._template.format(
            mode=self._mode,
            timestamp=artifact.timestamp.strftime("%Y%m%d_%H%M%S_%f"),
            frame=artifact.frame_number,
        )
        path = self._output_dir / name
        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(None, path.write_bytes, artifact.image)
            if debug_image is not None:
                debug_path = path.with_name(f"{path.stem}_debug{path.suffix}")
                await loop.run_in_executor(None, debug_path.write_bytes, debug_image)
        except OSError as e:
            raise CaptureSinkError(f"Failed to write {path}: {e}", sink="file") from e
        self._saved.append(path)
        logger.info("Saved capture to %s", path)
