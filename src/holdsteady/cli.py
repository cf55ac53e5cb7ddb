"""Command-line interface for holdsteady.

Provides the main entry point for running an auto-capture session or
testing the camera.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path

from holdsteady.domain.models import DetectionMode, FacingMode, TickReport

logger = logging.getLogger(__name__)

PREVIEW_WINDOW = "holdsteady"


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="holdsteady",
        description="Auto-capture a face or document once it is framed and held still",
    )
    parser.add_argument(
        "-c", "--config",
        type=Path,
        default=None,
        help="Path to YAML configuration file (default: config/holdsteady.yaml)",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    run_parser = subparsers.add_parser("run", help="Run an auto-capture session")
    run_parser.add_argument(
        "--mode", choices=[m.value for m in DetectionMode], default=None,
        help="What to capture (default from config)",
    )
    run_parser.add_argument(
        "--facing", choices=[f.value for f in FacingMode], default=None,
        help="Camera facing mode (default from config)",
    )
    run_parser.add_argument(
        "--device", type=str, default=None,
        help="Exact camera device index or path; overrides --facing",
    )
    run_parser.add_argument(
        "--output", type=Path, default=None,
        help="Directory captures are saved to",
    )
    run_parser.add_argument(
        "--forward", type=str, default=None,
        help="URL of a text-extraction service to POST captures to",
    )
    run_parser.add_argument(
        "--once", action="store_true",
        help="Stop after the first capture",
    )
    run_parser.add_argument(
        "--preview", action="store_true",
        help="Show a preview window (c: switch camera, m: switch mode, q: quit)",
    )

    subparsers.add_parser("capture-test", help="Test the camera (saves a frame)")

    return parser.parse_args(argv)


def _apply_run_overrides(settings, args) -> None:
    """Fold command-line options into the loaded settings."""
    if args.mode:
        settings.detection.mode = DetectionMode(args.mode)
    if args.facing:
        settings.camera.facing_mode = FacingMode(args.facing)
    if args.device:
        settings.camera.device_id = args.device
    if args.output:
        settings.capture.output_dir = str(args.output)
    if args.forward:
        settings.forward.url = args.forward
    if args.once:
        settings.session.stop_after_capture = True


async def _run_session(settings, preview: bool = False) -> int:
    """Initialize all components and run capture sessions."""
    from holdsteady.capture.webcam import WebcamFrameSource
    from holdsteady.session.controller import CaptureController
    from holdsteady.sinks.base import CaptureSinkError
    from holdsteady.sinks.file_sink import FileCaptureSink

    source = WebcamFrameSource(
        selection=settings.camera.selection(),
        facing_devices=settings.camera.facing_devices,
        probe_limit=settings.camera.probe_limit,
    )

    file_sink = FileCaptureSink(
        output_dir=settings.capture.output_dir,
        filename_template=settings.capture.filename_template,
        mode=settings.detection.mode.value,
    )
    sinks = [file_sink]
    if settings.forward.url:
        from holdsteady.sinks.http_sink import HttpCaptureForwarder
        sinks.append(HttpCaptureForwarder(settings.forward.url, timeout=settings.forward.timeout))

    async def on_capture(artifact, debug_image=None) -> None:
        if not await _deliver(sinks, artifact, debug_image):
            raise CaptureSinkError(
                f"No sink accepted the capture from frame {artifact.frame_number}"
            )
        print(f"Captured {artifact.crop.width}x{artifact.crop.height} "
              f"from frame {artifact.frame_number}")

    controller = CaptureController(source, on_capture=on_capture, settings=settings)

    last_message: list[str] = [""]
    latest: list[TickReport | None] = [None]

    def on_tick(report: TickReport) -> None:
        latest[0] = report
        if report.status.message != last_message[0]:
            last_message[0] = report.status.message
            logger.info("Status: %s", report.status.message)

    controller.add_observer(on_tick)

    for sink in sinks:
        await sink.open()
    try:
        await controller.start()
        if preview:
            await _preview_loop(controller, file_sink, latest)
        else:
            await controller.wait()
    finally:
        await controller.stop()
        for sink in sinks:
            await sink.close()
        if preview:
            import cv2
            cv2.destroyAllWindows()

    return len(file_sink.saved)


async def _deliver(sinks, artifact, debug_image=None) -> int:
    """Hand the artifact to every sink; return how many accepted it."""
    from holdsteady.sinks.base import CaptureSinkError

    delivered = 0
    for sink in sinks:
        try:
            await sink.deliver(artifact, debug_image)
        except CaptureSinkError as e:
            logger.error("Capture delivery via %s failed: %s", e.sink, e)
        else:
            delivered += 1
    return delivered


async def _switch_mode(controller, file_sink, mode: DetectionMode) -> None:
    # The old session is torn down first, so its captures keep the old name.
    await controller.set_mode(mode)
    file_sink.mode = mode.value


async def _preview_loop(controller, file_sink, latest) -> None:
    """Show the annotated stream until the user quits or the session ends."""
    import cv2

    from holdsteady.utils.imaging import draw_overlay

    while controller.is_running:
        report = latest[0]
        if report is not None and report.frame is not None:
            box = report.result.box if report.result is not None else None
            cv2.imshow(PREVIEW_WINDOW, draw_overlay(report.frame.image, box, report.status))
        key = cv2.waitKey(1) & 0xFF
        if key == ord("q"):
            break
        if key == ord("c"):
            latest[0] = None
            await controller.switch_camera()
        elif key == ord("m"):
            latest[0] = None
            mode = (
                DetectionMode.DOCUMENT
                if controller.mode is DetectionMode.FACE
                else DetectionMode.FACE
            )
            await _switch_mode(controller, file_sink, mode)
        await asyncio.sleep(1 / 30)


async def _capture_test(settings) -> None:
    """Read a single frame and save it to file."""
    import cv2

    from holdsteady.capture.webcam import WebcamFrameSource

    source = WebcamFrameSource(
        selection=settings.camera.selection(),
        facing_devices=settings.camera.facing_devices,
        probe_limit=settings.camera.probe_limit,
    )

    async with source:
        frame = await source.wait_ready(settings.camera.ready_timeout)
        outfile = "capture_test.jpg"
        cv2.imwrite(outfile, frame.image)
        print(f"Saved frame to {outfile} ({frame.width}x{frame.height}) from {frame.source_device}")


def main(argv: list[str] | None = None) -> None:
    """Main entry point for the holdsteady CLI."""
    args = parse_args(argv)

    if args.command is None:
        parse_args(["--help"])
        return

    from holdsteady.capture.base import CaptureError
    from holdsteady.config.settings import load_settings
    from holdsteady.utils.logging import setup_logging

    settings = load_settings(args.config)

    if args.verbose:
        settings.logging.level = "DEBUG"

    setup_logging(settings.logging)

    try:
        if args.command == "run":
            _apply_run_overrides(settings, args)
            logger.info(
                "Starting %s capture session", settings.detection.mode.value
            )
            saved = asyncio.run(_run_session(settings, preview=args.preview))
            print(f"\nCaptures saved: {saved}")

        elif args.command == "capture-test":
            logger.info("Running capture test")
            asyncio.run(_capture_test(settings))
    except CaptureError as e:
        logger.error("Camera error: %s", e)
        raise SystemExit(1) from e


if __name__ == "__main__":
    main()
