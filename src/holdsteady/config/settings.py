"""Configuration management for holdsteady.

Loads settings from a YAML configuration file with environment variable
overrides. Supports .env files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

import yaml
from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings

from holdsteady.domain.models import CameraSelection, DetectionMode, FacingMode

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("config/holdsteady.yaml")


class CameraConfig(BaseModel):
    facing_mode: FacingMode = Field(default=FacingMode.USER)
    device_id: str | None = Field(default=None, description="Exact device index, path or URL")
    ideal_width: int = Field(default=1920, gt=0)
    ideal_height: int = Field(default=1080, gt=0)
    facing_devices: dict[FacingMode, int] = Field(
        default_factory=lambda: {FacingMode.USER: 0, FacingMode.ENVIRONMENT: 1},
        description="OpenCV device index backing each facing mode",
    )
    probe_limit: int = Field(default=4, gt=0, description="Indices tried by relaxed acquisition")
    ready_timeout: float = Field(default=10.0, gt=0)

    def selection(self) -> CameraSelection:
        return CameraSelection(
            facing_mode=self.facing_mode,
            device_id=self.device_id,
            ideal_width=self.ideal_width,
            ideal_height=self.ideal_height,
        )


class DetectionConfig(BaseModel):
    mode: DetectionMode = Field(default=DetectionMode.FACE)
    load_attempts: int = Field(default=1, gt=0, le=10)
    face_cascade: str | None = Field(
        default=None, description="Haar cascade XML path (default: OpenCV's frontal face)"
    )
    face_scale_factor: float = Field(default=1.1, gt=1.0)
    face_min_neighbors: int = Field(default=5, ge=0)
    face_min_size: int = Field(default=60, gt=0)
    document_canny_low: int = Field(default=50, ge=0)
    document_canny_high: int = Field(default=150, gt=0)
    document_candidates: int = Field(default=5, gt=0)


class StabilizationConfig(BaseModel):
    stability_threshold: int = Field(default=20, gt=0)
    relative_movement_limit: float = Field(default=0.02, gt=0)
    ema_alpha: float = Field(default=0.3, gt=0, le=1.0)
    min_area_fraction: float = Field(default=0.12, ge=0, lt=1.0)
    center_window: tuple[float, float] = Field(default=(0.25, 0.75))

    @field_validator("center_window")
    @classmethod
    def _check_window(cls, value: tuple[float, float]) -> tuple[float, float]:
        lo, hi = value
        if not 0.0 <= lo < hi <= 1.0:
            raise ValueError("center_window must satisfy 0 <= lo < hi <= 1")
        return value


class CaptureConfig(BaseModel):
    crop_padding: int = Field(default=40, ge=0)
    encode_quality: float = Field(default=0.9, gt=0, le=1.0)
    output_dir: str = Field(default="captures")
    filename_template: str = Field(default="captured_{mode}_{timestamp}.jpg")


class SessionConfig(BaseModel):
    refresh_rate: float = Field(default=60.0, gt=0, description="Ticks per second")
    max_consecutive_errors: int = Field(default=30, gt=0)
    stop_after_capture: bool = Field(default=False)


class ForwardConfig(BaseModel):
    url: str | None = Field(default=None, description="Downstream text-extraction endpoint")
    timeout: float = Field(default=30.0, gt=0)


class LoggingConfig(BaseModel):
    level: str = Field(default="INFO")
    format: str = Field(
        default="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
    )
    file: str | None = Field(default=None)


class Settings(BaseSettings):
    """Root configuration for the holdsteady system.

    Loads from YAML file and supports environment variable overrides.
    Reads .env files automatically.
    """

    model_config = {
        "env_prefix": "HOLDSTEADY_",
        "env_nested_delimiter": "__",
        "env_file": ".env",
        "env_file_encoding": "utf-8",
        "extra": "ignore",
    }

    camera: CameraConfig = Field(default_factory=CameraConfig)
    detection: DetectionConfig = Field(default_factory=DetectionConfig)
    stabilization: StabilizationConfig = Field(default_factory=StabilizationConfig)
    capture: CaptureConfig = Field(default_factory=CaptureConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    forward: ForwardConfig = Field(default_factory=ForwardConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)


def load_settings(config_path: Path | str | None = None) -> Settings:
    """Load settings from YAML + .env + environment variables.

    Priority: env vars > .env file > YAML file > defaults
    """
    path = Path(config_path) if config_path else DEFAULT_CONFIG_PATH

    _load_dotenv()

    yaml_data = {}
    if path.exists():
        with open(path) as f:
            yaml_data = yaml.safe_load(f) or {}
        logger.info("Loaded configuration from %s", path)
    else:
        logger.warning("Config file %s not found, using defaults + env vars", path)

    _apply_env_overrides(yaml_data)

    return Settings(**yaml_data)


def _load_dotenv() -> None:
    """Load .env file into os.environ if it exists."""
    env_path = Path(".env")
    if not env_path.exists():
        return
    with open(env_path) as f:
        for line in f:
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" in line:
                key, _, value = line.partition("=")
                key = key.strip()
                value = value.strip()
                if not os.environ.get(key):
                    os.environ[key] = value


def _apply_env_overrides(yaml_data: dict) -> None:
    """Apply environment variable overrides for non-prefixed vars."""
    device = os.environ.get("CAMERA_DEVICE", "")
    ocr_url = os.environ.get("OCR_ENDPOINT_URL", "")

    if device:
        yaml_data.setdefault("camera", {})
        if not yaml_data["camera"].get("device_id"):
            yaml_data["camera"]["device_id"] = device

    if ocr_url:
        yaml_data.setdefault("forward", {})
        if not yaml_data["forward"].get("url"):
            yaml_data["forward"]["url"] = ocr_url
