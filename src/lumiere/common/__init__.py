"""Common utilities for Lumiere."""

from lumiere.common.errors import (
    ApiError,
    ConfigError,
    DetectionError,
    ImageReadError,
    JobFailedError,
    JobTimeoutError,
    LumiereError,
    PhotoCaptureError,
)
from lumiere.common.events import BUTTON_PRESS, TRANSCRIPTION, Event, EventBus
from lumiere.common.logging import get_logger, mask_secret, setup_logging

__all__ = [
    "get_logger",
    "setup_logging",
    "mask_secret",
    "EventBus",
    "Event",
    "TRANSCRIPTION",
    "BUTTON_PRESS",
    "LumiereError",
    "ConfigError",
    "ApiError",
    "DetectionError",
    "PhotoCaptureError",
    "ImageReadError",
    "JobFailedError",
    "JobTimeoutError",
]
