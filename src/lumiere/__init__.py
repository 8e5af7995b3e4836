"""Lumiere - talking objects for AR glasses, plus an image-to-video helper."""

__version__ = "0.1.0"
__author__ = "Lumiere Team"

from lumiere.config import Config, load_config

__all__ = ["Config", "load_config", "__version__"]
