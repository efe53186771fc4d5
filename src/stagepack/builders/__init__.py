"""Packager plugin builders."""

from .appimage import AppImageBuilder, appimage_builder
from .base import Builder

__all__ = ["AppImageBuilder", "Builder", "appimage_builder"]
