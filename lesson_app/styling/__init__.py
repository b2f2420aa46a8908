"""Styling module for the LessonQt presenter."""

from .color_palette import ColorPalette, Theme

__all__ = ["ColorPalette", "Theme"]
