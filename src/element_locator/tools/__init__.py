"""
Screen capture and visual detection tools.
"""

from .screenshot_tool import ScreenshotTool

__all__ = [
    "ScreenshotTool",
]
