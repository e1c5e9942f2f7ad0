"""
Tests for Screenshot Tool - verify capture and display scaling.
"""

import sys
from types import SimpleNamespace
from unittest.mock import MagicMock, patch

import pytest
from PIL import Image

from element_locator.tools.screenshot_tool import ScreenshotTool


@pytest.fixture
def pyautogui():
    """pyautogui replacement for a 1440x900 screen captured at the given size."""
    fake = MagicMock()
    fake.size.return_value = SimpleNamespace(width=1440, height=900)

    def configure(width, height):
        fake.screenshot.side_effect = lambda region=None: Image.new(
            "RGBA", (region[2], region[3]) if region else (width, height)
        )
        return fake

    with patch.dict(sys.modules, {"pyautogui": fake}):
        yield configure


class TestScreenshotTool:
    """Test screenshot tool functionality."""

    def test_retina_scaling_is_detected(self, pyautogui):
        pyautogui(2880, 1800)

        assert ScreenshotTool().scaling_factor == 2.0

    def test_regular_display(self, pyautogui):
        pyautogui(1440, 900)

        assert ScreenshotTool().scaling_factor == 1.0

    def test_capture_returns_rgb(self, pyautogui):
        pyautogui(1440, 900)

        screenshot = ScreenshotTool().capture()

        assert screenshot.mode == "RGB"
        assert screenshot.size == (1440, 900)

    def test_region_is_scaled_to_screenshot_pixels(self, pyautogui):
        fake = pyautogui(2880, 1800)

        screenshot = ScreenshotTool().capture(region=(10, 20, 100, 50))

        assert screenshot.size == (200, 100)
        fake.screenshot.assert_called_with(region=(20, 40, 200, 100))

    def test_scaling_is_detected_once(self, pyautogui):
        fake = pyautogui(2880, 1800)
        tool = ScreenshotTool()

        tool.scaling_factor
        tool.scaling_factor

        fake.size.assert_called_once()
