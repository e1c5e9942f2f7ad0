"""
Screenshot capture for element location.
"""

import logging
from typing import Optional, Tuple

from PIL import Image

logger = logging.getLogger(__name__)


class ScreenshotTool:
    """
    Full-screen screenshot capture.
    Handles Retina/HiDPI display scaling automatically.

    pyautogui is imported on first use, so the tool can be constructed on
    machines without a display.
    """

    def __init__(self):
        self._scaling_factor: Optional[float] = None

    @property
    def scaling_factor(self) -> float:
        """
        Screenshot pixels per logical screen pixel (Retina = 2.0, normal = 1.0).
        """
        if self._scaling_factor is None:
            self._scaling_factor = self._detect_scaling()
        return self._scaling_factor

    def _detect_scaling(self) -> float:
        import pyautogui

        screen_size = pyautogui.size()
        test_screenshot = pyautogui.screenshot()

        # If screenshot is larger than screen, we have scaling
        if test_screenshot.width > screen_size.width:
            scaling = test_screenshot.width / screen_size.width
            logger.debug("Detected display scaling factor %.2f", scaling)
            return scaling
        return 1.0

    def capture(
        self, region: Optional[Tuple[int, int, int, int]] = None
    ) -> Image.Image:
        """
        Capture screenshot of entire screen or specific region.

        Args:
            region: Optional region as (x, y, width, height) in SCREEN coordinates

        Returns:
            PIL Image object at full resolution
        """
        import pyautogui

        if region:
            # Scale region to screenshot coordinates
            x, y, w, h = region
            scaled_region = (
                int(x * self.scaling_factor),
                int(y * self.scaling_factor),
                int(w * self.scaling_factor),
                int(h * self.scaling_factor),
            )
            screenshot = pyautogui.screenshot(region=scaled_region)
        else:
            screenshot = pyautogui.screenshot()

        return screenshot.convert("RGB")

    def __call__(self) -> Image.Image:
        return self.capture()
