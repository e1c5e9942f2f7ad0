"""
Image conversion and annotation helpers shared by detectors and prompts.
"""

import base64
import io
from pathlib import Path
from datetime import datetime
from typing import TYPE_CHECKING, Dict, Iterable, Optional, Tuple

import cv2
import numpy as np
from PIL import Image, ImageDraw, ImageFont

if TYPE_CHECKING:
    from ..schemas.geometry import Rectangle

RGB = Tuple[int, int, int]

BOUNDING_BOX_LINE_WIDTH = 4

NAMED_COLORS: Dict[str, RGB] = {
    "red": (255, 0, 0),
    "blue": (0, 0, 255),
    "green": (0, 255, 0),
    "yellow": (255, 255, 0),
    "black": (0, 0, 0),
    "orange": (255, 200, 0),
    "pink": (255, 175, 175),
    "cyan": (0, 255, 255),
    "magenta": (255, 0, 255),
    "white": (255, 255, 255),
    "gray": (128, 128, 128),
}


def get_color_by_name(name: str) -> RGB:
    """
    Resolve a color name into an RGB tuple.

    Args:
        name: Case-insensitive color name

    Returns:
        RGB tuple
    """
    key = name.strip().lower()
    if key not in NAMED_COLORS:
        raise ValueError(
            f"Unknown color '{name}'. Supported colors: {sorted(NAMED_COLORS)}"
        )
    return NAMED_COLORS[key]


def image_to_base64(image: Image.Image, format: str = "PNG") -> str:
    """
    Convert PIL Image to base64 string.
    """
    buffer = io.BytesIO()
    image.save(buffer, format=format)
    buffer.seek(0)
    return base64.b64encode(buffer.read()).decode("utf-8")


def base64_to_image(encoded: str) -> Image.Image:
    """
    Decode a base64 string into a fully loaded PIL Image.
    """
    image = Image.open(io.BytesIO(base64.b64decode(encoded)))
    image.load()
    return image


def to_gray_array(image: Image.Image) -> np.ndarray:
    """
    Convert a PIL Image into an 8-bit grayscale OpenCV array.
    """
    rgb = np.array(image.convert("RGB"))
    return cv2.cvtColor(rgb, cv2.COLOR_RGB2GRAY)


def clone_image(image: Image.Image) -> Image.Image:
    """Independent RGB copy of an image, safe to draw on."""
    return image.convert("RGB").copy()


def crop_region(image: Image.Image, rectangle: "Rectangle") -> Image.Image:
    """
    Crop a region out of an image.

    Args:
        image: Source image
        rectangle: Region in image pixel coordinates

    Returns:
        Cropped RGB image
    """
    return image.convert("RGB").crop(
        (rectangle.x, rectangle.y, rectangle.right, rectangle.bottom)
    )


def draw_bounding_box(
    image: Image.Image,
    rectangle: "Rectangle",
    color: RGB,
    label: Optional[str] = None,
) -> Image.Image:
    """
    Draw a rectangle outline (and optional text label) onto the image in place.

    Args:
        image: RGB image to draw on
        rectangle: Region to outline
        color: Outline color
        label: Text placed above the top-left corner

    Returns:
        The same image, for chaining
    """
    draw = ImageDraw.Draw(image)
    draw.rectangle(
        [rectangle.x, rectangle.y, rectangle.right, rectangle.bottom],
        outline=color,
        width=BOUNDING_BOX_LINE_WIDTH,
    )
    if label:
        font = ImageFont.load_default()
        text_x = rectangle.x
        text_y = max(0, rectangle.y - 14)
        left, top, right, bottom = draw.textbbox((text_x, text_y), label, font=font)
        draw.rectangle([left - 2, top - 2, right + 2, bottom + 2], fill=color)
        draw.text((text_x, text_y), label, fill=_contrast_color(color), font=font)
    return image


def draw_labeled_boxes(
    image: Image.Image, boxes: Iterable[Tuple[str, "Rectangle", RGB]]
) -> Image.Image:
    """
    Draw several labeled boxes onto a clone of the image.

    Args:
        image: Screenshot to annotate (left untouched)
        boxes: (label, rectangle, color) triples

    Returns:
        Annotated copy of the screenshot
    """
    annotated = clone_image(image)
    for label, rectangle, color in boxes:
        draw_bounding_box(annotated, rectangle, color, label)
    return annotated


def save_debug_image(image: Image.Image, folder: str, name: str) -> Path:
    """
    Save an annotated screenshot into the debug folder.

    Returns:
        Path of the written file
    """
    target_dir = Path(folder)
    target_dir.mkdir(parents=True, exist_ok=True)
    timestamp = datetime.now().strftime("%H_%M_%S_%f")
    safe_name = "".join(c if c.isalnum() else "_" for c in name)
    path = target_dir / f"{timestamp}_{safe_name}.png"
    image.save(path)
    return path


def _contrast_color(color: RGB) -> RGB:
    r, g, b = color
    luminance = 0.299 * r + 0.587 * g + 0.114 * b
    return (0, 0, 0) if luminance > 140 else (255, 255, 255)
