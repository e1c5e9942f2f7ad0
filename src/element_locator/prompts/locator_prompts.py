"""
Prompts for the multimodal model calls made while locating elements.
"""

import json
from typing import Sequence, Tuple

from ..schemas.catalog import CatalogElement
from ..schemas.model_responses import NORMALIZED_GRID_SIZE


def get_bounding_box_prompt(element: CatalogElement) -> str:
    """
    Generate prompt asking for bounding boxes of an element on a screenshot.

    Args:
        element: Catalog element to look for

    Returns:
        Formatted bounding box prompt
    """
    anchors = element.anchors_description or "not available"
    return f"""You are a precise UI element grounding system. Find the target UI element on the provided screenshot.

TARGET ELEMENT:
- Name: {element.name}
- Description: {element.own_description or "not available"}
- Surrounding elements: {anchors}

RULES:
- Return a bounding box for EVERY element on the screenshot matching the target description
- If several elements look alike, use the surrounding elements to tell them apart
- Coordinates are on a {NORMALIZED_GRID_SIZE}x{NORMALIZED_GRID_SIZE} grid: (0, 0) is the top-left corner of the screenshot, ({NORMALIZED_GRID_SIZE}, {NORMALIZED_GRID_SIZE}) the bottom-right one
- x1/y1 is the top-left corner of the box, x2/y2 the bottom-right corner
- The box must tightly enclose the element, without the surrounding elements
- If the target element is not visible, return an empty list of boxes

Here is the screenshot:
"""


def get_identification_prompt(
    target_description: str,
    element: CatalogElement,
    labeled_candidates: Sequence[Tuple[str, str]],
) -> str:
    """
    Generate prompt asking which labeled bounding box contains the target element.

    Args:
        target_description: Free-text description of the element being looked for
        element: Catalog element the candidates were found for
        labeled_candidates: (label, bounding box color) pairs drawn on the screenshot

    Returns:
        Formatted identification prompt
    """
    agenda = "\n".join(
        json.dumps(
            {
                "ID": label,
                "Bounding box color": color,
                "Details": element.own_description,
                "Description of surrounding elements": element.anchors_description,
            }
        )
        for label, color in labeled_candidates
    )
    return f"""You are a UI testing assistant. The screenshot contains several candidate UI elements, each one
marked with a colored bounding box and an ID label drawn next to the box.

TARGET ELEMENT: {target_description}
Name in the element catalog: {element.name}

Identify which candidate is the target element. Compare the content of every bounding box and its
surroundings with the details of the target element.

RULES:
- Answer with the ID exactly as it is written on the label
- If you are sure that none of the candidates is the target element, set success to false and leave the ID empty
- Always explain your decision in the message

The provided to you candidate UI elements:
{agenda}

The provided to you screenshot:
"""


def get_page_summary_prompt() -> str:
    """Generate prompt asking for a short summary of the current view."""
    return """Describe the application view shown on the screenshot in one or two short sentences.

Name the application (if recognizable) and the kind of page, dialog or screen which is displayed,
e.g. "Login page of the web shop" or "Settings dialog of the text editor, privacy tab".
Do not describe single elements in detail.

Here is the screenshot:
"""


def get_element_description_prompt(user_description: str, bounding_box_color: str) -> str:
    """
    Generate prompt asking for a catalog entry of a user-marked element.

    Args:
        user_description: Description the user originally searched for
        bounding_box_color: Color of the box marking the element on the screenshot

    Returns:
        Formatted description prompt
    """
    return f"""You are helping to build a catalog of UI elements for automated testing.

The target UI element is marked with a {bounding_box_color} bounding box on the screenshot.
Originally it was described as: "{user_description}"

Extract the following information about the marked element:
- name: short, unique and human readable name (e.g. "Login button")
- own_description: what the element looks like and what it does (text, icon, shape, color)
- anchors_description: the UI elements located next to it, which help to tell it apart from similar ones
- page_summary: very short summary of the view in which the element is located

Do not mention the {bounding_box_color} bounding box itself in any description.

Here is the screenshot:
"""
