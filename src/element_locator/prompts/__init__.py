"""
Prompt builders for the multimodal model.
"""

from .locator_prompts import (
    get_bounding_box_prompt,
    get_element_description_prompt,
    get_identification_prompt,
    get_page_summary_prompt,
)

__all__ = [
    "get_bounding_box_prompt",
    "get_element_description_prompt",
    "get_identification_prompt",
    "get_page_summary_prompt",
]
