"""
Configuration module for locator thresholds and LLM providers.
"""

from .locator_config import (
    DEFAULT_CONFIG,
    LocatorConfig,
    create_custom_config,
    get_locator_config,
)
from .llm_config import LLMConfig

__all__ = [
    "DEFAULT_CONFIG",
    "LocatorConfig",
    "create_custom_config",
    "get_locator_config",
    "LLMConfig",
]
