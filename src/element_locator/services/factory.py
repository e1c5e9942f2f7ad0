"""
Wiring of the default element locator.
"""

import logging
from typing import Optional

from ..config.locator_config import LocatorConfig
from ..tools.screenshot_tool import ScreenshotTool
from ..tools.vision.vision_proposer import VisionBoxProposer
from ..tools.vision.visual_detectors import VisualDetectors
from .candidate_store import CandidateStore, ChromaCandidateStore
from .consensus import ConsensusResolver
from .fallback import AttendedFallbackWorkflow, InteractionSurface
from .locator import ElementLocator
from .model_client import MultimodalModelClient
from .quorum import QuorumDisambiguator
from .retriever import CandidateRetriever

logger = logging.getLogger(__name__)


def create_element_locator(
    config: Optional[LocatorConfig] = None,
    llm=None,
    store: Optional[CandidateStore] = None,
    surface: Optional[InteractionSurface] = None,
    screenshot_tool: Optional[ScreenshotTool] = None,
) -> ElementLocator:
    """
    Build an element locator with the default implementations.

    Args:
        config: Locator configuration, read from the environment by default
        llm: LangChain vision chat model, LLMConfig's model by default
        store: Element catalog, a chroma store by default
        surface: User dialogs, console dialogs in attended mode by default
        screenshot_tool: Screen capture, pyautogui by default

    Returns:
        Ready to use ElementLocator
    """
    config = config or LocatorConfig.from_env()
    model_client = MultimodalModelClient(llm)
    store = store or ChromaCandidateStore(config)
    screenshot_tool = screenshot_tool or ScreenshotTool()

    if surface is None and not config.unattended_mode:
        from ..ui.dialogs import ConsoleInteractionSurface

        surface = ConsoleInteractionSurface()

    detectors = VisualDetectors(VisionBoxProposer(model_client, config), config=config)
    fallback = AttendedFallbackWorkflow(
        store,
        model_client,
        surface,
        screenshot_tool.capture,
        lambda: screenshot_tool.scaling_factor,
        config,
    )

    logger.debug(
        "Created element locator (unattended=%s, debug=%s)",
        config.unattended_mode, config.debug_mode,
    )
    return ElementLocator(
        retriever=CandidateRetriever(store, config),
        detectors=detectors,
        consensus=ConsensusResolver(config),
        quorum=QuorumDisambiguator(model_client, config),
        fallback=fallback,
        model_client=model_client,
        capture_screen=screenshot_tool.capture,
        scaling_factor=lambda: screenshot_tool.scaling_factor,
        config=config,
    )
