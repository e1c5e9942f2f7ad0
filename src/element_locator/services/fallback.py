"""
Human-in-the-loop handling of lookups that automation could not decide.

In unattended mode nothing is asked: a miss is reported as no location and
only a catalog ambiguity is raised. In attended mode the user can refine
the catalog, retry the search, teach a new element or terminate the run.
"""

import logging
from enum import Enum
from typing import Callable, List, Optional, Protocol, Sequence, Tuple

from PIL import Image

from ..config.locator_config import LocatorConfig, get_locator_config
from ..exceptions import (
    CatalogAmbiguityError,
    ElementCaptureError,
    ModelCallError,
    UserInterruptedExecution,
    UserTerminationRequested,
)
from ..prompts.locator_prompts import get_element_description_prompt
from ..schemas.catalog import CatalogElement, ReferenceImage
from ..schemas.geometry import Rectangle
from ..schemas.model_responses import ElementDescriptionDraft
from ..schemas.outcomes import FallbackReason
from ..utils.geometry import scale_rectangle
from ..utils.image_utils import clone_image, crop_region, draw_bounding_box, get_color_by_name
from .candidate_store import CandidateStore

logger = logging.getLogger(__name__)

RetrySearch = Callable[[str], Optional[Rectangle]]


class RefinementChoice(str, Enum):
    UPDATE = "update"
    DELETE = "delete"


class NextAction(str, Enum):
    RETRY_SEARCH = "retry_search"
    CREATE_NEW_ELEMENT = "create_new_element"
    TERMINATE = "terminate"


class InteractionSurface(Protocol):
    """
    Blocking dialogs shown to the user.

    Every method returning Optional returns None when the dialog was closed
    without an answer.
    """

    def show_message(self, title: str, message: str) -> None:
        ...

    def confirm_continue(self, message: str) -> Optional[bool]:
        ...

    def choose_refinement(
        self, message: str, elements: Sequence[CatalogElement]
    ) -> Optional[Tuple[RefinementChoice, CatalogElement]]:
        """None means the user is done refining."""
        ...

    def edit_element(self, element: CatalogElement) -> Optional[CatalogElement]:
        ...

    def choose_next_action(self, message: str) -> Optional[NextAction]:
        ...

    def capture_bounding_box(self, screenshot: Image.Image) -> Optional[Rectangle]:
        ...

    def review_element(
        self, element: CatalogElement, preview: Image.Image
    ) -> Optional[CatalogElement]:
        ...


REASON_MESSAGES = {
    FallbackReason.NO_CANDIDATES_IN_CATALOG: (
        "There are no UI elements in the catalog whose name matches '{description}'."
    ),
    FallbackReason.LOW_CONFIDENCE_CANDIDATES: (
        "No UI element in the catalog matches '{description}' with high confidence. "
        "The elements below have similar names, you can refine them."
    ),
    FallbackReason.AMBIGUOUS_BY_PAGE: (
        "Several UI elements in the catalog match '{description}' and all of them belong "
        "to the current view. Refine or delete the ones that are wrong."
    ),
    FallbackReason.NO_PATTERN_MATCH: (
        "The UI element '{description}' was not found on the screen by any visual detector."
    ),
    FallbackReason.NO_VISUAL_CONFIRMATION: (
        "Candidates for the UI element '{description}' were found on the screen, "
        "but none of them was confirmed by the vision model."
    ),
}


class AttendedFallbackWorkflow:
    """
    Resolves a lookup failure either silently (unattended) or with the user.
    """

    def __init__(
        self,
        store: CandidateStore,
        model_client,
        surface: Optional[InteractionSurface],
        capture_screen: Callable[[], Image.Image],
        scaling_factor: Callable[[], float],
        config: Optional[LocatorConfig] = None,
    ):
        """
        Initialize workflow.

        Args:
            store: Catalog store refined by the user
            model_client: MultimodalModelClient drafting new element descriptions
            surface: User dialogs, may be None in unattended mode
            capture_screen: Returns a fresh screenshot
            scaling_factor: Returns screenshot pixels per logical screen pixel
            config: Locator configuration, defaults to the global one
        """
        self.config = config or get_locator_config()
        self.store = store
        self.model_client = model_client
        self.surface = surface
        self.capture_screen = capture_screen
        self.scaling_factor = scaling_factor

    def handle(
        self,
        reason: FallbackReason,
        description: str,
        candidates: Sequence[CatalogElement],
        retry: RetrySearch,
    ) -> Optional[Rectangle]:
        """
        Handle a lookup that automation could not decide.

        Args:
            reason: Why automation gave up
            description: Original element description
            candidates: Catalog elements relevant to the failure
            retry: Runs the whole location pipeline again

        Returns:
            Element location in logical screen coordinates, or None

        Raises:
            CatalogAmbiguityError: Unattended mode and the catalog is ambiguous
            UserTerminationRequested: The user chose to terminate
        """
        message = REASON_MESSAGES[reason].format(description=description)

        if self.config.unattended_mode or self.surface is None:
            if reason == FallbackReason.AMBIGUOUS_BY_PAGE:
                raise CatalogAmbiguityError(description, [c.name for c in candidates])
            logger.warning("%s Returning no location.", message)
            return None

        logger.info("Asking the user how to proceed: %s", reason.value)

        if reason in (FallbackReason.NO_PATTERN_MATCH, FallbackReason.NO_VISUAL_CONFIRMATION):
            answer = self.surface.confirm_continue(
                f"{message}\nDo you want to continue and fix the problem?"
            )
            if answer is None:
                raise UserInterruptedExecution()
            if not answer:
                raise UserTerminationRequested()
        else:
            self.surface.show_message("Element not found", message)

        if candidates:
            self._refine_candidates(message, list(candidates))

        action = self.surface.choose_next_action(
            f"How should the search for '{description}' continue?"
        )
        if action is None:
            raise UserInterruptedExecution()
        if action == NextAction.TERMINATE:
            raise UserTerminationRequested()
        if action == NextAction.RETRY_SEARCH:
            logger.info("User requested to retry the search for '%s'", description)
            return retry(description)
        return self.create_new_element(description)

    def _refine_candidates(self, message: str, elements: List[CatalogElement]) -> None:
        while elements:
            choice = self.surface.choose_refinement(message, elements)
            if choice is None:
                return

            action, element = choice
            if action == RefinementChoice.UPDATE:
                edited = self.surface.edit_element(element)
                if edited is None or edited == element:
                    continue
                edited = edited.model_copy(update={"id": element.id})
                if self._run_store_operation(
                    f"update '{element.name}'", self.store.update, element, edited
                ):
                    elements[elements.index(element)] = edited
            elif action == RefinementChoice.DELETE:
                if self._run_store_operation(
                    f"delete '{element.name}'", self.store.remove, element
                ):
                    elements.remove(element)

    def _run_store_operation(self, description: str, operation, *args) -> bool:
        try:
            operation(*args)
            return True
        except Exception as e:
            logger.error("Failed to %s in the element catalog", description, exc_info=True)
            self.surface.show_message(
                "Catalog error", f"Failed to {description} in the element catalog: {e}"
            )
            return False

    def create_new_element(self, description: str) -> Rectangle:
        """
        Teach a new element: the user marks it, the model describes it, the user reviews it.

        Args:
            description: Description the user originally searched for

        Returns:
            Location of the new element in logical screen coordinates
        """
        screenshot = self.capture_screen()
        rectangle = self._capture_element_box(screenshot)

        reference = crop_region(screenshot, rectangle)
        draft = self._draft_description(screenshot, rectangle, description)
        element = CatalogElement(
            name=draft.name.strip() or description,
            own_description=draft.own_description,
            anchors_description=draft.anchors_description,
            page_summary=draft.page_summary,
            reference_image=ReferenceImage.from_image(reference),
        )

        reviewed = self.surface.review_element(element, reference)
        if reviewed is None:
            raise UserInterruptedExecution()
        if reviewed.reference_image is None:
            reviewed = reviewed.with_reference_image(reference)

        self._run_store_operation(f"insert '{reviewed.name}'", self.store.insert, reviewed)
        return scale_rectangle(rectangle, self.scaling_factor())

    def _capture_element_box(self, screenshot: Image.Image) -> Rectangle:
        while True:
            box = self.surface.capture_bounding_box(screenshot)
            if box is None:
                raise UserInterruptedExecution()
            try:
                return validate_capture(box, screenshot)
            except ElementCaptureError as e:
                logger.warning("Invalid element capture: %s", e)
                self.surface.show_message("Invalid selection", str(e))

    def _draft_description(
        self, screenshot: Image.Image, rectangle: Rectangle, description: str
    ) -> ElementDescriptionDraft:
        color_name = self.config.bounding_box_color
        marked = draw_bounding_box(
            clone_image(screenshot), rectangle, get_color_by_name(color_name)
        )
        try:
            return self.model_client.generate(
                get_element_description_prompt(description, color_name),
                [marked],
                ElementDescriptionDraft,
                "element description",
            )
        except ModelCallError as e:
            logger.warning("Could not draft the element description: %s", e)
            return ElementDescriptionDraft(
                name=description,
                own_description="",
                anchors_description="",
                page_summary="",
            )


def validate_capture(box: Rectangle, screenshot: Image.Image) -> Rectangle:
    """
    Clip a user-drawn box to the screenshot.

    Raises:
        ElementCaptureError: The box is empty or outside the screenshot
    """
    if box.is_empty:
        raise ElementCaptureError(f"The selected region {box} is empty")
    clipped = box.clip(*screenshot.size)
    if clipped is None:
        raise ElementCaptureError(f"The selected region {box} is outside of the screenshot")
    return clipped
