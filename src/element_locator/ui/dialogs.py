"""
Console dialogs for the attended fallback workflow.
"""

import re
import tempfile
from pathlib import Path
from typing import Dict, Optional, Sequence, Tuple

from InquirerPy import inquirer
from InquirerPy.base.control import Choice
from InquirerPy.utils import InquirerPyStyle
from PIL import Image
from rich.console import Console
from rich.panel import Panel
from rich.table import Table

from ..schemas.catalog import CatalogElement
from ..schemas.geometry import Rectangle
from ..services.fallback import NextAction, RefinementChoice

THEME: Dict[str, str] = {
    "text": "#abb2bf",
    "muted": "#5c6370",
    "active": "#61afef",
    "success": "#98c379",
    "warning": "#e5c07b",
    "error": "#e06c75",
    "border": "#4b5263",
}

BOX_PATTERN = re.compile(r"^\s*(-?\d+)\s*[,; ]\s*(-?\d+)\s*[,; ]\s*(\d+)\s*[,; ]\s*(\d+)\s*$")


def get_inquirer_style() -> InquirerPyStyle:
    """
    Build and return the InquirerPy style used across prompts.

    Returns:
        InquirerPyStyle instance.
    """
    return InquirerPyStyle(
        {
            "questionmark": THEME["warning"],
            "answermark": THEME["success"],
            "answer": THEME["active"],
            "input": THEME["text"],
            "question": THEME["text"],
            "answered_question": THEME["muted"],
            "instruction": THEME["muted"],
            "pointer": f"{THEME['active']} bold",
            "separator": THEME["border"],
            "validator": THEME["error"],
        }
    )


def parse_box(text: str) -> Optional[Rectangle]:
    """
    Parse "x, y, width, height" into a rectangle.

    Returns:
        Rectangle, or None if the text is not four integers
    """
    match = BOX_PATTERN.match(text or "")
    if not match:
        return None
    x, y, width, height = (int(group) for group in match.groups())
    return Rectangle(x, y, width, height)


class ConsoleInteractionSurface:
    """
    Terminal implementation of the fallback dialogs.

    Closing a prompt with Ctrl+C or Ctrl+D counts as closing the dialog.
    """

    def __init__(self, console: Optional[Console] = None, image_folder: Optional[str] = None):
        """
        Initialize console dialogs.

        Args:
            console: Rich console, a new one by default
            image_folder: Where screenshots for the user are written, a temp dir by default
        """
        self.console = console or Console()
        self.image_folder = Path(image_folder or tempfile.mkdtemp(prefix="element_locator_"))

    def _header(self, title: str, color: str) -> None:
        self.console.print()
        self.console.print(f"[bold {color}]{'─' * 50}[/]")
        self.console.print(f"[bold {color}]{title}[/]")
        self.console.print(f"[bold {color}]{'─' * 50}[/]")

    def _select(self, message: str, choices, default=None):
        try:
            return inquirer.select(
                message=message,
                choices=choices,
                default=default,
                pointer="›",
                style=get_inquirer_style(),
                qmark="",
                amark="✓",
            ).execute()
        except (EOFError, KeyboardInterrupt):
            return None

    def _text(self, message: str, default: str = "", validate=None, invalid_message: str = ""):
        kwargs = {}
        if validate is not None:
            kwargs["validate"] = validate
            kwargs["invalid_message"] = invalid_message
        try:
            return inquirer.text(
                message=message,
                default=default,
                style=get_inquirer_style(),
                qmark="",
                amark="✓",
                **kwargs,
            ).execute()
        except (EOFError, KeyboardInterrupt):
            return None

    def _save_image(self, image: Image.Image, name: str) -> Path:
        self.image_folder.mkdir(parents=True, exist_ok=True)
        path = self.image_folder / f"{name}.png"
        image.save(path)
        return path

    def show_message(self, title: str, message: str) -> None:
        self._header(title, THEME["warning"])
        self.console.print(message)

    def confirm_continue(self, message: str) -> Optional[bool]:
        self._header("ELEMENT NOT LOCATED", THEME["warning"])
        self.console.print(message)
        return self._select(
            "Select action",
            [
                Choice(value=True, name="Continue - Fix the problem"),
                Choice(value=False, name="Terminate - Stop the execution"),
            ],
            default=True,
        )

    def choose_refinement(
        self, message: str, elements: Sequence[CatalogElement]
    ) -> Optional[Tuple[RefinementChoice, CatalogElement]]:
        self._header("REFINE ELEMENT CATALOG", THEME["active"])
        self.console.print(message)
        self.console.print(self._elements_table(elements))

        choices = []
        for index, element in enumerate(elements):
            choices.append(
                Choice(value=(RefinementChoice.UPDATE, index), name=f"Update '{element.name}'")
            )
            choices.append(
                Choice(value=(RefinementChoice.DELETE, index), name=f"Delete '{element.name}'")
            )
        choices.append(Choice(value=None, name="Done"))

        selected = self._select("Select refinement", choices)
        if selected is None:
            return None
        action, index = selected
        return action, elements[index]

    def edit_element(self, element: CatalogElement) -> Optional[CatalogElement]:
        self._header(f"EDIT '{element.name}'", THEME["active"])
        values = {}
        for field_name, label in (
            ("name", "Name"),
            ("own_description", "Description"),
            ("anchors_description", "Surrounding elements"),
            ("page_summary", "Page summary"),
        ):
            value = self._text(
                f"{label}:",
                default=getattr(element, field_name),
                validate=(lambda text: bool(text.strip())) if field_name == "name" else None,
                invalid_message="Name must not be empty",
            )
            if value is None:
                return None
            values[field_name] = value.strip()
        return element.model_copy(update=values)

    def choose_next_action(self, message: str) -> Optional[NextAction]:
        self._header("NEXT ACTION", THEME["active"])
        return self._select(
            message,
            [
                Choice(value=NextAction.RETRY_SEARCH, name="Retry search"),
                Choice(value=NextAction.CREATE_NEW_ELEMENT, name="Create new element"),
                Choice(value=NextAction.TERMINATE, name="Terminate execution"),
            ],
            default=NextAction.RETRY_SEARCH,
        )

    def capture_bounding_box(self, screenshot: Image.Image) -> Optional[Rectangle]:
        path = self._save_image(screenshot, "current_screen")
        self._header("MARK THE ELEMENT", THEME["active"])
        self.console.print(f"[{THEME['muted']}]Screenshot:[/] {path}")
        self.console.print(
            f"Open the screenshot ({screenshot.width}x{screenshot.height} px) and enter the "
            "element's bounding box in its pixel coordinates."
        )
        text = self._text(
            "Bounding box (x, y, width, height):",
            validate=lambda value: parse_box(value) is not None,
            invalid_message="Enter four integers, e.g. 120, 340, 80, 30",
        )
        if text is None:
            return None
        return parse_box(text)

    def review_element(
        self, element: CatalogElement, preview: Image.Image
    ) -> Optional[CatalogElement]:
        path = self._save_image(preview, "new_element")
        while True:
            self._header("REVIEW NEW ELEMENT", THEME["success"])
            self.console.print(f"[{THEME['muted']}]Reference image:[/] {path}")
            self.console.print(self._element_panel(element))
            action = self._select(
                "Save this element?",
                [
                    Choice(value="save", name="Save"),
                    Choice(value="edit", name="Edit"),
                ],
                default="save",
            )
            if action is None:
                return None
            if action == "save":
                return element
            edited = self.edit_element(element)
            if edited is None:
                return None
            element = edited

    def _elements_table(self, elements: Sequence[CatalogElement]) -> Table:
        table = Table(show_lines=True, border_style=THEME["border"])
        table.add_column("Name", style=THEME["active"])
        table.add_column("Description")
        table.add_column("Surrounding elements")
        table.add_column("Page summary", style=THEME["muted"])
        for element in elements:
            table.add_row(
                element.name,
                element.own_description,
                element.anchors_description,
                element.page_summary,
            )
        return table

    def _element_panel(self, element: CatalogElement) -> Panel:
        body = (
            f"[{THEME['muted']}]Name:[/] {element.name}\n"
            f"[{THEME['muted']}]Description:[/] {element.own_description}\n"
            f"[{THEME['muted']}]Surrounding elements:[/] {element.anchors_description}\n"
            f"[{THEME['muted']}]Page summary:[/] {element.page_summary}"
        )
        return Panel(body, border_style=THEME["border"])
