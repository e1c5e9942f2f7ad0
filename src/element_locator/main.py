"""
Command line entry point: locate one element on the current screen.
"""

from dataclasses import replace

from rich.console import Console

from .config.locator_config import LocatorConfig
from .exceptions import ElementLocatorError, UserTerminationRequested
from .services.factory import create_element_locator
from .utils.logging_config import setup_logging

console = Console()


def run(description: str, unattended: bool = False, debug: bool = False) -> int:
    """
    Locate an element and print its bounding box.

    Args:
        description: Free-text element description
        unattended: Never ask the user, report a miss instead
        debug: Save annotated disambiguation screenshots

    Returns:
        Process exit code
    """
    config = LocatorConfig.from_env()
    if unattended or debug:
        config = replace(
            config,
            unattended_mode=unattended or config.unattended_mode,
            debug_mode=debug or config.debug_mode,
        )

    locator = create_element_locator(config)
    try:
        location = locator.locate_element_on_screen(description)
    except UserTerminationRequested as e:
        console.print(f"[yellow]Terminated:[/] {e}")
        return 2
    except ElementLocatorError as e:
        console.print(f"[red]Error:[/] {e}")
        return 1

    if location is None:
        console.print(f"[yellow]'{description}' was not found on the screen[/]")
        return 1

    center_x, center_y = location.center
    console.print(f"[green]Found '{description}'[/] at {location} (center {center_x}, {center_y})")
    return 0


def cli():
    """CLI entry point with argument parsing."""
    import argparse

    parser = argparse.ArgumentParser(
        description="Element Locator - find described UI elements on the screen",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "description",
        help="Description of the UI element, e.g. 'Login button'",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Enable verbose output with detailed logs",
    )
    parser.add_argument(
        "--unattended",
        action="store_true",
        help="Never ask for help, report a miss instead",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Save annotated candidate screenshots",
    )

    args = parser.parse_args()
    setup_logging(verbose=args.verbose)

    try:
        exit_code = run(args.description, unattended=args.unattended, debug=args.debug)
    except KeyboardInterrupt:
        console.print("\n\n  Interrupted")
        exit_code = 130
    raise SystemExit(exit_code)


if __name__ == "__main__":
    cli()
