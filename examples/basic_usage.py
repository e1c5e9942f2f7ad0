"""
Basic usage examples for Element Locator.
"""

import sys

from PIL import Image

from element_locator import (
    CatalogElement,
    ChromaCandidateStore,
    LocatorConfig,
    ReferenceImage,
    create_element_locator,
    setup_logging,
)


def example_teach_element(store: ChromaCandidateStore, reference_path: str):
    """
    Example: Add an element with a reference screenshot to the catalog.
    """
    print("\n" + "=" * 60)
    print("Example 1: Teach Element")
    print("=" * 60)

    element = CatalogElement(
        name="Login button",
        own_description="Blue button labeled 'Log in'",
        anchors_description="Below the password field of the sign in form",
        page_summary="Sign in page of the web shop",
        reference_image=ReferenceImage.from_image(Image.open(reference_path)),
    )
    store.insert(element)
    print(f"\nStored: {element}")


def example_locate(config: LocatorConfig, store: ChromaCandidateStore):
    """
    Example: Locate the element on the current screen.
    """
    print("\n" + "=" * 60)
    print("Example 2: Locate Element")
    print("=" * 60)

    locator = create_element_locator(config, store=store)
    location = locator.locate_element_on_screen("Login button")
    print(f"\nLocation: {location}")


def main():
    """
    Run all examples.
    """
    print("\nElement Locator - Usage Examples\n")

    print("Note: Make sure you have configured your .env file with API keys")
    print("before running these examples.\n")

    if len(sys.argv) != 2:
        print("Usage: python examples/basic_usage.py <reference_image.png>")
        raise SystemExit(1)

    setup_logging(verbose=True)
    config = LocatorConfig.from_env()
    store = ChromaCandidateStore(config)

    example_teach_element(store, sys.argv[1])
    example_locate(config, store)


if __name__ == "__main__":
    main()
