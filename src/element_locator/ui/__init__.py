"""
User dialogs for attended mode.
"""

from .dialogs import ConsoleInteractionSurface

__all__ = ["ConsoleInteractionSurface"]
