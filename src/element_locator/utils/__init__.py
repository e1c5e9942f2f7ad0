"""
Utility helpers for geometry, images and logging.
"""
