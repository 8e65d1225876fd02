"""Interactive image cropping with zoom, rotation and aspect-ratio locks."""

__version__ = "1.0.0"
