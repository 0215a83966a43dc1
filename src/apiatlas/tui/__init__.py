"""Terminal UI for API Atlas."""

from .app import AtlasApp

__all__ = ["AtlasApp"]
