from .app import RuttApp

__all__ = ["RuttApp"]
