from .client import IMAPMailSource
from .connection import IMAPConnection
from .protocol import IMAPProtocol

__all__ = ["IMAPMailSource", "IMAPConnection", "IMAPProtocol"]
