"""
WebSocket relay for Quickory session blobs.
"""

from .server import manager, router

__all__ = ["manager", "router"]
