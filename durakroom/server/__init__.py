"""
Connection layer for the Durak room server.
"""

from durakroom.server.hub import GameHub, ServerMessage, DEFAULT_CONFIG

__all__ = ["GameHub", "ServerMessage", "DEFAULT_CONFIG"]
