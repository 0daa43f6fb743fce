"""
Engines that own live Durak rooms.
"""

from durakroom.engine.room import RoomEngine
from durakroom.engine.registry import RoomRegistry

__all__ = ["RoomEngine", "RoomRegistry"]
