"""
Event system for the durakroom engine.
"""

from durakroom.events.emitter import EventEmitter, EventBus, EngineEventType

__all__ = ["EventEmitter", "EventBus", "EngineEventType"]
