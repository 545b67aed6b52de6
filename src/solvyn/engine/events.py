# src/solvyn/engine/events.py
"""Per-engine lifecycle listener registry.

Each SolvynEngine owns one registry, so two engines in the same process
never see each other's events. Listeners are called synchronously in
registration order. Unlike an internal event bus, listeners here are
caller code: an exception is logged and the remaining listeners still run.
"""

from collections.abc import Callable
from typing import Any

import structlog

from solvyn.contracts.enums import EngineEvent

logger = structlog.get_logger(__name__)

Listener = Callable[[Any], None]


class ListenerRegistry:
    """Registry of lifecycle listeners keyed by event name.

    Example:
        registry = ListenerRegistry()
        registry.on(EngineEvent.SUCCESS, lambda e: print(e.result.value))
        registry.emit(EngineEvent.SUCCESS, ResolutionFinished(...))
    """

    def __init__(self) -> None:
        self._listeners: dict[EngineEvent, list[Listener]] = {}

    def on(self, event: EngineEvent | str, listener: Listener) -> None:
        """Register a listener.

        Raises:
            ValueError: If event is not a known EngineEvent name
        """
        key = EngineEvent(event)
        self._listeners.setdefault(key, []).append(listener)

    def off(self, event: EngineEvent | str, listener: Listener) -> bool:
        """Remove a listener. Returns False if it was not registered."""
        listeners = self._listeners.get(EngineEvent(event), [])
        if listener in listeners:
            listeners.remove(listener)
            return True
        return False

    def listeners(self, event: EngineEvent | str) -> list[Listener]:
        return list(self._listeners.get(EngineEvent(event), []))

    def emit(self, event: EngineEvent, payload: Any) -> None:
        """Call every listener for event with payload, in registration order."""
        # Copy so a listener that (un)registers doesn't disturb this dispatch
        for listener in list(self._listeners.get(event, [])):
            try:
                listener(payload)
            except Exception as e:
                logger.warning(
                    "listener_failed",
                    lifecycle_event=event.value,
                    listener=getattr(listener, "__qualname__", repr(listener)),
                    error=str(e),
                    error_type=type(e).__name__,
                )
