"""
Event system for Defer.

Allows decoupled communication between components via events and listeners.
"""
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)


class EventType(str, Enum):
    """Types of events in Defer."""
    DEFER_CREATED = "defer.created"
    DEFER_CHECKED_IN = "defer.checked_in"
    DEFER_POSTPONED = "defer.postponed"
    DEFER_RESOLVED = "defer.resolved"
    DEFER_CLOSED = "defer.closed"
    URGE_LOGGED = "urge.logged"
    ACHIEVEMENT_UNLOCKED = "achievement.unlocked"


@dataclass
class Event:
    """Base event class."""
    type: EventType
    timestamp: datetime = field(default_factory=datetime.now)
    data: Dict[str, Any] = field(default_factory=dict)


@dataclass
class DeferEvent(Event):
    """Event for DeferItem-related actions."""
    item_uuid: Optional[str] = None
    item_title: str = ""
    category: str = ""
    status: str = ""


@dataclass
class AchievementEvent(Event):
    """Event emitted once per newly unlocked achievement."""
    key: str = ""
    title: str = ""
    tier: str = ""


class EventListener(ABC):
    """Base class for event listeners."""

    @abstractmethod
    def handle(self, event: Event) -> None:
        """Handle an event.

        Args:
            event: The event to handle.
        """
        pass

    @property
    @abstractmethod
    def subscribed_events(self) -> List[EventType]:
        """Return list of event types this listener subscribes to."""
        pass


class EventBus:
    """
    Event bus for publishing and subscribing to events.

    Each DeferCore owns its own bus, so separate stores never share listeners.
    """

    def __init__(self) -> None:
        self._listeners: Dict[EventType, List[EventListener]] = {}

    def subscribe(self, listener: EventListener) -> None:
        """Subscribe a listener to events.

        Args:
            listener: The listener to subscribe.
        """
        for event_type in listener.subscribed_events:
            self._listeners.setdefault(event_type, []).append(listener)

    def unsubscribe(self, listener: EventListener) -> None:
        """Unsubscribe a listener from all events.

        Args:
            listener: The listener to unsubscribe.
        """
        for event_type in self._listeners:
            if listener in self._listeners[event_type]:
                self._listeners[event_type].remove(listener)

    def publish(self, event: Event) -> None:
        """Publish an event to all subscribed listeners.

        Args:
            event: The event to publish.
        """
        for listener in list(self._listeners.get(event.type, [])):
            try:
                listener.handle(event)
            except Exception:
                # Log error but don't stop other listeners
                logger.warning(
                    "Listener %s failed on %s",
                    listener.__class__.__name__, event.type.value, exc_info=True,
                )

    def listeners_for(self, event_type: EventType) -> List[EventListener]:
        return list(self._listeners.get(event_type, []))
