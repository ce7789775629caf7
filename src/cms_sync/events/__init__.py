"""Event handling for CMS sync.

- names: event names consumed by the service
- LocalEventBus: in-process IEventBus implementation
- EventDispatcher: routes each event to its sync use case
"""

from . import names
from .bus import LocalEventBus
from .dispatcher import EventDispatcher, UnknownEventError

__all__ = [
    "EventDispatcher",
    "LocalEventBus",
    "UnknownEventError",
    "names",
]
