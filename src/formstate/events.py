"""
Hook stages, events and the per-config event dispatcher.

Stages fire in a fixed order within the pipeline:

    set_value():  PRE_SET_VALUE -> (transform) -> POST_SET_VALUE
    bind():       PRE_BIND -> (reverse view transform) -> NORMALIZE_ON_BIND
                  -> (reverse model transform) -> POST_BIND

Listeners are plain synchronous callables receiving a NodeEvent. A listener
replaces the in-flight value by assigning ``event.data``. Exceptions raised by
listeners propagate to the caller of set_value()/bind().

Example::

    dispatcher = EventDispatcher()

    def strip_whitespace(event: NodeEvent) -> None:
        if isinstance(event.data, str):
            event.data = event.data.strip()

    dispatcher.add_listener(NodeEvents.PRE_BIND, strip_whitespace)
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple, Union, TYPE_CHECKING

if TYPE_CHECKING:
    from formstate.node import Node

logger = logging.getLogger(__name__)


class NodeEvents(str, Enum):
    """Named extension points of the value pipeline."""

    PRE_SET_VALUE = 'pre_set_value'
    POST_SET_VALUE = 'post_set_value'
    PRE_BIND = 'pre_bind'
    NORMALIZE_ON_BIND = 'normalize_on_bind'
    POST_BIND = 'post_bind'


@dataclass
class NodeEvent:
    """Event passed to listeners.

    Attributes:
        node: The node whose pipeline fired the event.
        data: The in-flight value. Listeners may reassign it.
    """
    node: 'Node'
    data: Any
    propagation_stopped: bool = False

    def stop_propagation(self) -> None:
        """Prevent listeners registered after the current one from running."""
        self.propagation_stopped = True


Listener = Callable[[NodeEvent], None]


class EventDispatcher:
    """Ordered listener lists per stage.

    Listeners with higher priority run first; listeners with equal priority
    run in registration order. Not thread-safe (one tree per request/task).
    """

    def __init__(self):
        # stage -> [(priority, sequence, listener)]
        self._listeners: Dict[NodeEvents, List[Tuple[int, int, Listener]]] = {}
        self._sequence = 0

    def add_listener(self, stage: Union[NodeEvents, str], listener: Listener, priority: int = 0) -> None:
        """Register a listener for a stage. Registering the same listener twice is a no-op."""
        stage = NodeEvents(stage)
        entries = self._listeners.setdefault(stage, [])
        if any(entry[2] == listener for entry in entries):
            return
        entries.append((priority, self._sequence, listener))
        self._sequence += 1
        entries.sort(key=lambda entry: (-entry[0], entry[1]))

    def remove_listener(self, stage: Union[NodeEvents, str], listener: Listener) -> None:
        """Unregister a listener. Unknown listeners are ignored."""
        stage = NodeEvents(stage)
        entries = self._listeners.get(stage)
        if not entries:
            return
        self._listeners[stage] = [entry for entry in entries if entry[2] != listener]

    def get_listeners(self, stage: Union[NodeEvents, str]) -> List[Listener]:
        """Return the listeners of a stage in invocation order."""
        return [entry[2] for entry in self._listeners.get(NodeEvents(stage), [])]

    def has_listeners(self, stage: Optional[Union[NodeEvents, str]] = None) -> bool:
        if stage is None:
            return any(self._listeners.values())
        return bool(self._listeners.get(NodeEvents(stage)))

    def dispatch(self, stage: Union[NodeEvents, str], event: NodeEvent) -> NodeEvent:
        """Invoke the listeners of a stage synchronously and return the event."""
        stage = NodeEvents(stage)
        for listener in self.get_listeners(stage):
            listener(event)
            if event.propagation_stopped:
                logger.debug(f"Propagation of {stage.value} stopped by {getattr(listener, '__name__', listener)!r}")
                break
        return event
