"""
Validator extension point invoked at the end of Node.bind().

Validators report failures only through ``node.add_error(...)``; errors then
land on the node itself or, with error bubbling, on an ancestor.
"""

from typing import Callable, Protocol, TYPE_CHECKING, runtime_checkable

if TYPE_CHECKING:
    from formstate.node import Node


@runtime_checkable
class NodeValidator(Protocol):
    """Structural protocol for post-bind validators."""

    def validate(self, node: 'Node') -> None: ...


class CallbackValidator:
    """Adapts a plain function ``fn(node) -> None`` to NodeValidator."""

    def __init__(self, callback: Callable[['Node'], None]):
        self._callback = callback

    def validate(self, node: 'Node') -> None:
        self._callback(node)

    def __repr__(self) -> str:
        return f"CallbackValidator({getattr(self._callback, '__name__', self._callback)!r})"
