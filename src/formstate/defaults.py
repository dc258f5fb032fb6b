"""
Ambient defaults for NodeConfigBuilder.

The defaults live in a ContextVar so that each request/task can scope its own
overrides without affecting trees built elsewhere:

    with builder_defaults(required=False):
        config = NodeConfigBuilder('comment').get_node_config()
        assert config.required is False

set_builder_defaults() replaces the defaults for the current context until it
is changed again.
"""

import contextvars
import dataclasses
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuilderDefaults:
    """Initial option values of every new NodeConfigBuilder."""
    required: bool = True
    disabled: bool = False
    by_reference: bool = True
    error_bubbling: bool = False
    mapped: bool = True
    empty_data: Any = None


_DEFAULTS = BuilderDefaults()

current_builder_defaults: contextvars.ContextVar[BuilderDefaults] = contextvars.ContextVar(
    'current_builder_defaults', default=_DEFAULTS
)


def get_builder_defaults() -> BuilderDefaults:
    """Return the defaults active in the current context."""
    return current_builder_defaults.get()


def set_builder_defaults(defaults: BuilderDefaults) -> None:
    """Replace the defaults of the current context."""
    current_builder_defaults.set(defaults)


def reset_builder_defaults() -> None:
    """Restore the library defaults in the current context."""
    current_builder_defaults.set(_DEFAULTS)


@contextmanager
def builder_defaults(**overrides: Any) -> Iterator[BuilderDefaults]:
    """Scope overrides of individual default options.

    Args:
        **overrides: Field values of BuilderDefaults to override.

    Yields:
        The BuilderDefaults active inside the block.

    Raises:
        TypeError: If an override names an unknown option.
    """
    merged = dataclasses.replace(get_builder_defaults(), **overrides)
    token = current_builder_defaults.set(merged)
    logger.debug(f"Builder defaults overridden: {overrides}")
    try:
        yield merged
    finally:
        current_builder_defaults.reset(token)
