"""
Data mappers reconcile a compound node's value with its children.

A DataMapper is a two-sided strategy:

- map_data_to_children(value, children): hand each child its slice of the
  compound value (typically via child.set_value()).
- map_children_to_data(children, value): the inverse; read each child's value
  back and write it into the structure, returning the merged structure.

Mappers never call bind(). Any class with both methods satisfies the protocol.
"""

import logging
from collections.abc import Mapping
from typing import Any, Iterable, Protocol, TYPE_CHECKING, runtime_checkable

from formstate.exceptions import UnexpectedTypeError
from formstate.values import ValueKind, is_blank, kind_of

if TYPE_CHECKING:
    from formstate.node import Node

logger = logging.getLogger(__name__)


@runtime_checkable
class DataMapper(Protocol):
    """Structural protocol for compound value mappers."""

    def map_data_to_children(self, value: Any, children: Iterable['Node']) -> None: ...

    def map_children_to_data(self, children: Iterable['Node'], value: Any) -> Any: ...


class PropertyPathMapper:
    """Maps children by their property paths.

    A child of a parent without data_class reads and writes ``[child_name]``
    of a mapping, a child of a parent with data_class reads and writes the
    attribute ``child_name`` of an object (see Node.get_property_path()).

    Mappings are copied before children are written into them, objects are
    written in place.
    """

    def map_data_to_children(self, value: Any, children: Iterable['Node']) -> None:
        empty = is_blank(value)

        if not empty and kind_of(value) is ValueKind.SCALAR:
            raise UnexpectedTypeError(value, 'object, mapping or empty')

        for child in children:
            property_path = child.get_property_path()
            config = child.get_config()

            if not empty and property_path is not None and config.mapped:
                child.set_value(property_path.get_value(value))
            else:
                child.set_value(child.get_default_data())

    def map_children_to_data(self, children: Iterable['Node'], value: Any) -> Any:
        if value is None:
            return None

        kind = kind_of(value)
        if kind is ValueKind.SCALAR:
            raise UnexpectedTypeError(value, 'object, mapping or empty')

        if isinstance(value, Mapping):
            value = dict(value)
        elif kind is ValueKind.STRUCTURED:
            value = list(value)

        is_object = kind is ValueKind.OPAQUE

        for child in children:
            property_path = child.get_property_path()
            config = child.get_config()

            if property_path is None or not config.mapped:
                continue
            # Unsynchronized and disabled children never write back.
            if not child.is_synchronized() or child.is_disabled():
                logger.debug(f"Skipping write-back of child {child.get_name()!r}")
                continue

            child_value = child.get_value()
            if is_object and config.by_reference and child_value is property_path.get_value(value):
                continue
            property_path.set_value(value, child_value)

        return value
