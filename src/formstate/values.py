"""
Value classification for the three value slots of a node.

Every value held by a node falls into exactly one ValueKind:

- NULL:       None (the value is absent)
- SCALAR:     str, int, float, bool, Decimal
- STRUCTURED: a mapping or a list/tuple
- OPAQUE:     any other object (domain objects, dates, handles)

The pipeline dispatches on the kind instead of probing types ad hoc, so the
emptiness rules and the text coercion rules live in one place.
"""

from decimal import Decimal
from enum import Enum
from collections.abc import Mapping
from typing import Any


class ValueKind(Enum):
    """Structural kind of a value."""

    NULL = 'null'
    SCALAR = 'scalar'
    STRUCTURED = 'structured'
    OPAQUE = 'opaque'


_SCALAR_TYPES = (str, int, float, bool, Decimal)
_SEQUENCE_TYPES = (list, tuple)


def kind_of(value: Any) -> ValueKind:
    """Classify a value into its ValueKind."""
    if value is None:
        return ValueKind.NULL
    if isinstance(value, _SCALAR_TYPES):
        return ValueKind.SCALAR
    if isinstance(value, Mapping) or isinstance(value, _SEQUENCE_TYPES):
        return ValueKind.STRUCTURED
    return ValueKind.OPAQUE


def is_scalar(value: Any) -> bool:
    return kind_of(value) is ValueKind.SCALAR


def is_structured(value: Any) -> bool:
    return kind_of(value) is ValueKind.STRUCTURED


def is_empty(value: Any) -> bool:
    """Return True for None and the empty string.

    This is the emptiness rule used inside the pipeline: it decides whether
    empty_data is substituted on bind and whether the data_class constraint
    applies. An empty dict or list is *not* empty here, so that an empty
    structure configured as default data survives binding.
    """
    return value is None or (isinstance(value, str) and value == '')


def is_blank(value: Any) -> bool:
    """Return True for None, the empty string and empty structured containers.

    This is the domain emptiness rule behind Node.is_empty().
    """
    if is_empty(value):
        return True
    return is_structured(value) and len(value) == 0


def to_text(value: Any) -> str:
    """Render a null or scalar value as text.

    None becomes the empty string so that "nothing" and "0" stay distinct.
    Booleans render as '1' and '' (checkbox text).
    """
    if value is None:
        return ''
    if isinstance(value, bool):
        return '1' if value else ''
    if isinstance(value, str):
        return value
    return str(value)
