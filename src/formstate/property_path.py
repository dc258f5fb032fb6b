"""
Property paths for reading and writing slices of a compound value.

Syntax:
- ``name``          attribute ``name`` of an object
- ``[key]``         entry ``key`` of a mapping (or position of a list)
- ``address.city``  nested attributes
- ``[items][0]``    nested entries

A child node of a parent without data_class gets the path ``[child_name]``,
otherwise ``child_name`` (see Node.get_property_path()).

Parsed paths are immutable and cached by their string form.
"""

import logging
import re
from collections.abc import Mapping, MutableMapping
from typing import Any, Dict, List, Tuple, Union

from formstate.exceptions import FormStateError, NoSuchPropertyError, UnexpectedTypeError

logger = logging.getLogger(__name__)

_INDEX_PATTERN = re.compile(r'\[([^\]]+)\]')
_NAME_PATTERN = re.compile(r'\.([A-Za-z_][A-Za-z0-9_]*)')
_LEADING_NAME_PATTERN = re.compile(r'([A-Za-z_][A-Za-z0-9_]*)')

# Key: path string -> parsed PropertyPath
_path_cache: Dict[str, 'PropertyPath'] = {}


class PropertyPath:
    """Parsed property path.

    Attributes:
        elements: Tuple of (name, is_index) pairs, outermost first.
    """

    def __init__(self, path: str):
        if not path:
            raise FormStateError("The property path must not be empty.")
        self._path = path
        self.elements: Tuple[Tuple[str, bool], ...] = self._parse(path)

    @staticmethod
    def _parse(path: str) -> Tuple[Tuple[str, bool], ...]:
        elements: List[Tuple[str, bool]] = []
        position = 0
        while position < len(path):
            pattern = _LEADING_NAME_PATTERN if position == 0 else _NAME_PATTERN
            match = _INDEX_PATTERN.match(path, position) or pattern.match(path, position)
            if match is None:
                raise FormStateError(f"Could not parse property path {path!r}. Unexpected token at position {position}.")
            is_index = match.re is _INDEX_PATTERN
            elements.append((match.group(1), is_index))
            position = match.end()
        return tuple(elements)

    def __str__(self) -> str:
        return self._path

    def __repr__(self) -> str:
        return f"PropertyPath({self._path!r})"

    def __eq__(self, other) -> bool:
        if not isinstance(other, PropertyPath):
            return False
        return self.elements == other.elements

    def __hash__(self) -> int:
        return hash(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def get_value(self, data: Any) -> Any:
        """Read the value at this path.

        Missing mapping entries and None intermediates read as None.
        Missing object attributes raise NoSuchPropertyError.
        """
        current = data
        for element in self.elements:
            if current is None:
                return None
            current = _read_element(current, element)
        return current

    def set_value(self, data: Any, value: Any) -> None:
        """Write value at this path, mutating data in place.

        Nested mappings along the way are copied before being written into, so
        structures shared with other holders are never modified. Missing
        intermediate entries are created as dicts.
        """
        _write_elements(data, self.elements, value)


def get_property_path(path: Union[str, PropertyPath]) -> PropertyPath:
    """Return the cached PropertyPath for a path string."""
    if isinstance(path, PropertyPath):
        return path
    cached = _path_cache.get(path)
    if cached is None:
        cached = PropertyPath(path)
        _path_cache[path] = cached
        logger.debug(f"Parsed property path {path!r} into {len(cached)} element(s)")
    return cached


def clear_property_path_cache() -> None:
    """Clear the parsed property path cache."""
    _path_cache.clear()


def _read_element(current: Any, element: Tuple[str, bool]) -> Any:
    key, is_index = element
    if is_index:
        if isinstance(current, Mapping):
            return current.get(key)
        if isinstance(current, (list, tuple)):
            try:
                return current[int(key)]
            except (ValueError, IndexError):
                return None
        raise UnexpectedTypeError(current, 'mapping or list')
    if isinstance(current, Mapping):
        raise NoSuchPropertyError(f"Cannot read property {key!r} from a mapping. Use the index notation [{key}] instead.")
    try:
        return getattr(current, key)
    except AttributeError as e:
        raise NoSuchPropertyError(f"{type(current).__name__} has no property {key!r}") from e


def _assign_element(current: Any, element: Tuple[str, bool], value: Any) -> None:
    key, is_index = element
    if is_index:
        if isinstance(current, MutableMapping):
            current[key] = value
            return
        if isinstance(current, list):
            try:
                current[int(key)] = value
            except (ValueError, IndexError) as e:
                raise NoSuchPropertyError(f"Cannot write index [{key}] of a list of length {len(current)}") from e
            return
        raise UnexpectedTypeError(current, 'mutable mapping or list')
    if isinstance(current, Mapping):
        raise NoSuchPropertyError(f"Cannot write property {key!r} of a mapping. Use the index notation [{key}] instead.")
    try:
        setattr(current, key, value)
    except AttributeError as e:
        raise NoSuchPropertyError(f"Property {key!r} of {type(current).__name__} is not writable") from e


def _write_elements(current: Any, elements: Tuple[Tuple[str, bool], ...], value: Any) -> None:
    head = elements[0]
    if len(elements) == 1:
        _assign_element(current, head, value)
        return

    nested = _read_element(current, head)
    if nested is None:
        nested = {}
    elif isinstance(nested, Mapping):
        nested = dict(nested)
    elif isinstance(nested, list):
        nested = list(nested)

    _write_elements(nested, elements[1:], value)
    _assign_element(current, head, nested)
