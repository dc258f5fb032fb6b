"""
Reversible value transformers and the ordered chains that apply them.

A node owns two chains:

- model chain: storage format <-> normalized format
- view chain:  normalized format <-> presentation format

Forward conversion applies a chain left to right, reverse conversion right to
left. A transformer that cannot convert its input raises
TransformationFailedError; a chain never returns a partially converted value.

Custom transformers need no base class: any object with conformant
``transform`` and ``reverse_transform`` methods satisfies DataTransformer.

Example::

    chain = TransformerChain([IntegerToStringTransformer()])
    chain.transform(42)            # '42'
    chain.reverse_transform('42')  # 42
"""

import datetime
from collections.abc import Mapping
from typing import Any, Callable, Iterable, Iterator, Optional, Sequence, Tuple, Protocol, runtime_checkable

from formstate.exceptions import TransformationFailedError
from formstate.values import is_empty


@runtime_checkable
class DataTransformer(Protocol):
    """Structural protocol for bidirectional value converters.

    ``transform`` converts towards the presentation side, ``reverse_transform``
    converts back towards the storage side. Both must raise
    TransformationFailedError on malformed input.
    """

    def transform(self, value: Any) -> Any: ...

    def reverse_transform(self, value: Any) -> Any: ...


class TransformerChain:
    """Immutable ordered sequence of DataTransformers."""

    def __init__(self, transformers: Iterable[DataTransformer] = ()):
        self._transformers: Tuple[DataTransformer, ...] = tuple(transformers)

    def transform(self, value: Any) -> Any:
        """Apply every transformer left to right."""
        for transformer in self._transformers:
            value = transformer.transform(value)
        return value

    def reverse_transform(self, value: Any) -> Any:
        """Apply every transformer's reverse_transform right to left."""
        for transformer in reversed(self._transformers):
            value = transformer.reverse_transform(value)
        return value

    @property
    def transformers(self) -> Tuple[DataTransformer, ...]:
        return self._transformers

    def __iter__(self) -> Iterator[DataTransformer]:
        return iter(self._transformers)

    def __len__(self) -> int:
        return len(self._transformers)

    def __bool__(self) -> bool:
        return bool(self._transformers)

    def __repr__(self) -> str:
        names = ', '.join(type(t).__name__ for t in self._transformers)
        return f"TransformerChain([{names}])"


class CallbackTransformer:
    """Transformer built from two plain functions."""

    def __init__(self, transform: Callable[[Any], Any], reverse_transform: Callable[[Any], Any]):
        self._transform = transform
        self._reverse_transform = reverse_transform

    def transform(self, value: Any) -> Any:
        return self._transform(value)

    def reverse_transform(self, value: Any) -> Any:
        return self._reverse_transform(value)


class IntegerToStringTransformer:
    """Converts between an int and its decimal text."""

    def transform(self, value: Any) -> str:
        if value is None:
            return ''
        if isinstance(value, bool) or not isinstance(value, int):
            raise TransformationFailedError(f"Expected an integer, got {type(value).__name__}.")
        return str(value)

    def reverse_transform(self, value: Any) -> Optional[int]:
        if is_empty(value):
            return None
        if not isinstance(value, str):
            raise TransformationFailedError(f"Expected a string, got {type(value).__name__}.")
        try:
            return int(value.strip())
        except ValueError as e:
            raise TransformationFailedError(f"{value!r} is not a valid integer.") from e


class FloatToStringTransformer:
    """Converts between a number and its text, optionally rounding.

    Args:
        precision: Digits after the decimal point in the text form, or None to
                   keep Python's shortest round-tripping representation.
    """

    def __init__(self, precision: Optional[int] = None):
        self.precision = precision

    def transform(self, value: Any) -> str:
        if value is None:
            return ''
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise TransformationFailedError(f"Expected a number, got {type(value).__name__}.")
        if self.precision is None:
            return repr(float(value))
        return f"{value:.{self.precision}f}"

    def reverse_transform(self, value: Any) -> Optional[float]:
        if is_empty(value):
            return None
        if not isinstance(value, str):
            raise TransformationFailedError(f"Expected a string, got {type(value).__name__}.")
        try:
            number = float(value.strip())
        except ValueError as e:
            raise TransformationFailedError(f"{value!r} is not a valid number.") from e
        if number != number or number in (float('inf'), float('-inf')):
            raise TransformationFailedError(f"{value!r} is not a finite number.")
        if self.precision is not None:
            number = round(number, self.precision)
        return number


class BooleanToStringTransformer:
    """Checkbox semantics: any submitted string means True, None means False.

    Args:
        true_value: Text rendered for True. False renders as None (unchecked).
    """

    def __init__(self, true_value: str = '1'):
        self.true_value = true_value

    def transform(self, value: Any) -> Optional[str]:
        if value is None:
            return None
        if not isinstance(value, bool):
            raise TransformationFailedError(f"Expected a boolean, got {type(value).__name__}.")
        return self.true_value if value else None

    def reverse_transform(self, value: Any) -> bool:
        if value is None:
            return False
        if not isinstance(value, str):
            raise TransformationFailedError(f"Expected a string, got {type(value).__name__}.")
        return True


class DateToStringTransformer:
    """Converts between datetime.date and formatted text."""

    def __init__(self, fmt: str = '%Y-%m-%d'):
        self.fmt = fmt

    def transform(self, value: Any) -> str:
        if value is None:
            return ''
        if not isinstance(value, datetime.date):
            raise TransformationFailedError(f"Expected a date, got {type(value).__name__}.")
        return value.strftime(self.fmt)

    def reverse_transform(self, value: Any) -> Optional[datetime.date]:
        if is_empty(value):
            return None
        if not isinstance(value, str):
            raise TransformationFailedError(f"Expected a string, got {type(value).__name__}.")
        try:
            return datetime.datetime.strptime(value.strip(), self.fmt).date()
        except ValueError as e:
            raise TransformationFailedError(f"{value!r} does not match format {self.fmt!r}.") from e


class ValueToDuplicatesTransformer:
    """Spreads one value over several keys and requires them to agree on reverse.

    Used for repeated fields such as "password" / "confirm password".
    """

    def __init__(self, keys: Sequence[str]):
        self.keys: Tuple[str, ...] = tuple(keys)

    def transform(self, value: Any) -> dict:
        return {key: value for key in self.keys}

    def reverse_transform(self, value: Any) -> Any:
        if not isinstance(value, Mapping):
            raise TransformationFailedError(f"Expected a mapping, got {type(value).__name__}.")

        result = None
        empty_keys = []
        for key in self.keys:
            if is_empty(value.get(key)):
                empty_keys.append(key)
                continue
            if result is None:
                result = value[key]
            elif value[key] != result:
                raise TransformationFailedError("All values in the mapping should be the same.")

        if len(empty_keys) == len(self.keys):
            return None
        if empty_keys:
            raise TransformationFailedError(f"The keys {', '.join(map(repr, empty_keys))} should not be empty.")
        return result
