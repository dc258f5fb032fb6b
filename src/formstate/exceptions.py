"""
Exception hierarchy for the node tree.

All exceptions inherit from ``FormStateError`` so that callers can catch the
whole family with a single ``except`` clause.

Hierarchy::

    FormStateError                 ── configuration misuse, base of all errors
      ├── AlreadyBoundError         ── operation invalid after bind()
      ├── IllegalStateError         ── query made in the wrong lifecycle state
      ├── CyclicSetValueError       ── set_value() re-entered from a listener
      ├── UnexpectedTypeError       ── value of the wrong structural kind
      ├── TypeMismatchError         ── presentation value violates data_class
      ├── TransformationFailedError ── a transformer rejected its input
      └── NoSuchPropertyError       ── property path not readable or writable
"""

from typing import Any


class FormStateError(Exception):
    """Base exception for all node tree errors."""

    pass


class AlreadyBoundError(FormStateError):
    """Raised when a bound node is modified or bound a second time."""

    pass


class IllegalStateError(FormStateError):
    """Raised when a node is queried before reaching the required state."""

    pass


class CyclicSetValueError(FormStateError):
    """Raised when set_value() is called while set_value() is already running."""

    pass


class UnexpectedTypeError(FormStateError):
    """Raised when a value does not have the expected structural type."""

    def __init__(self, value: Any, expected: str):
        self.value = value
        self.expected = expected
        super().__init__(f"Expected argument of type {expected!r}, {type(value).__name__!r} given")


class TypeMismatchError(FormStateError):
    """Raised when a presentation value does not satisfy the configured data_class."""

    pass


class TransformationFailedError(FormStateError):
    """Raised by a transformer that cannot convert its input.

    Inside Node.bind() this is converted into an unsynchronized node.
    Everywhere else it propagates to the caller.
    """

    pass


class NoSuchPropertyError(FormStateError):
    """Raised when a property path element cannot be read from or written to a value."""

    pass
