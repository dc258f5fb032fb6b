"""
Node: the stateful unit of the binding tree.

A node holds one logical value in three representations and keeps them in
sync through its transformer chains:

    storage  --model chain-->  normalized  --view chain-->  presentation
    storage  <--model chain--  normalized  <--view chain--  presentation

set_value() pushes a storage value forward and distributes it over the
children through the data mapper. bind() pulls a submitted presentation value
back, lets the children bind their slices first, merges them through the data
mapper and records whether the reverse conversion succeeded.

Lifecycle:
- Unbound (initial): children may be attached, set_value() may run any number of times
- Bound (terminal): reached exactly once through bind()

Example::

    root = NodeConfigBuilder('user').set_data({}).set_compound(True).set_data_mapper(PropertyPathMapper()).get_node()
    root.add(NodeConfigBuilder('name').get_node())
    root.add(NodeConfigBuilder('age').add_view_transformer(IntegerToStringTransformer()).get_node())

    root.bind({'name': 'Ada', 'age': '36'})
    root.get_value()   # {'name': 'Ada', 'age': 36}
    root.is_valid()    # True
"""

import copy
import logging
import weakref
from collections.abc import Mapping
from enum import Enum
from typing import Any, Dict, Iterator, List, Optional, Union

from formstate.config import NodeConfig
from formstate.errors import NodeError
from formstate.events import NodeEvent, NodeEvents
from formstate.exceptions import (
    AlreadyBoundError,
    CyclicSetValueError,
    FormStateError,
    IllegalStateError,
    TransformationFailedError,
    TypeMismatchError,
    UnexpectedTypeError,
)
from formstate.property_path import PropertyPath, get_property_path
from formstate.snapshot_model import NodeSnapshot
from formstate.values import ValueKind, is_blank, is_empty, is_scalar, kind_of, to_text

logger = logging.getLogger(__name__)


class InitState(Enum):
    """Initialization state of a node's value slots."""

    NOT_INITIALIZED = 'not_initialized'
    INITIALIZING = 'initializing'
    INITIALIZED = 'initialized'


_UNSET = object()


class Node:
    """
    Tree entity holding a value in storage, normalized and presentation format.

    Core Attributes:
    - _config: Frozen NodeConfig, shared and never mutated
    - _children: Insertion-ordered name -> Node mapping (owned)
    - _parent_ref: Weak reference to the parent (non-owning), or None
    - _storage / _normalized / _presentation: The three value slots
    - _init_state: NOT_INITIALIZED -> INITIALIZING -> INITIALIZED, guards set_value() re-entry
    - _bound: Monotonic bind flag
    - _synchronized: False after a failed reverse conversion in bind()
    - _extra_values: Submitted entries without a matching child
    - _errors: Errors added since the last bind()

    Derived:
    - is_required() / is_disabled() -> own flag combined with the parent chain
    - is_valid() -> own errors + children validity
    """

    def __init__(self, config: NodeConfig):
        """
        Args:
            config: Frozen configuration. Compound configs must carry a data mapper.

        Raises:
            FormStateError: If config is compound but has no data mapper.
        """
        if config.compound and config.data_mapper is None:
            raise FormStateError("Compound nodes need a data mapper")

        self._config = config

        # === Structure ===
        self._children: Dict[str, 'Node'] = {}
        self._parent_ref: Optional[weakref.ReferenceType] = None

        # === Value slots ===
        self._storage: Any = None
        self._normalized: Any = None
        self._presentation: Any = None
        self._default_data: Any = _UNSET

        # === Flags ===
        self._init_state = InitState.NOT_INITIALIZED
        self._state_before_set = InitState.NOT_INITIALIZED
        self._bound = False
        self._synchronized = True
        self._transformation_failure: Optional[TransformationFailedError] = None

        # === Bind results ===
        self._extra_values: Dict[Any, Any] = {}
        self._errors: List[NodeError] = []

    def __repr__(self) -> str:
        state = 'bound' if self._bound else 'unbound'
        return f"<Node {self.get_name()!r} {state} children={len(self._children)}>"

    # === Configuration ===

    def get_config(self) -> NodeConfig:
        return self._config

    def get_name(self) -> str:
        return self._config.name

    def get_property_path(self) -> Optional[PropertyPath]:
        """Path under which the parent's data mapper reads and writes this node.

        Returns:
            The configured property path; None for anonymous nodes; ``[name]``
            when the parent has no data_class (mapping access); ``name``
            otherwise (attribute access).
        """
        if self._config.property_path is not None:
            return get_property_path(self._config.property_path)

        name = self.get_name()
        if not name:
            return None

        parent = self.get_parent()
        if parent is not None and parent.get_config().data_class is None:
            return get_property_path(f"[{name}]")

        return get_property_path(name)

    def is_required(self) -> bool:
        """A node is never required below a parent that is not required."""
        parent = self.get_parent()
        if parent is None or parent.is_required():
            return self._config.required
        return False

    def is_disabled(self) -> bool:
        """A node is always disabled below a disabled parent."""
        parent = self.get_parent()
        if parent is None or not parent.is_disabled():
            return self._config.disabled
        return True

    # === Tree structure ===

    def set_parent(self, parent: Optional['Node']) -> 'Node':
        """Attach this node to a parent, or detach it with None.

        Raises:
            AlreadyBoundError: If the node is bound.
            FormStateError: If the node is anonymous and a parent is given.
        """
        if self._bound:
            raise AlreadyBoundError("You cannot set the parent of a bound node")

        if parent is not None and self.get_name() == '':
            raise FormStateError("A node with an empty name cannot have a parent node.")

        self._parent_ref = weakref.ref(parent) if parent is not None else None
        return self

    def get_parent(self) -> Optional['Node']:
        return self._parent_ref() if self._parent_ref is not None else None

    def has_parent(self) -> bool:
        return self.get_parent() is not None

    def get_root(self) -> 'Node':
        parent = self.get_parent()
        return parent.get_root() if parent is not None else self

    def is_root(self) -> bool:
        return not self.has_parent()

    def add(self, child: 'Node') -> 'Node':
        """Attach a child and hand it its slice of the current value.

        The child only receives its slice if this node is already initialized.

        Raises:
            AlreadyBoundError: If the node is bound.
            FormStateError: If the node is not compound.
        """
        if self._bound:
            raise AlreadyBoundError("You cannot add children to a bound node")

        if not self._config.compound:
            raise FormStateError('You cannot add children to a simple node. Maybe you should set the option "compound" to True?')

        child.set_parent(self)

        name = child.get_name()
        replaced = self._children.get(name)
        if replaced is not None and replaced is not child:
            logger.warning(f"Replacing child {name!r} of node {self.get_name()!r}")
            replaced.set_parent(None)
        self._children[name] = child

        # An uninitialized node maps all children on first access; a node inside
        # set_value() maps them once it has committed.
        if self._init_state is InitState.INITIALIZED:
            self._config.data_mapper.map_data_to_children(self._presentation, [child])

        return self

    def remove(self, name: str) -> 'Node':
        """Detach the child with the given name. Unknown names are ignored.

        Raises:
            AlreadyBoundError: If the node is bound.
        """
        if self._bound:
            raise AlreadyBoundError("You cannot remove children from a bound node")

        child = self._children.pop(name, None)
        if child is not None:
            child.set_parent(None)

        return self

    def has(self, name: str) -> bool:
        return name in self._children

    def get(self, name: str) -> 'Node':
        if name in self._children:
            return self._children[name]
        raise KeyError(f'Child "{name}" does not exist.')

    def all(self) -> Dict[str, 'Node']:
        """Return a copy of the name -> child mapping in insertion order."""
        return dict(self._children)

    def __contains__(self, name: object) -> bool:
        return name in self._children

    def __getitem__(self, name: str) -> 'Node':
        return self.get(name)

    def __delitem__(self, name: str) -> None:
        self.remove(name)

    def __iter__(self) -> Iterator['Node']:
        return iter(list(self._children.values()))

    def __len__(self) -> int:
        return len(self._children)

    def __bool__(self) -> bool:
        # A node without children is still a node.
        return True

    # === Value pipeline ===

    def is_initialized(self) -> bool:
        if self._init_state is InitState.INITIALIZING:
            return self._state_before_set is InitState.INITIALIZED
        return self._init_state is InitState.INITIALIZED

    def get_default_data(self) -> Any:
        """Return the configured default data, evaluating a supplier once per node."""
        if self._default_data is _UNSET:
            self._default_data = self._config.resolve_data(self)
        return self._default_data

    def set_value(self, storage_value: Any) -> 'Node':
        """Set the value in storage format and derive the other two formats.

        Running set_value() twice with the same value yields the same slots.

        Args:
            storage_value: Value in the format of the owning domain object.

        Returns:
            This node.

        Raises:
            AlreadyBoundError: If the node is bound and initialized.
            CyclicSetValueError: If called from a listener of this node's set_value().
            TransformationFailedError: If a forward transformer rejects the value.
            TypeMismatchError: If the presentation value violates the data_class constraint.
        """
        # A node bound while disabled is bound but not initialized; it still accepts data.
        if self._bound and self.is_initialized():
            raise AlreadyBoundError("You cannot change the value of a bound node")

        config = self._config

        if config.data_locked:
            default = self.get_default_data()
            if storage_value is not default and storage_value != default:
                logger.debug(f"Ignoring set_value() on locked node {self.get_name()!r}")
                return self

        if not config.by_reference and kind_of(storage_value) in (ValueKind.STRUCTURED, ValueKind.OPAQUE):
            storage_value = copy.copy(storage_value)

        if self._init_state is InitState.INITIALIZING:
            raise CyclicSetValueError(
                "A cycle was detected. Listeners to the PRE_SET_VALUE event must not call set_value(). "
                "Assign event.data instead."
            )

        self._state_before_set = self._init_state
        self._init_state = InitState.INITIALIZING
        try:
            event = config.event_dispatcher.dispatch(NodeEvents.PRE_SET_VALUE, NodeEvent(self, storage_value))
            storage_value = event.data

            # Without any transformer all three formats are text.
            if not config.has_transformers() and is_scalar(storage_value):
                storage_value = to_text(storage_value)

            normalized = self._storage_to_normalized(storage_value)
            presentation = self._normalized_to_presentation(normalized)
            self._check_presentation_type(presentation)
        except Exception:
            self._init_state = self._state_before_set
            raise

        self._storage = storage_value
        self._normalized = normalized
        self._presentation = presentation
        self._synchronized = True
        self._transformation_failure = None
        self._init_state = InitState.INITIALIZED

        if self._children:
            config.data_mapper.map_data_to_children(presentation, self._children.values())

        config.event_dispatcher.dispatch(NodeEvents.POST_SET_VALUE, NodeEvent(self, storage_value))

        return self

    def _ensure_initialized(self) -> None:
        if self.is_initialized():
            return

        # An uninitialized parent hands this node its slice on initialization.
        parent = self.get_parent()
        if parent is not None and parent._init_state is InitState.NOT_INITIALIZED:
            parent._ensure_initialized()
            if self.is_initialized():
                return

        logger.debug(f"Applying default data to node {self.get_name()!r}")
        self.set_value(self.get_default_data())

    def get_value(self) -> Any:
        """Return the value in storage format, applying the default data on first access."""
        self._ensure_initialized()
        return self._storage

    def get_normalized_value(self) -> Any:
        self._ensure_initialized()
        return self._normalized

    def get_presentation_value(self) -> Any:
        self._ensure_initialized()
        return self._presentation

    def get_extra_values(self) -> Dict[Any, Any]:
        """Submitted entries that matched no child during bind()."""
        return dict(self._extra_values)

    def _check_presentation_type(self, presentation: Any) -> None:
        if is_empty(presentation):
            return

        data_class = self._config.data_class
        actual = type(presentation).__name__

        if data_class is None and kind_of(presentation) is ValueKind.OPAQUE:
            raise TypeMismatchError(
                f"The presentation value of node {self.get_name()!r} is expected to be a scalar or a "
                f"structured value, but is an instance of {actual}. Set data_class to {actual} or add a "
                f"view transformer that converts {actual} to a scalar or structured value."
            )

        if data_class is not None and not isinstance(presentation, data_class):
            raise TypeMismatchError(
                f"The presentation value of node {self.get_name()!r} is expected to be an instance of "
                f"{data_class.__name__}, but is an instance of {actual}. Set data_class to None or add a "
                f"view transformer that converts {actual} to {data_class.__name__}."
            )

    def _storage_to_normalized(self, value: Any) -> Any:
        return self._config.model_transformers.transform(value)

    def _normalized_to_storage(self, value: Any) -> Any:
        return self._config.model_transformers.reverse_transform(value)

    def _normalized_to_presentation(self, value: Any) -> Any:
        config = self._config
        # Simple nodes without view transformers present scalars as text so that
        # "" and "0" stay distinct. Compound values go to the data mapper untouched.
        if not config.view_transformers and not config.compound:
            if kind_of(value) in (ValueKind.NULL, ValueKind.SCALAR):
                return to_text(value)
            return value
        return config.view_transformers.transform(value)

    def _presentation_to_normalized(self, value: Any) -> Any:
        if not self._config.view_transformers:
            return None if isinstance(value, str) and value == '' else value
        return self._config.view_transformers.reverse_transform(value)

    # === Bind lifecycle ===

    def bind(self, submission: Any) -> 'Node':
        """Bind a submitted presentation value, transform it back and validate it.

        Args:
            submission: Text, None (field absent) or a mapping of child submissions.

        Returns:
            This node.

        Raises:
            AlreadyBoundError: If the node is already bound.
            UnexpectedTypeError: If a compound node receives a non-empty, non-mapping submission.
        """
        if self._bound:
            raise AlreadyBoundError("A node can only be bound once")

        if self.is_disabled():
            self._bound = True
            return self

        # Set-value listeners always run before bind listeners.
        self._ensure_initialized()

        # None means "not submitted" and must stay distinct from "".
        if is_scalar(submission):
            submission = to_text(submission)

        self._errors = []

        config = self._config
        dispatcher = config.event_dispatcher
        storage = None
        normalized = None
        extra_values: Dict[Any, Any] = {}
        synchronized = False
        failure: Optional[TransformationFailedError] = None

        submission = dispatcher.dispatch(NodeEvents.PRE_BIND, NodeEvent(self, submission)).data

        presentation = submission

        if config.compound:
            if not isinstance(submission, Mapping):
                if not is_empty(submission):
                    raise UnexpectedTypeError(submission, 'mapping')
                submission = {}

            for name, child in list(self._children.items()):
                child.bind(submission.get(name))

            for name, value in submission.items():
                if name not in self._children:
                    extra_values[name] = value

            if extra_values:
                logger.debug(f"Node {self.get_name()!r} received extra values: {list(extra_values)}")

            # The data mapper merges the children into the current presentation value.
            presentation = self.get_presentation_value()

        if is_empty(presentation):
            presentation = config.resolve_empty_data(self, presentation)

        if self._children:
            presentation = config.data_mapper.map_children_to_data(self._children.values(), presentation)

        try:
            normalized = self._presentation_to_normalized(presentation)
            normalized = dispatcher.dispatch(NodeEvents.NORMALIZE_ON_BIND, NodeEvent(self, normalized)).data
            storage = self._normalized_to_storage(normalized)
            presentation = self._normalized_to_presentation(normalized)
            synchronized = True
        except TransformationFailedError as e:
            logger.debug(f"Node {self.get_name()!r} is not synchronized: {e}")
            storage = None
            normalized = None
            failure = e

        self._bound = True
        self._storage = storage
        self._normalized = normalized
        self._presentation = presentation
        self._extra_values = extra_values
        self._synchronized = synchronized
        self._transformation_failure = failure

        dispatcher.dispatch(NodeEvents.POST_BIND, NodeEvent(self, presentation))

        for validator in config.validators:
            validator.validate(self)

        return self

    def is_bound(self) -> bool:
        return self._bound

    def is_synchronized(self) -> bool:
        """False when the bound presentation value could not be converted back."""
        return self._synchronized

    def get_transformation_failure(self) -> Optional[TransformationFailedError]:
        """The error that desynchronized the node during bind(), if any."""
        return self._transformation_failure

    # === Errors ===

    def add_error(self, error: Union[NodeError, str]) -> 'Node':
        """Record an error here, or on the parent when error bubbling is enabled."""
        if isinstance(error, str):
            error = NodeError(error)

        parent = self.get_parent()
        if parent is not None and self._config.error_bubbling:
            parent.add_error(error)
        else:
            self._errors.append(error)

        return self

    def get_errors(self) -> List[NodeError]:
        return list(self._errors)

    def has_own_errors(self) -> bool:
        """Whether this node itself has errors (children are not consulted)."""
        return len(self._errors) > 0

    def is_valid(self) -> bool:
        """
        Raises:
            IllegalStateError: If the node is not bound.
        """
        if not self._bound:
            raise IllegalStateError("You cannot call is_valid() on a node that is not bound.")

        if self.has_own_errors():
            return False

        if not self.is_disabled():
            for child in self._children.values():
                if not child.is_valid():
                    return False

        return True

    def is_empty(self) -> bool:
        for child in self._children.values():
            if not child.is_empty():
                return False
        # A compound mapping built from empty children is empty too.
        if self._config.compound and isinstance(self._storage, Mapping):
            return all(is_blank(value) for value in self._storage.values())
        return is_blank(self._storage)

    def get_errors_as_string(self, level: int = 0) -> str:
        """Render the errors of this subtree for debugging."""
        indent = ' ' * level
        lines = [f"{indent}ERROR: {error.message}\n" for error in self._errors]

        for name, child in self._children.items():
            lines.append(f"{indent}{name}:\n")
            child_errors = child.get_errors_as_string(level + 4)
            lines.append(child_errors if child_errors else f"{' ' * (level + 4)}No errors\n")

        return ''.join(lines)

    # === Snapshots ===

    def snapshot(self) -> NodeSnapshot:
        """Capture the current state of this subtree without triggering initialization."""
        return NodeSnapshot(
            name=self.get_name(),
            storage_value=self._storage,
            normalized_value=self._normalized,
            presentation_value=self._presentation,
            initialized=self.is_initialized(),
            bound=self._bound,
            synchronized=self._synchronized,
            required=self.is_required(),
            disabled=self.is_disabled(),
            errors=tuple(error.message for error in self._errors),
            extra_values=dict(self._extra_values),
            children={name: child.snapshot() for name, child in self._children.items()},
        )
