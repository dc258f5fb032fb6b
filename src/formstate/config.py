"""
Node configuration: a mutable builder and the frozen config it produces.

Configuration is assembled once through NodeConfigBuilder and frozen into a
NodeConfig. Nodes only ever read their config; one NodeConfig may be shared
by any number of nodes.

Example::

    builder = NodeConfigBuilder('age')
    builder.add_view_transformer(IntegerToStringTransformer())
    age = builder.get_node()
    age.set_value(42)
    age.get_presentation_value()  # '42'
"""

import inspect
import logging
import re
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple, Union, TYPE_CHECKING

from formstate.defaults import get_builder_defaults
from formstate.events import EventDispatcher, Listener, NodeEvents
from formstate.exceptions import FormStateError
from formstate.mappers import DataMapper
from formstate.transformers import DataTransformer, TransformerChain
from formstate.validators import NodeValidator

if TYPE_CHECKING:
    from formstate.node import Node

logger = logging.getLogger(__name__)

_VALID_NAME = re.compile(r'^[a-zA-Z0-9_][a-zA-Z0-9_\-:]*$')


def is_valid_name(name: str) -> bool:
    """Names are empty, or start with a letter, digit or underscore followed by
    letters, digits, underscores, hyphens or colons."""
    return name == '' or _VALID_NAME.match(name) is not None


def call_supplier(supplier: Callable[..., Any], *args: Any) -> Any:
    """Call a lazy data supplier with as many leading args as it accepts."""
    try:
        parameters = inspect.signature(supplier).parameters.values()
    except (TypeError, ValueError):
        # Builtins such as dict or list expose no signature.
        return supplier()

    positional = 0
    for parameter in parameters:
        if parameter.kind is inspect.Parameter.VAR_POSITIONAL:
            return supplier(*args)
        if parameter.kind in (inspect.Parameter.POSITIONAL_ONLY, inspect.Parameter.POSITIONAL_OR_KEYWORD):
            positional += 1
    return supplier(*args[:positional])


def empty_compound_data(data_class: Optional[type] = None) -> Callable[[], Any]:
    """Return the default empty_data supplier of a compound node.

    A compound node binds into a new dict, or into a new data_class instance,
    so that its children always have a structure to be written into.
    """
    if data_class is None:
        return lambda: {}
    return lambda: data_class()


@dataclass(frozen=True)
class NodeConfig:
    """Immutable node descriptor.

    Attributes:
        name: Node name; empty only for anonymous nodes, which cannot have a parent.
        compound: Whether the node's value is derived from children via data_mapper.
        data_mapper: Required when compound is True.
        model_transformers: Chain between storage and normalized format.
        view_transformers: Chain between normalized and presentation format.
        data: Default data, or a supplier called with () or (node).
        empty_data: Substitute for an empty bound value, or a supplier called
                    with (), (node) or (node, presentation_value). The builder
                    defaults it to a new dict (or data_class instance) for
                    compound nodes.
        data_locked: When True, set_value() ignores values other than the default data.
        by_reference: When False, object-like values are copied on set_value().
        required: Configured required flag (see Node.is_required()).
        disabled: Configured disabled flag (see Node.is_disabled()).
        error_bubbling: Forward added errors to the parent node.
        property_path: Explicit property path used by the parent's data mapper.
        data_class: Type the presentation value must be an instance of (unless empty).
        mapped: Whether the parent's data mapper reads and writes this node.
        validators: Called with the node at the end of bind().
        event_dispatcher: Hook dispatcher for this node.
        attributes: Read-only metadata for external collaborators.
    """
    name: str
    compound: bool = False
    data_mapper: Optional[DataMapper] = None
    model_transformers: TransformerChain = field(default_factory=TransformerChain)
    view_transformers: TransformerChain = field(default_factory=TransformerChain)
    data: Any = None
    empty_data: Any = None
    data_locked: bool = False
    by_reference: bool = True
    required: bool = True
    disabled: bool = False
    error_bubbling: bool = False
    property_path: Optional[str] = None
    data_class: Optional[type] = None
    mapped: bool = True
    validators: Tuple[NodeValidator, ...] = ()
    event_dispatcher: EventDispatcher = field(default_factory=EventDispatcher)
    attributes: Mapping[str, Any] = field(default_factory=lambda: MappingProxyType({}))

    def __post_init__(self):
        if not isinstance(self.name, str):
            raise FormStateError(f"The name must be a string, {type(self.name).__name__} given")
        if not is_valid_name(self.name):
            raise FormStateError(
                f"The name {self.name!r} contains illegal characters. Names should start with a letter, "
                f"digit or underscore and only contain letters, digits, underscores, hyphens and colons."
            )
        if not isinstance(self.model_transformers, TransformerChain):
            object.__setattr__(self, 'model_transformers', TransformerChain(self.model_transformers))
        if not isinstance(self.view_transformers, TransformerChain):
            object.__setattr__(self, 'view_transformers', TransformerChain(self.view_transformers))
        if not isinstance(self.attributes, MappingProxyType):
            object.__setattr__(self, 'attributes', MappingProxyType(dict(self.attributes)))
        object.__setattr__(self, 'validators', tuple(self.validators))

    def has_transformers(self) -> bool:
        return bool(self.model_transformers) or bool(self.view_transformers)

    def resolve_data(self, node: Optional['Node'] = None) -> Any:
        """Evaluate the default data."""
        if callable(self.data):
            return call_supplier(self.data, node)
        return self.data

    def resolve_empty_data(self, node: Optional['Node'] = None, presentation_value: Any = None) -> Any:
        """Evaluate the empty data substituted for an empty bound value."""
        if callable(self.empty_data):
            return call_supplier(self.empty_data, node, presentation_value)
        return self.empty_data

    def has_attribute(self, name: str) -> bool:
        return name in self.attributes

    def get_attribute(self, name: str, default: Any = None) -> Any:
        return self.attributes.get(name, default)


class NodeConfigBuilder:
    """Mutable collector for NodeConfig options.

    Option defaults come from the ambient BuilderDefaults (see
    formstate.defaults). Every setter returns the builder for chaining.
    """

    def __init__(self, name: str, data_class: Optional[type] = None,
                 event_dispatcher: Optional[EventDispatcher] = None):
        if not isinstance(name, str):
            raise FormStateError(f"The name must be a string, {type(name).__name__} given")
        if not is_valid_name(name):
            raise FormStateError(f"The name {name!r} contains illegal characters.")

        defaults = get_builder_defaults()

        self._name = name
        self._data_class = data_class
        self._event_dispatcher = event_dispatcher if event_dispatcher is not None else EventDispatcher()
        self._compound = False
        self._data_mapper: Optional[DataMapper] = None
        self._model_transformers: List[DataTransformer] = []
        self._view_transformers: List[DataTransformer] = []
        self._data: Any = None
        self._empty_data: Any = defaults.empty_data
        self._data_locked = False
        self._by_reference = defaults.by_reference
        self._required = defaults.required
        self._disabled = defaults.disabled
        self._error_bubbling = defaults.error_bubbling
        self._property_path: Optional[str] = None
        self._mapped = defaults.mapped
        self._validators: List[NodeValidator] = []
        self._attributes: Dict[str, Any] = {}

    # === Structure ===

    def set_compound(self, compound: bool) -> 'NodeConfigBuilder':
        self._compound = compound
        return self

    def set_data_mapper(self, data_mapper: Optional[DataMapper]) -> 'NodeConfigBuilder':
        self._data_mapper = data_mapper
        return self

    def set_data_class(self, data_class: Optional[type]) -> 'NodeConfigBuilder':
        self._data_class = data_class
        return self

    def set_property_path(self, property_path: Optional[str]) -> 'NodeConfigBuilder':
        self._property_path = property_path
        return self

    def set_mapped(self, mapped: bool) -> 'NodeConfigBuilder':
        self._mapped = mapped
        return self

    # === Transformers ===

    def add_model_transformer(self, transformer: DataTransformer, force_prepend: bool = False) -> 'NodeConfigBuilder':
        """Add a storage <-> normalized transformer.

        Model transformers are appended unless force_prepend is set.
        """
        if force_prepend:
            self._model_transformers.insert(0, transformer)
        else:
            self._model_transformers.append(transformer)
        return self

    def reset_model_transformers(self) -> 'NodeConfigBuilder':
        self._model_transformers = []
        return self

    def add_view_transformer(self, transformer: DataTransformer, force_prepend: bool = False) -> 'NodeConfigBuilder':
        """Add a normalized <-> presentation transformer."""
        if force_prepend:
            self._view_transformers.insert(0, transformer)
        else:
            self._view_transformers.append(transformer)
        return self

    def reset_view_transformers(self) -> 'NodeConfigBuilder':
        self._view_transformers = []
        return self

    # === Data ===

    def set_data(self, data: Any) -> 'NodeConfigBuilder':
        self._data = data
        return self

    def set_empty_data(self, empty_data: Any) -> 'NodeConfigBuilder':
        self._empty_data = empty_data
        return self

    def set_data_locked(self, locked: bool) -> 'NodeConfigBuilder':
        self._data_locked = locked
        return self

    def set_by_reference(self, by_reference: bool) -> 'NodeConfigBuilder':
        self._by_reference = by_reference
        return self

    # === Flags ===

    def set_required(self, required: bool) -> 'NodeConfigBuilder':
        self._required = required
        return self

    def set_disabled(self, disabled: bool) -> 'NodeConfigBuilder':
        self._disabled = disabled
        return self

    def set_error_bubbling(self, error_bubbling: bool) -> 'NodeConfigBuilder':
        self._error_bubbling = error_bubbling
        return self

    # === Hooks, validators, metadata ===

    def get_event_dispatcher(self) -> EventDispatcher:
        return self._event_dispatcher

    def add_event_listener(self, stage: Union[NodeEvents, str], listener: Listener, priority: int = 0) -> 'NodeConfigBuilder':
        self._event_dispatcher.add_listener(stage, listener, priority)
        return self

    def add_validator(self, validator: NodeValidator) -> 'NodeConfigBuilder':
        self._validators.append(validator)
        return self

    def set_attribute(self, name: str, value: Any) -> 'NodeConfigBuilder':
        self._attributes[name] = value
        return self

    def set_attributes(self, attributes: Mapping[str, Any]) -> 'NodeConfigBuilder':
        self._attributes = dict(attributes)
        return self

    # === Freezing ===

    def get_node_config(self) -> NodeConfig:
        """Freeze the collected options into a NodeConfig."""
        empty_data = self._empty_data
        if self._compound and empty_data is None:
            empty_data = empty_compound_data(self._data_class)

        config = NodeConfig(
            name=self._name,
            compound=self._compound,
            data_mapper=self._data_mapper,
            model_transformers=TransformerChain(self._model_transformers),
            view_transformers=TransformerChain(self._view_transformers),
            data=self._data,
            empty_data=empty_data,
            data_locked=self._data_locked,
            by_reference=self._by_reference,
            required=self._required,
            disabled=self._disabled,
            error_bubbling=self._error_bubbling,
            property_path=self._property_path,
            data_class=self._data_class,
            mapped=self._mapped,
            validators=tuple(self._validators),
            event_dispatcher=self._event_dispatcher,
            attributes=MappingProxyType(dict(self._attributes)),
        )
        logger.debug(f"Frozen config for node {self._name!r} (compound={self._compound})")
        return config

    def get_node(self) -> 'Node':
        """Build a Node from the frozen configuration."""
        from formstate.node import Node
        return Node(self.get_node_config())
