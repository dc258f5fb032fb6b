"""
Hierarchical data-binding and transformation engine.

This package keeps a tree of nodes in sync with a domain value. Each node
holds its value in three formats and converts between them through ordered,
reversible transformer chains:

    storage (domain object) <-> normalized <-> presentation (submitted text/structures)

Key Features:
- Frozen node configuration built through NodeConfigBuilder
- Reversible transformer chains with a failure-aware bind pipeline
- Property-path data mapping between compound values and children
- Lifecycle hooks with priorities (PRE_SET_VALUE ... POST_BIND)
- Error accumulation with optional bubbling, and validity queries
- Contextvars-based builder defaults

Quick Start:
    >>> from formstate import NodeConfigBuilder, PropertyPathMapper, IntegerToStringTransformer
    >>>
    >>> user = (NodeConfigBuilder('user')
    ...         .set_compound(True)
    ...         .set_data_mapper(PropertyPathMapper())
    ...         .set_data({'name': 'Ada', 'age': 36})
    ...         .get_node())
    >>> user.add(NodeConfigBuilder('name').get_node())
    <Node 'user' unbound children=1>
    >>> user.add(NodeConfigBuilder('age').add_view_transformer(IntegerToStringTransformer()).get_node())
    <Node 'user' unbound children=2>
    >>>
    >>> user['age'].get_presentation_value()
    '36'
    >>> user.bind({'name': 'Grace', 'age': '37'})
    <Node 'user' bound children=2>
    >>> user.get_value()
    {'name': 'Grace', 'age': 37}

Modules:
    - node: Node entity, set_value/bind pipelines, tree and error model
    - config: NodeConfig and NodeConfigBuilder
    - transformers: DataTransformer protocol, TransformerChain and bundled transformers
    - mappers: DataMapper protocol and PropertyPathMapper
    - property_path: Property path parsing and access
    - events: Lifecycle stages and the per-config EventDispatcher
    - validators: NodeValidator protocol and CallbackValidator
    - defaults: Ambient NodeConfigBuilder defaults
    - snapshot_model: Frozen NodeSnapshot for inspection
"""

# Exceptions
from formstate.exceptions import (
    FormStateError,
    AlreadyBoundError,
    IllegalStateError,
    CyclicSetValueError,
    UnexpectedTypeError,
    TypeMismatchError,
    TransformationFailedError,
    NoSuchPropertyError,
)

# Values
from formstate.values import ValueKind, kind_of, is_empty, is_blank

# Transformers
from formstate.transformers import (
    DataTransformer,
    TransformerChain,
    CallbackTransformer,
    IntegerToStringTransformer,
    FloatToStringTransformer,
    BooleanToStringTransformer,
    DateToStringTransformer,
    ValueToDuplicatesTransformer,
)

# Property paths and mapping
from formstate.property_path import PropertyPath, get_property_path, clear_property_path_cache
from formstate.mappers import DataMapper, PropertyPathMapper

# Events
from formstate.events import NodeEvents, NodeEvent, EventDispatcher

# Errors and validators
from formstate.errors import NodeError
from formstate.validators import NodeValidator, CallbackValidator

# Configuration
from formstate.defaults import (
    BuilderDefaults,
    builder_defaults,
    get_builder_defaults,
    set_builder_defaults,
    reset_builder_defaults,
)
from formstate.config import NodeConfig, NodeConfigBuilder

# Node
from formstate.node import Node, InitState
from formstate.snapshot_model import NodeSnapshot

__all__ = [
    # Exceptions
    'FormStateError',
    'AlreadyBoundError',
    'IllegalStateError',
    'CyclicSetValueError',
    'UnexpectedTypeError',
    'TypeMismatchError',
    'TransformationFailedError',
    'NoSuchPropertyError',
    # Values
    'ValueKind',
    'kind_of',
    'is_empty',
    'is_blank',
    # Transformers
    'DataTransformer',
    'TransformerChain',
    'CallbackTransformer',
    'IntegerToStringTransformer',
    'FloatToStringTransformer',
    'BooleanToStringTransformer',
    'DateToStringTransformer',
    'ValueToDuplicatesTransformer',
    # Property paths and mapping
    'PropertyPath',
    'get_property_path',
    'clear_property_path_cache',
    'DataMapper',
    'PropertyPathMapper',
    # Events
    'NodeEvents',
    'NodeEvent',
    'EventDispatcher',
    # Errors and validators
    'NodeError',
    'NodeValidator',
    'CallbackValidator',
    # Configuration
    'BuilderDefaults',
    'builder_defaults',
    'get_builder_defaults',
    'set_builder_defaults',
    'reset_builder_defaults',
    'NodeConfig',
    'NodeConfigBuilder',
    # Node
    'Node',
    'InitState',
    'NodeSnapshot',
]

__version__ = '1.0.0'
__description__ = 'Hierarchical data-binding and transformation engine'
