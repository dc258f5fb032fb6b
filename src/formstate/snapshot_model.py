"""
Snapshot dataclass for inspecting a node subtree.

A NodeSnapshot is a frozen copy of a node's observable state: the three value
slots, the lifecycle flags, the error messages and the snapshots of its
children. It holds no reference to the node, so it can be kept around, compared
in tests or exported for debugging.
"""

import time
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class NodeSnapshot:
    """Immutable state of a single node and, recursively, its children.

    Value slots are captured as they are, without copying; mutable storage
    values remain shared with the node.
    """
    name: str
    storage_value: Any
    normalized_value: Any
    presentation_value: Any
    initialized: bool
    bound: bool
    synchronized: bool
    required: bool
    disabled: bool
    errors: Tuple[str, ...] = ()
    extra_values: Dict[Any, Any] = field(default_factory=dict)
    children: Dict[str, 'NodeSnapshot'] = field(default_factory=dict)
    taken_at: float = field(default_factory=time.time)

    def find(self, path: str) -> 'NodeSnapshot':
        """Return the descendant snapshot at a dotted child path (``'address.city'``).

        Raises:
            KeyError: If a segment names no child.
        """
        snapshot = self
        for name in path.split('.'):
            snapshot = snapshot.children[name]
        return snapshot

    def to_dict(self) -> Dict:
        """Export to a plain nested dict."""
        return {
            'name': self.name,
            'storage_value': self.storage_value,
            'normalized_value': self.normalized_value,
            'presentation_value': self.presentation_value,
            'initialized': self.initialized,
            'bound': self.bound,
            'synchronized': self.synchronized,
            'required': self.required,
            'disabled': self.disabled,
            'errors': list(self.errors),
            'extra_values': dict(self.extra_values),
            'taken_at': self.taken_at,
            'children': {name: child.to_dict() for name, child in self.children.items()},
        }

    @classmethod
    def from_dict(cls, data: Dict) -> 'NodeSnapshot':
        """Import from a dict produced by to_dict()."""
        return cls(
            name=data['name'],
            storage_value=data['storage_value'],
            normalized_value=data['normalized_value'],
            presentation_value=data['presentation_value'],
            initialized=data.get('initialized', True),
            bound=data['bound'],
            synchronized=data['synchronized'],
            required=data['required'],
            disabled=data['disabled'],
            errors=tuple(data.get('errors', ())),
            extra_values=dict(data.get('extra_values', {})),
            children={name: cls.from_dict(child) for name, child in data.get('children', {}).items()},
            taken_at=data.get('taken_at', 0.0),
        )
