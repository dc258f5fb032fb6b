"""
Validation error records attached to nodes.
"""

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class NodeError:
    """Immutable validation error.

    Attributes:
        message: Rendered, human-readable message.
        message_template: Template the message was rendered from (defaults to message).
        message_parameters: Values substituted into the template.
        message_pluralization: Count used to select a plural form, if any.
    """
    message: str
    message_template: Optional[str] = None
    message_parameters: Dict[str, Any] = field(default_factory=dict)
    message_pluralization: Optional[int] = None

    def __post_init__(self):
        if self.message_template is None:
            object.__setattr__(self, 'message_template', self.message)

    def __str__(self) -> str:
        return self.message
