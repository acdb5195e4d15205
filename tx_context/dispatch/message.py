"""Action message conventions."""

from typing import Any, Dict

Message = Dict[str, Any]

# Message field through which handlers see the transaction context.
# It is stripped before a message leaves the node.
CONTEXT_FIELD = "context$"
