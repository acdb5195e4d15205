from tx_context.dispatch.dispatcher import ActionDispatcher, Handler
from tx_context.dispatch.loader import load_actions
from tx_context.dispatch.message import CONTEXT_FIELD, Message
from tx_context.dispatch.patterns import parse_pattern, pattern_matches, pin_covers
from tx_context.dispatch.transport import HttpTransport, Transport

__all__ = [
    "ActionDispatcher",
    "CONTEXT_FIELD",
    "Handler",
    "HttpTransport",
    "load_actions",
    "Message",
    "parse_pattern",
    "pattern_matches",
    "pin_covers",
    "Transport",
]
