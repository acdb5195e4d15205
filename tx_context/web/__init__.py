from tx_context.web.dependencies import get_context_from_request, get_dispatcher, get_transaction_scope
from tx_context.web.middleware import TransactionContextMiddleware
from tx_context.web.web_routes import create_web_router

__all__ = [
    "create_web_router",
    "get_context_from_request",
    "get_dispatcher",
    "get_transaction_scope",
    "TransactionContextMiddleware",
]
