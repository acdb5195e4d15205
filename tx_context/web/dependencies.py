import logging
from typing import Any

from fastapi import Depends, HTTPException, Request, status

from tx_context.core.context_cache import get_context
from tx_context.core.transaction_scope import TransactionScope
from tx_context.dispatch.dispatcher import ActionDispatcher

logger = logging.getLogger(__name__)

# --- Dependency Providers --- #


def get_dispatcher(request: Request) -> ActionDispatcher:
    """Dependency to retrieve the ActionDispatcher from application state."""
    dispatcher: ActionDispatcher | None = getattr(request.app.state, "dispatcher", None)
    if dispatcher is None:
        logger.critical(
            "ActionDispatcher not found in application state. "
            "This indicates a critical setup error in the application factory."
        )
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error: Action dispatcher not initialized.",
        )
    return dispatcher


def get_transaction_scope(request: Request) -> TransactionScope:
    """Dependency to retrieve the TransactionScope that the context middleware attached to the request."""
    scope: TransactionScope | None = getattr(request.state, "transaction_scope", None)
    if scope is None:
        logger.critical("No transaction scope on the request. Is TransactionContextMiddleware installed?")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error: Transaction scope not initialized.",
        )
    return scope


def get_context_from_request(scope: TransactionScope = Depends(get_transaction_scope)) -> Any:
    """Dependency returning the context attached to the current request's transaction."""
    return get_context(scope)
