# Get/set of the context attached to a TransactionScope.

import logging
from typing import Any

from tx_context.core.token_codec import combine_transaction_id, context_from_transaction_id, encode_context
from tx_context.core.transaction_scope import TransactionScope

logger = logging.getLogger(__name__)


def invalidate_on_mismatch(scope: TransactionScope) -> bool:
    """Drops a cached context that belongs to another transaction id than the scope's current one.

    Returns:
        True if a stale context was dropped.
    """
    if not scope.is_stale:
        return False
    scope._invalidate()
    logger.debug(f"[{scope.transaction_id}] Cached context did not match the transaction id; dropped")
    return True


def get_context(scope: TransactionScope) -> Any:
    """Returns the context of the scope's transaction, decoding it on first access.

    Repeated calls on the same scope return the identical object, including the
    NO_CONTEXT sentinel when the transaction id carries no context. A context cached
    for a different transaction id is dropped and the current id is decoded instead.

    Args:
        scope: The transaction scope of the running action.

    Returns:
        The context value, or NO_CONTEXT (None).

    Raises:
        ContextDecodeError: If the transaction id carries a corrupt suffix. Nothing is cached
            in that case, so a later `set_context` on the same scope still succeeds.
    """
    invalidate_on_mismatch(scope)
    if scope.is_resolved:
        logger.debug(f"[{scope.transaction_id}] Context loaded from scope cache")
        return scope.cached_context

    context = context_from_transaction_id(scope.transaction_id)
    scope._cache(context)
    logger.debug(f"[{scope.transaction_id}] Context decoded from transaction id and cached: {context!r}")
    return context


def set_context(scope: TransactionScope, context: Any) -> str:
    """Attaches a context to the scope's transaction, replacing any previous one.

    The scope's transaction id and its cached context are replaced together; the
    cache holds the object passed in, not a decoded copy.

    Args:
        scope: The transaction scope of the running action.
        context: The new context value.

    Returns:
        The new transaction id.

    Raises:
        ContextSerializationError: If the context cannot be encoded. The scope is left unchanged.
    """
    suffix = encode_context(context)
    transaction_id = combine_transaction_id(scope.transaction_id, suffix)
    scope._store(transaction_id, context)
    logger.debug(f"[{transaction_id}] Context saved: {context!r}")
    return transaction_id
