"""Propagates an application-defined context across the actions of one transaction."""

from tx_context.core.context_cache import get_context, invalidate_on_mismatch, set_context
from tx_context.core.token_codec import (
    CONTEXT_DELIMITER,
    NO_CONTEXT,
    combine_transaction_id,
    decode_context,
    encode_context,
    split_transaction_id,
)
from tx_context.core.transaction_scope import TransactionScope

__all__ = [
    "combine_transaction_id",
    "CONTEXT_DELIMITER",
    "decode_context",
    "encode_context",
    "get_context",
    "invalidate_on_mismatch",
    "NO_CONTEXT",
    "set_context",
    "split_transaction_id",
    "TransactionScope",
]
