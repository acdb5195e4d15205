# Embeds a context value in the suffix of a transaction id and reads it back.
#
# Wire format (shared by every node of a deployment):
#   <prefix>?<urlsafe-base64(utf-8 compact JSON), no padding>
# The prefix never contains "?" and the base64url alphabet never produces it.

import base64
import binascii
import json
import logging
import uuid
from typing import Any, Optional, Tuple

from pydantic import JsonValue, TypeAdapter, ValidationError

from tx_context.exceptions import ContextDecodeError, ContextSerializationError

logger = logging.getLogger(__name__)

CONTEXT_DELIMITER = "?"

# Returned when a transaction id carries no context at all.
NO_CONTEXT = None

ContextValueAdapter = TypeAdapter(JsonValue)


def new_transaction_id() -> str:
    """Returns a fresh transaction id prefix without any context suffix."""
    return uuid.uuid4().hex


def encode_context(context: Any) -> str:
    """Serializes a context value into a delimiter-free token suffix.

    Args:
        context: A JSON-representable value, normally a (nested) mapping.

    Returns:
        The URL-safe base64 encoding of the compact JSON form, without padding.

    Raises:
        ContextSerializationError: If the context is None or is not representable as JSON.
    """
    if context is NO_CONTEXT:
        raise ContextSerializationError("Cannot encode None as a context; attach an empty mapping instead.")
    try:
        validated = ContextValueAdapter.validate_python(context, strict=True)
        serialized = json.dumps(validated, separators=(",", ":"), ensure_ascii=False, allow_nan=False)
        # Lone surrogates survive validation and dumps but have no UTF-8 form.
        raw = serialized.encode("utf-8")
    except (ValidationError, ValueError, TypeError) as e:
        raise ContextSerializationError(f"Context is not JSON serializable: {e}") from e
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


def decode_context(suffix: Optional[str]) -> Any:
    """Decodes a token suffix produced by `encode_context`.

    Args:
        suffix: The encoded suffix, or None/empty when the id carries no context.

    Returns:
        The decoded context, or NO_CONTEXT when there is no suffix.

    Raises:
        ContextDecodeError: If a suffix is present but is not a valid encoding.
    """
    if not suffix:
        return NO_CONTEXT
    padded = suffix + "=" * (-len(suffix) % 4)
    try:
        raw = base64.b64decode(padded, altchars=b"-_", validate=True)
        return json.loads(raw.decode("utf-8"))
    except (binascii.Error, UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ContextDecodeError(f"Transaction id carries a corrupt context suffix: {e}") from e


def split_transaction_id(transaction_id: str) -> Tuple[str, Optional[str]]:
    """Splits a transaction id into its stable prefix and its context suffix (None if absent)."""
    prefix, delimiter, suffix = transaction_id.partition(CONTEXT_DELIMITER)
    if not delimiter:
        return prefix, None
    return prefix, suffix


def combine_transaction_id(transaction_id: str, suffix: str) -> str:
    """Replaces (or appends) the context suffix of a transaction id, keeping its prefix."""
    prefix, _ = split_transaction_id(transaction_id)
    return f"{prefix}{CONTEXT_DELIMITER}{suffix}"


def context_from_transaction_id(transaction_id: str) -> Any:
    """Decodes the context carried by a transaction id.

    Raises:
        ContextDecodeError: If the suffix is corrupt. The error carries the transaction id.
    """
    _, suffix = split_transaction_id(transaction_id)
    try:
        return decode_context(suffix)
    except ContextDecodeError as e:
        e.transaction_id = transaction_id
        raise
