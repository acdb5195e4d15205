"""Defines the TransactionScope carried through every interceptor and action handler."""

from dataclasses import dataclass, field
from typing import Any, Optional

from psygnal import Signal

from tx_context.core.token_codec import new_transaction_id


class _Unresolved:
    """Marks a cache slot whose context has not been decoded yet."""

    def __repr__(self) -> str:
        return "<unresolved>"


UNRESOLVED = _Unresolved()


@dataclass
class TransactionScope:
    """Holds the state of one action invocation within a transaction.

    A local call chain shares one scope instance. A remote node builds its own
    scope from the transaction id string it received, so the id is the only
    state that crosses a transport.

    Attributes:
        transaction_id: The transaction id, including any encoded context suffix.
        context_changed: Emitted with (transaction_id, context) after a new
            context was attached. Both values are already in place when it fires.
    """

    transaction_id: str = field(default_factory=new_transaction_id)
    _context: Any = field(default=UNRESOLVED, init=False, repr=False, compare=False)
    # The transaction id `_context` was decoded from or attached with.
    _cached_for: Optional[str] = field(default=None, init=False, repr=False, compare=False)

    context_changed = Signal(str, object)

    @classmethod
    def from_transaction_id(cls, transaction_id: Optional[str]) -> "TransactionScope":
        """Builds a fresh scope (with an empty cache slot) for a received transaction id."""
        if not transaction_id:
            return cls()
        return cls(transaction_id=transaction_id)

    @property
    def is_resolved(self) -> bool:
        """True if the slot holds the context of the current transaction id."""
        return self._context is not UNRESOLVED and self._cached_for == self.transaction_id

    @property
    def is_stale(self) -> bool:
        """True if the slot holds a context cached for a different transaction id."""
        return self._context is not UNRESOLVED and self._cached_for != self.transaction_id

    @property
    def cached_context(self) -> Any:
        """The cached context value.

        Raises:
            LookupError: If the context has not been resolved for the current transaction id.
        """
        if not self.is_resolved:
            raise LookupError(f"Context for transaction {self.transaction_id} has not been resolved yet")
        return self._context

    def _store(self, transaction_id: str, context: Any) -> None:
        # Both fields change together, before anyone is notified.
        self.transaction_id = transaction_id
        self._context = context
        self._cached_for = transaction_id
        self.context_changed.emit(transaction_id, context)

    def _cache(self, context: Any) -> None:
        self._context = context
        self._cached_for = self.transaction_id

    def _invalidate(self) -> None:
        self._context = UNRESOLVED
        self._cached_for = None
