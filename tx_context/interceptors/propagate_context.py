# Interceptor that exposes the transaction context to action handlers.

from typing import TYPE_CHECKING, Any, Mapping, Optional, Union

from tx_context.core.context_cache import get_context
from tx_context.core.transaction_scope import TransactionScope
from tx_context.dispatch.message import CONTEXT_FIELD, Message
from tx_context.dispatch.patterns import Pattern, format_pattern, parse_pattern
from tx_context.interceptors.interceptor import CallNext, Interceptor

if TYPE_CHECKING:
    from tx_context.dispatch.dispatcher import ActionDispatcher


class PropagateContextInterceptor(Interceptor[Message]):
    """Resolves the transaction context and exposes it on the inbound message.

    Bound to the actions covered by `pin`. The handler receives a shallow copy
    of the message with `CONTEXT_FIELD` set to the context (None when the
    transaction carries none). The transaction id is only read, never changed.
    A corrupt context suffix fails the action before the handler runs.
    """

    def __init__(self, pin: Union[str, Mapping[str, str]], name: Optional[str] = None):
        self.pin: Pattern = parse_pattern(pin)
        super().__init__(name=name or f"propagate-context({format_pattern(self.pin)})")

    def install(self, dispatcher: "ActionDispatcher") -> "PropagateContextInterceptor":
        """Wraps every action of `dispatcher` covered by this interceptor's pin."""
        dispatcher.wrap(self.pin, self)
        return self

    async def intercept(self, request: Message, scope: TransactionScope, call_next: CallNext[Message]) -> Any:
        context = get_context(scope)
        message = dict(request)
        message[CONTEXT_FIELD] = context
        return await call_next(message, scope)
