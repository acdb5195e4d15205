# Interceptor that derives a context at the entry point of a transaction and attaches it.

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from tx_context.core.context_cache import set_context
from tx_context.core.transaction_scope import TransactionScope
from tx_context.exceptions import ContextCreationError, ContextError
from tx_context.interceptors.interceptor import CallNext, Interceptor

logger = logging.getLogger(__name__)

DEFAULT_CONTEXT_HEADER = "x-request-id"

# (request, response, default_context) -> context
CreateContext = Callable[[Any, Any, Dict[str, Any]], Awaitable[Any]]


@dataclass
class InboundRequest:
    """Entry metadata for a transaction.

    Attributes:
        headers: The inbound request headers.
        request: The framework request object, passed through to `create_context`.
        response: The framework response object, passed through to `create_context`.
    """

    headers: Mapping[str, str] = field(default_factory=dict)
    request: Any = None
    response: Any = None

    def header(self, name: str) -> Optional[str]:
        """Case-insensitive header lookup."""
        wanted = name.lower()
        for key, value in self.headers.items():
            if key.lower() == wanted:
                return value
        return None


async def default_create_context(request: Any, response: Any, context: Dict[str, Any]) -> Any:
    """Default implementation of create_context, which returns the default context."""
    logger.debug(f"default create_context - does nothing: {context!r}")
    return context


class AttachContextInterceptor(Interceptor[InboundRequest]):
    """Attaches a context to the transaction at its entry point.

    The default context is `{"requestId": <header value>}` when the configured
    header is present and `{}` otherwise. It is handed to `create_context`,
    whose result is encoded into the scope's transaction id before the chain
    continues. If `create_context` fails, the chain stops.
    """

    def __init__(
        self,
        create_context: Optional[CreateContext] = None,
        context_header: str = DEFAULT_CONTEXT_HEADER,
        name: Optional[str] = None,
    ):
        super().__init__(name=name or "attach-context")
        self.create_context = create_context or default_create_context
        self.context_header = context_header

    def create_default_context(self, request: InboundRequest) -> Dict[str, Any]:
        """Creates a context based on the value of the configured context header."""
        context: Dict[str, Any] = {}
        request_id = request.header(self.context_header)
        if request_id:
            context["requestId"] = request_id
        logger.debug(f"created default context: {context!r}")
        return context

    async def intercept(
        self,
        request: InboundRequest,
        scope: TransactionScope,
        call_next: CallNext[InboundRequest],
    ) -> Any:
        """
        Derives the context, attaches it to the scope and forwards.

        Raises:
            ContextCreationError: If `create_context` fails.
            ContextSerializationError: If the produced context cannot be encoded.
        """
        default_context = self.create_default_context(request)
        try:
            context = await self.create_context(request.request, request.response, default_context)
        except ContextError:
            raise
        except Exception as e:
            raise ContextCreationError(
                f"create_context failed: {e}", transaction_id=scope.transaction_id
            ) from e

        set_context(scope, context)
        self.logger.info(f"[{scope.transaction_id}] Context attached by {self.name}")
        return await call_next(request, scope)
