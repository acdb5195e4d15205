# Interceptor chain composed once, at configuration time.

import logging
from typing import Any, Generic, Optional, Sequence

from tx_context.core.transaction_scope import TransactionScope
from tx_context.interceptors.interceptor import CallNext, Interceptor, RequestT

logger = logging.getLogger(__name__)


class InterceptorChain(Generic[RequestT]):
    """
    An ordered sequence of interceptors wrapped around a final handler.

    The first interceptor is the outermost one. The chain is composed when it is
    constructed; invoking it does no lookup. If any stage raises, the exception
    propagates and the remaining stages do not run.

    Attributes:
        interceptors (Sequence[Interceptor]): The interceptors, outermost first.
        handler (CallNext): The final handler.
        name (str): The name of this chain, used for logging.
    """

    def __init__(
        self,
        interceptors: Sequence[Interceptor[RequestT]],
        handler: CallNext[RequestT],
        name: Optional[str] = None,
    ):
        self.interceptors = tuple(interceptors)
        self.handler = handler
        self.name = name or self.__class__.__name__
        self._entry = self._compose()

    def _compose(self) -> CallNext[RequestT]:
        call_next = self.handler
        for position in reversed(range(len(self.interceptors))):
            call_next = self._bind(position, call_next)
        return call_next

    def _bind(self, position: int, call_next: CallNext[RequestT]) -> CallNext[RequestT]:
        interceptor = self.interceptors[position]
        total = len(self.interceptors)

        async def stage(request: RequestT, scope: TransactionScope) -> Any:
            logger.debug(
                f"[{scope.transaction_id}] Applying interceptor {position + 1}/{total} in {self.name}: "
                f"{interceptor.name}"
            )
            return await interceptor.intercept(request, scope, call_next)

        return stage

    async def __call__(self, request: RequestT, scope: TransactionScope) -> Any:
        """
        Runs the chain for one invocation.

        Args:
            request: The inbound request or action message.
            scope: The transaction scope of the invocation.

        Returns:
            The result of the final handler, as returned through every stage.

        Raises:
            Exception: Propagates any exception raised by a stage or by the handler.
        """
        logger.debug(f"[{scope.transaction_id}] Entering {self.name}")
        try:
            result = await self._entry(request, scope)
        except Exception as e:
            logger.error(f"[{scope.transaction_id}] Error within {self.name}: {e.__class__.__name__}: {e}")
            raise  # Re-raise to halt processing
        logger.debug(f"[{scope.transaction_id}] Exiting {self.name}")
        return result

    def __repr__(self) -> str:
        interceptor_reprs = [f"{i.name} <{i.__class__.__name__}>" for i in self.interceptors]
        return f"<{self.name}(interceptors=[{', '.join(interceptor_reprs)}])>"
