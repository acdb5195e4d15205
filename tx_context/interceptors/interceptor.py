# Interfaces for the interceptor chain.

import abc
import logging
from typing import Any, Awaitable, Callable, Generic, Optional, TypeVar

from tx_context.core.transaction_scope import TransactionScope

RequestT = TypeVar("RequestT")

# The next stage of a chain: the following interceptor, or the final handler.
CallNext = Callable[[RequestT, TransactionScope], Awaitable[Any]]


class Interceptor(abc.ABC, Generic[RequestT]):
    """Abstract Base Class for one stage of an interceptor chain.

    Attributes:
        name (Optional[str]): An optional name for the interceptor instance,
            used for logging and identification.
    """

    name: Optional[str] = None

    def __init__(self, name: Optional[str] = None) -> None:
        self.name = name or self.__class__.__name__
        self.logger = logging.getLogger(__name__)

    @abc.abstractmethod
    async def intercept(
        self,
        request: RequestT,
        scope: TransactionScope,
        call_next: CallNext[RequestT],
    ) -> Any:
        """
        Run this stage, usually forwarding to `call_next`.

        Args:
            request: The inbound request or action message.
            scope: The transaction scope of the current invocation.
            call_next: The next stage of the chain.

        Returns:
            The result of the chain.

        Raises:
            Exception: Interceptors raise to stop the chain; the remaining stages do not run.
        """
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"<{self.name} <{self.__class__.__name__}>>"
