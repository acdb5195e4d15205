# In-process action dispatcher with pattern routing, interceptors and remote client routes.

import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, List, Mapping, Optional, Tuple, Union

from tx_context.core.transaction_scope import TransactionScope
from tx_context.dispatch.message import CONTEXT_FIELD, Message
from tx_context.dispatch.patterns import Pattern, format_pattern, parse_pattern, pattern_matches, pin_covers
from tx_context.dispatch.transport import Transport
from tx_context.exceptions import ActionNotFoundError
from tx_context.interceptors.chain import InterceptorChain
from tx_context.interceptors.interceptor import Interceptor

logger = logging.getLogger(__name__)

PatternLike = Union[str, Mapping[str, Any]]

# (message, scope, dispatcher) -> result
Handler = Callable[[Message, TransactionScope, "ActionDispatcher"], Awaitable[Any]]


@dataclass
class _Action:
    pattern: Pattern
    handler: Handler
    order: int
    chain: InterceptorChain[Message]


class ActionDispatcher:
    """Routes action messages to local handlers or to remote nodes.

    Local handlers run inside an interceptor chain built when the action or an
    interceptor is registered. A handler calls further actions through
    `dispatcher.act(message, scope)` with the scope it received, so local hops
    share one TransactionScope; remote hops only carry its transaction id.

    Attributes:
        name (str): Name of this dispatcher (node), used for logging.
    """

    def __init__(self, name: Optional[str] = None):
        self.name = name or self.__class__.__name__
        self._actions: List[_Action] = []
        self._wrappers: List[Tuple[Pattern, Interceptor[Message]]] = []
        self._clients: List[Tuple[Pattern, Transport]] = []

    def add(self, pattern: PatternLike, handler: Handler) -> None:
        """Registers a local action handler for `pattern`."""
        parsed = parse_pattern(pattern)
        action = _Action(parsed, handler, len(self._actions), self._build_chain(parsed, handler))
        self._actions.append(action)
        logger.debug(f"{self.name}: added action {format_pattern(parsed)}")

    def wrap(self, pin: PatternLike, interceptor: Interceptor[Message]) -> None:
        """Adds `interceptor` to every action covered by `pin`, including actions added later."""
        parsed = parse_pattern(pin)
        self._wrappers.append((parsed, interceptor))
        for action in self._actions:
            if pin_covers(parsed, action.pattern):
                action.chain = self._build_chain(action.pattern, action.handler)
        logger.debug(f"{self.name}: wrapped {format_pattern(parsed)} with {interceptor.name}")

    def client(self, pin: PatternLike, transport: Transport) -> None:
        """Routes messages matching `pin` that have no local action through `transport`."""
        parsed = parse_pattern(pin)
        self._clients.append((parsed, transport))
        logger.debug(f"{self.name}: client route {format_pattern(parsed)} -> {transport!r}")

    def _build_chain(self, pattern: Pattern, handler: Handler) -> InterceptorChain[Message]:
        interceptors = [i for pin, i in self._wrappers if pin_covers(pin, pattern)]

        async def call_handler(message: Message, scope: TransactionScope) -> Any:
            return await handler(message, scope, self)

        return InterceptorChain(interceptors, call_handler, name=f"{self.name}:{format_pattern(pattern)}")

    def find_action(self, message: Mapping[str, Any]) -> Optional[_Action]:
        """Returns the most specific local action matching `message` (latest wins on ties)."""
        candidates = [a for a in self._actions if pattern_matches(a.pattern, message)]
        if not candidates:
            return None
        return max(candidates, key=lambda a: (len(a.pattern), a.order))

    def find_client(self, message: Mapping[str, Any]) -> Optional[Transport]:
        candidates = [(i, pin, t) for i, (pin, t) in enumerate(self._clients) if pattern_matches(pin, message)]
        if not candidates:
            return None
        return max(candidates, key=lambda c: (len(c[1]), c[0]))[2]

    async def act(self, message: Mapping[str, Any], scope: Optional[TransactionScope] = None) -> Any:
        """
        Invokes the action matching `message` within the transaction of `scope`.

        Args:
            message: The action message.
            scope: The scope of the calling action. None starts a new transaction.

        Returns:
            The action result.

        Raises:
            ActionNotFoundError: If neither a local action nor a client route matches.
            Exception: Propagates anything raised by interceptors, handlers or transports.
        """
        if scope is None:
            scope = TransactionScope()
            logger.debug(f"[{scope.transaction_id}] {self.name}: new transaction")

        action = self.find_action(message)
        if action is not None:
            logger.debug(f"[{scope.transaction_id}] {self.name}: local action {format_pattern(action.pattern)}")
            return await action.chain(dict(message), scope)

        transport = self.find_client(message)
        if transport is not None:
            # The context travels in the transaction id only.
            outbound = {k: v for k, v in message.items() if k != CONTEXT_FIELD}
            logger.debug(f"[{scope.transaction_id}] {self.name}: remote action via {transport!r}")
            return await transport.send(outbound, scope.transaction_id)

        raise ActionNotFoundError(dict(message))

    def __repr__(self) -> str:
        actions = ", ".join(format_pattern(a.pattern) for a in self._actions)
        return f"<{self.name}(actions=[{actions}])>"
