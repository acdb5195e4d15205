"""Middleware that attaches a transaction context to every inbound HTTP request."""

import logging
from typing import Callable, Optional, Sequence

from fastapi import Request, Response
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.types import ASGIApp

from tx_context.core.logging import log_transaction_state
from tx_context.core.transaction_scope import TransactionScope
from tx_context.dispatch.transport import ACT_PATH
from tx_context.exceptions import ContextError
from tx_context.interceptors.attach_context import AttachContextInterceptor, CreateContext, InboundRequest
from tx_context.interceptors.chain import InterceptorChain
from tx_context.interceptors.interceptor import Interceptor
from tx_context.settings import Settings
from tx_context.web.errors import error_response

logger = logging.getLogger(__name__)

# Headers of the provisional response that belong to the route's own response.
_BODY_HEADERS = {"content-length", "content-type"}


async def _expose_scope(inbound: InboundRequest, scope: TransactionScope) -> TransactionScope:
    inbound.request.state.transaction_scope = scope
    return scope


class TransactionContextMiddleware(BaseHTTPMiddleware):
    """Starts a transaction for each inbound request and attaches its context.

    This middleware:
    1. Creates a new TransactionScope for the request
    2. Runs the entry chain (the attach-context interceptor, then any extra entry interceptors)
    3. Stores the scope in `request.state.transaction_scope` for routes and dependencies
    4. Runs the route, then copies headers set by `create_context` onto the response

    If the entry chain fails with a context error, the route is not run and a JSON
    error response is returned instead. Requests to `exclude_paths` (by default the
    action endpoint and the health check) pass through untouched.
    """

    def __init__(
        self,
        app: ASGIApp,
        create_context: Optional[CreateContext] = None,
        context_header: Optional[str] = None,
        interceptors: Sequence[Interceptor[InboundRequest]] = (),
        exclude_paths: Sequence[str] = (ACT_PATH, "/health"),
    ):
        super().__init__(app)
        self.settings = Settings()
        self.exclude_paths = frozenset(exclude_paths)
        self.attach = AttachContextInterceptor(
            create_context=create_context,
            context_header=context_header or self.settings.get_context_header(),
        )
        self.chain: InterceptorChain[InboundRequest] = InterceptorChain(
            [self.attach, *interceptors], _expose_scope, name="entry-chain"
        )

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        # Transported actions already belong to a transaction.
        if request.url.path in self.exclude_paths:
            return await call_next(request)

        scope = TransactionScope()
        provisional = Response()
        inbound = InboundRequest(headers=request.headers, request=request, response=provisional)
        log_transaction_state(
            scope.transaction_id,
            "inbound",
            {"method": request.method, "path": request.url.path},
        )

        try:
            await self.chain(inbound, scope)
        except ContextError as e:
            logger.warning(f"[{scope.transaction_id}] Failed to attach context: {e}")
            return error_response(e, scope.transaction_id)

        response = await call_next(request)

        for key, value in provisional.headers.items():
            if key not in _BODY_HEADERS:
                response.headers.append(key, value)
        return response
