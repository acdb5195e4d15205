import logging
from contextlib import asynccontextmanager
from typing import Optional, Sequence

import httpx
from fastapi import FastAPI

from tx_context.dispatch.dispatcher import ActionDispatcher
from tx_context.dispatch.transport import HttpTransport
from tx_context.exceptions import TxContextException
from tx_context.interceptors.attach_context import CreateContext, InboundRequest
from tx_context.interceptors.interceptor import Interceptor
from tx_context.settings import Settings
from tx_context.web.action_router import router as action_router
from tx_context.web.errors import tx_context_exception_handler
from tx_context.web.middleware import TransactionContextMiddleware

logger = logging.getLogger(__name__)


def configure_remote_client(dispatcher: ActionDispatcher, settings: Settings) -> Optional[httpx.AsyncClient]:
    """Adds a client route to the remote node configured in the settings, if any.

    Returns:
        The HTTP client backing the route, to be closed on shutdown, or None.
    """
    remote_url = settings.get_remote_url()
    remote_pin = settings.get_remote_pin()
    if not remote_url or not remote_pin:
        return None
    http_client = httpx.AsyncClient()
    dispatcher.client(remote_pin, HttpTransport(remote_url, http_client, timeout=settings.get_remote_timeout()))
    logger.info(f"Routing '{remote_pin}' to remote node {remote_url}")
    return http_client


def create_app(
    dispatcher: ActionDispatcher,
    create_context: Optional[CreateContext] = None,
    context_header: Optional[str] = None,
    entry_interceptors: Sequence[Interceptor[InboundRequest]] = (),
    settings: Optional[Settings] = None,
) -> FastAPI:
    """Builds a node application around an ActionDispatcher.

    The application attaches a context to every inbound request, exposes the
    dispatcher's actions to other nodes on `POST /act`, and routes actions to a
    remote node when TX_CONTEXT_REMOTE_URL and TX_CONTEXT_REMOTE_PIN are set.

    Args:
        dispatcher: The node's action dispatcher.
        create_context: Hook deriving the context of an inbound request.
        context_header: Header seeding the default context (TX_CONTEXT_HEADER when omitted).
        entry_interceptors: Extra interceptors run after the context is attached.
        settings: Application settings.

    Returns:
        The FastAPI application.
    """
    app_settings = settings or Settings()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        logger.info(f"Node '{dispatcher.name}' startup sequence initiated.")
        http_client = configure_remote_client(dispatcher, app_settings)
        yield  # Application runs here
        logger.info(f"Node '{dispatcher.name}' shutdown sequence initiated.")
        if http_client is not None:
            await http_client.aclose()
            logger.info("HTTP Client for remote transport closed.")

    app = FastAPI(
        title="tx_context node",
        description="Action node propagating a transaction context across actions.",
        version="0.1.0",
        lifespan=lifespan,
    )
    app.state.dispatcher = dispatcher
    app.add_exception_handler(TxContextException, tx_context_exception_handler)
    app.add_middleware(
        TransactionContextMiddleware,
        create_context=create_context,
        context_header=context_header,
        interceptors=entry_interceptors,
    )

    @app.get("/health", tags=["General"], status_code=200)
    async def health_check():
        """Perform a basic health check."""
        return {"status": "ok", "node": dispatcher.name}

    app.include_router(action_router)
    return app
