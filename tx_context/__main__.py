"""
Main entry point for running a tx_context node.
"""

import uvicorn

from tx_context.core.logging import setup_logging
from tx_context.dispatch.dispatcher import ActionDispatcher
from tx_context.dispatch.loader import load_actions
from tx_context.main import create_app
from tx_context.settings import Settings


def main():
    """Run a node serving the actions registered by TX_CONTEXT_ACTIONS_MODULE."""
    setup_logging()
    settings = Settings()

    dispatcher = ActionDispatcher(name=settings.get_node_name())
    actions_module = settings.get_actions_module()
    if actions_module:
        load_actions(dispatcher, actions_module)

    uvicorn.run(
        create_app(dispatcher, settings=settings),
        host=settings.get_app_host(),
        port=settings.get_app_port(),
        log_level=settings.get_log_level().lower(),
    )


if __name__ == "__main__":
    main()
