# Loads action registrations from a module.

import importlib
import logging

from tx_context.dispatch.dispatcher import ActionDispatcher
from tx_context.exceptions import ActionLoadError

logger = logging.getLogger(__name__)


def load_actions(dispatcher: ActionDispatcher, module_path: str) -> ActionDispatcher:
    """
    Imports `module_path` and calls its `register(dispatcher)` function.

    The module adds its actions, interceptors and client routes to the dispatcher.

    Args:
        dispatcher: The dispatcher to register into.
        module_path: Dotted import path of the module.

    Returns:
        The same dispatcher.

    Raises:
        ActionLoadError: If the module cannot be imported, has no callable `register`,
            or `register` fails.
    """
    try:
        module = importlib.import_module(module_path)
    except ImportError as e:
        raise ActionLoadError(f"Could not import actions module '{module_path}': {e}") from e

    register = getattr(module, "register", None)
    if not callable(register):
        raise ActionLoadError(f"Actions module '{module_path}' must define a callable 'register(dispatcher)'")

    try:
        register(dispatcher)
    except Exception as e:
        logger.error(f"Error registering actions from '{module_path}': {e}", exc_info=True)
        raise ActionLoadError(f"Error registering actions from '{module_path}': {e}") from e

    logger.info(f"Successfully loaded actions from {module_path}: {dispatcher!r}")
    return dispatcher
