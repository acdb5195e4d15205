import logging
from typing import Optional, Tuple

from fastapi import Request, status
from fastapi.responses import JSONResponse

from tx_context.core.logging import create_error_content
from tx_context.exceptions import ActionNotFoundError, ContextError, RemoteActionError, TxContextException
from tx_context.settings import Settings

logger = logging.getLogger(__name__)


def describe_error(exc: Exception) -> Tuple[int, str, str]:
    """Maps an exception to (status_code, error_type, detail) for an error response.

    Remote failures are relayed with the type and status reported by the remote node.
    """
    if isinstance(exc, ContextError):
        return exc.status_code, exc.__class__.__name__, str(exc.detail)
    if isinstance(exc, ActionNotFoundError):
        return status.HTTP_404_NOT_FOUND, exc.__class__.__name__, str(exc)
    if isinstance(exc, RemoteActionError):
        return exc.status_code, exc.error_type, exc.detail
    return status.HTTP_500_INTERNAL_SERVER_ERROR, exc.__class__.__name__, "Internal Server Error"


def error_response(exc: Exception, transaction_id: Optional[str]) -> JSONResponse:
    """Builds the JSON error response for `exc`."""
    status_code, error_type, detail = describe_error(exc)
    return JSONResponse(
        status_code=status_code,
        content=create_error_content(
            error_type,
            detail,
            transaction_id,
            details={"exception": repr(exc), "cause": repr(exc.__cause__)},
            include_debug_info=Settings().dev_mode(),
        ),
    )


async def tx_context_exception_handler(request: Request, exc: TxContextException) -> JSONResponse:
    """FastAPI exception handler for errors escaping a route within a transaction."""
    scope = getattr(request.state, "transaction_scope", None)
    transaction_id = scope.transaction_id if scope is not None else None
    logger.warning(f"[{transaction_id}] Request failed: {exc.__class__.__name__}: {exc}")
    return error_response(exc, transaction_id)
