import logging
import time
from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from tx_context.core.logging import log_transaction_state
from tx_context.core.transaction_scope import TransactionScope
from tx_context.dispatch.dispatcher import ActionDispatcher
from tx_context.exceptions import TxContextException
from tx_context.web.dependencies import get_dispatcher
from tx_context.web.errors import error_response

logger = logging.getLogger(__name__)

router = APIRouter()


class ActRequest(BaseModel):
    """Body of a transported action call."""

    transaction_id: Optional[str] = Field(default=None)
    message: Dict[str, Any] = Field(default_factory=dict)


@router.post("/act", tags=["Actions"])
async def act(body: ActRequest, dispatcher: ActionDispatcher = Depends(get_dispatcher)) -> JSONResponse:
    """Runs an action received from another node.

    A fresh TransactionScope is built from the received transaction id; the
    context it carries is decoded lazily by the interceptors that need it.
    Failures are reported as `{"error": {...}}` with a matching status code.
    """
    scope = TransactionScope.from_transaction_id(body.transaction_id)
    log_transaction_state(scope.transaction_id, "received", {"node": dispatcher.name, "action": body.message})

    start_time = time.time()
    try:
        result = await dispatcher.act(body.message, scope)
    except TxContextException as e:
        logger.warning(f"[{scope.transaction_id}] Remote action failed: {e.__class__.__name__}: {e}")
        return error_response(e, scope.transaction_id)
    except Exception as e:
        logger.exception(f"[{scope.transaction_id}] Unhandled exception in remote action")
        return error_response(e, scope.transaction_id)

    logger.info(
        f"[{scope.transaction_id}] Remote action complete",
        extra={"node": dispatcher.name, "duration_seconds": time.time() - start_time},
    )
    return JSONResponse(content={"result": jsonable_encoder(result), "transaction_id": scope.transaction_id})
