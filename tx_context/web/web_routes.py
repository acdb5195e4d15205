import json
import logging
from typing import Any, Dict, Mapping, Sequence

from fastapi import APIRouter, Depends, HTTPException, Request, status

from tx_context.core.transaction_scope import TransactionScope
from tx_context.dispatch.dispatcher import ActionDispatcher, PatternLike
from tx_context.dispatch.patterns import WILDCARD, format_pattern, parse_pattern
from tx_context.web.dependencies import get_dispatcher, get_transaction_scope

logger = logging.getLogger(__name__)

_BODY_METHODS = {"POST", "PUT", "PATCH"}


async def _read_json_object(request: Request) -> Dict[str, Any]:
    raw_body = await request.body()
    if not raw_body:
        return {}
    try:
        payload = json.loads(raw_body)
    except json.JSONDecodeError as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"Invalid JSON body: {e}") from e
    if not isinstance(payload, dict):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="JSON body must be an object")
    return payload


def _make_endpoint(action: Dict[str, str]):
    async def endpoint(
        request: Request,
        scope: TransactionScope = Depends(get_transaction_scope),
        dispatcher: ActionDispatcher = Depends(get_dispatcher),
    ) -> Any:
        message: Dict[str, Any] = dict(request.query_params)
        if request.method in _BODY_METHODS:
            message.update(await _read_json_object(request))
        # Route terms win over request parameters.
        message.update(action)
        logger.info(f"[{scope.transaction_id}] {request.method} {request.url.path} -> {format_pattern(action)}")
        return await dispatcher.act(message, scope)

    return endpoint


def create_web_router(
    pin: PatternLike,
    routes: Mapping[str, Sequence[str]],
    prefix: str = "/api",
) -> APIRouter:
    """
    Exposes actions as HTTP routes.

    `pin` must hold exactly one wildcard term; each route name fills it in.
    With `pin="role:api,path:*"` and `routes={"work": ["GET"]}`, a
    `GET /api/work?n=1` acts `{"role": "api", "path": "work", "n": "1"}` within
    the transaction the context middleware started for the request. JSON object
    bodies of POST, PUT and PATCH requests are merged into the message too.

    Args:
        pin: Pattern of the exposed actions.
        routes: Route name -> allowed HTTP methods.
        prefix: Path prefix of every route.

    Returns:
        The router, to be included in an app built by `create_app`.

    Raises:
        ValueError: If `pin` does not hold exactly one wildcard term.
    """
    parsed = parse_pattern(pin)
    route_keys = [key for key, value in parsed.items() if value == WILDCARD]
    if len(route_keys) != 1:
        raise ValueError(f"Pin '{format_pattern(parsed)}' must contain exactly one wildcard term")
    route_key = route_keys[0]
    fixed_terms = {key: value for key, value in parsed.items() if value != WILDCARD}

    router = APIRouter(prefix=prefix, tags=["Actions"])
    for route_name, methods in routes.items():
        action = {**fixed_terms, route_key: route_name}
        router.add_api_route(
            f"/{route_name}",
            _make_endpoint(action),
            methods=[method.upper() for method in methods],
            name=format_pattern(action),
        )
        logger.debug(f"Web route {prefix}/{route_name} -> {format_pattern(action)}")
    return router
