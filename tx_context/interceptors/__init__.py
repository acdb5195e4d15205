from tx_context.interceptors.attach_context import (
    DEFAULT_CONTEXT_HEADER,
    AttachContextInterceptor,
    CreateContext,
    InboundRequest,
    default_create_context,
)
from tx_context.interceptors.chain import InterceptorChain
from tx_context.interceptors.interceptor import CallNext, Interceptor
from tx_context.interceptors.propagate_context import CONTEXT_FIELD, PropagateContextInterceptor

__all__ = [
    "AttachContextInterceptor",
    "CallNext",
    "CONTEXT_FIELD",
    "CreateContext",
    "DEFAULT_CONTEXT_HEADER",
    "default_create_context",
    "InboundRequest",
    "Interceptor",
    "InterceptorChain",
    "PropagateContextInterceptor",
]
