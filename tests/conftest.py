import os
from typing import Any, Dict
from unittest.mock import MagicMock

import pytest
from tx_context.core.context_cache import set_context
from tx_context.core.transaction_scope import TransactionScope
from tx_context.settings import Settings


@pytest.fixture(autouse=True)
def isolate_environment():
    """AUTOUSE: Restores the original environment variables after every test."""
    original_environ = os.environ.copy()
    yield
    os.environ.clear()
    os.environ.update(original_environ)


@pytest.fixture
def sample_context() -> Dict[str, Any]:
    """Returns a nested context value."""
    return {
        "requestId": "abc123",
        "user": {"id": 42, "roles": ["admin", "ops"], "active": True},
        "locale": "de-CH",
        "trace": None,
    }


@pytest.fixture
def scope() -> TransactionScope:
    """Returns a scope whose transaction id carries no context."""
    return TransactionScope(transaction_id="tx-prefix-1")


@pytest.fixture
def attached_scope(sample_context) -> TransactionScope:
    """Returns a scope with `sample_context` attached."""
    scope = TransactionScope(transaction_id="tx-prefix-2")
    set_context(scope, sample_context)
    return scope


@pytest.fixture
def mock_settings() -> MagicMock:
    """Provides a mock Settings instance."""
    settings = MagicMock(spec=Settings)
    settings.get_context_header.return_value = "x-request-id"
    settings.dev_mode.return_value = False
    return settings
