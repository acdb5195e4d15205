import logging
from unittest.mock import MagicMock, patch

import pytest
from tx_context.core.logging import (
    DEFAULT_LOG_LEVEL,
    NOISY_LIBRARIES,
    LOG_FORMAT,
    NodeNameFilter,
    _get_loki_handler,
    create_error_content,
    log_transaction_state,
    setup_logging,
)


# Ensure clean logging state between tests
@pytest.fixture(autouse=True)
def reset_logging():
    # Force reconfiguration by removing existing handlers
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    root.handlers.clear()

    yield

    # Clean up after test
    root.handlers.clear()
    root.handlers.extend(original_handlers)
    root.setLevel(original_level)


@patch("tx_context.core.logging.Settings")
def test_setup_logging_default_level(MockSettings, monkeypatch):
    """Test setup_logging configures logging with default level and works correctly."""
    monkeypatch.delenv("LOKI_URL", raising=False)
    mock_settings_instance = MockSettings.return_value
    mock_settings_instance.get_log_level.return_value = DEFAULT_LOG_LEVEL

    setup_logging()

    root_logger = logging.getLogger()
    assert root_logger.level == logging.INFO
    assert len(root_logger.handlers) == 1
    assert isinstance(root_logger.handlers[0], logging.StreamHandler)

    # Test that noisy libraries are suppressed
    for lib_name in NOISY_LIBRARIES:
        assert logging.getLogger(lib_name).level == logging.WARNING


@patch("tx_context.core.logging.Settings")
def test_setup_logging_specific_level(MockSettings):
    """Test setup_logging uses the level provided by settings."""
    MockSettings.return_value.get_log_level.return_value = "DEBUG"

    setup_logging()

    assert logging.getLogger().level == logging.DEBUG


@patch("tx_context.core.logging.Settings")
def test_setup_logging_invalid_level(MockSettings, capsys):
    """Test setup_logging defaults to INFO and warns on invalid level."""
    invalid_level = "INVALID_LEVEL"
    MockSettings.return_value.get_log_level.return_value = invalid_level

    setup_logging()

    captured = capsys.readouterr()
    assert f"WARNING: Invalid LOG_LEVEL '{invalid_level}'" in captured.err
    assert logging.getLogger().level == logging.INFO


@patch("tx_context.core.logging.Settings")
def test_setup_logging_with_loki(MockSettings, monkeypatch):
    """Test setup_logging adds a Loki handler labelled with the node name when LOKI_URL is set."""
    monkeypatch.setenv("LOKI_URL", "http://localhost:3100")
    mock_settings_instance = MockSettings.return_value
    mock_settings_instance.get_log_level.return_value = DEFAULT_LOG_LEVEL
    mock_settings_instance.get_node_name.return_value = "node1"

    mock_loki_handler = MagicMock()
    mock_loki_handler.level = logging.INFO
    with patch("tx_context.core.logging._get_loki_handler", return_value=mock_loki_handler) as mock_get_handler:
        setup_logging()

    mock_get_handler.assert_called_once_with("http://localhost:3100", node_name="node1")
    assert mock_loki_handler in logging.getLogger().handlers


def test_get_loki_handler_success(monkeypatch):
    """Test _get_loki_handler successfully creates handler when module is available."""
    monkeypatch.delenv("ENVIRONMENT", raising=False)
    mock_handler = MagicMock()
    with patch("logging_loki.LokiHandler", return_value=mock_handler) as MockLokiHandler:
        handler = _get_loki_handler("http://localhost:3100/", "node1")

    assert handler == mock_handler
    MockLokiHandler.assert_called_once_with(
        url="http://localhost:3100/loki/api/v1/push",
        tags={"application": "tx_context", "node": "node1", "environment": "development"},
        version="1",
    )
    assert mock_handler.setFormatter.call_count == 1


@pytest.mark.parametrize("loki_url", ["localhost:3100", ""])
def test_get_loki_handler_invalid_url(loki_url):
    """Test _get_loki_handler returns None for invalid URLs."""
    with patch("logging_loki.LokiHandler"):
        assert _get_loki_handler(loki_url) is None


def test_get_loki_handler_exception():
    """Test _get_loki_handler returns None on unexpected exceptions."""
    with patch("logging_loki.LokiHandler", side_effect=Exception("Test error")):
        assert _get_loki_handler("http://localhost:3100") is None


def test_log_transaction_state(caplog):
    with caplog.at_level(logging.DEBUG, logger="tx_context.transaction"):
        log_transaction_state("tx?abc", "inbound", {"path": "/task1"})

    record = caplog.records[-1]
    assert record.getMessage() == "[tx?abc] Transaction state at inbound"
    assert record.stage == "inbound"
    assert record.path == "/task1"


class TestCreateErrorContent:
    """Test cases for the create_error_content function."""

    def test_basic(self):
        content = create_error_content("ContextDecodeError", "bad token", "tx?abc")

        assert content == {"error": {"type": "ContextDecodeError", "detail": "bad token", "transaction_id": "tx?abc"}}

    def test_with_debug_info_and_details(self):
        content = create_error_content(
            "RuntimeError", "Internal Server Error", "tx", details={"cause": "boom"}, include_debug_info=True
        )

        assert "timestamp" in content["error"]["debug"]
        assert "boom" in content["error"]["debug"]

    @pytest.mark.parametrize("details", [None, {}])
    def test_debug_info_without_details(self, details):
        content = create_error_content("E", "d", "tx", details=details, include_debug_info=True)

        assert "debug" not in content["error"]

    def test_debug_disabled_with_details(self):
        content = create_error_content("E", "d", None, details={"cause": "boom"}, include_debug_info=False)

        assert content == {"error": {"type": "E", "detail": "d", "transaction_id": None}}


def test_get_loki_handler_import_error():
    """Test _get_loki_handler returns None when logging_loki cannot be imported."""
    with patch.dict("sys.modules", {"logging_loki": None}):
        assert _get_loki_handler("http://localhost:3100") is None


@patch("tx_context.core.logging.Settings")
def test_records_are_stamped_with_node_name(MockSettings, monkeypatch, capsys):
    monkeypatch.delenv("LOKI_URL", raising=False)
    MockSettings.return_value.get_log_level.return_value = DEFAULT_LOG_LEVEL
    MockSettings.return_value.get_node_name.return_value = "node7"

    setup_logging()
    logging.getLogger("tx_context.test").warning("hello")

    assert "[node7] tx_context.test - WARNING - hello" in capsys.readouterr().err


def test_node_name_filter_keeps_explicit_node():
    node_filter = NodeNameFilter("node1")
    record = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    explicit = logging.LogRecord("x", logging.INFO, __file__, 1, "msg", None, None)
    explicit.node = "other"

    assert node_filter.filter(record) and node_filter.filter(explicit)
    assert record.node == "node1"
    assert explicit.node == "other"
    assert "%(node)s" in LOG_FORMAT
