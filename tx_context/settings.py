import os
from typing import Optional
from urllib.parse import urlparse

from dotenv import load_dotenv

# Load .env file variables into environment
load_dotenv(verbose=True)


class Settings:
    """Application configuration settings loaded from environment variables."""

    # --- Context Settings ---
    def get_context_header(self) -> str:
        """Returns the name of the inbound header that seeds the default context."""
        return os.getenv("TX_CONTEXT_HEADER", "x-request-id").lower()

    # --- Node Settings ---
    def get_node_name(self) -> str:
        """Returns the name of this node, used in logs."""
        return os.getenv("TX_CONTEXT_NODE_NAME", "tx_context")

    def get_actions_module(self) -> Optional[str]:
        """Returns the import path of the module registering this node's actions, if set."""
        return os.getenv("TX_CONTEXT_ACTIONS_MODULE")

    def get_app_host(self) -> str:
        return os.getenv("TX_CONTEXT_HOST", "0.0.0.0")  # nosec B104

    def get_app_port(self) -> int:
        """Returns the port the node listens on."""
        try:
            return int(os.getenv("TX_CONTEXT_PORT", "8000"))
        except ValueError:
            raise ValueError("TX_CONTEXT_PORT environment variable must be an integer.")

    # --- Transport Settings ---
    def get_remote_url(self) -> Optional[str]:
        """Returns the base URL of the remote node to route client actions to, if set."""
        url = os.getenv("TX_CONTEXT_REMOTE_URL")
        if url:
            parsed = urlparse(url)
            if not all([parsed.scheme, parsed.netloc]):
                raise ValueError(f"Invalid TX_CONTEXT_REMOTE_URL format: {url}")
        return url

    def get_remote_pin(self) -> Optional[str]:
        """Returns the pattern of actions routed to the remote node, if set."""
        return os.getenv("TX_CONTEXT_REMOTE_PIN")

    def get_remote_timeout(self) -> float:
        """Returns the transport request timeout in seconds."""
        try:
            return float(os.getenv("TX_CONTEXT_REMOTE_TIMEOUT", "30"))
        except ValueError:
            raise ValueError("TX_CONTEXT_REMOTE_TIMEOUT environment variable must be a number.")

    # --- Logging Settings ---
    def get_log_level(self, default: str = "INFO") -> str:
        """Gets the configured log level, defaulting if not set."""
        return os.getenv("LOG_LEVEL", default).upper()

    def get_run_mode(self) -> str:
        """Returns the run mode, defaulting to 'prod' if not set."""
        return os.getenv("RUN_MODE", "prod")

    def dev_mode(self) -> bool:
        """Returns True if the run mode is 'dev', False otherwise."""
        return self.get_run_mode() == "dev"
