"""activetransfer - A Python client for webMethods Active Transfer servers.

Example usage:
    from activetransfer import ActiveTransferClient, Environment

    env = Environment(host="mft.example.com", port=8443, username="alice", password="secret")

    # Using context manager (recommended)
    with ActiveTransferClient(env) as client:
        result = client.upload_file("report.csv", "/inbound", compress=True)
        print(f"Upload {'succeeded' if result.success else 'failed'}: {result.message}")

    # From a multi-environment config file
    client = ActiveTransferClient.from_config("config.json", "staging")
    client.download_file("/outbound/report.csv", "report.csv")
    client.close()
"""

from activetransfer._internal.upload import compute_upload_timeout
from activetransfer.client import ActiveTransferClient
from activetransfer.config import ClientConfig, Environment, environment_from_env, load_config
from activetransfer.exceptions import (
    ActiveTransferError,
    AuthenticationError,
    ConfigError,
    SessionError,
)
from activetransfer.models import (
    DownloadStream,
    Failure,
    OperationResult,
    RequestSnapshot,
    Success,
)

__version__ = "0.1.0"

__all__ = [
    # Main client
    "ActiveTransferClient",
    # Configuration
    "ClientConfig",
    "Environment",
    "environment_from_env",
    "load_config",
    # Models
    "DownloadStream",
    "Failure",
    "OperationResult",
    "RequestSnapshot",
    "Success",
    # Utilities
    "compute_upload_timeout",
    # Exceptions
    "ActiveTransferError",
    "AuthenticationError",
    "ConfigError",
    "SessionError",
]
