"""Exception hierarchy for the activetransfer library."""

from __future__ import annotations


class ActiveTransferError(Exception):
    """Base exception for all activetransfer errors."""

    pass


class AuthenticationError(ActiveTransferError):
    """Raised when the SaaS login call fails.

    This is the only error a public client operation lets escape: without a
    session no further SaaS call is meaningful.
    """

    pass


class ConfigError(ActiveTransferError):
    """Raised when configuration is missing or invalid."""

    pass


class SessionError(ActiveTransferError):
    """Raised when the client is used after it has been closed."""

    pass
