"""Core infrastructure components."""

from homecrew.core.config import Settings, get_settings
from homecrew.core.logging import (
    get_logger,
    get_request_id,
    set_request_id,
    setup_logging,
)

__all__ = [
    "Settings",
    "get_logger",
    "get_request_id",
    "get_settings",
    "set_request_id",
    "setup_logging",
]
