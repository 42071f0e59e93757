"""Infrastructure layer - stores, message sources and configuration."""

from mailthreads.infrastructure.settings import Settings, get_settings
from mailthreads.infrastructure.wiring import (
    create_import_use_case,
    create_message_source,
    create_store_client,
    get_store_client,
)

__all__ = [
    # Settings
    "Settings",
    "get_settings",
    # Wiring
    "create_import_use_case",
    "create_message_source",
    "create_store_client",
    "get_store_client",
]
