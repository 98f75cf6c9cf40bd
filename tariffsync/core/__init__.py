"""Core infrastructure: config, database, logging, middleware, exceptions."""

from tariffsync.core.config import Settings, get_settings
from tariffsync.core.database import Base, get_db, get_session_maker
from tariffsync.core.logging import get_logger, request_id_ctx, sync_pass_id_ctx

__all__ = [
    "Base",
    "Settings",
    "get_db",
    "get_logger",
    "get_session_maker",
    "get_settings",
    "request_id_ctx",
    "sync_pass_id_ctx",
]
