"""
Storage module - persistence gateways, database and local document store.
"""

from voiceform.services.storage.database import (
    Base,
    close_db,
    get_engine,
    get_session,
    init_db,
    reset_engine,
)
from voiceform.services.storage.gateway import PersistenceGateway, create_gateway
from voiceform.services.storage.models_db import InterviewDocument, StoredBlob
from voiceform.services.storage.repository import DocumentRepository

__all__ = [
    "Base",
    "DocumentRepository",
    "InterviewDocument",
    "PersistenceGateway",
    "StoredBlob",
    "close_db",
    "create_gateway",
    "get_engine",
    "get_session",
    "init_db",
    "reset_engine",
]
