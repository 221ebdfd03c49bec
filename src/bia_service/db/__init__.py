"""Database module for BIA documents, audit trail and integration log."""

from bia_service.db.database import async_session_maker, engine, get_session, init_db
from bia_service.db.models import AuditEntry, Base, BIADocument, FusionIntegrationLog

__all__ = [
    "Base",
    "BIADocument",
    "AuditEntry",
    "FusionIntegrationLog",
    "engine",
    "async_session_maker",
    "get_session",
    "init_db",
]
