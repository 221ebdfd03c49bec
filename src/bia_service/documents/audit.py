"""Audit trail and risk-platform integration log writers.

Writes happen in their own session after the primary operation has
committed. A failed write never undoes or blocks that operation; it is
logged and returned as a warning string instead.
"""

import logging
from collections.abc import Callable
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bia_service.db.models import AuditEntry, FusionIntegrationLog

logger = logging.getLogger(__name__)


class AuditSink:
    """Appends audit entries and integration log rows."""

    def __init__(self, session_factory: Callable[[], AsyncSession]):
        """Initialize the sink.

        Args:
            session_factory: Callable returning a new AsyncSession
                (an async_sessionmaker)
        """
        self.session_factory = session_factory

    async def append(
        self,
        bia_id: str,
        action: str,
        user_id: str | None = None,
        old_values: dict[str, Any] | None = None,
        new_values: dict[str, Any] | None = None,
        comments: str | None = None,
    ) -> str | None:
        """Append one audit entry.

        Returns:
            None on success, otherwise a warning describing the failure
        """
        entry = AuditEntry(
            bia_id=bia_id,
            action=action,
            user_id=user_id,
            old_values=old_values,
            new_values=new_values,
            comments=comments,
        )
        return await self._write(entry, f"audit entry '{action}' for BIA {bia_id}")

    async def log_integration(
        self,
        action: str,
        bia_id: str | None = None,
        fusion_record_id: str | None = None,
        success: bool = True,
        request_data: dict[str, Any] | None = None,
        response_data: dict[str, Any] | None = None,
        error_message: str | None = None,
    ) -> str | None:
        """Record one risk-platform check/push/sync attempt."""
        row = FusionIntegrationLog(
            bia_id=bia_id,
            action=action,
            fusion_record_id=fusion_record_id,
            success=success,
            request_data=request_data,
            response_data=response_data,
            error_message=error_message,
        )
        return await self._write(row, f"integration log '{action}' for BIA {bia_id}")

    async def _write(self, row: AuditEntry | FusionIntegrationLog, description: str) -> str | None:
        try:
            async with self.session_factory() as session:
                session.add(row)
                await session.commit()
        except SQLAlchemyError as e:
            warning = f"Failed to write {description}: {e}"
            logger.warning(warning)
            return warning
        return None
