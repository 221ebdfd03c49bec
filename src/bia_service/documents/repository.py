"""Persistence operations for BIA documents."""

import logging
from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from bia_service.db.models import AuditEntry, BIADocument
from bia_service.documents.models import BIAStatus, FunctionType
from bia_service.exceptions import DocumentNotFoundError, PersistenceError

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 100


class BIARepository:
    """Store, retrieve, update and list BIA documents.

    Uniqueness of (function_name, version) among non-archived documents is
    enforced by the database; a collision surfaces as PersistenceError.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def store(self, document: dict[str, Any]) -> str:
        """Persist an assembled document.

        Args:
            document: Assembled document dict

        Returns:
            The document id

        Raises:
            PersistenceError: uniqueness violation or database failure
        """
        row = BIADocument.from_document(document)
        self.session.add(row)
        try:
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.error(
                f"Duplicate BIA for {row.function_name} version {row.version}: {e.orig}"
            )
            raise PersistenceError(
                f"A BIA for '{row.function_name}' version {row.version} already exists",
                cause=e,
            ) from e
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to store BIA {row.id}: {e}")
            raise PersistenceError(f"Failed to store BIA {row.id}", cause=e) from e

        logger.info(f"Stored BIA {row.id} for {row.function_name}")
        return row.id

    async def get_by_id(self, doc_id: str) -> BIADocument | None:
        try:
            return await self.session.get(BIADocument, doc_id)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load BIA {doc_id}: {e}")
            raise PersistenceError(f"Failed to load BIA {doc_id}", cause=e) from e

    async def require(self, doc_id: str) -> BIADocument:
        """Get a document or raise DocumentNotFoundError."""
        document = await self.get_by_id(doc_id)
        if document is None:
            raise DocumentNotFoundError(doc_id)
        return document

    async def update_status(
        self,
        doc_id: str,
        status: BIAStatus | str,
        comment: str | None = None,
        **fields: Any,
    ) -> BIADocument:
        """Write a new status plus any accompanying fields.

        Args:
            doc_id: Document ID
            status: New status
            comment: Stored as approval_comments when given
            **fields: Other column values to set (approved_by, approved_at, ...)

        Returns:
            The updated document
        """
        if comment is not None:
            fields["approval_comments"] = comment
        fields["status"] = BIAStatus(status).value
        return await self.update(doc_id, **fields)

    async def update(self, doc_id: str, **fields: Any) -> BIADocument:
        """Set column values on a document and commit."""
        document = await self.require(doc_id)

        for name, value in fields.items():
            setattr(document, name, value)
        document.updated_at = datetime.utcnow()

        try:
            await self.session.commit()
        except SQLAlchemyError as e:
            await self.session.rollback()
            logger.error(f"Failed to update BIA {doc_id}: {e}")
            raise PersistenceError(f"Failed to update BIA {doc_id}", cause=e) from e

        return document

    async def list_documents(
        self,
        status: BIAStatus | str | None = None,
        function_type: FunctionType | str | None = None,
        function_name: str | None = None,
        limit: int = 50,
        offset: int = 0,
    ) -> list[BIADocument]:
        """List documents, newest first.

        Args:
            status: Filter by status
            function_type: Filter by function type
            function_name: Filter by function name
            limit: Maximum documents to return (capped at 100)
            offset: Number of documents to skip

        Returns:
            Matching documents
        """
        stmt = select(BIADocument)
        if status:
            stmt = stmt.where(BIADocument.status == BIAStatus(status).value)
        if function_type:
            stmt = stmt.where(BIADocument.function_type == FunctionType(function_type).value)
        if function_name:
            stmt = stmt.where(BIADocument.function_name == function_name)

        stmt = (
            stmt.order_by(BIADocument.created_at.desc(), BIADocument.id)
            .limit(max(1, min(limit, MAX_LIST_LIMIT)))
            .offset(max(0, offset))
        )

        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to list BIAs: {e}")
            raise PersistenceError("Failed to list BIAs", cause=e) from e

        return list(result.scalars().all())

    async def audit_entries(self, doc_id: str) -> list[AuditEntry]:
        """Audit trail for a document, oldest first."""
        stmt = (
            select(AuditEntry)
            .where(AuditEntry.bia_id == doc_id)
            .order_by(AuditEntry.timestamp, AuditEntry.id)
        )
        try:
            result = await self.session.execute(stmt)
        except SQLAlchemyError as e:
            logger.error(f"Failed to load audit log for BIA {doc_id}: {e}")
            raise PersistenceError(f"Failed to load audit log for BIA {doc_id}", cause=e) from e

        return list(result.scalars().all())
