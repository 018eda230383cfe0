"""
Document metadata for credit applications.

Files themselves are written by the upload handler; this module only
decides the version number and records what it was handed.
"""
from __future__ import annotations

import logging
import re
import uuid
from datetime import datetime, timezone
from pathlib import Path

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from errors import NotFound
from models import CreditApplication, Document, DocumentType
from services.unit_of_work import unit_of_work

logger = logging.getLogger(__name__)


def safe_filename(filename: str) -> str:
    """Strip directories and anything outside [A-Za-z0-9._-] from a client-supplied name."""
    name = Path(filename or "").name
    name = re.sub(r"[^A-Za-z0-9._-]+", "_", name).strip("._")
    return name or "document"


def store_upload(upload_dir: str, application_id: str, filename: str, content: bytes) -> Path:
    target_dir = Path(upload_dir) / application_id
    target_dir.mkdir(parents=True, exist_ok=True)
    path = target_dir / f"{uuid.uuid4().hex[:12]}-{safe_filename(filename)}"
    path.write_bytes(content)
    return path


async def record_document(
    session: AsyncSession,
    application_id: str,
    uploaded_by: str,
    document_type: DocumentType,
    original_filename: str,
    stored_path: str,
    file_size: int,
    mime_type: str,
    is_required: bool = True,
) -> Document:
    """Store metadata as the next version of this application's document type."""
    async with unit_of_work(session):
        exists = await session.execute(
            select(CreditApplication.id).where(CreditApplication.id == application_id)
        )
        if exists.scalar_one_or_none() is None:
            raise NotFound("Application not found", {"application_id": application_id})
        current = await session.execute(
            select(func.max(Document.version)).where(
                Document.application_id == application_id,
                Document.document_type == document_type,
            )
        )
        version = (current.scalar_one_or_none() or 0) + 1
        document = Document(
            id=f"doc-{uuid.uuid4().hex[:12]}",
            application_id=application_id,
            uploaded_by=uploaded_by,
            document_type=document_type,
            original_filename=original_filename,
            stored_path=stored_path,
            file_size=file_size,
            mime_type=mime_type,
            version=version,
            is_required=is_required,
            created_at=datetime.now(timezone.utc),
        )
        session.add(document)
    logger.info("Document %s (%s v%d) recorded for application %s",
                document.id, DocumentType(document_type).value, version, application_id)
    return document


async def list_documents(
    session: AsyncSession, application_id: str, latest_only: bool = True
) -> list[Document]:
    """Documents of an application; with latest_only, one (the highest version) per type."""
    result = await session.execute(
        select(Document)
        .where(Document.application_id == application_id)
        .order_by(Document.document_type, Document.version.desc())
    )
    documents = list(result.scalars().all())
    if not latest_only:
        return documents
    latest: dict[DocumentType, Document] = {}
    for doc in documents:
        latest.setdefault(doc.document_type, doc)
    return list(latest.values())


async def get_document(session: AsyncSession, document_id: str) -> Document:
    result = await session.execute(select(Document).where(Document.id == document_id))
    document = result.scalar_one_or_none()
    if document is None:
        raise NotFound("Document not found", {"document_id": document_id})
    return document
