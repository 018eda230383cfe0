import logging
from pathlib import Path
from typing import Any

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.ext.asyncio import AsyncSession

from api.deps import Actor, ensure_application_access, get_actor, get_workflow
from config import settings
from database import get_db
from models import Document, DocumentType
from services.documents import get_document, list_documents, record_document, store_upload
from services.workflow import CreditWorkflow

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["documents"])


def document_to_response(d: Document) -> dict[str, Any]:
    return {
        "id": d.id,
        "applicationId": d.application_id,
        "documentType": d.document_type.value,
        "originalFileName": d.original_filename,
        "fileSize": d.file_size,
        "mimeType": d.mime_type,
        "version": d.version,
        "isRequired": d.is_required,
        "createdAt": d.created_at.isoformat() if d.created_at else None,
    }


async def _check_access(workflow: CreditWorkflow, application_id: str, actor: Actor):
    app = await workflow.get_application(application_id)
    ensure_application_access(app, actor)
    return app


@router.post("/credit-applications/{application_id}/documents", status_code=201)
async def upload_document(
    application_id: str,
    file: UploadFile = File(..., description="Supporting document (PDF or image)"),
    document_type: DocumentType = Form(..., alias="documentType"),
    is_required: bool = Form(True, alias="isRequired"),
    actor: Actor = Depends(get_actor),
    workflow: CreditWorkflow = Depends(get_workflow),
    db: AsyncSession = Depends(get_db),
):
    await _check_access(workflow, application_id, actor)
    mime_type = file.content_type or "application/octet-stream"
    if mime_type not in settings.allowed_upload_type_set:
        raise HTTPException(status_code=400, detail=f"Unsupported file type '{mime_type}'")
    content = await file.read()
    if not content:
        raise HTTPException(status_code=400, detail="File is empty.")
    if len(content) > settings.max_upload_bytes:
        raise HTTPException(status_code=413, detail="File is too large.")

    path = store_upload(settings.upload_dir, application_id, file.filename or "document", content)
    try:
        document = await record_document(
            db,
            application_id=application_id,
            uploaded_by=actor.id,
            document_type=document_type,
            original_filename=file.filename or path.name,
            stored_path=str(path),
            file_size=len(content),
            mime_type=mime_type,
            is_required=is_required,
        )
    except Exception:
        # metadata was not saved; do not leave an orphan file behind
        path.unlink(missing_ok=True)
        raise
    return document_to_response(document)


@router.get("/credit-applications/{application_id}/documents")
async def get_application_documents(
    application_id: str,
    all_versions: bool = False,
    actor: Actor = Depends(get_actor),
    workflow: CreditWorkflow = Depends(get_workflow),
    db: AsyncSession = Depends(get_db),
):
    await _check_access(workflow, application_id, actor)
    documents = await list_documents(db, application_id, latest_only=not all_versions)
    return [document_to_response(d) for d in documents]


@router.get("/documents/{document_id}/download")
async def download_document(
    document_id: str,
    actor: Actor = Depends(get_actor),
    workflow: CreditWorkflow = Depends(get_workflow),
    db: AsyncSession = Depends(get_db),
):
    document = await get_document(db, document_id)
    await _check_access(workflow, document.application_id, actor)
    path = Path(document.stored_path)
    if not path.is_file():
        logger.warning("Stored file for document %s is missing at %s", document_id, path)
        raise HTTPException(status_code=404, detail="Document file not found")
    return FileResponse(path, media_type=document.mime_type, filename=document.original_filename)
