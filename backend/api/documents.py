import math
from typing import Optional
from fastapi import APIRouter, Depends, File, Form, Query, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession
from core.config import settings
from core.database import get_db
from core.errors import BadRequest
from core.security import get_current_user_id
from core.services import get_ingestion_pipeline
from schemas.document_schemas import (
    DocumentResponse,
    DocumentEnvelope,
    DocumentListResponse,
    DocumentPage,
    Pagination,
    DocumentUpdate,
    DocumentDeleteResponse,
    DocumentBulkDeleteResponse,
    TranslateTextRequest,
)
from services.document_store import DocumentStore
from services.ingestion import IngestionPipeline, UploadedFile
from utils.file_utils import read_upload
from utils.logger import get_logger

logger = get_logger("api.documents")

router = APIRouter(prefix="/documents", tags=["documents"])

# ------ Upload Document -----
@router.post("/upload", response_model=DocumentEnvelope, status_code=status.HTTP_201_CREATED)
async def upload_document(
    document_name: Optional[str] = Form(None, alias="documentName"),
    target_language: Optional[str] = Form(None, alias="targetLanguage"),
    file: Optional[UploadFile] = File(None),
    user_id: int = Depends(get_current_user_id),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
):
    if not document_name or not document_name.strip():
        raise BadRequest("documentName is required")
    if file is None or not file.filename:
        raise BadRequest("A file is required")
    if not target_language or not target_language.strip():
        raise BadRequest("targetLanguage is required")

    logger.info("Document upload started", extra={
        "user_id": user_id,
        "document_name": document_name,
        "file_name": file.filename,
    })

    data = await read_upload(file, settings.MAX_UPLOAD_MB)
    doc = await pipeline.ingest(
        owner_id=user_id,
        document_name=document_name,
        target_language=target_language.strip(),
        file=UploadedFile(file_name=file.filename, content_type=file.content_type, data=data),
    )
    return DocumentEnvelope(
        message="Document uploaded and processed successfully",
        document=DocumentResponse.model_validate(doc),
    )

# ------ Translate raw text -----
@router.post("/translate-text", response_model=DocumentEnvelope, status_code=status.HTTP_201_CREATED)
async def translate_text_document(
    body: TranslateTextRequest,
    user_id: int = Depends(get_current_user_id),
    pipeline: IngestionPipeline = Depends(get_ingestion_pipeline),
):
    logger.info("Text translation started", extra={"user_id": user_id, "document_name": body.document_name})
    doc = await pipeline.translate_only(
        owner_id=user_id,
        document_name=body.document_name,
        target_language=body.target_language.strip(),
        raw_text=body.text,
    )
    return DocumentEnvelope(
        message="Text translated successfully",
        document=DocumentResponse.model_validate(doc),
    )

# ------ Get User Documents -----
@router.get("/user", response_model=DocumentListResponse)
async def get_user_documents(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    docs, total = await DocumentStore(db).list_by_owner(user_id, page=page, limit=limit)
    logger.info("Documents retrieved", extra={"user_id": user_id, "count": len(docs), "total": total})
    return DocumentListResponse(data=DocumentPage(
        documents=[DocumentResponse.model_validate(d) for d in docs],
        pagination=Pagination(
            page=page,
            limit=limit,
            total_pages=math.ceil(total / limit) if total else 0,
            total_documents=total,
        ),
    ))

# ------ Delete all documents of the caller -----
@router.delete("/all", response_model=DocumentBulkDeleteResponse)
async def delete_all_documents(
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    deleted = await DocumentStore(db).delete_all_by_owner(user_id)
    return DocumentBulkDeleteResponse(message="All documents deleted successfully", deleted_count=deleted)

# ------ Get single Document -----
@router.get("/{doc_id}", response_model=DocumentResponse)
async def get_document(
    doc_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    logger.info("Fetching document", extra={"user_id": user_id, "doc_id": doc_id})
    doc = await DocumentStore(db).get_owned(doc_id, user_id)
    return DocumentResponse.model_validate(doc)

# ------ Update Document -----
@router.patch("/{doc_id}", response_model=DocumentEnvelope)
async def update_document(
    doc_id: int,
    update_data: DocumentUpdate,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    logger.info("Updating document", extra={"user_id": user_id, "doc_id": doc_id})
    doc = await DocumentStore(db).update_owned(
        doc_id,
        user_id,
        document_name=update_data.document_name,
        translated_text=update_data.translated_text,
    )
    return DocumentEnvelope(message="Document updated successfully", document=DocumentResponse.model_validate(doc))

# ------ Delete Document -----
@router.delete("/{doc_id}", response_model=DocumentDeleteResponse)
async def delete_document(
    doc_id: int,
    user_id: int = Depends(get_current_user_id),
    db: AsyncSession = Depends(get_db),
):
    logger.info("Deleting document", extra={"user_id": user_id, "doc_id": doc_id})
    await DocumentStore(db).delete_owned(doc_id, user_id)
    return DocumentDeleteResponse(message="Document deleted successfully")
