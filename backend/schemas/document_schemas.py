from datetime import datetime
from typing import List, Optional
from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)


class DocumentResponse(CamelModel):
    id: int
    # Stored as owner_id, exposed as userId
    user_id: int = Field(validation_alias=AliasChoices("owner_id", "userId", "user_id"), serialization_alias="userId")
    document_name: str
    original_file_name: str
    file_type: str
    original_text: str = ""
    translated_text: str = ""
    target_language: Optional[str] = None
    extraction_ok: bool = True
    translation_ok: bool = True
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class DocumentEnvelope(BaseModel):
    message: str
    document: DocumentResponse


class TranslateTextRequest(CamelModel):
    document_name: str = Field(min_length=1)
    target_language: str = Field(min_length=1)
    text: str


class DocumentUpdate(CamelModel):
    document_name: Optional[str] = None
    translated_text: Optional[str] = None


class Pagination(CamelModel):
    page: int
    limit: int
    total_pages: int
    total_documents: int


class DocumentPage(BaseModel):
    documents: List[DocumentResponse]
    pagination: Pagination


class DocumentListResponse(BaseModel):
    data: DocumentPage


class DocumentDeleteResponse(BaseModel):
    message: str


class DocumentBulkDeleteResponse(CamelModel):
    message: str
    deleted_count: int


class TranslateRequest(CamelModel):
    text: Optional[str] = None
    target_lang: Optional[str] = None


class TranslateResponse(BaseModel):
    translated: str
