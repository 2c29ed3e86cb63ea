"""
Persistence for document records.

Single-record reads and writes always go through the ownership check.
"""
from typing import List, Optional, Tuple

from sqlalchemy import select, func, delete as sql_delete
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from core.errors import BadRequest, Conflict, InternalError
from models.document import Document
from models.user import User
from utils.logger import get_logger
from utils.permissions import check_document_ownership

logger = get_logger("services.document_store")


class DocumentStore:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def find_by_owner_and_name(self, owner_id: int, document_name: str) -> Optional[Document]:
        """Case-insensitive name lookup within one owner's documents."""
        result = await self.db.execute(
            select(Document).filter(
                Document.owner_id == owner_id,
                func.lower(Document.document_name) == document_name.strip().lower(),
            )
        )
        return result.scalars().first()

    async def create(
        self,
        owner_id: int,
        document_name: str,
        original_file_name: str,
        file_type: str,
        target_language: Optional[str] = None,
    ) -> Document:
        doc = Document(
            owner_id=owner_id,
            document_name=document_name.strip(),
            original_file_name=original_file_name,
            file_type=file_type,
            original_text="",
            translated_text="",
            target_language=target_language,
        )
        self.db.add(doc)
        try:
            await self.db.commit()
        except IntegrityError:
            # Unique (owner_id, lower(document_name)) index caught a concurrent create
            await self.db.rollback()
            logger.warning("Duplicate document name on insert", extra={"owner_id": owner_id, "document_name": document_name})
            raise Conflict("A document with this name already exists")
        await self.db.refresh(doc)
        logger.info("Document record created", extra={"document_id": doc.id, "owner_id": owner_id, "file_type": file_type})
        return doc

    async def get_owned(self, document_id: int, owner_id: int) -> Document:
        return await check_document_ownership(self.db, document_id, owner_id)

    async def list_by_owner(self, owner_id: int, page: int = 1, limit: int = 10) -> Tuple[List[Document], int]:
        total = await self.db.scalar(
            select(func.count(Document.id)).filter(Document.owner_id == owner_id)
        )
        result = await self.db.execute(
            select(Document)
            .filter(Document.owner_id == owner_id)
            .order_by(Document.created_at.desc(), Document.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        )
        return list(result.scalars().all()), total or 0

    async def save_texts(
        self,
        doc: Document,
        original_text: str,
        translated_text: str,
        extraction_ok: bool = True,
        translation_ok: bool = True,
    ) -> Document:
        """Write the pipeline results in one update."""
        doc.original_text = original_text
        doc.translated_text = translated_text
        doc.extraction_ok = extraction_ok
        doc.translation_ok = translation_ok
        await self.db.commit()
        await self.db.refresh(doc)
        return doc

    async def link_to_owner(self, doc: Document) -> None:
        """Add the record to its owner's document set."""
        result = await self.db.execute(
            select(User).filter(User.id == doc.owner_id)
        )
        owner = result.scalar_one_or_none()
        if owner is None:
            raise InternalError(f"Owner {doc.owner_id} not found")
        await self.db.refresh(owner, attribute_names=["documents"])
        if doc not in owner.documents:
            owner.documents.append(doc)
        await self.db.commit()
        await self.db.refresh(doc)
        logger.info("Document linked to owner", extra={"document_id": doc.id, "owner_id": doc.owner_id})

    async def update_owned(
        self,
        document_id: int,
        owner_id: int,
        document_name: Optional[str] = None,
        translated_text: Optional[str] = None,
    ) -> Document:
        if document_name is None and translated_text is None:
            raise BadRequest("Provide documentName or translatedText to update")

        doc = await self.get_owned(document_id, owner_id)

        if document_name is not None:
            document_name = document_name.strip()
            if not document_name:
                raise BadRequest("documentName cannot be empty")
            existing = await self.find_by_owner_and_name(owner_id, document_name)
            if existing is not None and existing.id != doc.id:
                raise Conflict("A document with this name already exists")
            doc.document_name = document_name

        if translated_text is not None:
            doc.translated_text = translated_text
            # A hand-edited translation replaces whatever the provider run left behind
            doc.translation_ok = True

        try:
            await self.db.commit()
        except IntegrityError:
            await self.db.rollback()
            raise Conflict("A document with this name already exists")
        await self.db.refresh(doc)
        logger.info("Document updated", extra={"document_id": doc.id, "owner_id": owner_id})
        return doc

    async def delete_owned(self, document_id: int, owner_id: int) -> None:
        doc = await self.get_owned(document_id, owner_id)
        # Removing the row also removes it from the owner's document set
        await self.db.delete(doc)
        await self.db.commit()
        logger.info("Document deleted", extra={"document_id": document_id, "owner_id": owner_id})

    async def delete_all_by_owner(self, owner_id: int) -> int:
        """
        Bulk delete every document of ``owner_id``.

        The owner's reference set is only cleared after the delete reports
        affected rows; zero rows is an InternalError and leaves the owner
        untouched.
        """
        result = await self.db.execute(
            sql_delete(Document)
            .where(Document.owner_id == owner_id)
            .execution_options(synchronize_session=False)
        )
        deleted = result.rowcount or 0
        if deleted == 0:
            await self.db.rollback()
            logger.warning("Bulk delete removed nothing", extra={"owner_id": owner_id})
            raise InternalError("No documents were deleted")

        await self.db.commit()

        owner = await self.db.get(User, owner_id)
        if owner is not None:
            # Drop any stale in-session copy of the reference set
            self.db.expire(owner, ["documents"])
        logger.info("All documents deleted", extra={"owner_id": owner_id, "deleted_count": deleted})
        return deleted
