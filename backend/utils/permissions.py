from sqlalchemy.ext.asyncio import AsyncSession
from core.errors import Forbidden, NotFound
from models.document import Document
from utils.logger import get_logger

logger = get_logger("utils.permissions")


async def check_document_ownership(
        db: AsyncSession,
        document_id: int,
        owner_id: int
) -> Document:
    """Load a document and make sure the caller owns it.

    Absent -> NotFound, owned by someone else -> Forbidden.
    """
    doc = await db.get(Document, document_id)

    if doc is None:
        raise NotFound("Document not found")

    if doc.owner_id != owner_id:
        logger.warning("Document access denied", extra={"document_id": document_id, "caller_id": owner_id})
        raise Forbidden("You are not authorized to access this document")

    return doc
