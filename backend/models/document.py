from sqlalchemy import Column, Integer, String, Text, Boolean, DateTime, ForeignKey, Index, func
from sqlalchemy.orm import relationship
from core.database import Base, utcnow

class Document(Base):
    __tablename__ = "documents"

    id = Column(Integer, primary_key=True, index=True)
    owner_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    document_name = Column(String, nullable=False)
    original_file_name = Column(String, nullable=False)
    file_type = Column(String(16), nullable=False, default="other")
    original_text = Column(Text, nullable=False, default="")
    translated_text = Column(Text, nullable=False, default="")
    target_language = Column(String(16), nullable=True)

    # False when the step failed; empty text alone means nothing was found
    extraction_ok = Column(Boolean, nullable=False, default=True)
    translation_ok = Column(Boolean, nullable=False, default=True)

    created_at = Column(DateTime(timezone=True), default=utcnow)
    updated_at = Column(DateTime(timezone=True), default=utcnow, onupdate=utcnow)

    owner = relationship("User", back_populates="documents")

    # Names are unique per owner, case-insensitively
    __table_args__ = (
        Index("uq_documents_owner_name", owner_id, func.lower(document_name), unique=True),
    )
