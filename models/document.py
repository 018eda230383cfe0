from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint, func
from sqlalchemy.orm import relationship

from database import Base
from models.enums import DocumentType, enum_column


class Document(Base):
    __tablename__ = "documents"
    __table_args__ = (
        UniqueConstraint("application_id", "document_type", "version", name="uq_document_version"),
    )

    id = Column(String(64), primary_key=True, index=True)
    application_id = Column(
        String(64), ForeignKey("credit_applications.id", ondelete="CASCADE"), nullable=False, index=True
    )
    uploaded_by = Column(String(64), nullable=False)
    document_type = Column(enum_column(DocumentType), nullable=False)
    original_filename = Column(String(255), nullable=False)
    stored_path = Column(String(512), nullable=False)
    file_size = Column(Integer, nullable=False)
    mime_type = Column(String(100), nullable=False)
    version = Column(Integer, nullable=False, default=1)
    is_required = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    application = relationship("CreditApplication", back_populates="documents")
