"""User document model - metadata for binary artifacts held in the artifact store."""

import enum
from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Enum, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .base import Base


class DocumentType(str, enum.Enum):
    RESUME = "resume"
    COVER_LETTER = "cover_letter"
    CERTIFICATE = "certificate"
    PORTFOLIO_LINK = "portfolio_link"
    OTHER = "other"


class UserDocument(Base):
    __tablename__ = "user_documents"
    __table_args__ = (
        Index("ix_user_documents_user_type", "user_id", "document_type"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    document_type: Mapped[DocumentType] = mapped_column(
        Enum(DocumentType, values_callable=lambda e: [m.value for m in e], native_enum=False),
        nullable=False,
    )
    file_name: Mapped[str] = mapped_column(String(255), default="")  # original upload name
    storage_url: Mapped[str] = mapped_column(String(512), nullable=False)  # artifact locator
    file_size_bytes: Mapped[int] = mapped_column(Integer, default=0)
    # Only meaningful for resumes; at most one per user is true
    is_default_resume: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )

    user: Mapped["User"] = relationship(back_populates="documents")

    @property
    def file_size_kb(self) -> int:
        return round((self.file_size_bytes or 0) / 1024)
