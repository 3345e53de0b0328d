"""Document registry - relational records for user-owned artifacts.

Also maintains the "at most one default resume per user" rule. The rule is
not a schema constraint: a new default is inserted first and the flag is then
cleared on every other resume in the same transaction. Inserting first means
an interruption between the two statements can leave two defaults (undone by
rollback) but never zero while a resume exists.
"""

import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from skillmatch.errors import NotFound
from skillmatch.models import DocumentType, UserDocument

logger = logging.getLogger("skillmatch.storage.documents")


@dataclass(frozen=True)
class DocumentMetadata:
    original_name: str
    size_bytes: int


def _clear_other_defaults(session: Session, user_id: int, keep_id: int) -> int:
    result = session.execute(
        update(UserDocument)
        .where(
            UserDocument.user_id == user_id,
            UserDocument.id != keep_id,
            UserDocument.document_type == DocumentType.RESUME,
            UserDocument.is_default_resume.is_(True),
        )
        .values(is_default_resume=False)
        .execution_options(synchronize_session="fetch")
    )
    return result.rowcount or 0


def register_resume(session: Session, user_id: int, metadata: DocumentMetadata, locator: str) -> UserDocument:
    """Insert a resume as the new default, then demote every other resume of the user."""
    document = UserDocument(
        user_id=user_id,
        document_type=DocumentType.RESUME,
        file_name=metadata.original_name,
        storage_url=locator,
        file_size_bytes=metadata.size_bytes,
        is_default_resume=True,
    )
    session.add(document)
    session.flush()

    demoted = _clear_other_defaults(session, user_id, document.id)
    logger.info(
        "Resume %s registered as default for user %s (%d previous default(s) cleared)",
        document.id, user_id, demoted,
    )
    return document


def register_document(
    session: Session,
    user_id: int,
    document_type: DocumentType,
    metadata: DocumentMetadata,
    locator: str,
) -> UserDocument:
    """Insert a document row. Resumes go through register_resume to keep the default rule."""
    if document_type == DocumentType.RESUME:
        return register_resume(session, user_id, metadata, locator)

    document = UserDocument(
        user_id=user_id,
        document_type=document_type,
        file_name=metadata.original_name,
        storage_url=locator,
        file_size_bytes=metadata.size_bytes,
        is_default_resume=False,
    )
    session.add(document)
    session.flush()
    logger.info("Document %s (%s) registered for user %s", document.id, document_type.value, user_id)
    return document


def get_document(
    session: Session,
    user_id: int,
    document_id: int,
    document_type: Optional[DocumentType] = None,
) -> UserDocument:
    stmt = select(UserDocument).where(UserDocument.id == document_id, UserDocument.user_id == user_id)
    if document_type is not None:
        stmt = stmt.where(UserDocument.document_type == document_type)
    document = session.execute(stmt).scalar_one_or_none()
    if document is None:
        raise NotFound("Document not found or not authorized")
    return document


def remove_document(session: Session, user_id: int, document_id: int) -> UserDocument:
    """Delete a document row owned by user_id and return the removed row.

    No other resume is promoted when the default one goes away; zero defaults
    is a valid state until the user picks a new one.
    """
    document = get_document(session, user_id, document_id)
    session.delete(document)
    session.flush()
    logger.info(
        "Deleted document record %s (%s) for user %s",
        document_id, document.document_type.value, user_id,
    )
    return document


def set_default_resume(session: Session, user_id: int, document_id: int) -> UserDocument:
    """Explicitly choose which resume is the default."""
    document = get_document(session, user_id, document_id, DocumentType.RESUME)
    if not document.is_default_resume:
        document.is_default_resume = True
        session.flush()
    _clear_other_defaults(session, user_id, document.id)
    logger.info("Resume %s selected as default for user %s", document_id, user_id)
    return document


def get_default_resume(session: Session, user_id: int) -> Optional[UserDocument]:
    """Return the user's default resume, or None. Zero rows is a valid state."""
    rows = session.execute(
        select(UserDocument)
        .where(
            UserDocument.user_id == user_id,
            UserDocument.document_type == DocumentType.RESUME,
            UserDocument.is_default_resume.is_(True),
        )
        .order_by(UserDocument.uploaded_at.desc(), UserDocument.id.desc())
    ).scalars().all()

    if not rows:
        return None
    if len(rows) > 1:
        logger.warning("User %s has %d default resumes, using the most recent", user_id, len(rows))
    return rows[0]


def list_documents(
    session: Session,
    user_id: int,
    document_type: Optional[DocumentType] = None,
) -> list[UserDocument]:
    stmt = select(UserDocument).where(UserDocument.user_id == user_id)
    if document_type is not None:
        stmt = stmt.where(UserDocument.document_type == document_type)
    stmt = stmt.order_by(UserDocument.uploaded_at.desc(), UserDocument.id.desc())
    return list(session.execute(stmt).scalars().all())


def count_default_resumes(session: Session, user_id: int) -> int:
    return session.execute(
        select(func.count())
        .select_from(UserDocument)
        .where(
            UserDocument.user_id == user_id,
            UserDocument.document_type == DocumentType.RESUME,
            UserDocument.is_default_resume.is_(True),
        )
    ).scalar_one()
