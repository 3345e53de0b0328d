"""Profile and document operations that span the database and the artifact store.

Every artifact-producing operation follows the same sequence:
validate -> put artifact -> transaction (rows + default flag + score) ->
commit or rollback -> compensation.
"""

import logging
from pathlib import PurePosixPath
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from skillmatch.config import UploadLimits
from skillmatch.errors import NotFound, ProfileEngineError, StorageUnavailable, ValidationFailed
from skillmatch.models import DocumentType, User, UserProfile
from skillmatch.profile.validation import UploadedFile, parse_profile_update, validate_upload
from skillmatch.scoring.completion import DEFAULT_WEIGHTS, CompletionWeights, recompute_completion
from skillmatch.services.views import DocumentView, ProfileView
from skillmatch.storage import documents
from skillmatch.storage.artifacts import ArtifactStore
from skillmatch.storage.compensation import ArtifactChange, CompensationHandler
from skillmatch.storage.documents import DocumentMetadata
from skillmatch.storage.transaction import TransactionCoordinator

logger = logging.getLogger("skillmatch.services.profile")

USER_FIELDS = ("first_name", "last_name")


def create_profile(session: Session, user_id: int) -> UserProfile:
    """Add the empty profile that every new account starts with."""
    profile = UserProfile(user_id=user_id, profile_completion=0)
    session.add(profile)
    return profile


def _load_user_and_profile(session: Session, user_id: int) -> tuple[User, UserProfile]:
    user = session.get(User, user_id)
    if user is None:
        raise NotFound("User not found")
    profile = session.execute(
        select(UserProfile).where(UserProfile.user_id == user_id)
    ).scalar_one_or_none()
    if profile is None:
        raise NotFound("Profile not found")
    return user, profile


def _stored_name(original_name: str, ext: str) -> str:
    stem = PurePosixPath(original_name or "upload").stem or "upload"
    return f"{stem}{ext}"


class ProfileService:
    def __init__(
        self,
        session_factory: Callable[[], Session],
        store: ArtifactStore,
        limits: Optional[UploadLimits] = None,
        weights: CompletionWeights = DEFAULT_WEIGHTS,
    ):
        self.coordinator = TransactionCoordinator(session_factory)
        self.store = store
        self.compensation = CompensationHandler(store)
        self.limits = limits or UploadLimits()
        self.weights = weights

    def _execute(self, operation: str, new_locator: Optional[str], work):
        """Run work(session) -> (result, superseded_locator) and reconcile artifacts.

        Errors roll back, remove the freshly written artifact and re-raise as
        typed failures. Cleanup problems are logged and never mask the result
        or the primary error.
        """
        try:
            with self.coordinator.transaction() as session:
                result, old_locator = work(session)
        except ProfileEngineError as e:
            logger.error("%s rolled back: %s", operation, e)
            self._cleanup_after_rollback(operation, new_locator)
            raise
        except Exception as e:
            logger.exception("%s failed unexpectedly", operation)
            self._cleanup_after_rollback(operation, new_locator)
            raise StorageUnavailable(f"{operation} failed: {e}") from e

        report = self.compensation.after_commit(ArtifactChange(new_locator=new_locator, old_locator=old_locator))
        self.compensation.log_failures(report, operation)
        return result

    def _cleanup_after_rollback(self, operation: str, new_locator: Optional[str]):
        if not new_locator:
            return
        report = self.compensation.after_rollback(ArtifactChange(new_locator=new_locator))
        self.compensation.log_failures(report, operation)

    def _read(self, work):
        try:
            with self.coordinator.transaction() as session:
                return work(session)
        except ProfileEngineError:
            raise
        except Exception as e:
            logger.exception("Read failed unexpectedly")
            raise StorageUnavailable(f"Read failed: {e}") from e

    # Exposed operations

    def update_profile(
        self,
        user_id: int,
        fields: dict | None = None,
        new_image: Optional[UploadedFile] = None,
    ) -> ProfileView:
        """Apply a partial profile edit and optionally replace the profile image."""
        update = parse_profile_update(fields)
        changes = update.changes()

        new_locator = None
        if new_image is not None:
            ext = validate_upload(
                new_image, self.limits.image_types, self.limits.max_file_bytes, field="profileImage"
            )
            new_locator = self.store.put(new_image.content, _stored_name(new_image.filename, ext))
            logger.info("New profile image for user %s: %s", user_id, new_locator)

        def work(session: Session):
            user, profile = _load_user_and_profile(session, user_id)
            old_locator = profile.profile_image_url if new_locator else None

            for name, value in changes.items():
                if name in USER_FIELDS:
                    setattr(user, name, value or "")
                else:
                    setattr(profile, name, value)
            if new_locator:
                profile.profile_image_url = new_locator

            recompute_completion(session, user_id, self.weights)
            logger.info("Updated profile details for user %s (%s)", user_id, ", ".join(sorted(changes)) or "no fields")
            return ProfileView.from_rows(user, profile), old_locator

        return self._execute(f"Profile update for user {user_id}", new_locator, work)

    def upload_resume(
        self,
        user_id: int,
        content: bytes,
        original_name: str,
        content_type: Optional[str] = None,
    ) -> DocumentView:
        """Store a resume and register it as the user's default resume."""
        return self.upload_document(user_id, DocumentType.RESUME, content, original_name, content_type)

    def upload_document(
        self,
        user_id: int,
        document_type: DocumentType | str,
        content: bytes,
        original_name: str,
        content_type: Optional[str] = None,
    ) -> DocumentView:
        try:
            document_type = DocumentType(document_type)
        except ValueError as e:
            raise ValidationFailed.for_field("document_type", f"Unknown document type: {document_type}") from e

        upload = UploadedFile(content=content, filename=original_name, content_type=content_type)
        field = "resumeFile" if document_type == DocumentType.RESUME else "file"
        ext = validate_upload(upload, self.limits.document_types, self.limits.max_file_bytes, field=field)

        locator = self.store.put(content, _stored_name(original_name, ext))
        metadata = DocumentMetadata(original_name=original_name, size_bytes=len(content))

        def work(session: Session):
            if session.get(User, user_id) is None:
                raise NotFound("User not found")
            document = documents.register_document(session, user_id, document_type, metadata, locator)
            recompute_completion(session, user_id, self.weights)
            return DocumentView.from_row(document), None

        view = self._execute(f"{document_type.value} upload for user {user_id}", locator, work)
        logger.info("Document %s uploaded for user %s (default=%s)", view.id, user_id, view.is_default_resume)
        return view

    def delete_document(self, user_id: int, document_id: int) -> None:
        """Delete a document row, rescore, then remove its artifact once committed."""
        def work(session: Session):
            document = documents.remove_document(session, user_id, document_id)
            recompute_completion(session, user_id, self.weights)
            return document.storage_url, None

        locator = self._execute(f"Document {document_id} delete for user {user_id}", None, work)

        report = self.compensation.after_delete(locator)
        if report.missing:
            logger.warning("Document file not found in storage, skipping deletion: %s", locator)
        self.compensation.log_failures(report, f"document {document_id} delete")

    def set_default_resume(self, user_id: int, document_id: int) -> DocumentView:
        def work(session: Session):
            document = documents.set_default_resume(session, user_id, document_id)
            return DocumentView.from_row(document), None

        return self._execute(f"Default resume selection for user {user_id}", None, work)

    # Reads

    def get_profile(self, user_id: int) -> ProfileView:
        def work(session: Session):
            user, profile = _load_user_and_profile(session, user_id)
            return ProfileView.from_rows(user, profile)

        return self._read(work)

    def list_documents(self, user_id: int, document_type: Optional[DocumentType] = None) -> list[DocumentView]:
        def work(session: Session):
            rows = documents.list_documents(session, user_id, document_type)
            return [DocumentView.from_row(row) for row in rows]

        return self._read(work)

    def list_resumes(self, user_id: int) -> list[DocumentView]:
        return self.list_documents(user_id, DocumentType.RESUME)

    def get_default_resume(self, user_id: int) -> Optional[DocumentView]:
        def work(session: Session):
            document = documents.get_default_resume(session, user_id)
            return DocumentView.from_row(document) if document else None

        return self._read(work)

    def rescore(self, user_id: int) -> Optional[int]:
        """Recompute the stored completion score from current data."""
        def work(session: Session):
            return recompute_completion(session, user_id, self.weights), None

        return self._execute(f"Rescore for user {user_id}", None, work)
