"""Consistency report across profiles, documents and the artifact store."""

import logging
from dataclasses import dataclass, field

from sqlalchemy import select
from sqlalchemy.orm import Session

from skillmatch.models import UserDocument, UserProfile
from skillmatch.scoring.completion import DEFAULT_WEIGHTS, CompletionWeights, load_counts, score_profile
from skillmatch.storage import documents
from skillmatch.storage.artifacts import ArtifactStore

logger = logging.getLogger("skillmatch.services.integrity")


@dataclass
class IntegrityReport:
    multiple_defaults: dict[int, int] = field(default_factory=dict)  # user_id -> default count
    missing_documents: list[tuple[int, str]] = field(default_factory=list)  # (document_id, locator)
    missing_images: list[tuple[int, str]] = field(default_factory=list)  # (user_id, locator)
    unreferenced_artifacts: list[str] = field(default_factory=list)
    stale_scores: dict[int, tuple[int, int]] = field(default_factory=dict)  # user_id -> (stored, computed)

    @property
    def ok(self) -> bool:
        return not (
            self.multiple_defaults
            or self.missing_documents
            or self.missing_images
            or self.unreferenced_artifacts
            or self.stale_scores
        )


def check_integrity(
    session: Session,
    store: ArtifactStore,
    weights: CompletionWeights = DEFAULT_WEIGHTS,
) -> IntegrityReport:
    """Scan every user for invariant violations. Read-only."""
    report = IntegrityReport()
    referenced = set()

    for document in session.execute(select(UserDocument).order_by(UserDocument.id)).scalars():
        referenced.add(document.storage_url)
        if not store.exists(document.storage_url):
            report.missing_documents.append((document.id, document.storage_url))

    for profile in session.execute(select(UserProfile).order_by(UserProfile.user_id)).scalars():
        user_id = profile.user_id

        defaults = documents.count_default_resumes(session, user_id)
        if defaults > 1:
            report.multiple_defaults[user_id] = defaults

        if profile.profile_image_url:
            referenced.add(profile.profile_image_url)
            if not store.exists(profile.profile_image_url):
                report.missing_images.append((user_id, profile.profile_image_url))

        computed = score_profile(profile.to_profile_data(), load_counts(session, user_id), weights)
        if computed != (profile.profile_completion or 0):
            report.stale_scores[user_id] = (profile.profile_completion or 0, computed)

    # Left behind when compensation itself failed
    report.unreferenced_artifacts = [loc for loc in store.locators() if loc not in referenced]

    if not report.ok:
        logger.warning(
            "Integrity issues: %d multi-default users, %d missing documents, %d missing images, "
            "%d unreferenced artifacts, %d stale scores",
            len(report.multiple_defaults), len(report.missing_documents), len(report.missing_images),
            len(report.unreferenced_artifacts), len(report.stale_scores),
        )
    return report
