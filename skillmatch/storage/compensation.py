"""Compensation handler - reconcile the artifact store with a transaction outcome.

Rules per artifact-producing operation:
  committed, new only  -> nothing to clean up
  committed, replaced  -> delete the superseded artifact (only now, after commit)
  rolled back          -> delete the freshly written orphan, never the old one

Every deletion is best effort. Failures are logged and reported, never raised.
"""

import enum
import logging
from dataclasses import dataclass, field
from typing import Optional

from skillmatch.errors import PartialCleanupFailure
from skillmatch.storage.artifacts import ArtifactStore, DeleteResult

logger = logging.getLogger("skillmatch.storage.compensation")


class Outcome(enum.Enum):
    COMMITTED_NEW = "committed_new"
    COMMITTED_REPLACED = "committed_replaced"
    COMMITTED_REMOVED = "committed_removed"
    ROLLED_BACK = "rolled_back"


@dataclass(frozen=True)
class ArtifactChange:
    """Artifacts touched by one operation: the one just written and the one it supersedes."""

    new_locator: Optional[str] = None
    old_locator: Optional[str] = None

    @property
    def replaces(self) -> bool:
        return bool(self.new_locator and self.old_locator and self.new_locator != self.old_locator)


@dataclass
class CleanupReport:
    outcome: Outcome
    deleted: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    failures: list[PartialCleanupFailure] = field(default_factory=list)

    @property
    def clean(self) -> bool:
        return not self.failures


class CompensationHandler:
    def __init__(self, store: ArtifactStore):
        self.store = store

    def _discard(self, locator: str, report: CleanupReport):
        try:
            result = self.store.delete(locator)
        except Exception as e:
            logger.error("Error deleting artifact %s: %s", locator, e)
            report.failures.append(PartialCleanupFailure(locator=locator, reason=str(e)))
            return
        if result is DeleteResult.NOT_FOUND:
            report.missing.append(locator)
        else:
            report.deleted.append(locator)

    def after_commit(self, change: ArtifactChange) -> CleanupReport:
        """Remove the superseded artifact once the new reference is durable."""
        if not change.replaces:
            return CleanupReport(outcome=Outcome.COMMITTED_NEW)

        report = CleanupReport(outcome=Outcome.COMMITTED_REPLACED)
        self._discard(change.old_locator, report)
        if report.deleted:
            logger.info("Deleted superseded artifact %s", change.old_locator)
        return report

    def after_rollback(self, change: ArtifactChange) -> CleanupReport:
        """Remove the artifact written for a transaction that did not commit."""
        report = CleanupReport(outcome=Outcome.ROLLED_BACK)
        if change.new_locator:
            self._discard(change.new_locator, report)
            if report.deleted:
                logger.info("Deleted orphaned artifact after rollback: %s", change.new_locator)
        return report

    def after_delete(self, locator: Optional[str]) -> CleanupReport:
        """Remove the artifact of a document whose row deletion has committed."""
        report = CleanupReport(outcome=Outcome.COMMITTED_REMOVED)
        if locator:
            self._discard(locator, report)
        return report

    def log_failures(self, report: CleanupReport, operation: str):
        for failure in report.failures:
            logger.error(
                "Partial cleanup failure after %s (%s): %s - %s",
                operation, report.outcome.value, failure.locator, failure.reason,
            )
