"""Experience, education and skill assignment operations.

Each mutation recomputes the completion score in the same transaction, so
the stored score never lags behind the entry counts.
"""

import logging
from typing import Callable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from skillmatch.errors import NotFound, ProfileEngineError, StorageUnavailable, ValidationFailed
from skillmatch.models import Skill, UserEducation, UserExperience, UserSkill
from skillmatch.profile.validation import (
    EducationInput,
    ExperienceInput,
    parse_entry,
    require_fields,
    resolve_period,
)
from skillmatch.scoring.completion import DEFAULT_WEIGHTS, CompletionWeights, recompute_completion
from skillmatch.services.views import EducationView, ExperienceView, SkillView
from skillmatch.storage.transaction import TransactionCoordinator

logger = logging.getLogger("skillmatch.services.entries")

EXPERIENCE_TEXT_FIELDS = ("company_name", "job_title", "location", "description", "responsibilities", "achievements")
EDUCATION_TEXT_FIELDS = ("institution_name", "degree", "field_of_study", "location", "description", "achievements")


def _apply_period(row, entry, current_label: str):
    """Merge start/end/is_current from a partial update into an existing row."""
    if entry.is_current is not None:
        is_current = entry.is_current
    else:
        # Keep the stored state without demanding an end date it never had
        is_current = True if row.is_current else None
    start_date = entry.start_date or row.start_date
    end_date = entry.end_date if entry.end_date is not None else row.end_date

    row.start_date = start_date
    row.end_date = resolve_period(start_date, end_date, is_current, current_label)
    row.is_current = bool(is_current)


class EntriesService:
    def __init__(self, session_factory: Callable[[], Session], weights: CompletionWeights = DEFAULT_WEIGHTS):
        self.coordinator = TransactionCoordinator(session_factory)
        self.weights = weights

    def _run(self, operation: str, work):
        try:
            with self.coordinator.transaction() as session:
                return work(session)
        except ProfileEngineError as e:
            logger.error("%s failed: %s", operation, e)
            raise
        except Exception as e:
            logger.exception("%s failed unexpectedly", operation)
            raise StorageUnavailable(f"{operation} failed: {e}") from e

    @staticmethod
    def _owned(session: Session, model, entry_id: int, user_id: int, label: str):
        row = session.execute(
            select(model).where(model.id == entry_id, model.user_id == user_id)
        ).scalar_one_or_none()
        if row is None:
            raise NotFound(f"{label} not found or not authorized")
        return row

    # Experience

    def list_experiences(self, user_id: int) -> list[ExperienceView]:
        def work(session: Session):
            rows = session.execute(
                select(UserExperience)
                .where(UserExperience.user_id == user_id)
                .order_by(UserExperience.start_date.desc(), UserExperience.created_at.desc())
            ).scalars().all()
            return [ExperienceView.from_row(row) for row in rows]

        return self._run("List experiences", work)

    def add_experience(self, user_id: int, data: dict) -> ExperienceView:
        entry = parse_entry(ExperienceInput, data)
        require_fields(
            entry, ("company_name", "job_title", "start_date"),
            "Company name, job title, and start date are required.",
        )
        end_date = resolve_period(entry.start_date, entry.end_date, entry.is_current, "currently working here")

        def work(session: Session):
            row = UserExperience(
                user_id=user_id,
                start_date=entry.start_date,
                end_date=end_date,
                is_current=bool(entry.is_current),
                **{name: getattr(entry, name) for name in EXPERIENCE_TEXT_FIELDS},
            )
            session.add(row)
            recompute_completion(session, user_id, self.weights)
            logger.info("Added experience %s for user %s", row.id, user_id)
            return ExperienceView.from_row(row)

        return self._run(f"Add experience for user {user_id}", work)

    def update_experience(self, user_id: int, experience_id: int, data: dict) -> ExperienceView:
        entry = parse_entry(ExperienceInput, data)

        def work(session: Session):
            row = self._owned(session, UserExperience, experience_id, user_id, "Experience")
            for name in EXPERIENCE_TEXT_FIELDS:
                value = getattr(entry, name)
                if value is not None:
                    setattr(row, name, value)
            _apply_period(row, entry, "currently working here")
            recompute_completion(session, user_id, self.weights)
            return ExperienceView.from_row(row)

        return self._run(f"Update experience {experience_id} for user {user_id}", work)

    def delete_experience(self, user_id: int, experience_id: int) -> None:
        def work(session: Session):
            row = self._owned(session, UserExperience, experience_id, user_id, "Experience")
            session.delete(row)
            recompute_completion(session, user_id, self.weights)
            logger.info("Deleted experience %s for user %s", experience_id, user_id)

        self._run(f"Delete experience {experience_id} for user {user_id}", work)

    # Education

    def list_educations(self, user_id: int) -> list[EducationView]:
        def work(session: Session):
            rows = session.execute(
                select(UserEducation)
                .where(UserEducation.user_id == user_id)
                .order_by(UserEducation.start_date.desc(), UserEducation.created_at.desc())
            ).scalars().all()
            return [EducationView.from_row(row) for row in rows]

        return self._run("List educations", work)

    def add_education(self, user_id: int, data: dict) -> EducationView:
        entry = parse_entry(EducationInput, data)
        require_fields(
            entry, ("institution_name", "degree", "start_date"),
            "Institution name, degree, and start date are required.",
        )
        end_date = resolve_period(entry.start_date, entry.end_date, entry.is_current, "currently studying here")

        def work(session: Session):
            row = UserEducation(
                user_id=user_id,
                start_date=entry.start_date,
                end_date=end_date,
                is_current=bool(entry.is_current),
                **{name: getattr(entry, name) for name in EDUCATION_TEXT_FIELDS},
            )
            session.add(row)
            recompute_completion(session, user_id, self.weights)
            logger.info("Added education %s for user %s", row.id, user_id)
            return EducationView.from_row(row)

        return self._run(f"Add education for user {user_id}", work)

    def update_education(self, user_id: int, education_id: int, data: dict) -> EducationView:
        entry = parse_entry(EducationInput, data)

        def work(session: Session):
            row = self._owned(session, UserEducation, education_id, user_id, "Education")
            for name in EDUCATION_TEXT_FIELDS:
                value = getattr(entry, name)
                if value is not None:
                    setattr(row, name, value)
            _apply_period(row, entry, "currently studying here")
            recompute_completion(session, user_id, self.weights)
            return EducationView.from_row(row)

        return self._run(f"Update education {education_id} for user {user_id}", work)

    def delete_education(self, user_id: int, education_id: int) -> None:
        def work(session: Session):
            row = self._owned(session, UserEducation, education_id, user_id, "Education")
            session.delete(row)
            recompute_completion(session, user_id, self.weights)
            logger.info("Deleted education %s for user %s", education_id, user_id)

        self._run(f"Delete education {education_id} for user {user_id}", work)

    # Skills

    def list_skills(self, user_id: int) -> list[SkillView]:
        def work(session: Session):
            rows = session.execute(
                select(UserSkill)
                .join(Skill, UserSkill.skill_id == Skill.id)
                .where(UserSkill.user_id == user_id)
                .order_by(Skill.name)
            ).scalars().all()
            return [SkillView.from_row(row) for row in rows]

        return self._run("List skills", work)

    def add_skill(self, user_id: int, skill_id: int, proficiency_level: Optional[str] = None) -> SkillView:
        def work(session: Session):
            skill = session.get(Skill, skill_id)
            if skill is None:
                raise NotFound("Skill not found")

            existing = session.execute(
                select(UserSkill).where(UserSkill.user_id == user_id, UserSkill.skill_id == skill_id)
            ).scalar_one_or_none()
            if existing is not None:
                raise ValidationFailed.for_field("skillId", "Skill already added to your profile")

            row = UserSkill(user_id=user_id, skill_id=skill_id, proficiency_level=proficiency_level)
            row.skill = skill
            session.add(row)
            recompute_completion(session, user_id, self.weights)
            logger.info("Added skill %s for user %s", skill_id, user_id)
            return SkillView.from_row(row)

        return self._run(f"Add skill {skill_id} for user {user_id}", work)

    def remove_skill(self, user_id: int, skill_id: int) -> None:
        def work(session: Session):
            row = session.execute(
                select(UserSkill).where(UserSkill.user_id == user_id, UserSkill.skill_id == skill_id)
            ).scalar_one_or_none()
            if row is None:
                raise NotFound("Skill not found in your profile")
            session.delete(row)
            recompute_completion(session, user_id, self.weights)
            logger.info("Deleted skill %s for user %s", skill_id, user_id)

        self._run(f"Remove skill {skill_id} for user {user_id}", work)
