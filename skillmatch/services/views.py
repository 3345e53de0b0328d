"""Immutable result values returned by the services.

Built inside the transaction so callers never touch live ORM rows.
"""

from dataclasses import asdict, dataclass
from datetime import date, datetime
from typing import Optional

from skillmatch.models import User, UserDocument, UserEducation, UserExperience, UserProfile, UserSkill


def _jsonable(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


@dataclass(frozen=True)
class _View:
    def to_dict(self) -> dict:
        return {key: _jsonable(value) for key, value in asdict(self).items()}


@dataclass(frozen=True)
class ProfileView(_View):
    id: int
    first_name: str
    last_name: str
    email: str
    user_type: str
    job_title: Optional[str]
    location: Optional[str]
    profile_image_url: Optional[str]
    profile_summary: Optional[str]
    professional_summary: Optional[str]
    years_of_experience: Optional[int]
    experience_level: Optional[str]
    primary_industry: Optional[str]
    website_url: Optional[str]
    linkedin_url: Optional[str]
    github_url: Optional[str]
    profile_completion: int

    @classmethod
    def from_rows(cls, user: User, profile: UserProfile) -> "ProfileView":
        return cls(
            id=user.id,
            first_name=user.first_name or "",
            last_name=user.last_name or "",
            email=user.email,
            user_type=user.user_type,
            job_title=profile.job_title,
            location=profile.location,
            profile_image_url=profile.profile_image_url,
            profile_summary=profile.profile_summary,
            professional_summary=profile.professional_summary,
            years_of_experience=profile.years_of_experience,
            experience_level=profile.experience_level.value if profile.experience_level else None,
            primary_industry=profile.primary_industry,
            website_url=profile.website_url,
            linkedin_url=profile.linkedin_url,
            github_url=profile.github_url,
            profile_completion=profile.profile_completion or 0,
        )


@dataclass(frozen=True)
class DocumentView(_View):
    id: int
    user_id: int
    document_type: str
    file_name: str
    storage_url: str
    file_size_bytes: int
    file_size_kb: int
    is_default_resume: bool
    uploaded_at: Optional[datetime]

    @classmethod
    def from_row(cls, document: UserDocument) -> "DocumentView":
        return cls(
            id=document.id,
            user_id=document.user_id,
            document_type=document.document_type.value,
            file_name=document.file_name,
            storage_url=document.storage_url,
            file_size_bytes=document.file_size_bytes or 0,
            file_size_kb=document.file_size_kb,
            is_default_resume=bool(document.is_default_resume),
            uploaded_at=document.uploaded_at,
        )


@dataclass(frozen=True)
class ExperienceView(_View):
    id: int
    company_name: str
    job_title: str
    location: Optional[str]
    start_date: date
    end_date: Optional[date]
    is_current: bool
    description: Optional[str]
    responsibilities: Optional[str]
    achievements: Optional[str]

    @classmethod
    def from_row(cls, row: UserExperience) -> "ExperienceView":
        return cls(
            id=row.id,
            company_name=row.company_name,
            job_title=row.job_title,
            location=row.location,
            start_date=row.start_date,
            end_date=row.end_date,
            is_current=bool(row.is_current),
            description=row.description,
            responsibilities=row.responsibilities,
            achievements=row.achievements,
        )


@dataclass(frozen=True)
class EducationView(_View):
    id: int
    institution_name: str
    degree: str
    field_of_study: Optional[str]
    location: Optional[str]
    start_date: date
    end_date: Optional[date]
    is_current: bool
    description: Optional[str]
    achievements: Optional[str]

    @classmethod
    def from_row(cls, row: UserEducation) -> "EducationView":
        return cls(
            id=row.id,
            institution_name=row.institution_name,
            degree=row.degree,
            field_of_study=row.field_of_study,
            location=row.location,
            start_date=row.start_date,
            end_date=row.end_date,
            is_current=bool(row.is_current),
            description=row.description,
            achievements=row.achievements,
        )


@dataclass(frozen=True)
class SkillView(_View):
    id: int
    skill_id: int
    name: str
    category: str
    proficiency_level: Optional[str]

    @classmethod
    def from_row(cls, row: UserSkill) -> "SkillView":
        return cls(
            id=row.id,
            skill_id=row.skill_id,
            name=row.skill.name,
            category=row.skill.category or "",
            proficiency_level=row.proficiency_level,
        )
