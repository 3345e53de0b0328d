"""Profile data model."""

from dataclasses import dataclass


@dataclass(frozen=True)
class ProfileData:
    """Represents the scorable fields of a user's profile."""

    job_title: str = ""
    location: str = ""
    profile_summary: str = ""
    professional_summary: str = ""
    years_of_experience: int = 0
    experience_level: str = ""
    primary_industry: str = ""
    website_url: str = ""
    linkedin_url: str = ""
    github_url: str = ""
    profile_image_url: str = ""


@dataclass(frozen=True)
class ProfileCounts:
    """Counts of related entities that feed the completion score."""

    experience_count: int = 0
    education_count: int = 0
    skill_count: int = 0
    resume_count: int = 0
