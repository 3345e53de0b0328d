"""User profile model - structured profile fields plus the derived completion score."""

import enum
from datetime import datetime, timezone

from sqlalchemy import DateTime, Enum, ForeignKey, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from skillmatch.profile.models import ProfileData

from .base import Base


class ExperienceLevel(str, enum.Enum):
    ENTRY = "entry"
    JUNIOR = "junior"
    MID = "mid"
    SENIOR = "senior"
    LEAD = "lead"
    EXECUTIVE = "executive"


class UserProfile(Base):
    __tablename__ = "user_profiles"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(Integer, ForeignKey("users.id"), unique=True, nullable=False)

    job_title: Mapped[str | None] = mapped_column(String(255), nullable=True)
    location: Mapped[str | None] = mapped_column(String(255), nullable=True)
    profile_summary: Mapped[str | None] = mapped_column(String(500), nullable=True)
    professional_summary: Mapped[str | None] = mapped_column(Text, nullable=True)
    years_of_experience: Mapped[int | None] = mapped_column(Integer, nullable=True)
    experience_level: Mapped[ExperienceLevel | None] = mapped_column(
        Enum(ExperienceLevel, values_callable=lambda e: [m.value for m in e], native_enum=False),
        nullable=True,
    )
    primary_industry: Mapped[str | None] = mapped_column(String(255), nullable=True)

    website_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    linkedin_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    github_url: Mapped[str | None] = mapped_column(String(512), nullable=True)
    profile_image_url: Mapped[str | None] = mapped_column(String(512), nullable=True)  # artifact locator

    # Derived by the completion scorer, never written from client input
    profile_completion: Mapped[int] = mapped_column(Integer, default=0, nullable=False)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    user: Mapped["User"] = relationship(back_populates="profile")

    def to_profile_data(self) -> ProfileData:
        """Convert DB row to the ProfileData dataclass consumed by the scorer."""
        return ProfileData(
            job_title=self.job_title or "",
            location=self.location or "",
            profile_summary=self.profile_summary or "",
            professional_summary=self.professional_summary or "",
            years_of_experience=self.years_of_experience or 0,
            experience_level=self.experience_level.value if self.experience_level else "",
            primary_industry=self.primary_industry or "",
            website_url=self.website_url or "",
            linkedin_url=self.linkedin_url or "",
            github_url=self.github_url or "",
            profile_image_url=self.profile_image_url or "",
        )
