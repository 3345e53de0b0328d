"""Profile completion scoring.

The score is a bounded 0-100 integer summarising how much of a profile has
been filled in. Category maxima sum to 110; the total is clamped to 100, so a
profile can reach full completion without every optional link or entry.
"""

import logging
import math
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping, Optional

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from skillmatch.models import DocumentType, UserDocument, UserEducation, UserExperience, UserProfile, UserSkill
from skillmatch.profile.models import ProfileCounts, ProfileData

logger = logging.getLogger("skillmatch.scoring.completion")

MIN_SCORE = 0
MAX_SCORE = 100


def _frozen(mapping: dict) -> Mapping[str, float]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class CountWeight:
    """Points for a related-entity count: base + per_item * n, capped, only when n > 0."""

    base: float
    per_item: float
    cap: float

    def points(self, count: int) -> float:
        if count <= 0:
            return 0.0
        return min(self.cap, self.base + self.per_item * count)


@dataclass(frozen=True)
class CompletionWeights:
    basic_fields: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "job_title": 5,
        "location": 5,
        "years_of_experience": 5,
        "experience_level": 5,
        "primary_industry": 5,
    }))
    summaries: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "profile_summary": 10,
        "professional_summary": 10,
    }))
    links: Mapping[str, float] = field(default_factory=lambda: _frozen({
        "website_url": 3,
        "linkedin_url": 4,
        "github_url": 3,
    }))
    links_cap: float = 10
    profile_image: float = 5
    experience: CountWeight = CountWeight(base=5, per_item=2, cap=15)
    education: CountWeight = CountWeight(base=5, per_item=2.5, cap=10)
    skills: CountWeight = CountWeight(base=3, per_item=1, cap=15)
    resume: float = 10

    @property
    def maximum(self) -> float:
        """Sum of category maxima (110 with the default table)."""
        return (
            sum(self.basic_fields.values())
            + sum(self.summaries.values())
            + min(self.links_cap, sum(self.links.values()))
            + self.profile_image
            + self.experience.cap
            + self.education.cap
            + self.skills.cap
            + self.resume
        )


DEFAULT_WEIGHTS = CompletionWeights()


def _is_filled(value) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    return bool(value)


def _field_points(profile: ProfileData, weights: Mapping[str, float]) -> float:
    return sum(w for name, w in weights.items() if _is_filled(getattr(profile, name, None)))


def score_breakdown(
    profile: ProfileData,
    counts: ProfileCounts,
    weights: CompletionWeights = DEFAULT_WEIGHTS,
) -> dict[str, float]:
    """Per-category points before summing and clamping."""
    return {
        "basic_info": _field_points(profile, weights.basic_fields),
        "summaries": _field_points(profile, weights.summaries),
        "links": min(weights.links_cap, _field_points(profile, weights.links)),
        "profile_image": weights.profile_image if _is_filled(profile.profile_image_url) else 0.0,
        "experience": weights.experience.points(counts.experience_count),
        "education": weights.education.points(counts.education_count),
        "skills": weights.skills.points(counts.skill_count),
        "resume": weights.resume if counts.resume_count > 0 else 0.0,
    }


def score_profile(
    profile: ProfileData,
    counts: ProfileCounts,
    weights: CompletionWeights = DEFAULT_WEIGHTS,
) -> int:
    """Score profile completeness.

    Pure and deterministic: identical inputs always give the same integer in
    [0, 100]. Halves round up (7.5 -> 8).
    """
    total = sum(score_breakdown(profile, counts, weights).values())
    rounded = math.floor(total + 0.5)
    return max(MIN_SCORE, min(MAX_SCORE, rounded))


def load_counts(session: Session, user_id: int) -> ProfileCounts:
    """Read fresh related-entity counts inside the caller's transaction."""
    def _count(model, *criteria) -> int:
        stmt = select(func.count()).select_from(model).where(model.user_id == user_id, *criteria)
        return session.execute(stmt).scalar_one()

    return ProfileCounts(
        experience_count=_count(UserExperience),
        education_count=_count(UserEducation),
        skill_count=_count(UserSkill),
        resume_count=_count(UserDocument, UserDocument.document_type == DocumentType.RESUME),
    )


def recompute_completion(
    session: Session,
    user_id: int,
    weights: CompletionWeights = DEFAULT_WEIGHTS,
) -> Optional[int]:
    """Recompute and persist the completion score for one user.

    Must run in the same transaction as the triggering mutation. Pending
    writes are flushed first so the counts see them.
    """
    session.flush()

    profile = session.execute(
        select(UserProfile).where(UserProfile.user_id == user_id)
    ).scalar_one_or_none()
    if profile is None:
        logger.warning("Profile not found for user %s during completion update", user_id)
        return None

    counts = load_counts(session, user_id)
    score = score_profile(profile.to_profile_data(), counts, weights)

    if profile.profile_completion != score:
        profile.profile_completion = score
        session.flush()

    logger.info("Updated profile completion for user %s to %d%%", user_id, score)
    return score
