"""ORM models for profiles, documents and profile entries."""

from .base import Base, build_engine, build_session_factory
from .document import DocumentType, UserDocument
from .entries import Skill, UserEducation, UserExperience, UserSkill
from .user import User
from .user_profile import ExperienceLevel, UserProfile

__all__ = [
    "Base",
    "build_engine",
    "build_session_factory",
    "User",
    "UserProfile",
    "ExperienceLevel",
    "UserDocument",
    "DocumentType",
    "UserExperience",
    "UserEducation",
    "Skill",
    "UserSkill",
]
