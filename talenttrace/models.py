"""Profile data model.

Two shapes exist for a scraped profile:

- ``ProfileDraft``: mutable, created empty at the start of one scrape
  attempt and filled in place by the extraction cascade.
- ``Profile``: frozen pydantic model returned to callers. It can only be
  produced through ``ProfileDraft.to_profile()``, which is the single
  validation gate of the pipeline.

Design Rationale:
    Per-section caps (5 experience, 3 education, 10 skills) are enforced
    when entries are added, keeping the first entries encountered in page
    order. The frozen model re-checks the same limits so a hand-built
    Profile cannot violate them either.
"""

from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from talenttrace.exceptions import ProfileValidationError
from talenttrace.logger import get_logger
from talenttrace.utils import sanitize_text

log = get_logger(__name__)

MAX_EXPERIENCE = 5
MAX_EDUCATION = 3
MAX_SKILLS = 10


def _clean(value: Any) -> Any:
    return sanitize_text(value) if isinstance(value, str) else value


class Experience(BaseModel):
    """One work-history entry. Duration stays a display string."""

    model_config = ConfigDict(frozen=True)

    title: str = ""
    company: str = ""
    duration: str = ""
    location: str = ""
    description: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def normalize(cls, value: Any) -> Any:
        return _clean(value)

    @property
    def is_identified(self) -> bool:
        return bool(self.title or self.company)


class Education(BaseModel):
    """One education entry."""

    model_config = ConfigDict(frozen=True)

    school: str = ""
    degree: str = ""
    duration: str = ""
    description: str = ""

    @field_validator("*", mode="before")
    @classmethod
    def normalize(cls, value: Any) -> Any:
        return _clean(value)

    @property
    def is_identified(self) -> bool:
        return bool(self.school or self.degree)


class Profile(BaseModel):
    """Validated, immutable profile record.

    Attributes:
        name: Display name (required, non-empty).
        headline: Professional headline.
        location: Free-form location text.
        about: About section, whitespace preserved apart from trimming.
        experience: Up to 5 entries in page order.
        education: Up to 3 entries in page order.
        skills: Up to 10 skills, unique case-insensitively.
        profile_url: Source URL (required, non-empty).
        scraped_at: Capture timestamp set when the draft was created.
    """

    model_config = ConfigDict(frozen=True)

    name: str = Field(..., min_length=1)
    headline: str = ""
    location: str = ""
    about: str = ""
    experience: tuple[Experience, ...] = Field(default=(), max_length=MAX_EXPERIENCE)
    education: tuple[Education, ...] = Field(default=(), max_length=MAX_EDUCATION)
    skills: tuple[str, ...] = Field(default=(), max_length=MAX_SKILLS)
    profile_url: str = Field(..., min_length=1)
    scraped_at: datetime

    @field_validator("name", "headline", "location", "profile_url", mode="before")
    @classmethod
    def clean_line(cls, value: Any) -> Any:
        """Collapse whitespace in single-line fields."""
        return _clean(value)

    @field_validator("about", mode="before")
    @classmethod
    def clean_about(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    def experience_summary(self) -> str:
        """Render experience as 'Title at Company (Duration); ...'."""
        parts = []
        for exp in self.experience:
            part = f"{exp.title} at {exp.company}"
            if exp.duration:
                part += f" ({exp.duration})"
            parts.append(part)
        return "; ".join(parts)

    def education_summary(self) -> str:
        """Render education as 'Degree from School (Duration); ...'."""
        parts = []
        for edu in self.education:
            part = f"{edu.degree} from {edu.school}"
            if edu.duration:
                part += f" ({edu.duration})"
            parts.append(part)
        return "; ".join(parts)

    def skills_summary(self) -> str:
        return ", ".join(self.skills)


class ProfileDraft:
    """Mutable profile under construction for a single scrape attempt.

    Attributes:
        profile_url: Source URL of the page being scraped.
        scraped_at: Set once, when the draft is created.
    """

    def __init__(self, profile_url: str, scraped_at: datetime | None = None) -> None:
        self.profile_url = profile_url
        self.scraped_at = scraped_at or datetime.now(UTC)
        self.name = ""
        self.headline = ""
        self.location = ""
        self.about = ""
        self.experience: list[Experience] = []
        self.education: list[Education] = []
        self.skills: list[str] = []

    def add_experience(self, experience: Experience) -> bool:
        """Append an entry unless the cap of 5 is reached."""
        if len(self.experience) >= MAX_EXPERIENCE:
            return False
        self.experience.append(experience)
        return True

    def add_education(self, education: Education) -> bool:
        """Append an entry unless the cap of 3 is reached."""
        if len(self.education) >= MAX_EDUCATION:
            return False
        self.education.append(education)
        return True

    def has_skill(self, skill: str) -> bool:
        folded = skill.strip().casefold()
        return any(existing.casefold() == folded for existing in self.skills)

    def add_skill(self, skill: str) -> bool:
        """Add a trimmed skill; case-insensitive duplicates and blanks are no-ops.

        Returns:
            True if the skill was appended.
        """
        skill = skill.strip()
        if not skill or self.has_skill(skill) or len(self.skills) >= MAX_SKILLS:
            return False
        self.skills.append(skill)
        return True

    def missing_required(self) -> list[str]:
        missing = []
        if not self.name.strip():
            missing.append("name")
        if not self.profile_url.strip():
            missing.append("profile_url")
        return missing

    def is_valid(self) -> bool:
        return not self.missing_required()

    def to_profile(self) -> Profile:
        """Freeze the draft into a validated Profile.

        Raises:
            ProfileValidationError: If name or profile URL is empty.
        """
        missing = self.missing_required()
        if missing:
            raise ProfileValidationError(profile_url=self.profile_url, missing=missing)

        try:
            return Profile(
                name=self.name,
                headline=self.headline,
                location=self.location,
                about=self.about,
                experience=tuple(self.experience),
                education=tuple(self.education),
                skills=tuple(self.skills),
                profile_url=self.profile_url,
                scraped_at=self.scraped_at,
            )
        except ValidationError as exc:
            log.warning(
                "Profile failed schema validation",
                profile_url=self.profile_url,
                errors=exc.error_count(),
            )
            missing = sorted({str(error["loc"][0]) for error in exc.errors()})
            raise ProfileValidationError(profile_url=self.profile_url, missing=missing) from exc
