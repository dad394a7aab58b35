from enum import Enum
from typing import Optional


class AuthErrorKind(str, Enum):
    LOGIN_SUBMISSION_FAILED = "LoginSubmissionFailed"
    VERIFICATION_NOT_COMPLETED = "VerificationNotCompleted"
    SESSION_TIMEOUT = "SessionTimeout"


class Section(str, Enum):
    POSTS = "posts"
    IDENTITY = "identity"
    ABOUT = "about"
    EXPERIENCE = "experience"
    EDUCATION = "education"

    @property
    def failure_kind(self) -> str:
        return _FAILURE_KINDS[self]


_FAILURE_KINDS = {
    Section.POSTS: "PostExtractionFailed",
    Section.IDENTITY: "IdentityExtractionFailed",
    Section.ABOUT: "AboutExtractionFailed",
    Section.EXPERIENCE: "ExperienceExtractionFailed",
    Section.EDUCATION: "EducationExtractionFailed",
}


class ScraperError(Exception):
    """Base class for every error raised by the profile scraper."""


class BrowserError(ScraperError):
    """A browser primitive (navigate, wait, evaluate, input) failed."""


class AuthenticationError(ScraperError):
    """Terminal failure of the login flow. Never retried."""

    def __init__(self, kind: AuthErrorKind, message: Optional[str] = None):
        self.kind = kind
        super().__init__(message or kind.value)


class ExtractionError(ScraperError):
    """One section could not be read. Sibling sections are unaffected."""

    def __init__(self, section: Section, message: str):
        self.section = section
        super().__init__(f"{section.failure_kind}: {message}")

    @property
    def kind(self) -> str:
        return self.section.failure_kind


class SynthesisError(ScraperError):
    """The language-model call did not produce a message."""
