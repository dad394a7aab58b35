from .errors import (
    AuthenticationError,
    AuthErrorKind,
    BrowserError,
    ExtractionError,
    ScraperError,
    Section,
    SynthesisError,
)
from .models import Credentials, Education, Experience, Post, ProfileResult, TargetReference
from .orchestrator import ProfileOrchestrator

__all__ = [
    "AuthenticationError",
    "AuthErrorKind",
    "BrowserError",
    "Credentials",
    "Education",
    "Experience",
    "ExtractionError",
    "Post",
    "ProfileOrchestrator",
    "ProfileResult",
    "ScraperError",
    "Section",
    "SynthesisError",
    "TargetReference",
]
