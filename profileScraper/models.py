from typing import List
from pydantic import BaseModel, ConfigDict, Field, SecretStr, field_validator


class Credentials(BaseModel):
    """Login identifier and secret, used once when the session starts."""
    model_config = ConfigDict(frozen=True)

    identifier: str
    secret: SecretStr


class TargetReference(BaseModel):
    """Profile address that section sub-addresses are composed from.

    The address is normalised the same way for every step: an `https://`
    scheme is added when missing and trailing slashes are dropped, so that
    `section("details/experience")` always yields exactly one separator.
    """
    model_config = ConfigDict(frozen=True)

    address: str

    @field_validator("address")
    @classmethod
    def _normalise(cls, value: str) -> str:
        value = value.strip().rstrip("/")
        if not value:
            raise ValueError("profile address must not be empty")
        if not value.startswith(("https://", "http://")):
            value = "https://" + value
        return value

    def section(self, path: str = "") -> str:
        path = path.strip("/")
        if not path:
            return self.address
        return f"{self.address}/{path}/"


class Experience(BaseModel):
    title: str = ""
    company: str = ""
    duration: str = ""


class Education(BaseModel):
    institute: str = ""
    major: str = ""
    duration: str = ""


class Post(BaseModel):
    content: str = ""


class ProfileResult(BaseModel):
    """Accumulator filled by the extraction pipeline.

    Every field defaults to empty; an empty value means "not found" and is
    a valid final state for the section.
    """
    name: str = ""
    location: str = ""
    about: str = ""
    experience: List[Experience] = Field(default_factory=list)
    education: List[Education] = Field(default_factory=list)
    posts: List[Post] = Field(default_factory=list)

    def snapshot(self) -> "ProfileResult":
        """Return an independent copy safe to hand to other components."""
        return self.model_copy(deep=True)
