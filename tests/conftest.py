import pytest

from config import Settings
from profileScraper.models import Credentials, TargetReference
from tests.fakes import TARGET


@pytest.fixture
def credentials():
    return Credentials(identifier="jane@example.com", secret="hunter22")


@pytest.fixture
def target():
    return TargetReference(address=TARGET)


@pytest.fixture
def settings():
    return Settings(
        openai_api_key="sk-test",
        settle_delay=0,
        session_timeout=5,
        verification_timeout=1,
    )
