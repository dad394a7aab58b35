import json
import logging
from typing import List

from openai import AsyncOpenAI, OpenAIError

from llm_utils import single_llm_call
from profileScraper.errors import SynthesisError
from profileScraper.models import ProfileResult
from .prompts import ConnectMessagePrompt

logger = logging.getLogger(__name__)

# Fixed order so clients always see the same sequence.
PARAMETER_CHECKS = (
    ("Posts", lambda p: len(p.posts) > 0),
    ("Experience", lambda p: len(p.experience) > 0),
    ("Education", lambda p: len(p.education) > 0),
    ("Location", lambda p: p.location != ""),
    ("Name", lambda p: p.name != ""),
)


def used_parameters(profile: ProfileResult) -> List[str]:
    """Names of the profile sections that carried data into the message."""
    return [name for name, check in PARAMETER_CHECKS if check(profile)]


def encode_posts(profile: ProfileResult) -> str:
    return json.dumps([post.model_dump() for post in profile.posts], ensure_ascii=False)


async def generate_connect_message(
    profile: ProfileResult,
    client: AsyncOpenAI,
    model: str = "gpt-4o-mini",
) -> str:
    """Ask the model for a short connect message built from `profile`.

    Raises:
        SynthesisError: the API call failed or returned no choices.
    """
    prompt = ConnectMessagePrompt(profile.snapshot())
    try:
        response = await single_llm_call(client, prompt.generate_prompt(), model=model)
    except OpenAIError as e:
        logger.error(f"Message synthesis failed: {e}")
        raise SynthesisError(str(e)) from e

    if not response.choices:
        raise SynthesisError("model returned no choices")
    return response.choices[0].message.content or ""
