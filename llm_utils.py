"""
Utility functions for LLM calls using AsyncOpenAI.
"""
from typing import Any
from openai import AsyncOpenAI


def build_client(api_key: str) -> AsyncOpenAI:
    return AsyncOpenAI(api_key=api_key)


async def single_llm_call(
    client: AsyncOpenAI,
    messages: list[dict],
    model: str = "gpt-4o-mini",
    **kwargs
) -> Any:
    """
    Execute a single async LLM call.

    Args:
        client: AsyncOpenAI client owned by the caller.
        messages: List of message dicts with role and content.
        model: OpenAI model to use.
        **kwargs: Additional OpenAI API parameters (max_tokens, temperature, ...).

    Returns:
        OpenAI ChatCompletion response.
    """
    return await client.chat.completions.create(
        model=model,
        messages=messages,
        **kwargs
    )
