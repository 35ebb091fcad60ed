import logging
from typing import Optional

from services.knowledge.errors import GeneratorUnavailable
from services.knowledge.prompts import SYSTEM_PROMPT, build_topic_prompt
from services.llm_factory import LLMFactory

logger = logging.getLogger(__name__)


def generate_response(
    prompt: str,
    model: Optional[str] = None,
    temperature: float = 0.7,
    system_prompt: str = "",
    provider: Optional[str] = None,
    json_mode: bool = False,
) -> str:
    """
    Generates a text response from the configured LLM provider.
    Raises:
        GeneratorUnavailable: If the API call fails or returns nothing.
    """
    try:
        client = LLMFactory.get_client(provider)
        messages = []
        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})
        messages.append({"role": "user", "content": prompt})

        kwargs = {}
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        response = client.chat.completions.create(
            model=model or LLMFactory.get_default_model(provider),
            messages=messages,
            temperature=temperature,
            **kwargs,
        )
    except Exception as e:
        logger.error(f"LLM Generation Failed: {e}", exc_info=True)
        raise GeneratorUnavailable(f"Failed to generate LLM response: {e}") from e

    if not response.choices or not response.choices[0].message.content:
        logger.error("LLM returned empty response or no content")
        raise GeneratorUnavailable("LLM returned empty response")
    return response.choices[0].message.content


def generate_topic_payload(topic: str, language: str) -> str:
    """
    Raw generator text for a topic query. Parsing is left to the normalizer,
    since providers wrap, fence or prefix the JSON in different ways.
    """
    return generate_response(
        build_topic_prompt(topic, language),
        temperature=0.5,
        system_prompt=SYSTEM_PROMPT,
        json_mode=True,
    )
