"""Chat-completion client that turns one source string into one candidate translation."""
import logging
import re
from dataclasses import dataclass
from typing import Dict, Optional, Sequence

from openai import AsyncOpenAI, OpenAIError
from openai.types.chat import (
    ChatCompletionSystemMessageParam,
    ChatCompletionUserMessageParam
)

from paradox_translator.dictionary import OverrideTable
from paradox_translator.domains import Domain
from paradox_translator.errors import ServiceUnavailable
from paradox_translator.prompts import get_system_prompt
from paradox_translator.request_queue import RateLimitedQueue

logger = logging.getLogger(__name__)

DEFAULT_MODEL_NAME = "gemini-2.0-flash"
DEFAULT_FALLBACK_MODEL_NAME = "gemini-1.5-flash-8b"
DEFAULT_REQUEST_TIMEOUT = 60.0
REQUEST_USER = "paradox-auto-translator"

# Style keywords the model sometimes translates; mapped back before validation.
STYLE_KEYWORD_REPAIRS = (
    (re.compile(r'#약(?:하게|화된|[화한])'), '#weak'),
    (re.compile(r'#강조'), '#bold'),
)


@dataclass(frozen=True)
class GenerationConfig:
    temperature: float = 1.0
    top_p: float = 0.95
    top_k: Optional[int] = 40
    max_output_tokens: int = 8192


def default_generation_configs() -> Dict[Domain, GenerationConfig]:
    return {domain: GenerationConfig() for domain in Domain}


def postprocess_translation(text: str) -> str:
    """
    Normalize a raw model response into a single-line localization value.

    Trims the response, encodes line breaks as the literal `\\n` used by the game files,
    and restores style keywords that the model translated.
    """
    translated = text.strip().replace('\r\n', '\n').replace('\n', '\\n')
    for pattern, replacement in STYLE_KEYWORD_REPAIRS:
        translated = pattern.sub(replacement, translated)
    return translated


class AITranslationClient:
    """
    Sends translation requests through the shared queue.

    The primary model is tried first, with the queue's retries; if it keeps failing the
    next model is tried. Only when every model failed is `ServiceUnavailable` raised.
    """

    def __init__(
            self,
            openai_client: AsyncOpenAI,
            queue: RateLimitedQueue,
            overrides: OverrideTable,
            model_names: Sequence[str] = (DEFAULT_MODEL_NAME, DEFAULT_FALLBACK_MODEL_NAME),
            generation_configs: Optional[Dict[Domain, GenerationConfig]] = None,
            request_timeout: float = DEFAULT_REQUEST_TIMEOUT
    ):
        if not model_names:
            raise ValueError("At least one model name is required")
        self.client = openai_client
        self.queue = queue
        self.model_names = tuple(model_names)
        self.generation_configs = generation_configs or default_generation_configs()
        self.request_timeout = request_timeout
        self._system_prompts = {domain: get_system_prompt(domain, overrides) for domain in Domain}

    async def translate(self, text: str, domain: Domain) -> str:
        """
        Translate one string with the first model that answers.

        Raises:
            ServiceUnavailable: If every configured model failed.
        """
        last_error: Optional[Exception] = None
        for model_name in self.model_names:
            try:
                response_text = await self.queue.enqueue(
                    lambda model=model_name: self._request(model, text, domain)
                )
            except (OpenAIError, ServiceUnavailable) as exc:
                logger.warning("Model '%s' failed for %s text: %s", model_name, domain.value, exc)
                last_error = exc
                continue
            return postprocess_translation(response_text)
        raise ServiceUnavailable(f"No model could translate the text ({', '.join(self.model_names)})") from last_error

    async def _request(self, model_name: str, text: str, domain: Domain) -> str:
        generation = self.generation_configs[domain]
        extra_body = {"top_k": generation.top_k} if generation.top_k is not None else None
        response = await self.client.chat.completions.create(
            model=model_name,
            user=REQUEST_USER,
            messages=[
                ChatCompletionSystemMessageParam(role="system", content=self._system_prompts[domain]),
                ChatCompletionUserMessageParam(role="user", content=text)
            ],
            temperature=generation.temperature,
            top_p=generation.top_p,
            max_tokens=generation.max_output_tokens,
            extra_body=extra_body,
            timeout=self.request_timeout,
        )
        content = response.choices[0].message.content if response.choices else None
        if not content or not content.strip():
            raise ServiceUnavailable(f"Model '{model_name}' returned an empty response")
        logger.debug("Model '%s' answered: %s", model_name, content)
        return content
