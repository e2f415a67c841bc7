from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest
from openai import APIConnectionError

from paradox_translator.ai_client import (
    AITranslationClient,
    GenerationConfig,
    postprocess_translation
)
from paradox_translator.dictionary import OverrideTable
from paradox_translator.domains import Domain
from paradox_translator.errors import ServiceUnavailable
from paradox_translator.request_queue import RateLimitedQueue


def completion(content):
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content))]
    return response


def connection_error():
    return APIConnectionError(request=httpx.Request("POST", "https://example.invalid/v1/chat/completions"))


def make_openai(create):
    openai_client = MagicMock()
    openai_client.chat.completions.create = create
    return openai_client


def make_client(openai_client, **kwargs):
    queue = RateLimitedQueue(min_interval=0.001, retry_delays=(0.001,))
    overrides = OverrideTable(tables={Domain.CK3: {"Duke": "공작"}})
    return AITranslationClient(openai_client, queue, overrides, model_names=["primary", "fallback"], **kwargs)


class TestPostprocess:
    def test_trims_and_encodes_line_breaks(self):
        assert postprocess_translation("  첫 줄\r\n둘째 줄\n ") == "첫 줄\\n둘째 줄"

    @pytest.mark.parametrize("keyword", ["#약하게", "#약화된", "#약화", "#약한"])
    def test_repairs_weak_keyword(self, keyword):
        assert postprocess_translation(f"{keyword} 약함#") == "#weak 약함#"

    def test_repairs_bold_keyword(self):
        assert postprocess_translation("#강조 왕#") == "#bold 왕#"


class TestAITranslationClient:
    @pytest.mark.asyncio
    async def test_sends_prompt_and_generation_parameters(self):
        create = AsyncMock(return_value=completion(" #강조 왕# "))
        client = make_client(make_openai(create), request_timeout=12.5)

        assert await client.translate("The #bold King#", Domain.CK3) == "#bold 왕#"

        kwargs = create.await_args.kwargs
        assert kwargs["model"] == "primary"
        assert kwargs["temperature"] == 1.0
        assert kwargs["top_p"] == 0.95
        assert kwargs["max_tokens"] == 8192
        assert kwargs["extra_body"] == {"top_k": 40}
        assert kwargs["timeout"] == 12.5
        system, user = kwargs["messages"]
        assert system["role"] == "system"
        assert ' - "duke" → "공작"' in system["content"]
        assert "Crusader Kings III" in system["content"]
        assert user == {"role": "user", "content": "The #bold King#"}

    @pytest.mark.asyncio
    async def test_per_domain_generation_config(self):
        create = AsyncMock(return_value=completion("제국"))
        configs = {domain: GenerationConfig() for domain in Domain}
        configs[Domain.STELLARIS] = GenerationConfig(temperature=0.2, top_k=None)
        client = make_client(make_openai(create), generation_configs=configs)

        await client.translate("Empire", Domain.STELLARIS)

        kwargs = create.await_args.kwargs
        assert kwargs["temperature"] == 0.2
        assert kwargs["extra_body"] is None
        assert "Stellaris" in kwargs["messages"][0]["content"]

    @pytest.mark.asyncio
    async def test_falls_back_to_second_model(self):
        async def create(**kwargs):
            if kwargs["model"] == "primary":
                raise connection_error()
            return completion("왕")

        openai_client = make_openai(AsyncMock(side_effect=create))
        client = make_client(openai_client)

        assert await client.translate("King", Domain.CK3) == "왕"

        models = [call.kwargs["model"] for call in openai_client.chat.completions.create.await_args_list]
        # One attempt plus one queue retry on the primary model, then the fallback.
        assert models == ["primary", "primary", "fallback"]

    @pytest.mark.asyncio
    async def test_raises_service_unavailable_when_every_model_fails(self):
        create = AsyncMock(side_effect=connection_error())
        client = make_client(make_openai(create))

        with pytest.raises(ServiceUnavailable):
            await client.translate("King", Domain.CK3)
        assert create.await_count == 4

    @pytest.mark.asyncio
    async def test_empty_response_counts_as_failure(self):
        create = AsyncMock(side_effect=[completion(""), completion("   "), completion(None), completion("왕")])
        client = make_client(make_openai(create))

        assert await client.translate("King", Domain.CK3) == "왕"
        assert create.await_count == 4

    def test_requires_a_model(self):
        with pytest.raises(ValueError):
            AITranslationClient(MagicMock(), RateLimitedQueue(), OverrideTable(tables={}), model_names=[])
