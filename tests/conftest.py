import logging
from typing import List, Union

import pytest

from paradox_translator.dictionary import OverrideTable
from paradox_translator.domains import Domain
from paradox_translator.logging_config import PACKAGE_LOGGER_NAME
from paradox_translator.translation_cache import TranslationCache


class StubTranslationClient:
    """
    Stands in for AITranslationClient.

    Answers from a script of responses (the last one repeats); an Exception in the
    script is raised instead of returned. Every call is recorded.
    """

    def __init__(self, *responses: Union[str, Exception]):
        self.responses: List[Union[str, Exception]] = list(responses) or ["번역"]
        self.calls: List[tuple] = []

    async def translate(self, text: str, domain: Domain) -> str:
        self.calls.append((text, domain))
        index = min(len(self.calls), len(self.responses)) - 1
        response = self.responses[index]
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture(autouse=True)
def reset_package_logger():
    """setup_logger stops propagation; restore it so caplog sees package records."""
    yield
    logger = logging.getLogger(PACKAGE_LOGGER_NAME)
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def cache_path(tmp_path):
    return str(tmp_path / "cache" / "translation_cache.db")


@pytest.fixture
def cache(cache_path):
    translation_cache = TranslationCache(cache_path)
    yield translation_cache
    translation_cache.close()


@pytest.fixture
def empty_overrides():
    return OverrideTable(tables={})


@pytest.fixture
def make_client():
    return StubTranslationClient
