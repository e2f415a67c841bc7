"""
Entry point of the translation pipeline.

`TranslationDispatcher.translate` decides, for one source string, whether it needs the
AI at all (empty strings, lone placeholders, dictionary entries and cached translations
do not), and otherwise keeps asking the AI until a structurally valid translation comes
back or the retry ceiling is reached.
"""
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Mapping, Optional, Tuple

from tqdm.asyncio import tqdm

from paradox_translator.ai_client import AITranslationClient
from paradox_translator.app_config import AppConfig
from paradox_translator.dictionary import OverrideTable, build_override_table
from paradox_translator.domains import (
    Domain,
    TranslationUnit,
    hash_text,
    normalize_key,
    normalize_text,
    translation_unit
)
from paradox_translator.errors import ServiceUnavailable, TranslationExhausted
from paradox_translator.request_queue import RateLimitedQueue
from paradox_translator.translation_cache import TranslationCache
from paradox_translator.translation_validator import (
    ValidationRules,
    is_pure_placeholder,
    rules_for_domain,
    validate_translation
)

logger = logging.getLogger(__name__)

MAX_TRANSLATION_RETRIES = 5

# Fragments that show the model talking about the request instead of translating it.
REFUSAL_SIGNATURES = (
    'no text provided',
    'please provide',
    'translate this sentence',
    "i'm sorry",
    'i am sorry',
    'i cannot',
    "i can't",
    'as an ai',
    '번역할 텍스트',
    '텍스트를 제공',
)

Entries = Mapping[str, Tuple[str, Optional[str]]]


def is_refusal(text: str) -> bool:
    lowered = text.lower()
    return any(signature in lowered for signature in REFUSAL_SIGNATURES)


class TranslationDispatcher:
    """
    Resolves source strings to translations: override table, then cache, then the AI.

    Safe to call concurrently; the client's queue is the only admission control.
    """

    def __init__(
            self,
            client: AITranslationClient,
            cache: TranslationCache,
            overrides: OverrideTable,
            max_retries: int = MAX_TRANSLATION_RETRIES,
            validation_rules: Optional[Dict[Domain, ValidationRules]] = None
    ):
        self.client = client
        self.cache = cache
        self.overrides = overrides
        self.max_retries = max_retries
        self.validation_rules = validation_rules or {}

    def rules(self, domain: Domain) -> ValidationRules:
        return self.validation_rules.get(domain) or rules_for_domain(domain)

    async def translate(self, source_text: str, domain: Domain) -> str:
        """
        Translate one string.

        Args:
            source_text: The source string, possibly empty or a lone placeholder.
            domain: The game the string belongs to.

        Returns:
            str: The accepted translation.

        Raises:
            TranslationExhausted: If no valid translation was produced within the retry ceiling.
        """
        if not source_text or not source_text.strip():
            return ""

        text = normalize_text(source_text)
        if is_pure_placeholder(text):
            return text

        if self.overrides.has(text, domain):
            logger.debug("Dictionary hit for %s text '%s'", domain.value, text)
            return self.overrides.get(text, domain)

        key = normalize_key(text)
        rules = self.rules(domain)
        cached = self.cache.get(key, domain)
        if cached is not None:
            result = validate_translation(text, cached, domain, rules)
            if result.accepted:
                logger.debug("Cache hit for %s text '%s'", domain.value, text)
                return cached
            logger.warning("Evicting cached translation of '%s' (%s)", text, result.describe())
            self.cache.invalidate(key, domain)

        last_reason: Optional[str] = None
        last_error: Optional[Exception] = None
        attempts = 0
        while attempts <= self.max_retries:
            attempts += 1
            try:
                candidate = await self.client.translate(text, domain)
            except ServiceUnavailable as exc:
                last_reason, last_error = str(exc), exc
                logger.warning("Translation service failed for '%s' (attempt %d/%d): %s",
                               text, attempts, self.max_retries + 1, exc)
                continue

            if is_refusal(candidate):
                last_reason = f"model refused or commented: {candidate!r}"
                logger.warning("Discarding non-translation for '%s' (attempt %d/%d): %s",
                               text, attempts, self.max_retries + 1, candidate)
                continue

            result = validate_translation(text, candidate, domain, rules)
            if not result.accepted:
                last_reason = result.describe()
                logger.warning("Rejected translation of '%s' (attempt %d/%d): %s | %r",
                               text, attempts, self.max_retries + 1, last_reason, candidate)
                continue

            self.cache.set(key, candidate, domain, source_hash=hash_text(text))
            return candidate

        logger.error("Retry ceiling reached for %s text '%s': %s", domain.value, text, last_reason)
        raise TranslationExhausted(text, domain, attempts, last_reason) from last_error


@dataclass
class BatchResult:
    """Outcome of translating one file's entries, in source key order."""
    entries: Dict[str, Tuple[str, Optional[str]]] = field(default_factory=dict)
    translated_keys: List[str] = field(default_factory=list)
    failures: Dict[str, str] = field(default_factory=dict)


async def translate_entries(
        dispatcher: TranslationDispatcher,
        source_entries: Entries,
        target_entries: Entries,
        domain: Domain,
        only_hash: bool = False,
        description: Optional[str] = None
) -> BatchResult:
    """
    Bring a file's translations up to date with its source entries.

    An entry is reused when its stored hash matches the current source hash. Everything
    else is translated concurrently. A string that cannot be translated is recorded in
    `failures` and keeps its previous value (or the source text) without a hash, so the
    next run picks it up again; the other entries are unaffected.

    Args:
        dispatcher: The dispatcher to translate with.
        source_entries: Parsed source file, `key -> (text, hash)`.
        target_entries: Parsed existing translation file, `key -> (text, hash)`.
        domain: The game the file belongs to.
        only_hash: Only refresh the stored hashes; translate nothing.
        description: Progress bar label.

    Returns:
        BatchResult: The new `key -> (text, hash)` mapping and a per-key failure report.
    """
    result = BatchResult()
    pending: Dict[str, TranslationUnit] = {}

    for key, (source_text, _unused) in source_entries.items():
        unit = translation_unit(source_text, domain)
        target_text, target_hash = target_entries.get(key, (None, None))

        if only_hash:
            result.entries[key] = (target_text if target_text is not None else source_text, unit.source_hash)
            continue
        if target_text and target_hash == unit.source_hash:
            result.entries[key] = (target_text, target_hash)
            continue
        # Placeholder entry keeps the key order; filled in below.
        result.entries[key] = (source_text, None)
        pending[key] = unit

    if not pending:
        logger.info("Nothing to translate%s.", f" in {description}" if description else "")
        return result

    async def translate_one(key: str, unit: TranslationUnit):
        try:
            return key, await dispatcher.translate(unit.source_text, unit.domain), None
        except TranslationExhausted as exc:
            return key, None, exc
        except Exception as exc:
            logger.exception("Unexpected error while translating key '%s'", key)
            return key, None, exc

    tasks = [translate_one(key, unit) for key, unit in pending.items()]
    for coro in tqdm.as_completed(tasks, desc=description or f"Translating {domain.value}", unit="string"):
        key, translated, error = await coro
        if error is not None:
            logger.error("Could not translate key '%s': %s", key, error)
            result.failures[key] = str(error)
            previous = target_entries.get(key, (None, None))[0]
            result.entries[key] = (previous or pending[key].source_text, None)
            continue
        result.entries[key] = (translated, pending[key].source_hash)
        result.translated_keys.append(key)

    logger.info("Translated %d of %d pending strings (%d failed).",
                len(result.translated_keys), len(pending), len(result.failures))
    return result


def create_dispatcher(app_config: AppConfig) -> TranslationDispatcher:
    """Wire queue, AI client, cache and override table from the application configuration."""
    if app_config.openai_client is None:
        raise ValueError("An OpenAI client is required to translate; load the config with require_client=True")

    overrides = build_override_table(app_config.dictionary_overrides)

    queue = RateLimitedQueue(app_config.min_request_interval, app_config.retry_delays)
    client = AITranslationClient(
        app_config.openai_client,
        queue,
        overrides,
        model_names=[app_config.model_name, app_config.fallback_model_name],
        generation_configs=app_config.generation_configs,
        request_timeout=app_config.request_timeout,
    )
    cache = TranslationCache(app_config.cache_db_path)
    validation_rules = {
        domain: rules_for_domain(domain).with_gender_accessors(app_config.gender_accessors)
        for domain in Domain
    }
    return TranslationDispatcher(
        client,
        cache,
        overrides,
        max_retries=app_config.max_translation_retries,
        validation_rules=validation_rules,
    )
