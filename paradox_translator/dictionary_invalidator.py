"""
Removes translations that predate a dictionary change.

When an override entry is added or corrected, translations of longer strings that contain
the term may still use the old wording. Sweeping them from the cache and clearing the
stored hash of the file entries makes the next run translate them again with the new
translation memory in the prompt. Entries that fail validation can be cleared the same way.
"""
import argparse
import logging
import sys
from typing import Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

from paradox_translator.app_config import load_app_config
from paradox_translator.dictionary import OverrideTable, build_override_table
from paradox_translator.domains import Domain, normalize_key
from paradox_translator.translation_cache import TranslationCache
from paradox_translator.translation_validator import ValidationRules, validate_translation_entries

logger = logging.getLogger(__name__)

Entries = Mapping[str, Tuple[str, Optional[str]]]


def _dictionary_terms(overrides: OverrideTable, domain: Domain, keys: Sequence[str]) -> List[str]:
    terms = [normalize_key(key) for key in keys] if keys else list(overrides.entries(domain))
    return [term for term in terms if term]


def invalidate_dictionary_translations(
        cache: TranslationCache,
        overrides: OverrideTable,
        domain: Domain,
        keys: Sequence[str] = ()
) -> int:
    """
    Invalidate every cached translation of a game whose source text contains a dictionary term.

    Args:
        cache: The translation cache to sweep.
        overrides: The override table whose terms are looked for.
        domain: The game to sweep.
        keys: Only look for these terms. All of the game's dictionary terms when empty.

    Returns:
        int: The number of invalidated cache entries.
    """
    terms = _dictionary_terms(overrides, domain, keys)
    if not terms:
        logger.info("No dictionary terms to look for in %s; nothing invalidated.", domain.value)
        return 0

    invalidated = 0
    for entry in list(cache.entries(domain)):
        source = normalize_key(entry.source_text)
        found = [term for term in terms if term in source]
        if not found:
            continue
        if cache.invalidate(entry.source_text, domain):
            invalidated += 1
            logger.info("Invalidated '%s' (contains: %s)", entry.source_text, ", ".join(found))

    logger.info("Dictionary sweep of %s invalidated %d cached translations.", domain.value, invalidated)
    return invalidated


def _clear_hashes(target_entries: Entries, keys: Iterable[str]) -> Dict[str, Tuple[str, Optional[str]]]:
    cleared = set(keys)
    return {
        key: (text, None if key in cleared else stored_hash)
        for key, (text, stored_hash) in target_entries.items()
    }


def invalidate_dictionary_entries(
        source_entries: Entries,
        target_entries: Entries,
        overrides: OverrideTable,
        domain: Domain,
        keys: Sequence[str] = ()
) -> Tuple[Dict[str, Tuple[str, Optional[str]]], List[str]]:
    """
    Clear the stored hash of every translated entry whose source text contains a dictionary term.

    `translate_entries` only skips entries whose hash matches the source, so the cleared
    entries are translated again on the next run. Sweep the cache as well, or the old
    cached translation is what comes back.

    Returns:
        The updated target entries, in their original order, and the invalidated keys.
    """
    terms = _dictionary_terms(overrides, domain, keys)
    invalidated: List[str] = []
    for key, (source_text, _source_hash) in source_entries.items():
        if key not in target_entries:
            continue
        source = normalize_key(source_text)
        found = [term for term in terms if term in source]
        if found:
            invalidated.append(key)
            logger.info("Invalidated key '%s' (contains: %s)", key, ", ".join(found))
    return _clear_hashes(target_entries, invalidated), invalidated


def invalidate_incorrect_entries(
        source_entries: Entries,
        target_entries: Entries,
        domain: Domain,
        rules: Optional[ValidationRules] = None
) -> Tuple[Dict[str, Tuple[str, Optional[str]]], List[str]]:
    """Clear the stored hash of every translated entry that no longer passes validation."""
    invalid_entries = validate_translation_entries(source_entries, target_entries, domain, rules)
    for entry in invalid_entries:
        logger.info("Invalidated key '%s': %s", entry.key, entry.reason)
    invalidated = [entry.key for entry in invalid_entries]
    return _clear_hashes(target_entries, invalidated), invalidated


def _parse_args(argv: Optional[Sequence[str]]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="paradox-invalidate-dict",
        description="Invalidate cached translations that contain dictionary terms, so they are translated again."
    )
    parser.add_argument("domain", choices=[domain.value for domain in Domain], help="Game whose cache is swept.")
    parser.add_argument(
        "keys",
        nargs="*",
        help="Dictionary terms to look for. Every term of the game's dictionary when omitted."
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _parse_args(argv)
    domain = Domain.parse(args.domain)

    app_config = load_app_config(require_client=False)

    overrides = build_override_table(app_config.dictionary_overrides)

    with TranslationCache(app_config.cache_db_path) as cache:
        invalidated = invalidate_dictionary_translations(cache, overrides, domain, args.keys)

    print(f"Invalidated {invalidated} cached {domain.value} translations.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
