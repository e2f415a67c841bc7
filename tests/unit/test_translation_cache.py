import sqlite3

from paradox_translator.domains import Domain
from paradox_translator.translation_cache import CacheEntry, TranslationCache


class TestTranslationCache:
    def test_set_and_get(self, cache):
        assert cache.get("The King", Domain.CK3) is None
        cache.set("the king", "왕", Domain.CK3)
        assert cache.has("the king", Domain.CK3)
        assert cache.get("the king", Domain.CK3) == "왕"

    def test_keys_are_normalized(self, cache):
        cache.set("  The King ", "왕", Domain.CK3)
        assert cache.get("the king", Domain.CK3) == "왕"

    def test_domains_are_disjoint(self, cache):
        cache.set("empire", "제국", Domain.STELLARIS)
        assert cache.get("empire", Domain.STELLARIS) == "제국"
        assert cache.get("empire", Domain.CK3) is None
        assert cache.get("empire", Domain.VIC3) is None

    def test_storage_keys(self):
        assert TranslationCache.storage_key("The King", Domain.CK3) == "the king"
        assert TranslationCache.storage_key("The King", Domain.STELLARIS) == "stellaris:the king"
        assert TranslationCache.storage_key("The King", Domain.VIC3) == "vic3:the king"

    def test_last_writer_wins(self, cache):
        cache.set("king", "왕", Domain.CK3)
        cache.set("king", "국왕", Domain.CK3)
        assert cache.get("king", Domain.CK3) == "국왕"
        assert len(cache) == 1

    def test_invalidate(self, cache):
        cache.set("king", "왕", Domain.CK3)
        assert cache.invalidate("king", Domain.CK3) is True
        assert cache.get("king", Domain.CK3) is None
        assert cache.invalidate("king", Domain.CK3) is False

    def test_entries_lists_one_domain(self, cache):
        cache.set("king", "왕", Domain.CK3, source_hash="abc")
        cache.set("queen", "여왕", Domain.CK3)
        cache.set("empire", "제국", Domain.STELLARIS)

        entries = list(cache.entries(Domain.CK3))

        assert entries == [
            CacheEntry(Domain.CK3, "king", "왕", "abc"),
            CacheEntry(Domain.CK3, "queen", "여왕", None),
        ]

    def test_persists_across_instances(self, cache_path):
        with TranslationCache(cache_path) as first:
            first.set("king", "왕", Domain.CK3)
            first.set("empire", "제국", Domain.STELLARIS)

        with TranslationCache(cache_path) as second:
            assert second.get("king", Domain.CK3) == "왕"
            assert second.get("empire", Domain.STELLARIS) == "제국"

    def test_rows_use_prefixed_keys_on_disk(self, cache_path):
        with TranslationCache(cache_path) as translation_cache:
            translation_cache.set("king", "왕", Domain.CK3)
            translation_cache.set("empire", "제국", Domain.STELLARIS)

        connection = sqlite3.connect(cache_path)
        try:
            keys = sorted(row[0] for row in connection.execute("SELECT cache_key FROM translation_cache"))
        finally:
            connection.close()
        assert keys == ["king", "stellaris:empire"]

    def test_in_memory_database(self):
        with TranslationCache(":memory:") as translation_cache:
            translation_cache.set("king", "왕", Domain.CK3)
            assert translation_cache.get("king", Domain.CK3) == "왕"
