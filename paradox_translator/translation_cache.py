"""SQLite-backed store of accepted translations, keyed by game and normalized source text."""
import logging
import os
import sqlite3
import threading
from dataclasses import dataclass
from typing import Iterator, List, Optional

from paradox_translator.domains import Domain, normalize_key

logger = logging.getLogger(__name__)

# Entries written before games other than CK3 were supported carry no prefix.
LEGACY_UNPREFIXED_DOMAIN = Domain.CK3


@dataclass(frozen=True)
class CacheEntry:
    domain: Domain
    source_text: str
    translation: str
    source_hash: Optional[str] = None


class TranslationCache:
    """
    Durable translation memory.

    Entries never expire on their own. They are overwritten when a new translation is
    accepted and removed only by `invalidate` (failed re-validation or a dictionary sweep).
    All methods are safe to call from concurrent dispatches; the last writer wins.
    """

    def __init__(self, db_path: str):
        self.db_path = db_path
        if db_path != ":memory:":
            db_dir = os.path.dirname(os.path.abspath(db_path))
            os.makedirs(db_dir, exist_ok=True)
        self._lock = threading.Lock()
        self._conn = sqlite3.connect(db_path, check_same_thread=False)
        self._conn.execute("PRAGMA busy_timeout = 30000")
        self._create_tables()

    def _create_tables(self) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """
                CREATE TABLE IF NOT EXISTS translation_cache (
                    cache_key TEXT PRIMARY KEY,
                    domain TEXT NOT NULL,
                    source_text TEXT NOT NULL,
                    translation TEXT NOT NULL,
                    source_hash TEXT,
                    updated_at DATETIME DEFAULT CURRENT_TIMESTAMP
                )
                """
            )
            self._conn.execute(
                "CREATE INDEX IF NOT EXISTS idx_translation_cache_domain ON translation_cache (domain)"
            )

    @staticmethod
    def storage_key(key: str, domain: Domain) -> str:
        normalized = normalize_key(key)
        if domain is LEGACY_UNPREFIXED_DOMAIN:
            return normalized
        return f"{domain.value}:{normalized}"

    def has(self, key: str, domain: Domain) -> bool:
        with self._lock:
            row = self._conn.execute(
                "SELECT 1 FROM translation_cache WHERE cache_key = ?",
                (self.storage_key(key, domain),),
            ).fetchone()
        return row is not None

    def get(self, key: str, domain: Domain) -> Optional[str]:
        with self._lock:
            row = self._conn.execute(
                "SELECT translation FROM translation_cache WHERE cache_key = ?",
                (self.storage_key(key, domain),),
            ).fetchone()
        return row[0] if row else None

    def set(self, key: str, value: str, domain: Domain, source_hash: Optional[str] = None) -> None:
        with self._lock, self._conn:
            self._conn.execute(
                """
                INSERT OR REPLACE INTO translation_cache (cache_key, domain, source_text, translation, source_hash)
                VALUES (?, ?, ?, ?, ?)
                """,
                (self.storage_key(key, domain), domain.value, normalize_key(key), value, source_hash),
            )
        logger.debug("Cached %s translation for '%s'", domain.value, normalize_key(key))

    def invalidate(self, key: str, domain: Domain) -> bool:
        """Remove one entry. Returns True if something was removed."""
        with self._lock, self._conn:
            cursor = self._conn.execute(
                "DELETE FROM translation_cache WHERE cache_key = ?",
                (self.storage_key(key, domain),),
            )
        return cursor.rowcount > 0

    def entries(self, domain: Domain) -> Iterator[CacheEntry]:
        with self._lock:
            rows: List[tuple] = self._conn.execute(
                """
                SELECT source_text, translation, source_hash FROM translation_cache
                WHERE domain = ? ORDER BY source_text
                """,
                (domain.value,),
            ).fetchall()
        for source_text, translation, source_hash in rows:
            yield CacheEntry(domain, source_text, translation, source_hash)

    def __len__(self) -> int:
        with self._lock:
            return self._conn.execute("SELECT COUNT(*) FROM translation_cache").fetchone()[0]

    def close(self) -> None:
        with self._lock:
            self._conn.close()

    def __enter__(self) -> "TranslationCache":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
