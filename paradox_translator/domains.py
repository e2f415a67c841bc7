"""Supported content families (games) and the per-game settings keyed by them."""
import hashlib
from dataclasses import dataclass
from enum import Enum
from typing import Union


class Domain(Enum):
    """A supported game. Selects override table, prompt, validation rules and cache namespace."""
    CK3 = "ck3"
    STELLARIS = "stellaris"
    VIC3 = "vic3"

    @classmethod
    def parse(cls, value: Union["Domain", str]) -> "Domain":
        """
        Convert a domain name (case-insensitive) into a Domain member.

        Raises:
            ValueError: If the name does not match any supported game.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            supported = ", ".join(member.value for member in cls)
            raise ValueError(f"Unsupported game type: '{value}' (supported: {supported})") from None

    @property
    def localization_folder(self) -> str:
        return _LOCALIZATION_FOLDERS[self]

    @property
    def steam_app_id(self) -> int:
        return _STEAM_APP_IDS[self]


_LOCALIZATION_FOLDERS = {
    Domain.CK3: "localization",
    Domain.STELLARIS: "localisation",
    Domain.VIC3: "localization",
}

_STEAM_APP_IDS = {
    Domain.CK3: 1158310,
    Domain.STELLARIS: 281990,
    Domain.VIC3: 529340,
}


def normalize_text(text: str) -> str:
    """Trim surrounding whitespace. This is what pure-placeholder strings are returned as."""
    return text.strip()


def normalize_key(text: str) -> str:
    """Lookup key for the override table and the cache (trimmed and lowercased)."""
    return text.strip().lower()


def hash_text(text: str) -> str:
    """SHA-1 hex digest of a source string, stored next to translations for change detection."""
    return hashlib.sha1(text.encode("utf-8")).hexdigest()


@dataclass(frozen=True)
class TranslationUnit:
    """One string waiting to be translated."""
    domain: Domain
    source_text: str
    source_hash: str


def translation_unit(source_text: str, domain: Union[Domain, str]) -> TranslationUnit:
    return TranslationUnit(
        domain=Domain.parse(domain),
        source_text=source_text,
        source_hash=hash_text(source_text),
    )
