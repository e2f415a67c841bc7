"""Curated per-game dictionaries that override the AI for short, context-poor strings."""
from typing import Dict, Mapping, Optional

from paradox_translator.domains import Domain, normalize_key

# noinspection SpellCheckingInspection
CK3_DICTIONARY: Dict[str, str] = {
    'af Möre': '아프 뫼레',
    'af Fasge': '아프 파스게',
    'anuket': '아누케트',
    'basic skill': '기본 능력',
    'blemmye': '블렘미',
    'blemmyes': '블렘미',
    'blemmyae': '블렘미',
    'blunder': '실수',
    'character': '인물',
    'casual': '무관심',
    'chios': '히오스',
    'duke': '공작',
    'elephantine': '엘레판티네',
    'excellent': '훌륭하군',
    'excellent!': '훌륭하군!',
    'ganger': '갱어',
    'hexi': '하서',
    'high king': '고왕',
    'historical context:': '역사적 배경:',
    'hoftag': '궁중의회',
    'horus': '호루스',
    'imhotep': '임호테프',
    'isis': '이시스',
    'italienzug': '이탈리엔추크',
    'i look forward to seeing the final result!': '최종 결과물이 기대되는 군!',
    'kalabsha': '칼라브샤',
    'karakoram': '카라코람',
    'khnum': '크눔',
    'king': '왕',
    'landless': '비지주',
    "let's get started!": '시작해보지!',
    'mandulis': '만둘리스',
    'mastic': '유향',
    'ok': '네',
    'osiris': '오시리스',
    'philae': '필레',
    'RICE': 'RICE',
    'satet': '사티스',
    'satis': '사티스',
    'satjit': '사티스',
    'senate': '원로원',
    'sinhala': '싱할라어',
    'stewardship': '관리력',
    'tutu': '투투',
    'very good': '아주 좋군',
    'very good!': '아주 좋군!',
    'VIET': 'VIET',
    'wakhan': '와한',
    'watchposts': '감시 초소',
    'wenmo': '올말',
    'zhebu': '절포',
    # placeholder string used by the RICE and VIET mods
    'xxxxx': 'xxxxx',
}

STELLARIS_DICTIONARY: Dict[str, str] = {
    'empire': '제국',
    'federation': '연방',
    'unity': '통합',
    'influence': '영향력',
    'science ship': '과학선',
    'research station': '연구소',
    'ok': '네',
    'pop': '팝',
    'living metal': '생체 금속',
    'zro': '즈로',
}

VIC3_DICTIONARY: Dict[str, str] = {
    'ok': '네',
}

BUILTIN_DICTIONARIES: Dict[Domain, Dict[str, str]] = {
    Domain.CK3: CK3_DICTIONARY,
    Domain.STELLARIS: STELLARIS_DICTIONARY,
    Domain.VIC3: VIC3_DICTIONARY,
}


class OverrideTable:
    """
    Case-insensitive mapping from an exact source string to an approved translation, per game.

    Overrides always win over the cache and the AI and are never re-validated.
    """

    def __init__(self, tables: Optional[Mapping[Domain, Mapping[str, str]]] = None):
        source = BUILTIN_DICTIONARIES if tables is None else tables
        self._tables: Dict[Domain, Dict[str, str]] = {domain: {} for domain in Domain}
        for domain, entries in source.items():
            self.update(domain, entries)

    def update(self, domain: Domain, entries: Mapping[str, str]) -> None:
        """Merge entries into a game's table; later entries replace earlier ones."""
        table = self._tables[Domain.parse(domain)]
        for key, value in entries.items():
            table[normalize_key(key)] = value

    def has(self, text: str, domain: Domain) -> bool:
        return normalize_key(text) in self._tables[domain]

    def get(self, text: str, domain: Domain) -> Optional[str]:
        return self._tables[domain].get(normalize_key(text))

    def entries(self, domain: Domain) -> Dict[str, str]:
        return dict(self._tables[domain])

    def translation_memory(self, domain: Domain) -> str:
        """Render a game's table as prompt lines: ` - "source" → "target"`."""
        return "\n".join(f' - "{key}" → "{value}"' for key, value in self._tables[domain].items())


def build_override_table(extra_entries: Optional[Mapping[str, Mapping[str, str]]] = None) -> OverrideTable:
    """Built-in tables plus configured entries, given as `{game name: {source: target}}`."""
    overrides = OverrideTable()
    for domain_name, entries in (extra_entries or {}).items():
        overrides.update(Domain.parse(domain_name), entries)
    return overrides
