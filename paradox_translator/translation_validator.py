"""
Structural checks for AI translations of Paradox localization strings.

A candidate translation is tokenized once and run through a pipeline of named checks,
ordered by severity. The first failing check decides the reported reason. None of the
checks judge linguistic quality; they only guarantee that the game can still parse the
string and that every variable, icon and formatting marker survived.
"""
import re
from collections import Counter
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, List, Mapping, NamedTuple, Optional, Pattern, Sequence, Tuple

from paradox_translator.domains import Domain


class ErrorKind(str, Enum):
    MALFORMED_PLACEHOLDER = "MalformedPlaceholder"
    DISALLOWED_PHRASE = "DisallowedPhrase"
    STYLE_MARKER_TRANSLATED = "StyleMarkerTranslated"
    TECHNICAL_IDENTIFIER_LOST = "TechnicalIdentifierLost"
    GAME_VARIABLE_MISMATCH = "GameVariableMismatch"
    GAME_VARIABLE_MISTRANSLATED = "GameVariableMistranslated"


@dataclass(frozen=True)
class ValidationResult:
    accepted: bool
    reason: Optional[ErrorKind] = None
    detail: str = ""

    @classmethod
    def ok(cls) -> "ValidationResult":
        return cls(True)

    @classmethod
    def reject(cls, reason: ErrorKind, detail: str = "") -> "ValidationResult":
        return cls(False, reason, detail)

    def describe(self) -> str:
        if self.accepted:
            return "accepted"
        return f"{self.reason.value}: {self.detail}" if self.detail else self.reason.value


HANGUL_PATTERN = re.compile(r'[\u1100-\u11ff\u3130-\u318f\uac00-\ud7a3]')

DEFAULT_DISALLOWED_PHRASES: Tuple[str, ...] = (
    '네, 알겠습니다',
    '네 알겠습니다',
    '요청하신',
    '번역입니다',
    'yes, i understand',
    'here is the translation',
    "here's the translation",
)

# Accessors whose gendered forms the target language may collapse into a single neutral word,
# so the translation is allowed to drop them.
DEFAULT_GENDER_ACCESSORS: Tuple[str, ...] = (
    'GetSheHe',
    'GetHerHis',
    'GetHerHim',
    'GetHersHis',
    'GetHerselfHimself',
    'GetWomanMan',
    'GetGirlBoy',
    'GetLadyLord',
    'GetDaughterSon',
    'GetMotherFather',
    'GetSisterBrother',
    'GetWifeHusband',
    'GetQueenKing',
)


@dataclass(frozen=True)
class ValidationRules:
    """The configurable parts of validation for one game."""
    target_script: Pattern[str] = HANGUL_PATTERN
    disallowed_phrases: Tuple[str, ...] = DEFAULT_DISALLOWED_PHRASES
    gender_accessors: Tuple[str, ...] = DEFAULT_GENDER_ACCESSORS

    def with_gender_accessors(self, accessors: Sequence[str]) -> "ValidationRules":
        return ValidationRules(self.target_script, self.disallowed_phrases, tuple(accessors))


_DEFAULT_RULES: Dict[Domain, ValidationRules] = {
    Domain.CK3: ValidationRules(),
    Domain.STELLARIS: ValidationRules(),
    Domain.VIC3: ValidationRules(),
}


def rules_for_domain(domain: Domain) -> ValidationRules:
    return _DEFAULT_RULES[domain]


# --- Tokenizer ---------------------------------------------------------------

TEXT = "text"
DOLLAR = "dollar"        # $variable$
POUND = "pound"          # £icon£
ICON = "icon"            # @icon!
BRACKET = "bracket"      # [Expression]
STYLE_OPEN = "style_open"    # #identifier
STYLE_CLOSE = "style_close"  # # or #!
MALFORMED = "malformed"

PLACEHOLDER_KINDS = frozenset({DOLLAR, POUND, ICON, BRACKET})


class Token(NamedTuple):
    kind: str
    value: str
    raw: str


_DELIMITED_CONTENT = re.compile(r'[\w.|:=+\-%]+')
_ICON = re.compile(r'@[\w\-|]+!')
# Outside a style any word may open one, so a translated keyword still tokenizes as an opener.
_STYLE_OPEN = re.compile(r'#([^\W\d][\w;]*)(?=\s)')
# Inside a style only an ASCII keyword nests; `#께서 ` or `#, ` closes the style.
_NESTED_STYLE_OPEN = re.compile(r'#([A-Za-z_][A-Za-z0-9_;]*)(?=\s)')
_QUOTES = "'\""


def _find_bracket_end(text: str, start: int) -> int:
    depth = 0
    quote = None
    for index in range(start, len(text)):
        char = text[index]
        if quote:
            if char == quote:
                quote = None
        elif char in _QUOTES and depth:
            quote = char
        elif char == '[':
            depth += 1
        elif char == ']':
            depth -= 1
            if depth == 0:
                return index
    return -1


def _scan_delimited(text: str, start: int, delimiter: str) -> Tuple[Token, int]:
    end = text.find(delimiter, start + 1)
    if end == -1:
        return Token(MALFORMED, f"unterminated '{delimiter}'", text[start:]), len(text)
    content = text[start + 1:end]
    raw = text[start:end + 1]
    if any(char in content for char in '[]$£@'):
        return Token(MALFORMED, f"mixed delimiters in {raw}", raw), end + 1
    if not _DELIMITED_CONTENT.fullmatch(content):
        return Token(MALFORMED, f"unterminated '{delimiter}' near {raw}", raw), end + 1
    kind = DOLLAR if delimiter == '$' else POUND
    return Token(kind, content, raw), end + 1


def tokenize(text: str) -> List[Token]:
    """Split a localization string into plain text and placeholder/formatting tokens."""
    tokens: List[Token] = []
    buffer: List[str] = []

    def flush() -> None:
        if buffer:
            chunk = "".join(buffer)
            tokens.append(Token(TEXT, chunk, chunk))
            buffer.clear()

    index = 0
    length = len(text)
    style_depth = 0
    while index < length:
        char = text[index]
        if char == '[':
            flush()
            end = _find_bracket_end(text, index)
            if end == -1:
                tokens.append(Token(MALFORMED, "unterminated '['", text[index:]))
                index = length
                continue
            raw = text[index:end + 1]
            content = raw[1:-1]
            if '$' in content:
                tokens.append(Token(MALFORMED, f"mixed delimiters in {raw}", raw))
            else:
                tokens.append(Token(BRACKET, content, raw))
            index = end + 1
        elif char == ']':
            flush()
            tokens.append(Token(MALFORMED, "stray ']'", char))
            index += 1
        elif char in '$£':
            flush()
            token, index = _scan_delimited(text, index, char)
            tokens.append(token)
        elif char == '@' and _ICON.match(text, index):
            flush()
            icon = _ICON.match(text, index)
            tokens.append(Token(ICON, icon.group(0)[1:-1], icon.group(0)))
            index = icon.end()
        elif char == '#':
            flush()
            if text.startswith('#!', index):
                tokens.append(Token(STYLE_CLOSE, '', '#!'))
                style_depth = max(style_depth - 1, 0)
                index += 2
                continue
            opener = _NESTED_STYLE_OPEN if style_depth else _STYLE_OPEN
            match = opener.match(text, index)
            if match:
                tokens.append(Token(STYLE_OPEN, match.group(1), match.group(0)))
                style_depth += 1
                index = match.end()
            else:
                tokens.append(Token(STYLE_CLOSE, '', '#'))
                style_depth = max(style_depth - 1, 0)
                index += 1
        else:
            buffer.append(char)
            index += 1
    flush()
    return tokens


def is_pure_placeholder(text: str) -> bool:
    """True if the whole trimmed string is exactly one placeholder token, e.g. `[GetName]`."""
    tokens = tokenize(text.strip())
    return len(tokens) == 1 and tokens[0].kind in PLACEHOLDER_KINDS


# --- Checks ------------------------------------------------------------------

class _Parsed(NamedTuple):
    text: str
    tokens: List[Token]


Check = Callable[[_Parsed, _Parsed, ValidationRules], Optional[ValidationResult]]

TECHNICAL_IDENTIFIER_PATTERN = re.compile(r'(?<![@$£])\b[a-z][a-z]*(?:_[a-z]+)+\b(?!!)')
GAME_VARIABLE_PATTERN = re.compile(r'\|[A-Z]|Get[A-Z]|[.(]|_i(?:$|\|)')
_STRING_LITERAL = re.compile(r"'[^']*'|\"[^\"]*\"")


def check_malformed_placeholders(source: _Parsed, candidate: _Parsed,
                                 rules: ValidationRules) -> Optional[ValidationResult]:
    broken = [token.value for token in candidate.tokens if token.kind == MALFORMED]
    if broken:
        return ValidationResult.reject(ErrorKind.MALFORMED_PLACEHOLDER, "; ".join(broken))
    return None


def check_disallowed_phrases(source: _Parsed, candidate: _Parsed,
                             rules: ValidationRules) -> Optional[ValidationResult]:
    lowered = candidate.text.lower()
    found = [phrase for phrase in rules.disallowed_phrases if phrase.lower() in lowered]
    if found:
        return ValidationResult.reject(ErrorKind.DISALLOWED_PHRASE, ", ".join(found))
    return None


def _style_identifiers(parsed: _Parsed) -> Counter:
    return Counter(token.value for token in parsed.tokens if token.kind == STYLE_OPEN)


def check_style_markers(source: _Parsed, candidate: _Parsed,
                        rules: ValidationRules) -> Optional[ValidationResult]:
    candidate_ids = _style_identifiers(candidate)
    translated = [identifier for identifier in candidate_ids if rules.target_script.search(identifier)]
    if translated:
        return ValidationResult.reject(
            ErrorKind.STYLE_MARKER_TRANSLATED,
            "translated style keyword: " + ", ".join(f"#{identifier}" for identifier in translated),
        )
    source_ids = _style_identifiers(source)
    missing = [identifier for identifier, count in source_ids.items() if candidate_ids[identifier] < count]
    if missing:
        return ValidationResult.reject(
            ErrorKind.STYLE_MARKER_TRANSLATED,
            "missing style marker: " + ", ".join(f"#{identifier}" for identifier in missing),
        )
    return None


def _identifiers_outside_placeholders(tokens: Sequence[Token]) -> List[str]:
    """Lowercase snake_case identifiers found in the plain-text parts of a string."""
    plain = " ".join(token.value for token in tokens if token.kind == TEXT)
    return TECHNICAL_IDENTIFIER_PATTERN.findall(plain)


def check_technical_identifiers(source: _Parsed, candidate: _Parsed,
                                rules: ValidationRules) -> Optional[ValidationResult]:
    identifiers = _identifiers_outside_placeholders(source.tokens)
    missing = sorted({identifier for identifier in identifiers if identifier not in candidate.text})
    if missing:
        return ValidationResult.reject(ErrorKind.TECHNICAL_IDENTIFIER_LOST, ", ".join(missing))
    return None


def is_game_variable(expression: str) -> bool:
    """Bracket expressions with an accessor, a call, a `|X` format suffix or an `_i` icon."""
    return bool(GAME_VARIABLE_PATTERN.search(expression))


def structural_form(expression: str) -> str:
    """Reduce an expression to its call/property structure; string literals may be translated."""
    without_literals = _STRING_LITERAL.sub("'_'", expression)
    return re.sub(r'\s+', '', without_literals)


def _game_variables(parsed: _Parsed) -> List[str]:
    return [
        structural_form(token.value)
        for token in parsed.tokens
        if token.kind == BRACKET and is_game_variable(token.value)
    ]


def _uses_gender_accessor(form: str, accessors: Sequence[str]) -> bool:
    return any(re.search(rf'\b{re.escape(name)}\b', form) for name in accessors)


def check_game_variables(source: _Parsed, candidate: _Parsed,
                         rules: ValidationRules) -> Optional[ValidationResult]:
    source_forms = Counter(_game_variables(source))
    candidate_forms = Counter(_game_variables(candidate))

    mistranslated = [form for form in candidate_forms if rules.target_script.search(form)]
    if mistranslated:
        return ValidationResult.reject(
            ErrorKind.GAME_VARIABLE_MISTRANSLATED,
            ", ".join(f"[{form}]" for form in mistranslated),
        )

    mismatched = []
    for form in set(source_forms) | set(candidate_forms):
        expected, actual = source_forms[form], candidate_forms[form]
        if _uses_gender_accessor(form, rules.gender_accessors):
            if actual > expected:
                mismatched.append(form)
        elif actual != expected:
            mismatched.append(form)
    if mismatched:
        return ValidationResult.reject(
            ErrorKind.GAME_VARIABLE_MISMATCH,
            f"source has {sum(source_forms.values())}, translation has {sum(candidate_forms.values())}: "
            + ", ".join(f"[{form}]" for form in sorted(mismatched)),
        )
    return None


CHECKS: Tuple[Check, ...] = (
    check_malformed_placeholders,
    check_disallowed_phrases,
    check_style_markers,
    check_technical_identifiers,
    check_game_variables,
)


def validate_translation(
        source_text: str,
        translated_text: str,
        domain: Domain = Domain.CK3,
        rules: Optional[ValidationRules] = None
) -> ValidationResult:
    """
    Decide whether a translation is structurally safe to store.

    Args:
        source_text: The original (English) string.
        translated_text: The candidate translation.
        domain: The game the string belongs to; selects the default rules.
        rules: Explicit rules, overriding the game's defaults.

    Returns:
        ValidationResult: accepted, or rejected with the reason of the first failing check.
    """
    rules = rules or rules_for_domain(domain)
    source_stripped = source_text.strip()
    candidate_stripped = translated_text.strip()
    source = _Parsed(source_stripped, tokenize(source_stripped))
    candidate = _Parsed(candidate_stripped, tokenize(candidate_stripped))
    for check in CHECKS:
        result = check(source, candidate, rules)
        if result is not None:
            return result
    return ValidationResult.ok()


@dataclass(frozen=True)
class InvalidEntry:
    key: str
    source_value: str
    translated_value: str
    reason: str


def validate_translation_entries(
        source_entries: Mapping[str, Tuple[str, Optional[str]]],
        target_entries: Mapping[str, Tuple[str, Optional[str]]],
        domain: Domain = Domain.CK3,
        rules: Optional[ValidationRules] = None
) -> List[InvalidEntry]:
    """
    Audit existing translations of a file and list the entries that fail validation.

    Keys without a translation, with an empty translation, or whose translation is still
    identical to the source are skipped.
    """
    invalid_entries: List[InvalidEntry] = []
    for key, (source_value, _source_hash) in source_entries.items():
        if key not in target_entries:
            continue
        translated_value = target_entries[key][0]
        if not translated_value or translated_value == source_value:
            continue
        result = validate_translation(source_value, translated_value, domain, rules)
        if not result.accepted:
            invalid_entries.append(InvalidEntry(key, source_value, translated_value, result.describe()))
    return invalid_entries
