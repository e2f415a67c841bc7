import unittest

from paradox_translator.domains import Domain
from paradox_translator.translation_validator import (
    BRACKET,
    DOLLAR,
    ICON,
    MALFORMED,
    STYLE_CLOSE,
    STYLE_OPEN,
    TEXT,
    ErrorKind,
    ValidationRules,
    is_game_variable,
    is_pure_placeholder,
    structural_form,
    tokenize,
    validate_translation,
    validate_translation_entries
)


class TestTokenizer(unittest.TestCase):
    def test_tokenize_mixed_string(self):
        tokens = tokenize("#bold Hail# $k_france$ [ROOT.GetName] @crown_icon!")
        kinds = [token.kind for token in tokens]
        self.assertEqual(kinds, [STYLE_OPEN, TEXT, STYLE_CLOSE, TEXT, DOLLAR, TEXT, BRACKET, TEXT, ICON])
        self.assertEqual(tokens[0].value, "bold")
        self.assertEqual(tokens[4].value, "k_france")
        self.assertEqual(tokens[6].value, "ROOT.GetName")
        self.assertEqual(tokens[8].value, "crown_icon")

    def test_particle_after_closing_marker_is_plain_text(self):
        tokens = tokenize("#bold 고왕#께서 연회를")
        self.assertEqual([token.kind for token in tokens], [STYLE_OPEN, TEXT, STYLE_CLOSE, TEXT])
        self.assertEqual(tokens[3].value, "께서 연회를")

    def test_punctuation_after_closing_marker_is_plain_text(self):
        tokens = tokenize("The #bold King#, and the queen")
        self.assertEqual([token.kind for token in tokens], [TEXT, STYLE_OPEN, TEXT, STYLE_CLOSE, TEXT])

    def test_nested_style_markers(self):
        tokens = tokenize("#high;bold #italic 왕#!#!")
        self.assertEqual([token.kind for token in tokens], [STYLE_OPEN, TEXT, STYLE_OPEN, TEXT, STYLE_CLOSE, STYLE_CLOSE])
        self.assertEqual([tokens[0].value, tokens[2].value], ["high;bold", "italic"])

    def test_bracket_with_quoted_brackets_is_one_token(self):
        tokens = tokenize("[GetText(']')] ok")
        self.assertEqual(tokens[0].kind, BRACKET)
        self.assertEqual(tokens[0].value, "GetText(']')")

    def test_bracket_inside_dollar_is_malformed(self):
        tokens = tokenize("$k_[GetName]$")
        self.assertEqual(tokens[0].kind, MALFORMED)

    def test_unterminated_delimiters_are_malformed(self):
        self.assertEqual(tokenize("$k_france 의 왕")[0].kind, MALFORMED)
        self.assertEqual(tokenize("[GetName")[0].kind, MALFORMED)
        self.assertIn(MALFORMED, [token.kind for token in tokenize("왕 ]")])

    def test_pure_placeholders(self):
        for text in ("[GetName]", "$k_france$", "£gold£", "@crown_icon!", "  [ROOT.Char.GetName]  "):
            with self.subTest(text=text):
                self.assertTrue(is_pure_placeholder(text))
        for text in ("[GetName] rules", "King", "$a$$b$", ""):
            with self.subTest(text=text):
                self.assertFalse(is_pure_placeholder(text))


class TestHelpers(unittest.TestCase):
    def test_is_game_variable(self):
        self.assertTrue(is_game_variable("ROOT.GetName"))
        self.assertTrue(is_game_variable("culture|E"))
        self.assertTrue(is_game_variable("piety_i"))
        self.assertTrue(is_game_variable("Concatenate(' or ', GetName)"))
        self.assertFalse(is_game_variable("culture"))

    def test_structural_form_ignores_literals_and_whitespace(self):
        self.assertEqual(
            structural_form("Concatenate(' or ', GetName)"),
            structural_form("Concatenate(' 혹은 ',GetName)")
        )

    def test_identifiers_inside_placeholders_are_not_technical_identifiers(self):
        self.assertTrue(validate_translation("The [culture_name] grows", "문화가 성장합니다").accepted)
        self.assertFalse(validate_translation("The culture_name grows", "문화가 성장합니다").accepted)


class TestValidateTranslation(unittest.TestCase):
    def assertRejected(self, source, candidate, reason, rules=None):
        result = validate_translation(source, candidate, Domain.CK3, rules)
        self.assertFalse(result.accepted, f"{candidate!r} should be rejected")
        self.assertEqual(result.reason, reason, result.describe())

    def test_style_marker_preserved_is_accepted(self):
        self.assertTrue(validate_translation("The #bold King#", "#bold 왕#").accepted)

    def test_translated_literal_in_concatenate_is_accepted(self):
        result = validate_translation("[Concatenate(' or ', GetName)]", "[Concatenate(' 혹은 ', GetName)]")
        self.assertTrue(result.accepted, result.describe())

    def test_translated_accessors_are_rejected(self):
        self.assertRejected("[Concatenate(' or ', GetName)]", "[연결(' or ', 이름)]",
                            ErrorKind.GAME_VARIABLE_MISTRANSLATED)

    def test_cross_delimiter_mix_is_rejected_regardless_of_source(self):
        self.assertRejected("anything", "$k_[GetName]$ 왕", ErrorKind.MALFORMED_PLACEHOLDER)
        self.assertRejected("[GetName]", "[$k_france$]", ErrorKind.MALFORMED_PLACEHOLDER)

    def test_disallowed_phrase_is_rejected(self):
        self.assertRejected("King", "네, 알겠습니다. 왕", ErrorKind.DISALLOWED_PHRASE)

    def test_particle_attached_to_closing_marker_is_accepted(self):
        result = validate_translation(
            "The #bold High King# of $k_ireland$ has called a grand feast at [county.GetName]!",
            "$k_ireland$의 #bold 고왕#께서 [county.GetName]에서 성대한 연회를 여시겠다고 선포하셨습니다!"
        )
        self.assertTrue(result.accepted, result.describe())

    def test_punctuation_after_closing_marker_is_not_a_marker(self):
        result = validate_translation("The #bold King#, and the queen", "#bold 왕#, 그리고 여왕")
        self.assertTrue(result.accepted, result.describe())
        result = validate_translation("The #bold King#, and the queen", "#bold 왕# 그리고 여왕")
        self.assertTrue(result.accepted, result.describe())

    def test_translated_style_keyword_is_rejected(self):
        self.assertRejected("The #bold King#", "#굵게 왕#", ErrorKind.STYLE_MARKER_TRANSLATED)

    def test_missing_style_marker_is_rejected(self):
        self.assertRejected("The #bold King#", "왕", ErrorKind.STYLE_MARKER_TRANSLATED)

    def test_lost_technical_identifier_is_rejected(self):
        source = "Requires mod_icon_gold to be set"
        self.assertTrue(validate_translation(source, "mod_icon_gold 설정이 필요합니다").accepted)
        self.assertRejected(source, "금 아이콘 설정이 필요합니다", ErrorKind.TECHNICAL_IDENTIFIER_LOST)

    def test_missing_game_variable_is_rejected(self):
        self.assertRejected("[ROOT.Char.GetName] wins", "승리합니다", ErrorKind.GAME_VARIABLE_MISMATCH)

    def test_duplicated_game_variable_is_rejected(self):
        self.assertRejected("[ROOT.Char.GetName] wins", "[ROOT.Char.GetName] [ROOT.Char.GetName] 승리",
                            ErrorKind.GAME_VARIABLE_MISMATCH)

    def test_plain_bracket_words_are_not_compared(self):
        self.assertTrue(validate_translation("The [culture] grows", "문화가 성장합니다").accepted)

    def test_gender_accessor_may_be_dropped(self):
        result = validate_translation("[ROOT.Char.GetSheHe] is brave", "그는 용감합니다")
        self.assertTrue(result.accepted, result.describe())

    def test_gender_accessor_may_not_be_added(self):
        self.assertRejected("He is brave", "[ROOT.Char.GetSheHe] 용감합니다", ErrorKind.GAME_VARIABLE_MISMATCH)

    def test_gender_accessors_are_configurable(self):
        rules = ValidationRules().with_gender_accessors(())
        self.assertRejected("[ROOT.Char.GetSheHe] is brave", "그는 용감합니다",
                            ErrorKind.GAME_VARIABLE_MISMATCH, rules)

    def test_first_failing_check_decides_reason(self):
        # Malformed outranks the missing variable.
        self.assertRejected("[ROOT.GetName] wins", "$broken 승리", ErrorKind.MALFORMED_PLACEHOLDER)


class TestValidateTranslationEntries(unittest.TestCase):
    def test_reports_only_invalid_translated_entries(self):
        source = {
            "win": ("[ROOT.GetName] wins", None),
            "hello": ("Hello", None),
            "untranslated": ("Pending", None),
            "same": ("[GetName]", None),
        }
        target = {
            "win": ("승리", "abc"),
            "hello": ("안녕하세요", "def"),
            "same": ("[GetName]", None),
        }

        invalid = validate_translation_entries(source, target, Domain.CK3)

        self.assertEqual([entry.key for entry in invalid], ["win"])
        self.assertTrue(invalid[0].reason.startswith(ErrorKind.GAME_VARIABLE_MISMATCH.value))
        self.assertEqual(invalid[0].translated_value, "승리")


if __name__ == '__main__':
    unittest.main()
