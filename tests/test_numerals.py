"""
Tests for text normalization, the phonetic matcher and Slovenian numeral parsing.
"""

import pytest

from numerals import is_number_word, parse_below_100, parse_number
from textnorm import PhoneticMatcher, clean_text, clean_yes_no

ONES_WORDS = ["nič", "ena", "dva", "tri", "štiri", "pet", "šest", "sedem", "osem", "devet"]
TEENS_WORDS = [
    "deset", "enajst", "dvanajst", "trinajst", "štirinajst",
    "petnajst", "šestnajst", "sedemnajst", "osemnajst", "devetnajst",
]
TENS_WORDS = [
    "dvajset", "trideset", "štirideset", "petdeset",
    "šestdeset", "sedemdeset", "osemdeset", "devetdeset",
]


def canonical(n: int) -> str:
    if n < 10:
        return ONES_WORDS[n]
    if n < 20:
        return TEENS_WORDS[n - 10]
    tens, ones = divmod(n, 10)
    word = TENS_WORDS[tens - 2]
    return word if ones == 0 else f"{ONES_WORDS[ones]}in{word}"


class TestCleanText:
    """Test utterance normalization."""

    def test_strips_punctuation_and_case(self):
        assert clean_text("Avto je star 5 let, ima 150 KM!") == "avto je star 5 let ima 150 km"

    def test_keeps_slovenian_letters(self):
        assert clean_text("ŠTIRI  Žabe") == "štiri žabe"

    def test_nfkc(self):
        assert clean_text("ﬁnančni") == "finančni"

    def test_empty(self):
        assert clean_text(None) == ""
        assert clean_text("  ...  ") == ""

    def test_yes_no_variant_folds_diacritics(self):
        assert clean_yes_no("Želim, ČAKAJ") == "zelim cakaj"


class TestPhoneticMatcher:
    """Test the shared fuzzy word comparison."""

    def test_exact(self):
        assert PhoneticMatcher().matches("devet", "devet")

    def test_prefix(self):
        assert PhoneticMatcher().matches("deve", "devet")

    def test_consonant_equivalence(self):
        assert PhoneticMatcher().matches("deuet", "devet")

    def test_different_words(self):
        assert not PhoneticMatcher().matches("deset", "devet")

    def test_short_target_needs_exact(self):
        assert not PhoneticMatcher().matches("enajst", "en")

    def test_custom_table(self):
        m = PhoneticMatcher(prefix_len=4, equivalences={"k": "c"})
        assert m.matches("kasko", "casco")
        # the custom table replaces the default one
        assert not m.matches("deuet", "devet")

    def test_best_match(self):
        assert PhoneticMatcher().best_match("sedm", ["pet", "sedem", "osem"]) == "sedem"
        assert PhoneticMatcher().best_match("xyz", ["pet"]) is None


class TestParseNumber:
    """Test spoken number parsing."""

    @pytest.mark.parametrize("n", range(100))
    def test_canonical_word_forms(self, n):
        assert parse_number(canonical(n)) == n

    def test_digits_win_over_words(self):
        assert parse_number("pet ali 7") == 7
        assert parse_number("sto petdeset ne 120") == 120

    def test_digits_glued_to_unit(self):
        assert parse_number("150km") == 150

    @pytest.mark.parametrize(
        "phrase, expected",
        [
            ("ena in dvajset", 21),
            ("dvajset in ena", 21),
            ("dvajset tri", 23),
            ("devet deset", 90),
            ("šes zdeset", 60),
            ("šezdeset", 60),
            ("stirideset", 40),
            ("sestnajst", 16),
            ("deuet", 9),
            ("deuetindvajset", 29),
        ],
    )
    def test_spelling_variants(self, phrase, expected):
        assert parse_number(phrase) == expected

    @pytest.mark.parametrize(
        "phrase, expected",
        [
            ("sto", 100),
            ("sto petdeset", 150),
            ("stopetdeset", 150),
            ("sto petinpetdeset", 155),
            ("dvesto", 200),
            ("tristo dvaindvajset", 322),
            ("šeststo", 600),
            ("sto konjev", 100),
        ],
    )
    def test_hundreds(self, phrase, expected):
        assert parse_number(phrase) == expected

    @pytest.mark.parametrize("phrase", ["", "kasko", "ljubljana", "stopnja", "dober dan"])
    def test_no_number(self, phrase):
        assert parse_number(phrase) is None

    def test_below_100_on_tokens(self):
        assert parse_below_100(["pet", "in", "trideset"]) == 35
        assert parse_below_100([]) is None


class TestIsNumberWord:
    """Test the exact number-word check used for city tokens."""

    @pytest.mark.parametrize("word", ["pet", "Dvanajst", "petindvajset", "stopetdeset", "deuet", "nula", "sto"])
    def test_number_words(self, word):
        assert is_number_word(word)

    @pytest.mark.parametrize("word", ["devin", "petrovčah", "stopnja", "sto5", "", "kasko"])
    def test_not_number_words(self, word):
        assert not is_number_word(word)
