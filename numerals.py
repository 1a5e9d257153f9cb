"""Slovenian spoken-number parsing.

Handles what speech-to-text gives us for small quantities: literal digits,
number words ("pet", "dvanajst"), units-before-tens compounds written together
or apart ("petindvajset", "pet in dvajset"), hundreds ("sto petdeset",
"stopetdeset") and a handful of dictation misspellings.

Literal digits always win over number words.
"""
import re
from typing import Dict, List, Optional, Sequence, Tuple

from textnorm import DEFAULT_MATCHER, PhoneticMatcher, clean_text

ONES: Dict[str, int] = {
    "nič": 0,
    "nic": 0,
    "nula": 0,
    "ena": 1,
    "en": 1,
    "eno": 1,
    "dva": 2,
    "dve": 2,
    "tri": 3,
    "štiri": 4,
    "stiri": 4,
    "pet": 5,
    "šest": 6,
    "sest": 6,
    "sedem": 7,
    "osem": 8,
    "devet": 9,
}

TEENS: Dict[str, int] = {
    "deset": 10,
    "enajst": 11,
    "dvanajst": 12,
    "trinajst": 13,
    "štirinajst": 14,
    "stirinajst": 14,
    "petnajst": 15,
    "šestnajst": 16,
    "sestnajst": 16,
    "sedemnajst": 17,
    "osemnajst": 18,
    "devetnajst": 19,
}

TENS: Dict[str, int] = {
    "dvajset": 20,
    "dvajst": 20,
    "trideset": 30,
    "tridest": 30,
    "štirideset": 40,
    "stirideset": 40,
    "štirdeset": 40,
    "stirdeset": 40,
    "petdeset": 50,
    "pedeset": 50,
    "šestdeset": 60,
    "sestdeset": 60,
    "šezdeset": 60,
    "sezdeset": 60,
    "sedemdeset": 70,
    "osemdeset": 80,
    "devetdeset": 90,
}

HUNDREDS: Dict[str, int] = {
    "sto": 100,
    "dvesto": 200,
    "dvasto": 200,
    "tristo": 300,
    "štiristo": 400,
    "stiristo": 400,
    "štirsto": 400,
    "stirsto": 400,
    "petsto": 500,
    "šeststo": 600,
    "seststo": 600,
    "sedemsto": 700,
    "osemsto": 800,
    "devetsto": 900,
}

CONNECTIVE = "in"
TEN_WORD = "deset"

_DIGIT_RUN = re.compile(r"(?<!\d)(\d{1,4})(?!\d)")
# dictation sometimes splits "šestdeset" into "šes zdeset"
_SPLIT_TEN = re.compile(r"\bzdeset\b")


def _longest_first(table: Dict[str, int]) -> List[Tuple[str, int]]:
    return sorted(table.items(), key=lambda kv: len(kv[0]), reverse=True)


_ONES_ORDERED = _longest_first(ONES)
_TEENS_ORDERED = _longest_first(TEENS)
_TENS_ORDERED = _longest_first(TENS)
_HUNDREDS_ORDERED = _longest_first(HUNDREDS)


def match_ones(word: str, matcher: PhoneticMatcher = DEFAULT_MATCHER) -> Optional[int]:
    if not word:
        return None
    if word in ONES:
        return ONES[word]
    key = matcher.best_match(word, (k for k, _ in _ONES_ORDERED))
    return ONES[key] if key is not None else None


def _compound_tens(words: Sequence[str], tens_word: str, tens_value: int,
                   matcher: PhoneticMatcher) -> Optional[int]:
    for i, tok in enumerate(words):
        if tens_word not in tok:
            continue

        # "enaindvajset", "deuetindvajset"
        pos = tok.find(CONNECTIVE + tens_word)
        if pos > 0:
            ones = match_ones(tok[:pos], matcher)
            if ones is not None:
                return tens_value + ones

        if tok != tens_word:
            continue

        # "ena in dvajset"
        if i >= 2 and words[i - 1] == CONNECTIVE:
            ones = match_ones(words[i - 2], matcher)
            if ones is not None:
                return tens_value + ones

        # "dvajset in ena", "dvajset ena"
        if i + 2 < len(words) and words[i + 1] == CONNECTIVE:
            ones = match_ones(words[i + 2], matcher)
            if ones is not None:
                return tens_value + ones
        if i + 1 < len(words) and words[i + 1] in ONES:
            return tens_value + ONES[words[i + 1]]
    return None


def parse_below_100(words: Sequence[str], matcher: PhoneticMatcher = DEFAULT_MATCHER) -> Optional[int]:
    words = [w for w in words if w]
    if not words:
        return None
    joined = " ".join(words)

    for tens_word, tens_value in _TENS_ORDERED:
        if tens_word in joined:
            compound = _compound_tens(words, tens_word, tens_value, matcher)
            return compound if compound is not None else tens_value

    for a, b in zip(words, words[1:]):
        if b == TEN_WORD:
            ones = match_ones(a, matcher)
            if ones:
                return ones * 10

    for w in words:
        if w in TEENS:
            return TEENS[w]
    for teen_word, teen_value in _TEENS_ORDERED:
        if teen_word in joined:
            return teen_value

    for w in words:
        if w in ONES:
            return ONES[w]
    if len(words) == 1:
        return match_ones(words[0], matcher)
    return None


def _parse_hundreds(words: List[str], matcher: PhoneticMatcher) -> Optional[int]:
    for i, tok in enumerate(words):
        for hundred_word, hundred_value in _HUNDREDS_ORDERED:
            if tok == hundred_word:
                rest = parse_below_100(words[i + 1:], matcher)
                return hundred_value + rest if rest is not None else hundred_value
            if tok.startswith(hundred_word) and len(tok) > len(hundred_word):
                # "stopetdeset"; "stopnja" is not a number
                rest = parse_below_100([tok[len(hundred_word):]], matcher)
                if rest is not None:
                    return hundred_value + rest
    return None


def parse_number(text: Optional[str], matcher: PhoneticMatcher = DEFAULT_MATCHER) -> Optional[int]:
    t = _SPLIT_TEN.sub("deset", clean_text(text))

    m = _DIGIT_RUN.search(t)
    if m:
        return int(m.group(1))

    words = t.split()
    if not words:
        return None

    hundreds = _parse_hundreds(words, matcher)
    if hundreds is not None:
        return hundreds

    return parse_below_100(words, matcher)


def is_number_word(word: str, matcher: PhoneticMatcher = DEFAULT_MATCHER) -> bool:
    """Whether ``word`` is itself a number word, compounds included.

    Only exact table entries count (after folding dictation variants), so place
    names such as "devin" or "petrovčah" are not read as numbers.
    """
    w = (word or "").lower().strip()
    return any(_is_exact_number_word(v) for v in {w, matcher.fold(w)} if v)


def _is_exact_number_word(w: str) -> bool:
    if w in ONES or w in TEENS or w in TENS or w in HUNDREDS or w == "z" + TEN_WORD:
        return True
    for hundred_word in HUNDREDS:
        if w.startswith(hundred_word) and _is_exact_number_word(w[len(hundred_word):]):
            return True
    # "petindvajset"
    for tens_word in TENS:
        suffix = CONNECTIVE + tens_word
        if w.endswith(suffix) and w[:-len(suffix)] in ONES:
            return True
    return False
