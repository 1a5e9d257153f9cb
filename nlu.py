import difflib
import re
from pydantic import BaseModel
from typing import Dict, List, Literal, Optional, Sequence, Tuple

from numerals import CONNECTIVE, is_number_word, parse_number
from premium import COVERAGE_ORDER, OTHER_CITY, CoverageLevel
from textnorm import clean_text, clean_yes_no

Intent = Literal["comparison_answer", "premium_request", "information_question", "none"]


class IntentResult(BaseModel):
    intent: Intent
    confidence: float


AGE_RANGE = (0, 40)
HP_RANGE = (20, 600)

AGE_UNITS = ("letih", "leta", "leti", "leto", "let", "lita", "liti", "lit")
HP_UNITS = ("konjskih", "konjska", "konjske", "konjev", "konji", "konja", "konj", "km", "ks")

COVERAGE_ALIASES: Dict[CoverageLevel, Tuple[str, ...]] = {
    "full": ("poln", "poun"),
    "partial": ("deln", "deun"),
    "basic": ("osnov", "obvezn"),
}
GENERIC_COVERAGE = ("kasko", "kasco", "casco")

CITY_FORMS: Dict[str, str] = {
    "ljubljana": "Ljubljana",
    "ljubljani": "Ljubljana",
    "ljubljane": "Ljubljana",
    "ljubljano": "Ljubljana",
    "maribor": "Maribor",
    "mariboru": "Maribor",
    "maribora": "Maribor",
    "celje": "Celje",
    "celju": "Celje",
    "celja": "Celje",
    "koper": "Koper",
    "kopru": "Koper",
    "kopra": "Koper",
    "kranj": "Kranj",
    "kranju": "Kranj",
    "kranja": "Kranj",
    "ptuj": "Ptuj",
    "ptuju": "Ptuj",
    "ptuja": "Ptuj",
    "velenje": "Velenje",
    "velenju": "Velenje",
    "novo mesto": "Novo mesto",
    "novem mestu": "Novo mesto",
    "novega mesta": "Novo mesto",
    "nova gorica": "Nova Gorica",
    "novi gorici": "Nova Gorica",
    "nove gorice": "Nova Gorica",
    "murska sobota": "Murska Sobota",
    "murski soboti": "Murska Sobota",
    "murske sobote": "Murska Sobota",
}

DONT_CARE_WORDS = {"vseeno", "vseno", "karkoli", "kjerkoli", "kjerkol"}
DONT_CARE_PHRASES = ("ni pomembno", "nima veze", "je vseeno", "vseeno mi je")

CITY_PREPOSITIONS = ("v", "iz", "pri", "blizu", "okolica", "okolici", "na")
CITY_STOPWORDS = {
    "in", "je", "ima", "ki", "z", "s", "ter", "pa", "za",
    "star", "stara", "staro", "starost", "starosti",
    "avto", "avtu", "avta", "vozilo", "vozilu", "vozila",
    "redu", "bistvu", "resnici", "zvezi", "primeru", "primer", "okviru", "glavnem",
    "voljo", "mesec", "mesecu",
    "prosim", "hvala", "leto", "letih", "letu", "km", "kasko",
}
VEHICLE_WORDS = ("avto", "avta", "avtu", "avtom", "vozil", "avtomobil")

_ASSENT_PHRASES = ("zakaj pa ne", "v redu", "kar daj", "seveda", "lahko pa")
_NEGATIVE_PHRASES = (
    "ni treba", "ni potrebno", "ne hvala", "hvala ne", "ne bi", "ne zelim",
    "ne potrebujem", "to je vse", "je dovolj", "mogoce drugic", "ne rabim",
)
_NEGATIVE_WORDS = {"ne", "nee", "neee", "nikakor", "nak", "nope"}
_AFFIRMATIVE_WORDS = {
    "da", "ja", "jaa", "jap", "aha", "seveda", "lahko", "ok", "okej", "okay",
    "prosim", "vsekakor", "itak", "zelim", "zelel", "zelela", "super", "velja",
    "dajmo", "yes", "yep", "jasno",
}

_INFO_PATTERNS = [
    re.compile(p)
    for p in (
        r"^kaj\b", r"^kako\b", r"^kdaj\b", r"^kje\b", r"^zakaj\b", r"^kateri\b",
        r"pomeni", r"razlika", r"krije", r"kritje", r"postopek", r"prijavi\w* škod",
        r"odškodnin", r"odskodnin", r"dokaz", r"samoudele", r"kaj potrebujem",
        r"kaj rabim", r"kateri dokument",
    )
]
_CALC_WORDING = (
    "izračun", "izracun", "premij", "koliko stane", "koliko bi stal", "cena",
    "ceno", "strošek", "strosek", "stane", "koliko pride", "ponudb",
)
_COMPARISON_WORDING = (
    "primerjaj", "primerjava", "primerjavo", "daj še", "daj se", "še delni",
    "še polni", "še osnovno", "se delni", "se polni", "namesto", "tudi delni",
    "tudi polni", "tudi osnovno",
)
_NEW_VEHICLE_WORDING = (
    "nov izračun", "nov izracun", "novo vozilo", "nov avto", "novega avta",
    "drug avto", "drugi avto", "drugo vozilo", "drugega avta", "drugačen avto",
    "drugacen avto", "še en avto", "se en avto", "drugi izračun", "drugi izracun",
)

_AGE_WITH_UNIT = re.compile(r"(?<!\d)(\d{1,2})\s*(?:%s)\b" % "|".join(AGE_UNITS))
_AGE_AFTER_CUE = re.compile(r"\bstar\w*\s+(?:je\s+)?(\d{1,2})(?!\d)")
_HP_WITH_UNIT = re.compile(r"(?<!\d)(\d{2,4})\s*(?:%s)\b" % "|".join(HP_UNITS))
_HP_AFTER_CUE = re.compile(r"\bmo[čc]\w*\s+(?:je\s+)?(\d{2,4})(?!\d)")
_CITY_HINT = re.compile(r"\b(?:%s)\s+\w{3,}" % "|".join(CITY_PREPOSITIONS))


def _in_range(value: Optional[int], bounds: Tuple[int, int]) -> Optional[int]:
    if value is None:
        return None
    lo, hi = bounds
    return value if lo <= value <= hi else None


def _number_run_before(words: Sequence[str], end: int) -> List[str]:
    """Number words directly before ``words[end]``; any other word or unit ends the run."""
    run: List[str] = []
    for tok in reversed(words[:end]):
        if tok in AGE_UNITS or tok in HP_UNITS:
            break
        if tok != CONNECTIVE and parse_number(tok) is None:
            break
        run.insert(0, tok)
    while run and run[0] == CONNECTIVE:
        run.pop(0)
    return run


def _number_before_unit(words: Sequence[str], units: Sequence[str]) -> Optional[int]:
    for i, w in enumerate(words):
        if w in units:
            run = _number_run_before(words, i)
            n = parse_number(" ".join(run)) if run else None
            if n is not None:
                return n
    return None


def _extract_quantity(t: str, with_unit: re.Pattern, after_cue: re.Pattern,
                      units: Sequence[str], bounds: Tuple[int, int], expected: bool) -> Optional[int]:
    for pattern in (with_unit, after_cue):
        for m in pattern.finditer(t):
            v = _in_range(int(m.group(1)), bounds)
            if v is not None:
                return v

    v = _in_range(_number_before_unit(t.split(), units), bounds)
    if v is not None:
        return v

    # a bare number only counts when we just asked for this slot
    if expected:
        return _in_range(parse_number(t), bounds)
    return None


def extract_vehicle_age(user_text: str, expected: bool = False) -> Optional[int]:
    t = clean_text(user_text)
    return _extract_quantity(t, _AGE_WITH_UNIT, _AGE_AFTER_CUE, AGE_UNITS, AGE_RANGE, expected)


def extract_horsepower(user_text: str, expected: bool = False) -> Optional[int]:
    t = clean_text(user_text)
    return _extract_quantity(t, _HP_WITH_UNIT, _HP_AFTER_CUE, HP_UNITS, HP_RANGE, expected)


def mentioned_coverage_levels(user_text: str) -> List[CoverageLevel]:
    """Tiers named in the utterance, cheapest first."""
    t = clean_text(user_text)
    return [level for level in COVERAGE_ORDER if any(s in t for s in COVERAGE_ALIASES[level])]


def extract_coverage_level(user_text: str, premium_context: bool = False) -> Optional[CoverageLevel]:
    levels = mentioned_coverage_levels(user_text)
    if levels:
        return levels[0]
    if premium_context and any(g in clean_text(user_text) for g in GENERIC_COVERAGE):
        return "full"
    return None


def mentions_coverage(user_text: str) -> bool:
    t = clean_text(user_text)
    return bool(mentioned_coverage_levels(t)) or any(g in t for g in GENERIC_COVERAGE)


def parse_yes_no(user_text: str) -> Optional[bool]:
    t = clean_yes_no(user_text)
    padded = f" {t} "
    tokens = set(t.split())

    if any(f" {p} " in padded for p in _ASSENT_PHRASES):
        return True
    if any(f" {p} " in padded for p in _NEGATIVE_PHRASES):
        return False
    if tokens & _NEGATIVE_WORDS:
        return False
    if tokens & _AFFIRMATIVE_WORDS:
        return True
    return None


def looks_like_yes_no(user_text: str) -> bool:
    return parse_yes_no(user_text) is not None


def normalize_city(city: str) -> str:
    raw = (city or "").strip()
    c = clean_text(raw)
    if not c:
        return raw

    if c in CITY_FORMS:
        return CITY_FORMS[c]

    lj_variants = {
        "ljublajan",
        "ljublijana",
        "ljubljkana",
        "leobliana",
        "liubljana",
        "lubljana",
        "lublani",
    }
    if c in lj_variants or "ljubl" in c:
        return "Ljubljana"

    close = difflib.get_close_matches(c, list(CITY_FORMS), n=1, cutoff=0.8)
    if close:
        return CITY_FORMS[close[0]]

    return " ".join(w.capitalize() for w in c.split())


def _is_city_token(tok: str) -> bool:
    if len(tok) < 3 or tok in CITY_STOPWORDS or tok in AGE_UNITS or tok in HP_UNITS:
        return False
    if any(ch.isdigit() for ch in tok):
        return False
    if mentioned_coverage_levels(tok) or looks_like_yes_no(tok):
        return False
    return not is_number_word(tok)


def _city_after_preposition(words: List[str]) -> Optional[str]:
    for i, w in enumerate(words):
        if w not in CITY_PREPOSITIONS:
            continue
        parts: List[str] = []
        for tok in words[i + 1:i + 4]:
            if not _is_city_token(tok):
                break
            parts.append(tok)
        if not parts:
            continue
        for n in range(len(parts), 0, -1):
            key = " ".join(parts[:n])
            if key in CITY_FORMS:
                return CITY_FORMS[key]
        return normalize_city(" ".join(parts))
    return None


def extract_city(user_text: str) -> Optional[str]:
    t = clean_text(user_text)
    if not t:
        return None

    if t.replace(" ", "") in DONT_CARE_WORDS or any(p in t for p in DONT_CARE_PHRASES):
        return OTHER_CITY

    words = t.split()
    city = _city_after_preposition(words)
    if city:
        return city

    if len(t) < 3 or mentions_coverage(t) or looks_like_yes_no(t) or has_calc_wording(t):
        return None
    if any(v in t for v in VEHICLE_WORDS):
        return None
    if any(ch.isdigit() for ch in t) or any(is_number_word(w) for w in words):
        return None

    if len(words) == 1 and len(words[0]) >= 3:
        return normalize_city(words[0])
    return None


def looks_like_info_question(user_text: str) -> bool:
    t = clean_text(user_text)
    return any(p.search(t) for p in _INFO_PATTERNS)


def has_calc_wording(user_text: str) -> bool:
    t = clean_text(user_text)
    return any(k in t for k in _CALC_WORDING)


def wants_comparison(user_text: str) -> bool:
    t = clean_text(user_text)
    return any(k in t for k in _COMPARISON_WORDING)


def _age_hint(t: str) -> bool:
    return bool(_AGE_WITH_UNIT.search(t)) or "star " in f"{t} "


def _hp_hint(t: str) -> bool:
    return bool(_HP_WITH_UNIT.search(t)) or "konj" in t


def has_premium_slot_hints(user_text: str) -> bool:
    t = clean_text(user_text)
    return _age_hint(t) or _hp_hint(t) or bool(_CITY_HINT.search(t))


def is_new_vehicle(user_text: str) -> bool:
    t = clean_text(user_text)
    return any(k in t for k in _NEW_VEHICLE_WORDING)


def is_fresh_premium_request(user_text: str) -> bool:
    """A request that names a vehicle and at least one of its facts; stale prefill must not be reused."""
    t = clean_text(user_text)
    has_vehicle = any(v in t for v in VEHICLE_WORDS)
    return has_vehicle and (_age_hint(t) or _hp_hint(t) or bool(_CITY_HINT.search(t)))


def detect_intent(user_text: str, pending_comparison: bool = False, has_last_premium: bool = False) -> IntentResult:
    t = clean_text(user_text)

    if pending_comparison:
        return IntentResult(intent="comparison_answer", confidence=0.9)

    info_q = looks_like_info_question(t)
    calc = has_calc_wording(t)

    if info_q and not calc:
        return IntentResult(intent="information_question", confidence=0.8)

    if calc:
        return IntentResult(intent="premium_request", confidence=0.9)

    if mentions_coverage(t) and has_premium_slot_hints(t):
        return IntentResult(intent="premium_request", confidence=0.8)

    if wants_comparison(t) and has_last_premium:
        return IntentResult(intent="premium_request", confidence=0.75)

    return IntentResult(intent="none", confidence=0.5)
