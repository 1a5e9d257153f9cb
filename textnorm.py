import unicodedata
from typing import Dict, Iterable, Optional


_YES_NO_FOLD = str.maketrans({"č": "c", "ć": "c", "š": "s", "ž": "z", "đ": "d"})


def _keep_char(ch: str) -> bool:
    cat = unicodedata.category(ch)
    return cat[0] in ("L", "M") or cat == "Nd" or ch.isspace()


def clean_text(text: Optional[str]) -> str:
    """Lowercase, NFKC-normalize and strip everything that is not a letter, mark, digit or space."""
    t = unicodedata.normalize("NFKC", (text or "").lower())
    t = "".join(ch if _keep_char(ch) else " " for ch in t)
    return " ".join(t.split())


def clean_yes_no(text: Optional[str]) -> str:
    # dictation is inconsistent with diacritics on short answers ("zelim" / "želim")
    return clean_text(text).translate(_YES_NO_FOLD)


class PhoneticMatcher:
    """Tolerant word comparison for dictated number and keyword tokens.

    A word matches a target when it is identical, when both share the first
    ``prefix_len`` letters ("deve" ~ "devet"), or when they are identical after
    folding the consonant equivalence table ("deuet" ~ "devet").
    """

    DEFAULT_EQUIVALENCES: Dict[str, str] = {"u": "v", "w": "v"}

    def __init__(self, prefix_len: int = 3, equivalences: Optional[Dict[str, str]] = None):
        self.prefix_len = prefix_len
        self.equivalences = dict(self.DEFAULT_EQUIVALENCES if equivalences is None else equivalences)
        self._table = str.maketrans(self.equivalences)

    def fold(self, word: str) -> str:
        return (word or "").lower().strip().translate(self._table)

    def matches(self, word: str, target: str) -> bool:
        w = (word or "").lower().strip()
        t = (target or "").lower().strip()
        if not w or not t:
            return False
        if w == t:
            return True
        n = self.prefix_len
        if len(w) >= n and len(t) >= n and w[:n] == t[:n]:
            return True
        return self.fold(w) == self.fold(t)

    def best_match(self, word: str, candidates: Iterable[str]) -> Optional[str]:
        for cand in candidates:
            if self.matches(word, cand):
                return cand
        return None


DEFAULT_MATCHER = PhoneticMatcher()
