from __future__ import annotations
import logging
import re
from typing import List, Optional, Protocol, Sequence

from errors import AnsweringError
from models import ChatMessage
from rag import DocChunk

logger = logging.getLogger(__name__)

SYSTEM_PROMPT = (
    "Ti si prijazen glasovni agent zavarovalnice. Odgovarjaj v slovenščini. "
    "Če je izjava nejasna, postavi eno kratko dodatno vprašanje. "
    "Odgovori naj bodo kratki, praktični in razumljivi."
)

DOCUMENT_RULES = (
    "PRAVILA:\n"
    "1) Odgovarjaj na podlagi spodnjih dokumentov in povzemi samo relevantne informacije.\n"
    "2) Ne dodajaj korakov, ki jih v dokumentih ni.\n"
    "3) Če dokumenti ne vsebujejo odgovora, reci: 'Tega podatka v dokumentih nimam.' in postavi eno dodatno vprašanje.\n"
    "4) Pri vprašanjih o postopku odgovori v največ šestih alinejah in ponudi podrobnejšo razlago.\n"
    "5) Če vprašanje ni povezano z zavarovanjem, povej, da si zavarovalniški agent, in predlagaj teme: "
    "prijava škode, kritja (delni/polni kasko), odškodnina in dokazi, roki, samoudeležba, izračun premije.\n"
    "6) Uporabljaj drugo osebo množine: 'lahko prijavite', 'potrebujete'.\n\n"
    "DOKUMENTI:\n"
)

REPEAT_PLEASE = "Se opravičujem, lahko ponovite vprašanje?"
HUMAN_FALLBACK = (
    "Tega podatka v dokumentih nimam. "
    "Lahko vas povežem s svetovalcem ali pa preverite podrobnosti na naši spletni strani."
)


class Answerer(Protocol):
    def answer(self, messages: Sequence[ChatMessage], documents: Sequence[DocChunk]) -> str: ...


def format_documents(documents: Sequence[DocChunk]) -> str:
    return "\n".join(f"---\nDOC: {d.doc_id}\n{d.text}" for d in documents)


def build_messages(history: Sequence[ChatMessage], user_text: str, history_limit: int = 12) -> List[ChatMessage]:
    recent = list(history)[-history_limit:] if history_limit > 0 else []
    return [
        ChatMessage(role="system", content=SYSTEM_PROMPT),
        *recent,
        ChatMessage(role="user", content=user_text),
    ]


class OpenAIAnswerer:
    def __init__(self, api_key: str, model: str = "gpt-4o-mini", temperature: float = 0.2, client=None):
        if client is None:
            from openai import OpenAI
            client = OpenAI(api_key=api_key)
        self.client = client
        self.model = model
        self.temperature = temperature

    def answer(self, messages: Sequence[ChatMessage], documents: Sequence[DocChunk]) -> str:
        payload = [{"role": m.role, "content": m.content} for m in messages]
        payload.append({"role": "system", "content": DOCUMENT_RULES + format_documents(documents)})

        try:
            resp = self.client.chat.completions.create(
                model=self.model,
                messages=payload,
                temperature=self.temperature,
            )
        except Exception as e:
            raise AnsweringError(f"LLM request failed: {type(e).__name__}", original_error=e) from e

        text = (resp.choices[0].message.content or "").strip() if resp.choices else ""
        return text or REPEAT_PLEASE


def _first_sentence(text: str, max_len: int = 160) -> str:
    # markdown headings are not answers
    lines = [ln for ln in (text or "").splitlines() if ln.strip() and not ln.lstrip().startswith("#")]
    t = " ".join(" ".join(lines).split())
    if not t:
        return ""
    parts = re.split(r"(?<=[.!?])\s+", t)
    sent = parts[0] if parts else t
    if len(sent) > max_len:
        sent = sent[: max_len - 1].rstrip() + "…"
    return sent


def _is_bad_sentence(s: str) -> bool:
    s = (s or "").strip()
    return len(s) < 12 or bool(re.fullmatch(r"[^\w]+", s))


class ExtractiveAnswerer:
    """Offline answerer: first sentence of the best document plus one follow-up question."""

    def answer(self, messages: Sequence[ChatMessage], documents: Sequence[DocChunk]) -> str:
        question = _last_user_text(messages).lower()
        best = documents[0] if documents else None
        candidate = _first_sentence(best.text) if best else ""
        if _is_bad_sentence(candidate):
            return HUMAN_FALLBACK

        if "samoudele" in question:
            follow = "Za katero kritje vas zanima samoudeležba: osnovno, delni ali polni kasko?"
        elif "škod" in question or "skod" in question:
            follow = "Vas zanima postopek prijave, potrebni dokumenti ali roki?"
        elif "kasko" in question or "krit" in question:
            follow = "Želite, da izračunam premijo za vaše vozilo?"
        else:
            follow = "Kaj točno vas še zanima?"
        return f"{candidate} {follow}"


def _last_user_text(messages: Sequence[ChatMessage]) -> str:
    for m in reversed(list(messages)):
        if m.role == "user":
            return m.content
    return ""


def build_answerer(api_key: Optional[str], model: str) -> Answerer:
    if api_key:
        return OpenAIAnswerer(api_key=api_key, model=model)
    logger.warning("OPENAI_API_KEY not set, falling back to extractive answers")
    return ExtractiveAnswerer()
