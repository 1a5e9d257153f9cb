from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import Iterable, List, Optional
from pydantic import BaseModel
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel

from answering import Answerer, build_answerer
from config import Settings, get_settings
from dialogue import TurnResult, commit_turn, dialogue_manager
from errors import TranscriptionError
from rag import RAGIndex
from sessions import IdleTimeout, NeverEvict, SessionStore
from voice_in import WhisperSTT
from voice_out import VoiceOut

console = Console()
logger = logging.getLogger(__name__)

GENERIC_FAILURE = "Oprostite, nekaj je šlo narobe. Prosim, poskusite znova."
GREETING = (
    "Pozdravljeni! Pogovor se snema za namene kakovosti in obravnave škod v skladu z GDPR. "
    "Z nadaljevanjem se strinjate s snemanjem. Kako vam lahko pomagam?"
)

EXIT_PHRASES: List[str] = [
    "adijo",
    "nasvidenje",
    "na svidenje",
    "konec",
    "izhod",
    "goodbye",
    "bye",
    "exit",
    "quit",
]


@dataclass
class AgentContext:
    store: SessionStore
    rag: RAGIndex
    answerer: Answerer
    settings: Settings
    stt: Optional[WhisperSTT] = None
    tts: Optional[VoiceOut] = None


class VoiceTurnResult(BaseModel):
    turn: TurnResult
    reply_audio: bytes


def setup_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(name)s: %(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=console, rich_tracebacks=True, show_path=False)],
        force=True,
    )


def build_context(settings: Optional[Settings] = None, with_voice: bool = False) -> AgentContext:
    settings = settings or get_settings()
    rag = RAGIndex()
    rag.build_from_folder(settings.docs_path)

    eviction = IdleTimeout(settings.session_ttl_seconds) if settings.session_ttl_seconds > 0 else NeverEvict()
    ctx = AgentContext(
        store=SessionStore(eviction=eviction),
        rag=rag,
        answerer=build_answerer(settings.openai_api_key, settings.llm_model),
        settings=settings,
    )
    if with_voice:
        ctx.stt = WhisperSTT(
            model_size=settings.stt_model_size,
            device=settings.stt_device,
            compute_type=settings.stt_compute_type,
            language=settings.language,
        )
        ctx.tts = VoiceOut(voice=settings.tts_voice)
    return ctx


def handle_text_turn(ctx: AgentContext, session_key: str, user_text: str) -> TurnResult:
    with ctx.store.open(session_key) as session:
        result, state = dialogue_manager(
            user_text,
            session,
            ctx.rag,
            ctx.answerer,
            top_k=ctx.settings.rag_top_k,
            history_limit=ctx.settings.history_limit,
        )
        commit_turn(session, result, state)
    return result


def handle_voice_turn(ctx: AgentContext, session_key: str, audio: bytes) -> VoiceTurnResult:
    if ctx.stt is None or ctx.tts is None:
        raise RuntimeError("voice collaborators not configured; build_context(with_voice=True)")

    with ctx.store.open(session_key) as session:
        transcript = ctx.stt.transcribe(audio).text.strip()
        if not transcript:
            raise TranscriptionError("empty transcript")

        result, state = dialogue_manager(
            transcript,
            session,
            ctx.rag,
            ctx.answerer,
            top_k=ctx.settings.rag_top_k,
            history_limit=ctx.settings.history_limit,
        )
        reply_audio = ctx.tts.synthesize(result.reply_text)
        # only now is the turn complete
        commit_turn(session, result, state)
    return VoiceTurnResult(turn=result, reply_audio=reply_audio)


def reset_session(ctx: AgentContext, session_key: str) -> bool:
    return ctx.store.delete(session_key)


def print_agent(text: str, title: str = "Agent") -> str:
    cleaned = (text or "").strip()
    if cleaned:
        console.print(Panel(cleaned, title=title))
    return cleaned


def is_exit_phrase(user_text: str, phrases: Iterable[str] = EXIT_PHRASES) -> bool:
    t = (user_text or "").strip().lower().rstrip(".!")
    return t in set(p.lower() for p in phrases)
