import logging
from typing import Dict, List, Optional, Sequence, Tuple

from pydantic import BaseModel

from answering import Answerer, build_messages
from models import (
    AwaitingComparison,
    ChatMessage,
    Collecting,
    DialogueState,
    Idle,
    PremiumDraft,
    Slot,
    VehicleFacts,
)
from nlu import (
    detect_intent,
    extract_city,
    extract_coverage_level,
    extract_horsepower,
    extract_vehicle_age,
    has_calc_wording,
    is_fresh_premium_request,
    is_new_vehicle,
    looks_like_info_question,
    mentioned_coverage_levels,
    mentions_coverage,
    parse_yes_no,
)
from premium import OTHER_CITY, CoverageLevel, PremiumResult, calculate_premium
from rag import RAGIndex
from sessions import Session

logger = logging.getLogger(__name__)

COVERAGE_LABELS: Dict[str, str] = {
    "basic": "osnovno zavarovanje",
    "partial": "delni kasko",
    "full": "polni kasko",
}

# tiers worth offering after a quote, cheapest first
COMPARISON_OFFERS: Dict[str, List[CoverageLevel]] = {
    "basic": ["partial", "full"],
    "partial": ["full"],
    "full": ["partial"],
}

SLOT_INTRO = "Seveda, za izračun premije potrebujem še eno informacijo. "
SLOT_QUESTIONS: Dict[str, str] = {
    "vehicle_age": "Koliko je star avto (v letih)?",
    "horsepower": "Koliko konjskih moči (KM) ima avto?",
    "coverage_level": "Katero kritje želite: osnovno, delni kasko ali polni kasko?",
}
SLOT_RETRY: Dict[str, str] = {
    "vehicle_age": "Samo da preverim, koliko let je star avto? Lahko poveste kot številko.",
    "horsepower": "Samo da preverim, koliko KM ima avto? Lahko poveste kot številko.",
    "coverage_level": "Nisem razumel kritja. Izberite osnovno, delni kasko ali polni kasko.",
}

ANYTHING_ELSE = "Želite še kaj? Lahko naredim nov izračun za drugo vozilo."
CLOSING_PROMPT = "V redu. Vam lahko še kako pomagam?"


class TurnResult(BaseModel):
    transcript: str
    reply_text: str
    premium: Optional[Dict[str, object]] = None
    premium_result: Optional[PremiumResult] = None
    rag_docs: Optional[List[str]] = None


def _label(level: str) -> str:
    return COVERAGE_LABELS.get(level, level)


def _options_text(options: Sequence[CoverageLevel]) -> str:
    return " ali ".join(_label(o) for o in options)


def _offer_question(options: Sequence[CoverageLevel]) -> str:
    if len(options) == 1:
        return f"Želite še izračun za {_label(options[0])}?"
    return f"Želite primerjavo za {_options_text(options)}?"


def _offer_for(level: CoverageLevel, compared: set) -> List[CoverageLevel]:
    return [o for o in COMPARISON_OFFERS[level] if o not in compared]


def _prefilled_draft(state: DialogueState, coverage_level: Optional[CoverageLevel] = None) -> PremiumDraft:
    lp = state.last_premium
    return PremiumDraft(
        vehicle_age=lp.vehicle_age if lp else None,
        horsepower=lp.horsepower if lp else None,
        city=lp.city if lp else None,
        coverage_level=coverage_level,
    )


def _apply_extraction(draft: PremiumDraft, user_text: str) -> PremiumDraft:
    found: Dict[str, object] = {}
    pending = draft.pending_slot

    if pending is None:
        found["vehicle_age"] = extract_vehicle_age(user_text)
        found["horsepower"] = extract_horsepower(user_text)
        found["city"] = extract_city(user_text)
        found["coverage_level"] = extract_coverage_level(user_text, premium_context=True)
    elif pending == "vehicle_age":
        found["vehicle_age"] = extract_vehicle_age(user_text, expected=True)
    elif pending == "horsepower":
        found["horsepower"] = extract_horsepower(user_text, expected=True)
    elif pending == "coverage_level":
        found["coverage_level"] = extract_coverage_level(user_text, premium_context=True)

    updates = {k: v for k, v in found.items() if v is not None}
    if updates:
        logger.debug("extracted %s", updates)
    return draft.model_copy(update=updates)


def _draft_snapshot(draft: PremiumDraft) -> Dict[str, object]:
    return {**draft.model_dump(), "pending": True}


def _advance_draft(state: DialogueState, draft: PremiumDraft, user_text: str) -> TurnResult:
    slot: Optional[Slot] = draft.missing_slot()
    if slot:
        asked_again = draft.pending_slot == slot
        draft = draft.model_copy(update={"pending_slot": slot})
        state.phase = Collecting(draft=draft)
        reply = SLOT_RETRY[slot] if asked_again else SLOT_INTRO + SLOT_QUESTIONS[slot]
        logger.debug("asking for %s (retry=%s)", slot, asked_again)
        return TurnResult(transcript=user_text, reply_text=reply, premium=_draft_snapshot(draft))
    return _emit_quote(state, draft, user_text)


def _emit_quote(state: DialogueState, draft: PremiumDraft, user_text: str) -> TurnResult:
    city = draft.city or OTHER_CITY
    level = draft.coverage_level
    result = calculate_premium(draft.vehicle_age, draft.horsepower, city, level)

    facts = VehicleFacts(vehicle_age=draft.vehicle_age, horsepower=draft.horsepower, city=city)
    if state.last_premium != facts:
        # tiers compared for another vehicle do not count
        state.compared_levels = set()
    state.compared_levels.add(level)
    state.last_premium = facts

    options = _offer_for(level, state.compared_levels)
    if options:
        state.phase = AwaitingComparison(options=options)
        follow_up = _offer_question(options)
    else:
        state.phase = Idle()
        follow_up = ANYTHING_ELSE

    logger.info(
        "quote %s: age=%s hp=%s city=%s -> %s EUR/year",
        level, draft.vehicle_age, draft.horsepower, city, result.annual_eur,
    )
    reply = (
        f"Ocena premije za {_label(level)} "
        f"({draft.vehicle_age} let star avto, {draft.horsepower} KM, {city}) je približno "
        f"{result.annual_eur} € na leto (okoli {result.monthly_eur} € na mesec). "
        f"{follow_up}"
    )
    return TurnResult(transcript=user_text, reply_text=reply, premium_result=result)


def _start_premium_request(state: DialogueState, user_text: str, vehicle_reset: bool) -> TurnResult:
    if not vehicle_reset and is_fresh_premium_request(user_text):
        logger.debug("fresh premium request, dropping previous vehicle")
        state.last_premium = None
        state.compared_levels = set()
    draft = _prefilled_draft(state)
    return _advance_draft(state, _apply_extraction(draft, user_text), user_text)


def _resolve_comparison(state: DialogueState, options: List[CoverageLevel],
                        user_text: str) -> Tuple[str, Optional[TurnResult]]:
    """Interpret an answer to an outstanding comparison offer.

    Returns ``(action, result)``. ``result`` is set when the turn is finished
    here; ``"answer"`` and ``"premium"`` hand the utterance on with the offer
    already dropped.
    """
    named = mentioned_coverage_levels(user_text)
    yes_no = parse_yes_no(user_text)
    coverage = mentions_coverage(user_text)

    if len(options) == 2 and all(o in named for o in options):
        reply = f"Lahko izračunam oboje. S katerim naj začnem: {_options_text(options)}?"
        return "ask", TurnResult(transcript=user_text, reply_text=reply)

    if looks_like_info_question(user_text) and not coverage and not has_calc_wording(user_text):
        state.phase = Idle()
        return "answer", None

    if has_calc_wording(user_text) and not named:
        state.phase = Idle()
        return "premium", None

    if yes_no is None and not named and not coverage:
        state.phase = Idle()
        reply = (
            f"Nisem prepričan, kaj želite. Želite izračun za {_options_text(options)} "
            "ali imate drugo vprašanje?"
        )
        return "prompt", TurnResult(transcript=user_text, reply_text=reply)

    if named:
        chosen = next((o for o in named if o in options), named[0])
        return "quote", _quote_tier(state, chosen, user_text)

    if yes_no is False:
        state.phase = Idle()
        return "close", TurnResult(transcript=user_text, reply_text=CLOSING_PROMPT)

    if yes_no is True and len(options) == 1:
        return "quote", _quote_tier(state, options[0], user_text)

    if yes_no is True:
        reply = f"Za katero kritje naj izračunam: {_options_text(options)}?"
        return "ask", TurnResult(transcript=user_text, reply_text=reply)

    reply = f"Prosim, odgovorite z da ali ne. Želite izračun za {_options_text(options)}?"
    return "ask", TurnResult(transcript=user_text, reply_text=reply)


def _quote_tier(state: DialogueState, level: CoverageLevel, user_text: str) -> TurnResult:
    draft = _prefilled_draft(state, coverage_level=level)
    state.phase = Collecting(draft=draft)
    return _advance_draft(state, draft, user_text)


def _answer(state: DialogueState, session: Session, user_text: str, rag: RAGIndex,
            answerer: Answerer, top_k: int, history_limit: int) -> TurnResult:
    hits = rag.retrieve(user_text, top_k=top_k)
    docs = hits or rag.fallback(top_k)
    messages = build_messages(session.transcript, user_text, history_limit)
    reply = answerer.answer(messages, docs)
    return TurnResult(transcript=user_text, reply_text=reply, rag_docs=[h.doc_id for h in hits])


def dialogue_manager(user_text: str, session: Session, rag: RAGIndex, answerer: Answerer,
                     top_k: int = 5, history_limit: int = 12) -> Tuple[TurnResult, DialogueState]:
    """Run one turn against a copy of the session state.

    Nothing on ``session`` is modified; pass the returned state to
    ``commit_turn`` once every collaborator call of the turn has succeeded.
    """
    state = session.state.model_copy(deep=True)

    vehicle_reset = is_new_vehicle(user_text)
    if vehicle_reset:
        logger.info("new vehicle requested, clearing premium state for %s", session.key)
        state = DialogueState()

    if isinstance(state.phase, AwaitingComparison):
        action, result = _resolve_comparison(state, list(state.phase.options), user_text)
        logger.debug("comparison answer -> %s", action)
        if result is not None:
            return result, state
        if action == "premium":
            return _start_premium_request(state, user_text, vehicle_reset), state
        return _answer(state, session, user_text, rag, answerer, top_k, history_limit), state

    if isinstance(state.phase, Collecting):
        draft = state.phase.draft
        updated = _apply_extraction(draft, user_text)
        interrupted = (
            draft.pending_slot is not None
            and updated == draft
            and looks_like_info_question(user_text)
            and not has_calc_wording(user_text)
        )
        if interrupted:
            # side question mid-quote; keep the draft for the next turn
            logger.debug("question while waiting for %s", draft.pending_slot)
            return _answer(state, session, user_text, rag, answerer, top_k, history_limit), state
        return _advance_draft(state, updated, user_text), state

    intent = detect_intent(user_text, pending_comparison=False, has_last_premium=state.last_premium is not None)
    logger.debug("intent %s (%.2f)", intent.intent, intent.confidence)
    if intent.intent == "premium_request":
        return _start_premium_request(state, user_text, vehicle_reset), state
    return _answer(state, session, user_text, rag, answerer, top_k, history_limit), state


def commit_turn(session: Session, result: TurnResult, state: DialogueState) -> None:
    session.state = state
    session.transcript.append(ChatMessage(role="user", content=result.transcript))
    session.transcript.append(ChatMessage(role="assistant", content=result.reply_text))
