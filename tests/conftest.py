"""
Shared fixtures: in-memory documents, fake collaborators and a turn helper.
"""
from typing import List, Sequence

import pytest

from dialogue import commit_turn, dialogue_manager
from errors import AnsweringError
from models import ChatMessage
from rag import DocChunk, RAGIndex
from sessions import Session

DOCS = [
    (
        "kritja.md",
        "# Kritja\nDelni kasko krije krajo, požar, točo in lom stekel. "
        "Polni kasko krije tudi škodo, ki jo povzročite sami.",
    ),
    (
        "prijava_skode.md",
        "# Prijava škode\nŠkodo prijavite v 8 dneh po telefonu ali prek spletne strani. "
        "Potrebujete številko police in fotografije.",
    ),
    (
        "samoudelezba.md",
        "# Samoudeležba\nSamoudeležba je del škode, ki ga krijete sami.",
    ),
]


class FakeAnswerer:
    """Records what the dialogue hands to the answering collaborator."""

    def __init__(self, reply: str = "Odgovor iz dokumentov.", fail: bool = False):
        self.reply = reply
        self.fail = fail
        self.calls: List[tuple] = []

    def answer(self, messages: Sequence[ChatMessage], documents: Sequence[DocChunk]) -> str:
        self.calls.append((list(messages), list(documents)))
        if self.fail:
            raise AnsweringError("LLM unreachable")
        return self.reply


class FakeClock:
    def __init__(self, now: float = 0.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def rag() -> RAGIndex:
    return RAGIndex(documents=DOCS)


@pytest.fixture
def answerer() -> FakeAnswerer:
    return FakeAnswerer()


@pytest.fixture
def failing_answerer() -> FakeAnswerer:
    return FakeAnswerer(fail=True)


@pytest.fixture
def session() -> Session:
    return Session(key="test")


@pytest.fixture
def say(session, rag, answerer):
    """Run one committed text turn on the shared session."""

    def _say(text: str):
        result, state = dialogue_manager(text, session, rag, answerer)
        commit_turn(session, result, state)
        return result

    return _say
