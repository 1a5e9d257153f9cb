from __future__ import annotations
import logging
import threading
import time
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Callable, Dict, Iterator, List, Optional, Protocol

from models import ChatMessage, DialogueState

logger = logging.getLogger(__name__)


@dataclass
class Session:
    key: str
    state: DialogueState = field(default_factory=DialogueState)
    transcript: List[ChatMessage] = field(default_factory=list)
    last_active: float = 0.0
    lock: threading.RLock = field(default_factory=threading.RLock, repr=False, compare=False)


class EvictionPolicy(Protocol):
    def is_expired(self, session: Session, now: float) -> bool: ...


@dataclass(frozen=True)
class IdleTimeout:
    ttl_seconds: float

    def is_expired(self, session: Session, now: float) -> bool:
        return now - session.last_active > self.ttl_seconds


class NeverEvict:
    def is_expired(self, session: Session, now: float) -> bool:
        return False


class SessionStore:
    """Process-local map of session key -> Session.

    Turns for one key are serialized through ``open``; different keys never
    share mutable state. Expired sessions are swept lazily on creation.
    """

    def __init__(self, eviction: Optional[EvictionPolicy] = None, clock: Callable[[], float] = time.monotonic):
        self._eviction = eviction or NeverEvict()
        self._clock = clock
        self._sessions: Dict[str, Session] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, key: str) -> bool:
        return key in self._sessions

    def get(self, key: str) -> Optional[Session]:
        with self._lock:
            return self._sessions.get(key)

    def get_or_create(self, key: str) -> Session:
        self.sweep()
        with self._lock:
            sess = self._sessions.get(key)
            if sess is None:
                sess = Session(key=key, last_active=self._clock())
                self._sessions[key] = sess
                logger.debug("session created: %s", key)
            return sess

    def delete(self, key: str) -> bool:
        with self._lock:
            removed = self._sessions.pop(key, None) is not None
        if removed:
            logger.info("session reset: %s", key)
        return removed

    def sweep(self) -> int:
        now = self._clock()
        evicted = 0
        with self._lock:
            for key, sess in list(self._sessions.items()):
                if not self._eviction.is_expired(sess, now):
                    continue
                # a session mid-turn is never evicted
                if not sess.lock.acquire(blocking=False):
                    continue
                try:
                    del self._sessions[key]
                    evicted += 1
                finally:
                    sess.lock.release()
        if evicted:
            logger.info("evicted %d idle session(s)", evicted)
        return evicted

    @contextmanager
    def open(self, key: str) -> Iterator[Session]:
        sess = self.get_or_create(key)
        with sess.lock:
            try:
                yield sess
            finally:
                sess.last_active = self._clock()
