"""Replay recorded utterances as one call: each audio file is a turn, replies are written as mp3."""
from __future__ import annotations
import logging
import os
import sys
from typing import List

from app_common import GENERIC_FAILURE, GREETING, build_context, console, print_agent, setup_logging
from app_common import handle_voice_turn
from config import get_settings

logger = logging.getLogger(__name__)

SESSION_KEY = "voice"


def _reply_path(audio_path: str) -> str:
    root, _ = os.path.splitext(audio_path)
    return f"{root}.reply.mp3"


def start_call(audio_paths: List[str]) -> int:
    settings = get_settings()
    setup_logging(settings.log_level)
    ctx = build_context(settings, with_voice=True)

    print_agent(GREETING)

    failures = 0
    for path in audio_paths:
        with open(path, "rb") as f:
            audio = f.read()

        try:
            res = handle_voice_turn(ctx, SESSION_KEY, audio)
        except Exception:
            logger.exception("turn failed for %s", path)
            print_agent(GENERIC_FAILURE)
            failures += 1
            continue

        console.print(f"[bold cyan]Vi[/bold cyan]: {res.turn.transcript}")
        print_agent(res.turn.reply_text)
        out = _reply_path(path)
        with open(out, "wb") as f:
            f.write(res.reply_audio)
        logger.info("reply audio written to %s", out)

    return 1 if failures else 0


if __name__ == "__main__":
    if len(sys.argv) < 2:
        console.print("usage: python app_voice.py TURN1.webm [TURN2.webm ...]")
        sys.exit(2)
    sys.exit(start_call(sys.argv[1:]))
