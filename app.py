from __future__ import annotations
import logging
from app_common import (
    GENERIC_FAILURE,
    GREETING,
    AgentContext,
    build_context,
    console,
    handle_text_turn,
    is_exit_phrase,
    print_agent,
    reset_session,
    setup_logging,
)
from config import get_settings

logger = logging.getLogger(__name__)

SESSION_KEY = "console"
RESET_WORDS = {"reset", "ponastavi", "znova"}
DOCS_COMMAND = "/dokumenti"


def show_documents(ctx: AgentContext, arg: str = "") -> None:
    if arg:
        doc = ctx.rag.get(arg)
        if doc is None:
            print_agent(f"Dokumenta {arg} ni.", title="Dokumenti")
        else:
            print_agent(doc.text, title=doc.doc_id)
        return

    lines = [f"{d['id']}: {d['preview']}" for d in ctx.rag.list_documents(preview_len=80)]
    print_agent("\n".join(lines) or "Ni dokumentov.", title="Dokumenti")


def start_call() -> None:
    settings = get_settings()
    setup_logging(settings.log_level)
    ctx = build_context(settings)

    print_agent(GREETING)

    while True:
        user = console.input("[bold cyan]Vi[/bold cyan]: ").strip()
        if not user:
            continue
        if is_exit_phrase(user):
            print_agent("Nasvidenje!")
            break
        if user.lower() in RESET_WORDS:
            reset_session(ctx, SESSION_KEY)
            print_agent("Začniva znova. Kako vam lahko pomagam?")
            continue
        if user.lower().startswith(DOCS_COMMAND):
            show_documents(ctx, user[len(DOCS_COMMAND):].strip())
            continue

        try:
            result = handle_text_turn(ctx, SESSION_KEY, user)
        except Exception:
            logger.exception("turn failed")
            print_agent(GENERIC_FAILURE)
            continue
        print_agent(result.reply_text, title="Agent")


if __name__ == "__main__":
    start_call()
