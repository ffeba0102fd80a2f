from __future__ import annotations

from typing import Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.styles import Style

from .assistant import AssistantError, InteractionCore, SummaryMode
from .cli import render_summary

_STYLE = Style.from_dict(
    {
        "prompt": "bold ansicyan",
    }
)

_HELP = "Commands: /summary  /refresh  /clear  /help  /quit"


async def handle_command(core: InteractionCore, command: str) -> Optional[bool]:
    """Run a slash command; returns False to stop the loop, None if unknown."""
    name = command.strip().lower()
    if name in ("/quit", "/exit"):
        return False
    if name == "/help":
        print(_HELP)
        return True
    if name == "/clear":
        core.clear_chat()
        print("Conversation cleared.")
        return True
    if name in ("/summary", "/refresh"):
        mode = SummaryMode.REFRESH if name == "/refresh" else SummaryMode.CACHE_ONLY
        try:
            summary = await core.fetch_summary(mode, notify=mode is SummaryMode.REFRESH)
        except AssistantError as exc:
            print(f"error: {exc}")
            return True
        print(render_summary(summary))
        return True
    return None


async def run_chat(core: InteractionCore) -> int:  # pragma: no cover - interactive
    core.schedule_initialize()
    session: PromptSession[str] = PromptSession(history=InMemoryHistory(), style=_STYLE)
    print(_HELP)

    while True:
        try:
            with patch_stdout():
                text = await session.prompt_async([("class:prompt", "you> ")])
        except (EOFError, KeyboardInterrupt):
            return 0

        if text.strip().startswith("/"):
            outcome = await handle_command(core, text)
            if outcome is False:
                return 0
            if outcome is None:
                print(f"Unknown command. {_HELP}")
            continue

        reply = await core.send_message(text)
        if reply is not None:
            print(f"assistant> {reply.content}")
            continue
        error = core.state.error
        if error is not None:
            print(f"error: {error}")
            core.clear_error()
