from __future__ import annotations

import argparse
import asyncio
import json
import logging
import os
import sys
from pathlib import Path
from typing import Optional, Sequence

from .assistant import (
    AssistantClient,
    AssistantError,
    AssistantSession,
    ChainedTokenProvider,
    ConfigurationError,
    EnvTokenProvider,
    FileTokenProvider,
    InteractionCore,
    SessionTokenProvider,
    Summary,
    SummaryMode,
)
from .config import AssistantSettings, get_default_token_path, load_settings

PRO_REQUIRED_MESSAGE = "AI Insights require a Pro plan. Pass --pro or set 'pro: true' in the config file."


def build_token_provider(settings: AssistantSettings) -> SessionTokenProvider:
    token_path = settings.token_path or get_default_token_path()
    return ChainedTokenProvider(EnvTokenProvider(), FileTokenProvider(token_path))


def build_assistant_client(settings: AssistantSettings) -> AssistantClient:
    settings.require_endpoint()
    return AssistantClient(
        endpoint_url=settings.endpoint_url or "",
        anon_key=settings.anon_key or "",
        timeout=settings.timeout,
        max_retries=settings.max_retries,
    )


def stderr_notifier(message: str) -> None:
    print(f"! {message}", file=sys.stderr)


def create_core(settings: AssistantSettings) -> tuple[InteractionCore, AssistantClient]:
    client = build_assistant_client(settings)
    core = InteractionCore(
        client,
        build_token_provider(settings),
        eligible=settings.pro,
        session=AssistantSession(actor_id=os.getenv("USER") or "local"),
        notifier=stderr_notifier,
    )
    return core, client


def render_summary(summary: Optional[Summary]) -> str:
    if summary is None:
        return "No cached summary available."

    lines: list[str] = []
    label = "cached" if summary.from_cache else "generated"
    if summary.is_stale:
        label = "stale"
    header = f"[{label}]"
    if summary.generated_at:
        header += f" {summary.generated_at}"
    lines.append(header)
    if summary.text.strip():
        lines.extend(["", summary.text.strip()])
    if summary.top_issues:
        lines.extend(["", "Top issues:"])
        lines.extend(f"  - {issue}" for issue in summary.top_issues)
    if summary.top_strengths:
        lines.extend(["", "Top strengths:"])
        lines.extend(f"  + {strength}" for strength in summary.top_strengths)
    return "\n".join(lines)


async def run_summary(core: InteractionCore, refresh: bool, as_json: bool) -> int:
    mode = SummaryMode.REFRESH if refresh else SummaryMode.CACHE_ONLY
    try:
        summary = await core.fetch_summary(mode, notify=refresh)
    except AssistantError as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1

    if as_json:
        print(json.dumps(summary.to_dict() if summary else None, ensure_ascii=False, indent=2))
    else:
        print(render_summary(summary))
    return 0


async def run_ask(core: InteractionCore, text: str) -> int:
    reply = await core.send_message(text)
    error = core.state.error
    if error is not None:
        print(f"error: {error}", file=sys.stderr)
        return 1
    if reply is None:
        print("error: nothing to send", file=sys.stderr)
        return 2
    print(reply.content)
    return 0


async def _run_with_core(settings: AssistantSettings, action) -> int:
    core, client = create_core(settings)
    try:
        return await action(core)
    finally:
        core.end_session()
        await client.aclose()


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="feedback-assistant",
        description="Fetch AI summaries of customer feedback and chat about it.",
    )
    p.add_argument(
        "--config",
        type=Path,
        help="YAML config file (default: ~/.config/feedback-assistant/config.yaml)",
    )
    p.add_argument(
        "--token-file",
        type=Path,
        help="File holding the session token, re-read on every request (default: ~/.config/feedback-assistant/token)",
    )
    p.add_argument(
        "--pro",
        action=argparse.BooleanOptionalAction,
        default=None,
        help="Treat the session as entitled to AI features",
    )
    p.add_argument("--timeout", type=float, help="Request deadline in seconds (default: 20)")
    p.add_argument(
        "--log-level",
        default=os.getenv("FEEDBACK_ASSISTANT_LOG_LEVEL", "WARNING"),
        help="Logging level (default: WARNING)",
    )

    sub = p.add_subparsers(dest="cmd", required=True)

    p_summary = sub.add_parser("summary", help="Show the AI summary of recent feedback")
    p_summary.add_argument(
        "--refresh",
        action="store_true",
        help="Generate a fresh summary instead of reading the cache (consumes quota)",
    )
    p_summary.add_argument("--json", action="store_true", help="Print the summary as JSON")

    p_ask = sub.add_parser("ask", help="Ask a single question about the feedback")
    p_ask.add_argument("text", nargs="+", help="Question text")

    sub.add_parser("chat", help="Interactive chat about the feedback")

    return p


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    configure_logging(args.log_level)

    try:
        settings = load_settings(
            args.config,
            pro=args.pro,
            timeout=args.timeout,
            token_path=args.token_file,
        )
        settings.require_endpoint()
    except ConfigurationError as exc:
        parser.error(str(exc))
        return 2

    if not settings.pro:
        print(PRO_REQUIRED_MESSAGE, file=sys.stderr)
        return 1

    if args.cmd == "summary":
        return asyncio.run(_run_with_core(settings, lambda core: run_summary(core, args.refresh, args.json)))

    if args.cmd == "ask":
        text = " ".join(args.text)
        return asyncio.run(_run_with_core(settings, lambda core: run_ask(core, text)))

    if args.cmd == "chat":
        try:
            from .chat_repl import run_chat
        except ModuleNotFoundError as exc:
            if exc.name == "prompt_toolkit":
                parser.error(
                    "Interactive chat requires optional dependency 'prompt_toolkit'. "
                    "Install it from the repo with `python -m pip install .[chat]`."
                )
            raise
        return asyncio.run(_run_with_core(settings, run_chat))

    parser.error("Unknown command")
    return 2


if __name__ == "__main__":  # pragma: no cover
    raise SystemExit(main())
