#!/usr/bin/env python3
"""Curo: chat completions with long-term per-user memory.

This CLI tool talks to the memory-augmented chat client from a terminal.
Replies are streamed to stdout as they arrive; logs go to stderr and the
log directory.

Commands:
    chat        Interactive conversation (transcript kept for the session)
    ask         Answer a single message as a new conversation
    status      Show configuration (credentials masked)

Examples:
    python main.py chat --uid u1 --name Ada
    python main.py ask --uid u1 "I like hiking"
    python main.py -v status

Environment:
    OPENAI_API_KEY, PINECONE_API_KEY, PINECONE_ENVIRONMENT: Required
    See config.py for all configuration options
"""

import argparse
import asyncio
import json
import logging
import sys
from typing import Any, TextIO

from config import Config
from observability.logging import setup_logging
from observability.tracing import setup_tracing

EXIT_COMMANDS = ("/exit", "/quit")


async def stream_reply(client: Any, conversation: dict[str, Any], out: TextIO | None = None) -> str:
    """Request a completion, echo it to ``out`` (stdout) as it streams, return the text."""
    out = out or sys.stdout
    stream = await client.get_completion_stream(conversation)
    parts: list[str] = []
    async with stream:
        async for fragment in stream:
            if fragment.content:
                out.write(fragment.content)
                out.flush()
                parts.append(fragment.content)
    out.write("\n")
    return "".join(parts)


def _user(args: argparse.Namespace) -> dict[str, str]:
    return {"uid": args.uid, "firstName": args.name or ""}


def cmd_ask(args: argparse.Namespace, config: Config) -> int:
    """Answer one message as a new conversation.

    Args:
        args: Parsed command line arguments
        config: Application configuration

    Returns:
        Exit code (0 for success)
    """
    from orchestrator import ConversationOrchestrator

    text = " ".join(args.message).strip()
    if not text:
        print("Error: message is required", file=sys.stderr)
        return 1

    conversation = {
        "messages": [{"role": "user", "content": text}],
        "user": _user(args),
    }

    async def run() -> None:
        client = ConversationOrchestrator.from_config(config)
        await stream_reply(client, conversation)

    asyncio.run(run())
    return 0


def cmd_chat(args: argparse.Namespace, config: Config) -> int:
    """Run an interactive conversation until EOF or /exit.

    Input is read on the main thread between turns and each reply runs to
    completion on one event loop kept for the session, so Ctrl+C interrupts
    a pending prompt or a reply mid-stream.

    Args:
        args: Parsed command line arguments
        config: Application configuration

    Returns:
        Exit code (0 for success, 130 on Ctrl+C)
    """
    from orchestrator import ConversationOrchestrator

    logger = logging.getLogger(__name__)
    client = ConversationOrchestrator.from_config(config)
    messages: list[dict[str, str]] = []
    loop = asyncio.new_event_loop()

    try:
        while True:
            try:
                text = input("you> ").strip()
            except EOFError:
                print()
                break
            if not text:
                continue
            if text in EXIT_COMMANDS:
                break

            messages.append({"role": "user", "content": text})
            print("assistant> ", end="", flush=True)
            conversation = {"messages": list(messages), "user": _user(args)}
            reply = loop.run_until_complete(stream_reply(client, conversation))
            messages.append({"role": "assistant", "content": reply})
            logger.debug("Turn complete | turns=%d", len(messages) // 2)
    except KeyboardInterrupt:
        print()
        logger.info("Stopped by user (Ctrl+C)")
        return 130
    finally:
        loop.close()
    return 0


def cmd_status(args: argparse.Namespace, config: Config) -> int:
    """Display configuration with credentials masked.

    Args:
        args: Parsed command line arguments
        config: Application configuration

    Returns:
        Exit code (0 for success)
    """
    from memory import INDEX_NAME

    status = {
        "config": config.to_public_dict(),
        "memory": {"index": INDEX_NAME},
        "valid": config.validate() is None,
    }
    print(json.dumps(status, indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the command line parser."""
    parser = argparse.ArgumentParser(
        description="Curo: chat completions with long-term memory",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable debug logging",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (("chat", "Interactive conversation"), ("ask", "Answer a single message")):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument(
            "--uid",
            required=True,
            help="User identifier that scopes memory",
        )
        sub.add_argument(
            "--name",
            default="",
            help="User first name",
        )
        sub.add_argument(
            "--model",
            help="Override chat model (default: config OPENAI_MODEL)",
        )
        if name == "ask":
            sub.add_argument("message", nargs="+", help="Message text")

    subparsers.add_parser("status", help="Show configuration")

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main entry point.

    Returns:
        Exit code
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    config = Config.load()

    setup_logging(config, verbose=args.verbose)
    setup_tracing(
        enabled=config.enable_logfire,
        service_name="curo",
        token=config.logfire_token,
    )

    if getattr(args, "model", None):
        config.model = args.model

    if args.command in ("chat", "ask"):
        error = config.validate()
        if error:
            print(f"Configuration error: {error}", file=sys.stderr)
            return 1

    commands = {
        "chat": cmd_chat,
        "ask": cmd_ask,
        "status": cmd_status,
    }

    if args.command in commands:
        try:
            return commands[args.command](args, config)
        except Exception as e:
            logging.getLogger(__name__).error("Command failed | cmd=%s error=%s", args.command, e, exc_info=True)
            print(f"Error: {e}", file=sys.stderr)
            return 1
    else:
        parser.print_help()
        return 0


if __name__ == "__main__":
    sys.exit(main())
