"""CLI entry point for VoiceCoder."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from pathlib import Path
from typing import Optional


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="voicecoder",
        description="VoiceCoder: ask LLM backends about code and track spend",
    )
    parser.add_argument(
        "--verbose",
        "-v",
        action="store_true",
        help="Enable verbose logging",
    )
    sub = parser.add_subparsers(dest="command", required=True)

    sub.add_parser("providers", help="List known providers, models and pricing")

    select = sub.add_parser("select", help="Choose the default provider")
    select.add_argument("provider", help="Provider id (see `voicecoder providers`)")
    select.add_argument("--key", default=None, help="API key to store for this provider")

    ask = sub.add_parser("ask", help="Ask a question about a piece of code")
    ask.add_argument("question", help="What you want to know about the code")
    source = ask.add_mutually_exclusive_group(required=True)
    source.add_argument("--file", metavar="PATH", help="Read the code from this file")
    source.add_argument("--stdin", action="store_true", help="Read the code from stdin")
    ask.add_argument(
        "--language",
        default=None,
        help="Language tag for the code fence (default: file extension)",
    )
    ask.add_argument("--provider", default=None, help="Provider id for this request")
    ask.add_argument("--model", default=None, help="Model id for this request")
    ask.add_argument(
        "--stream",
        action="store_true",
        help="Print the answer as it arrives",
    )

    usage = sub.add_parser("usage", help="Show accumulated token usage and cost")
    usage.add_argument("--reset", action="store_true", help="Clear recorded usage")
    usage.add_argument(
        "--provider",
        default=None,
        help="With --reset, clear only this provider",
    )

    key = sub.add_parser("key", help="Manage stored API keys")
    key_sub = key.add_subparsers(dest="key_command", required=True)
    key_set = key_sub.add_parser("set", help="Store an API key")
    key_set.add_argument("provider")
    key_set.add_argument("api_key")
    key_delete = key_sub.add_parser("delete", help="Delete a stored API key")
    key_delete.add_argument("provider")

    sub.add_parser("health", help="Check whether the local Ollama server is up")

    return parser


def build_assistant(config=None):
    from .assistant import CodeAssistant
    from .config import AssistantConfig
    from .credentials import KeyManager
    from .storage import JsonFileStore

    config = config or AssistantConfig.from_env()
    state = JsonFileStore(config.state_path)
    keys = KeyManager(JsonFileStore(config.secrets_path))
    return CodeAssistant(config, state, keys)


async def run_command(args: argparse.Namespace) -> int:
    """Run one subcommand. Returns the process exit code."""
    from .config import AssistantConfig

    config = AssistantConfig.from_env()
    if getattr(args, "model", None):
        config.model = args.model

    async with build_assistant(config) as assistant:
        if args.command == "providers":
            print_providers(assistant)
        elif args.command == "select":
            provider_config = await assistant.select_provider(args.provider, args.key)
            print(f"VoiceCoder provider set to: {provider_config.name}")
        elif args.command == "ask":
            await run_ask(assistant, args)
        elif args.command == "usage":
            if args.reset:
                await assistant.reset_usage(args.provider)
                print("Usage reset" + (f" for {args.provider}" if args.provider else ""))
            else:
                print(assistant.show_usage())
        elif args.command == "key":
            if args.key_command == "set":
                await assistant.keys.set_api_key(args.provider, args.api_key)
                assistant.factory.clear_cache()
                print(f"API key stored for {args.provider}")
            else:
                await assistant.keys.delete_api_key(args.provider)
                assistant.factory.clear_cache()
                print(f"API key deleted for {args.provider}")
        elif args.command == "health":
            provider = await assistant.get_provider("ollama")
            status = await provider.check_health()
            if status["ok"]:
                models = ", ".join(status["models"]) or "(none)"
                print(f"Ollama is running at {provider.base_url}. Models: {models}")
            else:
                print(f"Ollama is not reachable: {status['error']}", file=sys.stderr)
                return 1
    return 0


async def run_ask(assistant, args: argparse.Namespace) -> None:
    if args.stdin:
        code = sys.stdin.read()
        language = args.language or ""
    else:
        path = Path(args.file)
        code = path.read_text()
        language = args.language or path.suffix.lstrip(".")

    if args.stream:

        def on_chunk(text: str) -> None:
            sys.stdout.write(text)
            sys.stdout.flush()

        answer = await assistant.ask_about_code(
            code, args.question, language, provider_id=args.provider, on_chunk=on_chunk
        )
        print(
            f"\n\n---\n*Provider: {answer.provider_name} | "
            f"Model: {answer.response.model} | Cost: ${answer.cost:.4f}*"
        )
    else:
        answer = await assistant.ask_about_code(
            code, args.question, language, provider_id=args.provider
        )
        print(answer.document)


def print_providers(assistant) -> None:
    selected = assistant.selected_provider
    for provider in assistant.list_providers():
        marker = "*" if provider.id == selected else " "
        pricing = provider.pricing
        print(
            f"{marker} {provider.id:<10} {provider.name:<20} "
            f"${pricing.input_per_1k}/1K in, ${pricing.output_per_1k}/1K out"
        )
        if provider.free_tier:
            tier = provider.free_tier
            if tier.unlimited:
                print("    free tier: unlimited")
            elif tier.tokens_per_month:
                print(f"    free tier: {tier.tokens_per_month:,.0f} tokens/month")
            elif tier.requests_per_minute:
                print(f"    free tier: {tier.requests_per_minute} requests/minute")
        for model in provider.models:
            print(f"    - {model.id} ({model.name}, {model.context_window:,} ctx)")


def main(argv: Optional[list[str]] = None) -> None:
    from .errors import VoiceCoderError

    parser = build_parser()
    args = parser.parse_args(argv)

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(name)s: %(message)s")

    try:
        exit_code = asyncio.run(run_command(args))
    except (VoiceCoderError, ValueError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    if exit_code:
        sys.exit(exit_code)


if __name__ == "__main__":
    main()
