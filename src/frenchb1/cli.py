"""
MIT License
Copyright (c) 2026 arpan404
See LICENSE file for full license text.

Command line entry point: backup, restore, reset and ad-hoc generation.
"""

from __future__ import annotations

import argparse
import asyncio
import dataclasses
import json
import logging
import sys
from collections.abc import Callable, Sequence
from datetime import date
from typing import Any

from .artifacts import Artifact
from .cache import ResponseCache, create_response_cache
from .cache.snapshot import default_export_filename, export_to_file, import_from_file
from .errors import GenerationFailedError, SnapshotFormatError, StorageError
from .orchestrator import GenerationOrchestrator
from .profile import load_profile
from .settings import Settings

OrchestratorFactory = Callable[[Settings, ResponseCache], GenerationOrchestrator]

GENERATION_COMMANDS = ("grammar", "verb", "quiz", "flashcards", "phrases")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="frenchb1", description="French B1 content generation and cache tools"
    )
    parser.add_argument("--cache-path", default=None, help="SQLite cache file")
    parser.add_argument(
        "--cache-backend", choices=("sqlite", "inmemory"), default=None
    )
    parser.add_argument("--log-level", default="WARNING")
    sub = parser.add_subparsers(dest="command", required=True)

    export = sub.add_parser("export", help="Write every cached artifact to a JSON file")
    export.add_argument("path", nargs="?", default=None)

    restore = sub.add_parser("import", help="Merge a JSON snapshot into the cache")
    restore.add_argument("path")

    clear = sub.add_parser("clear", help="Delete every cached artifact")
    clear.add_argument("--yes", action="store_true", help="Confirm deletion")

    grammar = sub.add_parser("grammar", help="Grammar explanation for a topic")
    grammar.add_argument("topic")
    verb = sub.add_parser("verb", help="Conjugation table for a verb")
    verb.add_argument("verb")
    quiz = sub.add_parser("quiz", help="Multiple choice quiz for a topic")
    quiz.add_argument("topic")
    cards = sub.add_parser("flashcards", help="Flashcards for a category")
    cards.add_argument("category")
    phrases = sub.add_parser("phrases", help="Useful phrases for a topic and tense")
    phrases.add_argument("topic")
    phrases.add_argument("tense")
    for command in (grammar, verb, quiz, cards, phrases):
        command.add_argument("--language", default="English")

    relay = sub.add_parser("relay", help="Serve the DeepSeek relay")
    relay.add_argument("--host", default="127.0.0.1")
    relay.add_argument("--port", type=int, default=8787)
    return parser


def _settings_for(args: argparse.Namespace) -> Settings:
    settings = Settings.from_env()
    overrides: dict[str, Any] = {}
    if args.cache_path:
        overrides["cache_path"] = args.cache_path
    if args.cache_backend:
        overrides["cache_backend"] = args.cache_backend
    return dataclasses.replace(settings, **overrides) if overrides else settings


def _default_orchestrator(settings: Settings, cache: ResponseCache) -> GenerationOrchestrator:
    return GenerationOrchestrator.from_settings(
        settings, cache, profile=load_profile(settings.profile_path)
    )


def _render(result: Any) -> str:
    if isinstance(result, str):
        return result
    if isinstance(result, Artifact):
        return json.dumps(result.to_json(), ensure_ascii=False, indent=2)
    return json.dumps(
        [item.to_json() if isinstance(item, Artifact) else item for item in result],
        ensure_ascii=False,
        indent=2,
    )


async def _generate(orchestrator: GenerationOrchestrator, args: argparse.Namespace) -> Any:
    if args.command == "grammar":
        return await orchestrator.get_grammar_explanation(args.topic, args.language)
    if args.command == "verb":
        return await orchestrator.get_verb_conjugation(args.verb, args.language)
    if args.command == "quiz":
        return await orchestrator.get_quiz(args.topic, args.language)
    if args.command == "flashcards":
        return await orchestrator.get_flashcards(args.category, args.language)
    return await orchestrator.get_daily_phrases(args.topic, args.tense, args.language)


async def _run(
    args: argparse.Namespace,
    settings: Settings,
    orchestrator_factory: OrchestratorFactory,
) -> int:
    cache = create_response_cache(settings)
    try:
        if args.command == "export":
            path = args.path or default_export_filename(date.today())
            await export_to_file(cache, path)
            print(f"Exported cache to {path}")
            return 0
        if args.command == "import":
            try:
                count = await import_from_file(cache, args.path)
            except SnapshotFormatError as exc:
                print(f"Invalid snapshot: {exc}", file=sys.stderr)
                return 2
            print(f"Imported {count} entries from {args.path}")
            return 0
        if args.command == "clear":
            if not args.yes:
                print("Refusing to clear the cache without --yes", file=sys.stderr)
                return 1
            await cache.clear_all()
            print("Cache cleared")
            return 0

        orchestrator = orchestrator_factory(settings, cache)
        try:
            result = await _generate(orchestrator, args)
        except GenerationFailedError as exc:
            if exc.rate_limited:
                print(
                    "Rate limited by the AI providers; wait a minute and try again.",
                    file=sys.stderr,
                )
            else:
                print(f"Generation failed: {exc}", file=sys.stderr)
            return 1
        finally:
            await orchestrator.aclose()
        print(_render(result))
        return 0
    finally:
        await cache.close()


def main(
    argv: Sequence[str] | None = None,
    *,
    orchestrator_factory: OrchestratorFactory | None = None,
) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=getattr(logging, str(args.log_level).upper(), logging.WARNING),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    settings = _settings_for(args)

    if args.command == "relay":
        import uvicorn

        from .relay import create_relay_app

        uvicorn.run(create_relay_app(settings), host=args.host, port=args.port)
        return 0

    try:
        return asyncio.run(_run(args, settings, orchestrator_factory or _default_orchestrator))
    except StorageError as exc:
        print(f"Storage error: {exc}", file=sys.stderr)
        return 3


if __name__ == "__main__":
    raise SystemExit(main())
