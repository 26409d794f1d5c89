"""CLI entry point for the parts answer engine."""

import argparse
import json
import logging
import sys
from pathlib import Path

from src.core.config import Settings


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Parts answer engine - decide availability answers turn by turn",
    )
    subparsers = parser.add_subparsers(dest="command", required=True)

    # --- turn subcommand ---
    turn_parser = subparsers.add_parser(
        "turn",
        help="Run one engine turn from a JSON input file",
    )
    turn_parser.add_argument(
        "--input",
        required=True,
        help="Path to an EngineInput JSON file ('-' for stdin)",
    )
    turn_parser.add_argument(
        "--conversation",
        help="Conversation ID; loads and stores engine state in the database",
    )

    # --- answer subcommand ---
    answer_parser = subparsers.add_parser(
        "answer",
        help="Answer an operator question with the LLM pipeline",
    )
    answer_parser.add_argument(
        "--question",
        required=True,
        help="The question to answer",
    )
    answer_parser.add_argument(
        "--context",
        help="Path to a JSON file with vehicle/part/location context",
    )
    answer_parser.add_argument(
        "--provider",
        choices=["anthropic", "gemini", "openai"],
        help="Override the LLM provider from settings",
    )

    for sub in (turn_parser, answer_parser):
        sub.add_argument(
            "--config",
            help="Path to settings YAML file (default: built-in defaults)",
        )
        sub.add_argument(
            "--verbose", "-v",
            action="store_true",
            help="Enable verbose (DEBUG) logging",
        )

    return parser.parse_args(argv)


def setup_logging(verbose: bool) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )


def load_settings(path: str | None) -> Settings:
    if path is None:
        return Settings()
    return Settings.from_yaml(path)


def _read_json(path: str) -> str:
    if path == "-":
        return sys.stdin.read()
    p = Path(path)
    if not p.exists():
        msg = f"Input file not found: {p}"
        raise FileNotFoundError(msg)
    return p.read_text()


def cmd_turn(args: argparse.Namespace, settings: Settings) -> None:
    """Handle turn subcommand."""
    from src.core.db import init_db
    from src.core.schemas import EngineInput
    from src.engine.orchestrator import run_engine
    from src.engine.session import run_turn

    engine_input = EngineInput.model_validate_json(_read_json(args.input))

    if args.conversation:
        conn = init_db(settings.database.path)
        try:
            response = run_turn(conn, args.conversation, engine_input, settings)
        finally:
            conn.close()
    else:
        response = run_engine(engine_input, settings.scoring, settings.engine)

    print(response.model_dump_json(by_alias=True, indent=2))


def cmd_answer(args: argparse.Namespace, settings: Settings) -> None:
    """Handle answer subcommand.

    The response cache is built per invocation, so repeated CLI runs never hit
    it; it only pays off for callers that reuse one cache across requests.
    """
    from src.answer.models import AnswerContext, AnswerRequest
    from src.answer.service import handle_answer_request
    from src.core.cache import create_cache
    from src.core.db import SQLiteAnswerLogRepository, init_db
    from src.llm import get_provider

    context = None
    if args.context:
        context = AnswerContext.model_validate_json(_read_json(args.context))
    request = AnswerRequest(question=args.question, context=context)

    llm_name = args.provider or settings.llm.provider
    provider = get_provider(llm_name, timeout_s=settings.llm.timeout_s)

    conn = init_db(settings.database.path)
    try:
        response = handle_answer_request(
            request,
            provider,
            SQLiteAnswerLogRepository(conn),
            create_cache(settings.cache),
            settings,
        )
    finally:
        conn.close()

    print(json.dumps(response.model_dump(), indent=2))


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    setup_logging(args.verbose)

    try:
        settings = load_settings(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        sys.exit(1)

    handler = cmd_turn if args.command == "turn" else cmd_answer
    try:
        handler(args, settings)
    except (FileNotFoundError, ImportError, ValueError) as e:
        # pydantic.ValidationError is a ValueError subclass.
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


if __name__ == "__main__":
    main()
