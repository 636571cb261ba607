"""Command-line entry point: ``schemachat "compute 2+2"``."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import TYPE_CHECKING, TextIO

from schemachat.config import DEFAULT_MODEL, Config
from schemachat.errors import ConfigurationError, EnvelopeParseError
from schemachat.extract import Decoded, DecodeFailed
from schemachat.transport import MockTransport
from schemachat.tutor import mock_reply, solve

if TYPE_CHECKING:
    from collections.abc import Sequence

    from schemachat.runner import RunResult
    from schemachat.tutor import MathReasoning

EXIT_OK = 0
EXIT_CALL_FAILED = 1
EXIT_USAGE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="schemachat",
        description="Solve a math problem step by step using structured model output.",
    )
    parser.add_argument("prompt", help="The math problem to solve.")
    parser.add_argument("--model", default=DEFAULT_MODEL, help="Chat model id.")
    parser.add_argument(
        "--api-key",
        default=None,
        help="Optional API key override. Usually read from OPENAI_API_KEY.",
    )
    parser.add_argument(
        "--timeout", type=float, default=60.0, help="HTTP timeout in seconds."
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Dump the request body (never headers) to stderr.",
    )
    parser.add_argument(
        "--mock",
        action="store_true",
        help="Answer with a canned payload instead of calling the API.",
    )
    return parser


def build_config_or_exit(args: argparse.Namespace) -> Config:
    """Build Config from parsed args, exiting with a concise actionable error."""
    try:
        return Config(
            model=args.model,
            api_key=args.api_key,
            timeout_s=args.timeout,
            debug=args.debug,
            use_mock=args.mock,
        )
    except ConfigurationError as exc:
        hint = f" Hint: {exc.hint}" if exc.hint else ""
        print(f"Configuration error: {exc}.{hint}", file=sys.stderr)
        raise SystemExit(EXIT_USAGE) from exc


def print_reasoning(reasoning: MathReasoning, out: TextIO) -> None:
    for i, step in enumerate(reasoning.steps):
        print(f"Step {i}: {step.explanation}", file=out)
        print(f"Output: {step.output:f}", file=out)
    print(f"Final answer: {reasoning.final_answer:f}", file=out)


def report(result: RunResult, *, out: TextIO, err: TextIO) -> int:
    """Render *result*; return the process exit code."""
    if result.status == "error":
        error = result.error
        if isinstance(error, EnvelopeParseError):
            print(f"error: {error} {error.raw_body!r}", file=err)
        else:
            print(f"error: {error}", file=err)
        return EXIT_CALL_FAILED
    if result.status == "no_choices":
        print("no choices returned by the model", file=err)
        return EXIT_OK

    for outcome in result.outcomes:
        if isinstance(outcome, Decoded):
            print_reasoning(outcome.value, out)
        elif isinstance(outcome, DecodeFailed):
            print(outcome.describe(), file=err)
    return EXIT_OK


def _configure_logging(debug: bool) -> None:
    if not debug:
        return
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s %(name)s: %(message)s"))
    logger = logging.getLogger("schemachat")
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    config = build_config_or_exit(args)
    _configure_logging(config.debug)

    transport = MockTransport(reply=mock_reply) if config.use_mock else None
    result = asyncio.run(solve(args.prompt, config=config, transport=transport))
    return report(result, out=sys.stdout, err=sys.stderr)


if __name__ == "__main__":
    raise SystemExit(main())
