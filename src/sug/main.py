#!/usr/bin/env python
"""
sug - AI-powered shell command suggestions

Usage:
    sug complete "git che"        # prints +ckout, =<command> or a prediction
    sug predict                   # prints +<command> or =<command>
    sug debug [--json]            # shows the context and history that would be sent
    sug debug --debug-aliases     # shows each alias collection step

Configuration:
    ~/.sug.yaml with optional keys: provider, debug, timeout, history_limit,
    models, base_urls, theme. SUG_PROVIDER, SUG_DEBUG and SUG_TIMEOUT
    override the file; command-line flags override both.

Credentials come from OPENAI_API_KEY, ANTHROPIC_API_KEY, GEMINI_API_KEY
or GROQ_API_KEY; the first one set is used unless a provider is chosen.

The shell front-end reads the suggestion from stdout. Errors are reported
on stderr with a nonzero exit status.
"""

import argparse
import json
import sys
from dataclasses import replace
from typing import List, Optional

from .app import SugApp
from .config import load_settings, parse_duration
from .constants import (
    APP_NAME, APP_VERSION, CONFIG_FILE_PATH, DEFAULT_HISTORY_LIMIT,
    ERROR_EXIT_CODE, INTERRUPTED_EXIT_CODE, SUCCESS_EXIT_CODE,
    COMPLETE_TIMEOUT, PREDICT_TIMEOUT,
)
from .exceptions import SugError
from .logger import logger
from .models import Provider
from .ui import UIManager


def _history_limit(value: str) -> int:
    try:
        limit = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid history limit: {value!r}")
    if limit < 0:
        raise argparse.ArgumentTypeError(f"history limit must not be negative: {value}")
    return limit


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=APP_NAME,
        description="AI-powered shell command suggestions",
    )
    parser.add_argument("--config", help=f"config file (default is {CONFIG_FILE_PATH})")
    parser.add_argument("--provider", choices=Provider.names(), help="AI provider")
    parser.add_argument("--debug", action="store_true", default=None, help="enable debug mode")
    parser.add_argument("--version", action="version", version=f"{APP_NAME} {APP_VERSION}")

    subparsers = parser.add_subparsers(dest="command")

    complete = subparsers.add_parser("complete", help="complete a partial shell command")
    complete.add_argument("input", nargs="?", help="partial command (read from stdin if omitted)")
    complete.add_argument("--input", dest="input_flag", help="input command to complete")
    complete.add_argument("--timeout", help=f"request timeout (default {COMPLETE_TIMEOUT})")
    complete.set_defaults(handler=run_complete)

    predict = subparsers.add_parser("predict", help="predict the next most likely command")
    predict.add_argument("--history-limit", type=_history_limit, default=None,
                         help=f"number of recent history entries to analyze (default {DEFAULT_HISTORY_LIMIT})")
    predict.add_argument("--timeout", help=f"request timeout (default {PREDICT_TIMEOUT})")
    predict.set_defaults(handler=run_predict)

    debug = subparsers.add_parser("debug", help="show collected context and history without calling the AI")
    debug.add_argument("--history-limit", type=_history_limit, default=None,
                       help=f"number of recent history entries to show (default {DEFAULT_HISTORY_LIMIT})")
    debug.add_argument("--json", action="store_true", help="output in JSON format")
    debug.add_argument("--debug-aliases", action="store_true",
                       help="show each alias collection step instead of the full report")
    debug.set_defaults(handler=run_debug)

    return parser


def _timeout_flag(args) -> Optional[float]:
    return parse_duration(args.timeout) if args.timeout else None


def _read_input(args) -> str:
    """Input from the positional argument, --input, or piped stdin"""
    if args.input:
        return args.input
    if args.input_flag:
        return args.input_flag
    if not sys.stdin.isatty():
        return sys.stdin.read().rstrip("\n")
    return ""


def run_complete(app: SugApp, args, ui: UIManager) -> int:
    suggestion = app.complete(_read_input(args), timeout=_timeout_flag(args))
    sys.stdout.write(suggestion.render())
    sys.stdout.flush()
    return SUCCESS_EXIT_CODE


def run_predict(app: SugApp, args, ui: UIManager) -> int:
    suggestion = app.predict(history_limit=args.history_limit, timeout=_timeout_flag(args))
    sys.stdout.write(suggestion.render())
    sys.stdout.flush()
    return SUCCESS_EXIT_CODE


def run_debug(app: SugApp, args, ui: UIManager) -> int:
    if args.debug_aliases:
        return run_debug_aliases(app, args, ui)

    context, history = app.debug_info(history_limit=args.history_limit)
    if args.json:
        debug_info = {
            "context": context.to_dict(),
            "history": [entry.to_dict() for entry in history],
        }
        print(json.dumps(debug_info, indent=2))
    else:
        ui.show_debug_report(context, history)
    return SUCCESS_EXIT_CODE


def run_debug_aliases(app: SugApp, args, ui: UIManager) -> int:
    shell, probes = app.debug_aliases()
    if args.json:
        print(json.dumps({"shell": shell, "probes": [probe.to_dict() for probe in probes]}, indent=2))
    else:
        ui.show_alias_probes(shell, probes)
    return SUCCESS_EXIT_CODE


def main(argv: Optional[List[str]] = None) -> None:
    """Main entry point for sug"""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help(sys.stderr)
        sys.exit(ERROR_EXIT_CODE)

    ui = UIManager()
    try:
        settings = load_settings(args.config)
        if args.provider:
            settings = replace(settings, provider=Provider(args.provider))
        if args.debug:
            settings = replace(settings, debug=True)

        logger.configure(debug=settings.debug)
        if settings.source:
            logger.debug(f"Using config file: {settings.source}")
        ui = UIManager(settings.theme)

        exit_code = args.handler(SugApp(settings), args, ui)
    except SugError as e:
        logger.debug(f"{type(e).__name__}: {e}")
        ui.show_error(e)
        sys.exit(ERROR_EXIT_CODE)
    except KeyboardInterrupt:
        sys.exit(INTERRUPTED_EXIT_CODE)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
