import argparse
import atexit
import logging
import sys
from typing import Dict, List, Optional

import flask
from flask import jsonify, request

from notecalc.config import (
    DEBUG_MODE,
    HISTORY_FILE,
    LOG_FORMAT,
    SERVER_HOST,
    SERVER_PORT,
    Settings,
    load_settings,
    save_settings,
)
from notecalc.evaluator import Evaluator
from notecalc.formatter import FormattingConfig, format_value
from notecalc.keywords import LANGUAGE_NAMES, resolve_language
from notecalc.models import EvaluationContext, LineResult
from notecalc.rates import RateProvider
from notecalc.tokenizer import tokenizer_for
from notecalc.units import Currency, symbol_of

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if DEBUG_MODE else logging.INFO,
    format=LOG_FORMAT,
)
logger = logging.getLogger(__name__)

app = flask.Flask(__name__)

RATE_PROVIDER = RateProvider()


def build_evaluator(settings: Settings, provider: Optional[RateProvider] = None) -> Evaluator:
    """An evaluator bound to the current language and rate snapshot."""
    provider = provider if provider is not None else RATE_PROVIDER
    language = resolve_language(settings.language)
    tokenizer = tokenizer_for(language)
    return Evaluator(keywords=tokenizer.keywords, rates=provider.snapshot(), tokenizer=tokenizer)


def unit_label(unit) -> Optional[str]:
    if unit is None:
        return None
    if isinstance(unit, Currency):
        return unit.code
    return symbol_of(unit)


def serialize_result(result: LineResult, config: FormattingConfig) -> Dict:
    value = result.value
    return {
        "index": result.index,
        "input": result.input,
        "value": value.number if value is not None else None,
        "unit": unit_label(value.unit) if value is not None else None,
        "display": format_value(value, config) if value is not None else None,
        "error": result.error,
        "variable": result.assignment_variable,
    }


def serialize_variables(context: EvaluationContext, config: FormattingConfig) -> Dict[str, str]:
    return {name: format_value(value, config) for name, value in context.variables.items()}


def settings_from_payload(data: Dict) -> Settings:
    """Settings for one request; raises ValueError on unknown language or precision."""
    settings = Settings(
        language=str(data.get("language", "en")),
        use_thousands_separator=bool(data.get("thousands_separator", True)),
        decimal_precision=str(data.get("precision", "auto")),
    )
    return settings.validate()


# --- Flask Routes ---
@app.route("/evaluate", methods=["POST"])
def evaluate_note():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("text"), str):
        return jsonify({"error": "Request body must be JSON with a 'text' string"}), 400

    try:
        settings = settings_from_payload(data)
    except ValueError as e:
        return jsonify({"error": f"Invalid settings: {e}"}), 400

    evaluator = build_evaluator(settings)
    # This pass keeps the snapshot it already holds; the next one sees fresh rates
    if RATE_PROVIDER.is_stale():
        RATE_PROVIDER.refresh_in_background()
    config = settings.formatting_config()
    context = evaluator.evaluate(data["text"])
    logger.info(f"Evaluated note with {len(context.results)} lines")
    return jsonify({
        "lines": [serialize_result(result, config) for result in context.results],
        "variables": serialize_variables(context, config),
        "live_rates": bool(getattr(evaluator.rates, "live", False)),
    })


@app.route("/highlight", methods=["POST"])
def highlight_line():
    data = request.get_json(silent=True)
    if not isinstance(data, dict) or not isinstance(data.get("line"), str):
        return jsonify({"error": "Request body must be JSON with a 'line' string"}), 400
    if "\n" in data["line"]:
        return jsonify({"error": "Highlighting works on a single line"}), 400

    try:
        language = resolve_language(data.get("language"))
    except (ValueError, AttributeError) as e:
        return jsonify({"error": f"Unknown language: {e}"}), 400

    ranges = tokenizer_for(language).tokenize_with_ranges(data["line"])
    return jsonify({
        "ranges": [
            {"kind": token_range.kind.value, "start": token_range.start, "length": token_range.length}
            for token_range in ranges
        ]
    })


@app.route("/rates", methods=["GET"])
def get_rates():
    table = RATE_PROVIDER.snapshot()
    return jsonify({
        "live": table.live,
        "fetched_at": table.fetched_at,
        "rates": dict(table),
    })


@app.route("/rates/refresh", methods=["POST"])
def refresh_rates():
    table = RATE_PROVIDER.refresh()
    return jsonify({"live": table.live, "fetched_at": table.fetched_at, "codes": len(table)})


@app.route("/languages", methods=["GET"])
def get_languages():
    return jsonify({language.value: name for language, name in LANGUAGE_NAMES.items()})


# --- CLI ---
HELP_TEXT = """
Usage examples:
  2 + 3                 - Basic arithmetic
  x = 10                - Assign a variable
  100 km in miles       - Convert units
  $100 in EUR           - Convert currencies
  20% tip on $85        - Tip or tax on an amount
  $200 split 4 ways     - Split an amount
  sum / avg             - Fold the lines above, up to a blank line
  prev * 2              - Use the previous line's result
  255 in hex            - Display formats (hex, binary, octal, sci)

Commands:
  :show                 - Show the whole note with results
  :vars                 - Show all variables
  :clear                - Start a new, empty note
  :help                 - Show this help message
  :quit                 - Exit
"""


def render_lines(results: List[LineResult], config: FormattingConfig) -> List[str]:
    """One display line per input line: the text, then its result or error."""
    width = max((len(result.input) for result in results), default=0)
    rendered = []
    for result in results:
        if result.value is not None:
            rendered.append(f"{result.input.ljust(width)}  = {format_value(result.value, config)}")
        elif result.error is not None:
            rendered.append(f"{result.input.ljust(width)}  ! {result.error}")
        else:
            rendered.append(result.input)
    return rendered


def evaluate_file(text: str, settings: Settings, provider: Optional[RateProvider] = None) -> List[str]:
    evaluator = build_evaluator(settings, provider)
    context = evaluator.evaluate(text)
    return render_lines(context.results, settings.formatting_config())


def build_argument_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Notepad calculator")
    parser.add_argument("file", nargs="?", help="Note to evaluate ('-' reads standard input)")
    parser.add_argument("--language", "-l", help="Keyword language: " + ", ".join(
        language.value for language in LANGUAGE_NAMES))
    parser.add_argument("--precision", "-p", help="Decimal precision: auto, 2, 4 or 6")
    parser.add_argument("--no-separator", action="store_true", help="Do not group thousands")
    parser.add_argument("--refresh-rates", action="store_true", help="Fetch live currency rates first")
    parser.add_argument("--save", action="store_true", help="Remember these options as defaults")
    return parser


def settings_from_args(args: argparse.Namespace, defaults: Settings) -> Settings:
    settings = Settings(
        language=args.language or defaults.language,
        use_thousands_separator=defaults.use_thousands_separator and not args.no_separator,
        decimal_precision=args.precision or defaults.decimal_precision,
    )
    return settings.validate()


def setup_readline(get_words):
    """Enable history and tab completion; returns False when readline is unavailable."""
    try:
        import readline
    except ImportError:
        return False

    try:
        readline.read_history_file(HISTORY_FILE)
    except FileNotFoundError:
        pass
    readline.set_history_length(1000)
    atexit.register(readline.write_history_file, HISTORY_FILE)

    def completer(text, state):
        matches = [word for word in get_words() if word.startswith(text)]
        if state < len(matches):
            return matches[state]
        return None

    readline.parse_and_bind("tab: complete")
    readline.set_completer(completer)
    return True


def run_interactive(settings: Settings, provider: Optional[RateProvider] = None):
    lines: List[str] = []
    context: Optional[EvaluationContext] = None
    config = settings.formatting_config()
    keywords = settings.keywords()

    def completion_words():
        variables = sorted(context.variables) if context is not None else []
        return [":show", ":vars", ":clear", ":help", ":quit"] + list(keywords.suggestion_keywords) + variables

    has_readline = setup_readline(completion_words)

    print("notecalc - every line is recalculated as you type. :help for help, Ctrl+D to exit")
    if not has_readline:
        print("Note: install readline for command history and tab completion")

    while True:
        try:
            entry = input("> ")
        except (EOFError, KeyboardInterrupt):
            print()
            break

        command = entry.strip().lower()
        if command in (":quit", ":q", ":exit"):
            break
        if command == ":help":
            print(HELP_TEXT)
            continue
        if command == ":clear":
            lines, context = [], None
            print("Note cleared.")
            continue
        if command == ":vars":
            if context is None or not context.variables:
                print("No variables defined.")
            else:
                for name, value in context.variables.items():
                    print(f"  {name} = {format_value(value, config)}")
            continue
        if command == ":show":
            if context is not None:
                print("\n".join(render_lines(context.results, config)))
            continue

        lines.append(entry)
        # The whole note is recomputed so prev, sum and variables stay consistent
        context = build_evaluator(settings, provider).evaluate("\n".join(lines))
        result = context.results[-1]
        if result.value is not None:
            prefix = f"{result.assignment_variable} = " if result.assignment_variable else ""
            print(f"{prefix}{format_value(result.value, config)}")
        elif result.error is not None:
            print(f"Error: {result.error}")

    print("Bye!")


def run_cli_mode(argv: Optional[List[str]] = None) -> int:
    args = build_argument_parser().parse_args(argv)
    try:
        settings = settings_from_args(args, load_settings())
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 2

    if args.save:
        path = save_settings(settings)
        print(f"Settings saved to {path}")

    if args.refresh_rates:
        table = RATE_PROVIDER.refresh()
        logger.info(f"Using {'live' if table.live else 'fallback'} currency rates")

    if args.file == "-":
        text = sys.stdin.read()
    elif args.file:
        try:
            with open(args.file, "r", encoding="utf-8") as f:
                text = f.read()
        except OSError as e:
            print(f"Error: cannot read {args.file}: {e}", file=sys.stderr)
            return 1
    elif sys.stdin.isatty():
        run_interactive(settings)
        return 0
    else:
        text = sys.stdin.read()

    print("\n".join(evaluate_file(text, settings)))
    return 0


# --- Entry Points ---
def start_web_server():
    """Entry point for running the web server."""
    RATE_PROVIDER.refresh_in_background()
    logger.info(f"Starting web server on http://{SERVER_HOST}:{SERVER_PORT}")
    app.run(host=SERVER_HOST, port=SERVER_PORT, debug=DEBUG_MODE)


def start_cli_mode():
    """Entry point for running the CLI mode."""
    sys.exit(run_cli_mode())


def main():
    """Main entry point that decides between web and CLI mode based on arguments."""
    if len(sys.argv) > 1:
        sys.exit(run_cli_mode(sys.argv[1:]))
    start_web_server()


if __name__ == "__main__":
    main()
