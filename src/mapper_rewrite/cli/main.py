"""CLI entry point for the mapper rewrite batch tool."""
import argparse
from dotenv import load_dotenv
import json
import logging
import signal
import sys
import threading
import traceback

from pydantic import ValidationError

from mapper_rewrite.models import BatchSummary, RunConfig
from mapper_rewrite.models.config_models import (
    DEFAULT_ESTIMATED_CALL_SECONDS,
    DEFAULT_EXCLUDE_DIRS,
    DEFAULT_EXTENSION,
    DEFAULT_MAX_TOKENS,
    DEFAULT_MODEL,
    DEFAULT_TEMPLATE_PATH,
    DEFAULT_THROTTLE_SECONDS,
)
from mapper_rewrite.orchestrator.exceptions import OrchestratorError
from mapper_rewrite.orchestrator.progress import ProgressLogHandler, ProgressReporter
from mapper_rewrite.transform.exceptions import ConfigurationError, ProviderConfigError

load_dotenv()

# Exit codes
EXIT_SUCCESS = 0
EXIT_INVALID_INPUT = 1
EXIT_PROVIDER_ERROR = 2
EXIT_ORCHESTRATOR_ERROR = 3
EXIT_UNEXPECTED = 5
EXIT_KEYBOARD_INTERRUPT = 130

LOG_FORMAT = "%(asctime)s %(levelname)s %(message)s"

# Libraries whose request logs would drown the progress output
_NOISY_LOGGERS = ("httpx", "httpcore", "anthropic", "openai")

# Safe keys allowed in config output (no secrets)
_SAFE_CONFIG_KEYS = frozenset({
    "root_paths", "extension", "template_path", "template_mode", "strategy",
    "llm_provider", "model", "max_tokens", "throttle_seconds",
    "estimated_call_seconds", "exclude_dirs", "verbose", "dry_run", "output_json",
})


def build_parser() -> argparse.ArgumentParser:
    """Build and return the argument parser."""
    parser = argparse.ArgumentParser(
        prog="mapper-rewrite",
        description=(
            "Rewrite query mapping files in place by sending each one "
            "through an LLM with a prompt template"
        ),
    )
    parser.add_argument(
        "paths",
        nargs="+",
        type=str,
        help="Files or directories to process (directories are scanned recursively)",
    )
    parser.add_argument(
        "--extension",
        type=str,
        default=DEFAULT_EXTENSION,
        help=f"File extension to collect from directories, case-insensitive (default: {DEFAULT_EXTENSION})",
    )
    parser.add_argument(
        "--template",
        type=str,
        default=DEFAULT_TEMPLATE_PATH,
        help=f"Prompt template file (default: {DEFAULT_TEMPLATE_PATH})",
    )
    parser.add_argument(
        "--template-mode",
        type=str,
        default="format",
        choices=("format", "prefix"),
        help=(
            "format: template contains exactly one {content} slot, or one %%s "
            "slot when {content} is absent (default); "
            "prefix: file type header and content are appended to the template"
        ),
    )
    parser.add_argument(
        "--strategy",
        type=str,
        default="ours",
        choices=("ours", "theirs"),
        help="Side kept when a file contains merge conflict markers (default: ours)",
    )
    parser.add_argument(
        "--model",
        type=str,
        default=DEFAULT_MODEL,
        help=f"Model ID to use (default: {DEFAULT_MODEL})",
    )
    parser.add_argument(
        "--llm-provider",
        type=str,
        default="auto",
        choices=("auto", "anthropic", "openai"),
        help="LLM provider: auto (default), anthropic, or openai",
    )
    parser.add_argument(
        "--max-tokens",
        type=int,
        default=DEFAULT_MAX_TOKENS,
        help=f"Maximum response tokens per file (default: {DEFAULT_MAX_TOKENS})",
    )
    parser.add_argument(
        "--throttle-seconds",
        type=float,
        default=DEFAULT_THROTTLE_SECONDS,
        help=f"Pause between files to respect rate limits (default: {DEFAULT_THROTTLE_SECONDS:g})",
    )
    parser.add_argument(
        "--estimated-call-seconds",
        type=float,
        default=DEFAULT_ESTIMATED_CALL_SECONDS,
        help=(
            "Per-file service latency used for the upfront duration estimate "
            f"(default: {DEFAULT_ESTIMATED_CALL_SECONDS:g})"
        ),
    )
    parser.add_argument(
        "--exclude-dir",
        action="append",
        default=None,
        help=f"Directory name to skip while scanning; repeatable (default: {', '.join(DEFAULT_EXCLUDE_DIRS)})",
    )
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output")
    parser.add_argument(
        "--dry-run", action="store_true", help="Print config and exit without running"
    )
    parser.add_argument(
        "--output-json", action="store_true", help="Output the final summary as JSON"
    )
    return parser


def build_run_config(args: argparse.Namespace) -> RunConfig:
    """Validate parsed arguments into a RunConfig.

    Raises:
        ConfigurationError: If any option fails validation.
    """
    try:
        return RunConfig(
            root_paths=args.paths,
            extension=args.extension,
            template_path=args.template,
            template_mode=args.template_mode,
            strategy=args.strategy,
            llm_provider=args.llm_provider,
            model=args.model,
            max_tokens=args.max_tokens,
            throttle_seconds=args.throttle_seconds,
            estimated_call_seconds=args.estimated_call_seconds,
            exclude_dirs=tuple(args.exclude_dir) if args.exclude_dir else DEFAULT_EXCLUDE_DIRS,
        )
    except ValidationError as exc:
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}"
            for err in exc.errors()
        )
        raise ConfigurationError(f"Invalid configuration: {problems}") from exc


def create_client(config: RunConfig):
    """Create the transformation service client.

    API keys come from the environment only.
    """
    from mapper_rewrite.transform.client import TransformClient

    return TransformClient(
        model=config.model,
        llm_provider=config.llm_provider,
        max_tokens=config.max_tokens,
    )


def configure_logging(reporter: ProgressReporter, verbose: bool) -> None:
    """Route log records to stderr without overwriting the progress line."""
    handler = ProgressLogHandler(reporter)
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        handlers=[handler],
        force=True,
    )
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.DEBUG if verbose else logging.WARNING)


def format_summary_json(summary: BatchSummary) -> str:
    return json.dumps(summary.model_dump(mode="json"), indent=2)


def print_config_human(config: dict) -> None:
    """Print configuration in human-readable format.

    Only prints keys in the safe allowlist to prevent secret leakage.
    """
    print("\nConfiguration:")
    print(f"{'='*40}")
    for key, value in config.items():
        if key in _SAFE_CONFIG_KEYS:
            print(f"  {key}: {value}")
    print(f"{'='*40}")


def _handle_error(label: str, exc: BaseException, verbose: bool, exit_code: int) -> int:
    """Print error message to stderr and return the exit code."""
    print(f"{label}: {exc}", file=sys.stderr)
    if verbose:
        traceback.print_exc(file=sys.stderr)
    return exit_code


def _install_sigterm(cancel_event: threading.Event):
    """Make SIGTERM stop the batch before the next file. Returns the old handler."""

    def _on_sigterm(signum, frame):
        cancel_event.set()

    try:
        return signal.signal(signal.SIGTERM, _on_sigterm)
    except ValueError:
        # Not in the main thread
        return None


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point.

    Args:
        argv: Command-line arguments (defaults to sys.argv[1:]).

    Returns:
        Exit code integer. Individual file failures do not change it; only
        configuration problems, setup errors and interruptions do.
    """
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = build_run_config(args)
    except ConfigurationError as exc:
        return _handle_error("Configuration error", exc, args.verbose, EXIT_INVALID_INPUT)

    if args.dry_run:
        shown = config.model_dump(mode="json")
        shown.update(verbose=args.verbose, dry_run=args.dry_run, output_json=args.output_json)
        shown = {k: v for k, v in shown.items() if k in _SAFE_CONFIG_KEYS}
        if args.output_json:
            print(json.dumps(shown, indent=2))
        else:
            print_config_human(shown)
        return EXIT_SUCCESS

    # stdout carries only the JSON summary in --output-json mode
    reporter = ProgressReporter(stream=sys.stderr if args.output_json else sys.stdout)
    configure_logging(reporter, args.verbose)
    cancel_event = threading.Event()
    previous_handler = _install_sigterm(cancel_event)

    try:
        from mapper_rewrite.orchestrator.runner import BatchRunner
        from mapper_rewrite.transform.prompt_builder import load_template

        template = load_template(config.template_path)
        client = create_client(config)
        logging.getLogger(__name__).info(
            "Using model %s via %s", config.model, client.provider
        )

        runner = BatchRunner(
            service=client,
            template_mode=config.template_mode,
            reporter=reporter,
            throttle_seconds=config.throttle_seconds,
            estimated_call_seconds=config.estimated_call_seconds,
            exclude_dirs=config.exclude_dirs,
            cancel_event=cancel_event,
        )
        summary = runner.run(
            root_paths=config.root_paths,
            extension=config.extension,
            template=template,
            strategy=config.strategy,
        )

        if args.output_json:
            print(format_summary_json(summary))

        if summary.cancelled:
            return EXIT_KEYBOARD_INTERRUPT
        return EXIT_SUCCESS

    except ProviderConfigError as exc:
        return _handle_error("Provider error", exc, args.verbose, EXIT_PROVIDER_ERROR)

    except ConfigurationError as exc:
        return _handle_error("Configuration error", exc, args.verbose, EXIT_INVALID_INPUT)

    except OrchestratorError as exc:
        return _handle_error("Orchestrator error", exc, args.verbose, EXIT_ORCHESTRATOR_ERROR)

    except KeyboardInterrupt:
        reporter.break_line()
        print("\nInterrupted.", file=sys.stderr)
        return EXIT_KEYBOARD_INTERRUPT

    except Exception as exc:
        return _handle_error("Unexpected error", exc, args.verbose, EXIT_UNEXPECTED)

    finally:
        if previous_handler is not None:
            signal.signal(signal.SIGTERM, previous_handler)
