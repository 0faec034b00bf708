"""Command line entry point: ``polyinfer "prompt" --config providers.yml``."""
import argparse
import asyncio
import json
import logging
import sys
from dataclasses import asdict
from typing import List, Optional

from polyinfer.config import load_config, load_config_file
from polyinfer.context import PolyinferContext
from polyinfer.core.errors import ConfigError
from polyinfer.core.logging import setup_logging
from polyinfer.core.settings import get_settings
from polyinfer.orchestrator import Orchestrator

EXIT_OK = 0
EXIT_NO_ANSWER = 1
EXIT_CONFIG_ERROR = 2


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parses command-line arguments."""
    parser = argparse.ArgumentParser(
        prog="polyinfer",
        description="Send a prompt to the first available configured text-generation provider.",
    )
    parser.add_argument("prompt", help="Prompt text to send.")
    parser.add_argument(
        "-c", "--config",
        default=None,
        help="YAML or JSON configuration file. Default: POLYINFER_CONFIG_PATH.",
    )
    parser.add_argument(
        "-i", "--intent",
        action="append",
        default=None,
        help="Intent used to rank providers. May be repeated.",
    )
    parser.add_argument(
        "--mode",
        choices=["synchronous", "sequential", "concurrent"],
        default=None,
        help="Override the execution mode of the configuration.",
    )
    parser.add_argument(
        "--no-cache",
        action="store_true",
        help="Disable the response cache for this run.",
    )
    parser.add_argument(
        "--metrics",
        action="store_true",
        help="Print the per-provider metrics as JSON after the answer.",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging."
    )
    return parser.parse_args(argv)


async def _run(args: argparse.Namespace, context: PolyinferContext) -> int:
    settings = get_settings()
    config_path = args.config or settings.CONFIG_PATH
    if not config_path:
        raise ConfigError("No configuration file given. Use --config or set POLYINFER_CONFIG_PATH.")

    config = load_config_file(config_path)
    overrides = {}
    if args.mode:
        overrides["mode"] = args.mode
    if args.no_cache:
        overrides["cache"] = {"enabled": False, "ttl": config.cache.ttl}
    if overrides:
        config = load_config({**config.model_dump(by_alias=True), **overrides})

    orchestrator = Orchestrator(config, context=context)
    intent = args.intent[0] if args.intent and len(args.intent) == 1 else args.intent
    result = await orchestrator.say(args.prompt, intent=intent)
    await orchestrator.wait_pending()

    print(result.text)
    if args.metrics:
        metrics = {name: asdict(stats) for name, stats in context.get_metrics().items()}
        print(json.dumps(metrics, indent=2))
    return EXIT_OK if result.raw_response is not None else EXIT_NO_ANSWER


def main(argv: Optional[List[str]] = None) -> int:
    """Main execution function."""
    args = parse_args(argv)
    settings = get_settings()
    if settings.LOG:
        setup_logging(
            logging.DEBUG if args.verbose else settings.LOG_LEVEL,
            log_file=settings.LOG_FILE,
            json_format=settings.LOG_JSON,
        )

    context = PolyinferContext()
    try:
        return asyncio.run(_run(args, context))
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return EXIT_CONFIG_ERROR
    finally:
        context.close()


if __name__ == "__main__":
    sys.exit(main())
