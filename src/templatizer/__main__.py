"""Command line entry point: ``python -m templatizer``."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path

from pydantic import ValidationError

from templatizer import __version__
from templatizer.config import TemplatizerConfig
from templatizer.entities.config import parse_config
from templatizer.entities.events import PushEvent
from templatizer.exceptions import ConfigParseError, TemplatizerError

logger = logging.getLogger("templatizer")


def _serve(args: argparse.Namespace) -> int:
    from templatizer.sync.manager import TemplatizerService

    config = TemplatizerConfig.from_env()
    if args.host:
        config = config.model_copy(update={"webhook_host": args.host})
    if args.port:
        config = config.model_copy(update={"webhook_port": args.port})

    service = TemplatizerService(config)
    try:
        asyncio.run(service.run_forever())
    except KeyboardInterrupt:
        logger.info("Interrupted")
    return 0


def _check_config(args: argparse.Namespace) -> int:
    try:
        config = parse_config(Path(args.path).read_text(encoding="utf-8"))
    except OSError as e:
        print(f"ERROR: cannot read {args.path}: {e}", file=sys.stderr)
        return 1
    except ConfigParseError as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(f"Source sets: {len(config.source_sets)}")
    for group in config.source_sets:
        print(f"  {group.name}: {', '.join(group.files) or '(no patterns)'}")
    print(f"Config sets: {len(config.config_sets)}")
    for reference in config.config_sets:
        print(f"  {reference}")
    return 0


def _plan(args: argparse.Namespace) -> int:
    from templatizer.memory.config_store import InMemoryConfigStore, JsonConfigStore
    from templatizer.sync.planner import PropagationPlanner
    from templatizer.sync.resolver import LocalConfigResolver

    try:
        event = PushEvent.model_validate_json(Path(args.payload).read_bytes())
        store = JsonConfigStore(Path(args.store)) if args.store else InMemoryConfigStore()
        planner = PropagationPlanner(LocalConfigResolver(Path(args.config)), store)
        outcome = asyncio.run(planner.handle_push(event))
    except (OSError, ValidationError, TemplatizerError) as e:
        print(f"ERROR: {e}", file=sys.stderr)
        return 1

    print(json.dumps(outcome.model_dump(mode="json"), indent=2))
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="templatizer", description="Propagate template files across repositories")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the webhook server (configured via TEMPLATIZER_* variables)")
    serve.add_argument("--host", default=None, help="Interface to bind")
    serve.add_argument("--port", type=int, default=None, help="Port to bind")
    serve.set_defaults(func=_serve)

    check = sub.add_parser("check-config", help="Validate a local templatizer.yml")
    check.add_argument("path", help="Path to the configuration file")
    check.set_defaults(func=_check_config)

    plan = sub.add_parser("plan", help="Plan a saved push payload offline")
    plan.add_argument("payload", help="Path to a push event JSON payload")
    plan.add_argument("--config", required=True, help="templatizer.yml of the pushed repository")
    plan.add_argument("--store", default=None, help="JSON config store to query for subscribers")
    plan.set_defaults(func=_plan)
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler(sys.stderr)],
    )
    return args.func(args)


if __name__ == "__main__":
    sys.exit(main())
