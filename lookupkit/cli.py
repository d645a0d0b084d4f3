import argparse
import json
import logging
import sys
from typing import Any, Dict, List

from .config import get_settings
from .context import LookupContext
from .errors import LookupPluginError
from .registry import default_registry
from .utils import setup_logging


def parse_option_value(raw: str) -> Any:
    """Decode ``-o`` values: JSON when it parses (numbers, bools, maps, lists), else text."""
    try:
        return json.loads(raw)
    except ValueError:
        return raw


def parse_options(pairs: List[str], parser: argparse.ArgumentParser) -> Dict[str, Any]:
    options: Dict[str, Any] = {}
    for pair in pairs:
        if "=" not in pair:
            parser.error(f"option must be key=value: {pair!r}")
        key, value = pair.split("=", 1)
        options[key] = parse_option_value(value)
    return options


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Resolve lookup plugins (file, env, url, password, ...)")
    parser.add_argument("name", nargs="?", help="Lookup plugin name")
    parser.add_argument("terms", nargs="*", help="Terms passed to the lookup")
    parser.add_argument(
        "-o",
        "--option",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Plugin option; values are decoded as JSON when possible (repeatable)",
    )
    parser.add_argument("--timeout", type=float, help="Cancel the lookup after this many seconds")
    parser.add_argument("--json", action="store_true", help="Print results as a JSON list")
    parser.add_argument("--list", action="store_true", help="List available lookup plugins and exit")
    parser.add_argument("--describe", metavar="NAME", help="Print a plugin descriptor as JSON and exit")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose logging")
    return parser


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    setup_logging(verbose=args.verbose, log_file=get_settings(refresh=True).log_file)
    logger = logging.getLogger(__name__)

    registry = default_registry()

    if args.list:
        print("Available lookups:")
        for name in sorted(registry.list()):
            print(f"  - {name}")
        return 0
    if args.describe:
        try:
            plugin = registry.get(args.describe)
        except LookupPluginError as e:
            print(f"error: {e}", file=sys.stderr)
            return 1
        print(json.dumps(plugin.descriptor.to_dict(), indent=2))
        return 0
    if not args.name:
        parser.print_help()
        return 2

    options = parse_options(args.option, parser)
    ctx = LookupContext.with_timeout(args.timeout) if args.timeout else LookupContext.background()
    try:
        results = registry.run(args.name, args.terms, variables={}, options=options, ctx=ctx)
    except LookupPluginError as e:
        logger.debug("Lookup %s failed", args.name, exc_info=True)
        print(f"error: {e}", file=sys.stderr)
        return 1
    finally:
        ctx.cancel()

    if args.json:
        print(json.dumps(results, indent=2))
    else:
        for value in results:
            print(value)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
