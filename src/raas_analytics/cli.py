"""
Command line entrypoint.

    raas-analytics show ecosystem          # cached bundle, rebuilt when stale
    raas-analytics refresh tps             # force a rebuild
    raas-analytics status raas_page        # empty / fetching / ready_fresh / ready_stale
    raas-analytics clear-cache --yes
"""

import argparse
import asyncio
import json
import sys

from raas_analytics.config.state import get_config
from raas_analytics.dependency_container import DependencyContainer
from raas_analytics.exceptions import CacheError, SourceUnavailable
from raas_analytics.infrastructure.observability import setup_logging
from raas_analytics.service import resolve_dataset_id


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="raas-analytics", description="RaaS dashboard dataset cache"
    )
    parser.add_argument("--config-dir", default=None, help="Directory with YAML config")
    parser.add_argument("--env", default=None, help="Environment name (env/<env>.yaml)")
    parser.add_argument("--log-level", default=None, help="Override LOG_LEVEL")
    parser.add_argument("--json-logs", action="store_true", help="Emit JSON log lines")

    sub = parser.add_subparsers(dest="command", required=True)

    show = sub.add_parser("show", help="Print a dataset, rebuilding it when stale")
    show.add_argument("dataset")

    refresh = sub.add_parser("refresh", help="Rebuild a dataset and print it")
    refresh.add_argument("dataset")

    status = sub.add_parser("status", help="Print the cache state of a dataset")
    status.add_argument("dataset")

    clear = sub.add_parser("clear-cache", help="Delete every cached dataset")
    clear.add_argument("--yes", action="store_true", help="Confirm without prompt")

    return parser


async def _run(
    args: argparse.Namespace, container: DependencyContainer, dataset_id: str
) -> object:
    async with container.create_http_client() as http:
        service = container.create_dataset_service(http)
        if args.command == "refresh":
            return await service.refresh(dataset_id)
        return await service.load(dataset_id)


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    config = get_config(config_dir=args.config_dir, env=args.env)
    setup_logging(
        level=args.log_level or config.logging.level,
        json_logs=args.json_logs or config.logging.json_logs,
    )
    container = DependencyContainer(config)

    if args.command == "clear-cache":
        if not args.yes:
            resp = input(f"This will DELETE every dataset in {config.cache.cache_dir}. Continue? [y/N] ")
            if resp.strip().lower() != "y":
                print("Aborted.")
                return 1
        try:
            container.create_cache_store().clear()
        except CacheError as e:
            print(f"Could not clear cache: {e}", file=sys.stderr)
            return 1
        print(f"Cleared {config.cache.cache_dir}")
        return 0

    try:
        dataset_id = resolve_dataset_id(args.dataset)
    except ValueError as e:
        print(str(e), file=sys.stderr)
        return 2

    try:
        if args.command == "status":
            # The HTTP session is opened lazily, so no request is made here.
            service = container.create_dataset_service(container.create_http_client())
            state = service.state(dataset_id)
            print(json.dumps({"dataset": dataset_id, "state": state.value}))
            return 0

        bundle = asyncio.run(_run(args, container, dataset_id))
    except SourceUnavailable as e:
        print(f"Data source unavailable: {e}", file=sys.stderr)
        return 1

    json.dump(bundle, sys.stdout, indent=2, sort_keys=True)
    sys.stdout.write("\n")
    return 0


if __name__ == "__main__":
    sys.exit(main())
