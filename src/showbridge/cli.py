"""Command-line inspection and override of the data source configuration.

Usage:
    showbridge show
    showbridge set --list hybrid --detail backend --default-mode preferContract
    showbridge set --list-field description=preferBackend
    showbridge reset
"""

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Sequence
from typing import Any

from showbridge.config.runtime import DataSourceRuntime
from showbridge.config.settings import Settings
from showbridge.core.models import FieldMergeMode, SourceChoice

logger = logging.getLogger(__name__)


def _field_mode(raw: str) -> tuple[str, FieldMergeMode]:
    name, sep, mode = raw.partition("=")
    if not sep or not name:
        raise argparse.ArgumentTypeError(f"expected NAME=MODE, got {raw!r}")
    try:
        return name, FieldMergeMode(mode)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid merge mode {mode!r}") from e


def _choice(raw: str) -> SourceChoice:
    try:
        return SourceChoice(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(f"invalid source choice {raw!r}") from e


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="showbridge", description="Inspect or override the data source configuration."
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("show", help="Print the effective configuration as JSON")

    set_parser = commands.add_parser("set", help="Persist a local override")
    set_parser.add_argument("--list", dest="list_choice", type=_choice, help="List view source")
    set_parser.add_argument(
        "--detail", dest="detail_choice", type=_choice, help="Detail view source"
    )
    set_parser.add_argument(
        "--default-mode", type=FieldMergeMode, help="Default merge mode for all fields"
    )
    set_parser.add_argument(
        "--list-field", type=_field_mode, action="append", default=[], metavar="NAME=MODE"
    )
    set_parser.add_argument(
        "--detail-field", type=_field_mode, action="append", default=[], metavar="NAME=MODE"
    )

    commands.add_parser("reset", help="Delete the local override")
    return parser


def _override_from_args(args: argparse.Namespace, runtime: DataSourceRuntime) -> dict[str, Any]:
    patch: dict[str, Any] = {}
    if args.list_choice is not None:
        patch["list_source_choice"] = args.list_choice
    if args.detail_choice is not None:
        patch["detail_source_choice"] = args.detail_choice

    if args.default_mode is not None or args.list_field or args.detail_field:
        policy = runtime.store.get().merge_policy
        patch["merge_policy"] = policy.model_copy(
            update={
                "default_mode": args.default_mode or policy.default_mode,
                "list_fields": {**policy.list_fields, **dict(args.list_field)},
                "detail_fields": {**policy.detail_fields, **dict(args.detail_field)},
            }
        )
    return patch


async def _run(args: argparse.Namespace, settings: Settings) -> int:
    async with DataSourceRuntime(settings, enable_polling=False) as runtime:
        if args.command == "set":
            patch = _override_from_args(args, runtime)
            if not patch:
                logger.error("Nothing to set; pass --list, --detail or a merge option")
                return 2
            runtime.store.set_and_persist(patch)
        elif args.command == "reset":
            await runtime.store.reset_override()

        print(json.dumps(runtime.store.export_current().to_document(), indent=2))
    return 0


def main(argv: Sequence[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )
    return asyncio.run(_run(args, Settings()))


if __name__ == "__main__":
    sys.exit(main())
