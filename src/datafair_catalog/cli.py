import argparse
import asyncio
import logging
import os
import sys
from pathlib import Path
from typing import Any

from rich.console import Console
from rich.progress import (
    BarColumn,
    DownloadColumn,
    Progress,
    TaskID,
    TextColumn,
    TransferSpeedColumn,
)

from datafair_catalog.config import CatalogConfig
from datafair_catalog.context import GetResourceContext
from datafair_catalog.data.client import build_client
from datafair_catalog.data.metadata import fetch_metadata
from datafair_catalog.download import get_resource
from datafair_catalog.models.import_config import (
    FieldRef,
    FilterType,
    ImportConfig,
    ImportFilter,
)

logger = logging.getLogger(__name__)
console = Console()


class RichSink:
    """Log and progress sink rendering to the terminal."""

    def __init__(self, progress: Progress) -> None:
        self._progress = progress
        self._tasks: dict[str, TaskID] = {}

    def info(self, message: str, details: Any = None) -> None:
        suffix = f" [dim]{details}[/dim]" if details is not None else ""
        self._progress.console.print(f"{message}{suffix}")

    def error(self, message: str) -> None:
        self._progress.console.print(f"[red]{message}[/red]")

    def step(self, name: str) -> None:
        self._progress.console.print(f"[bold cyan]{name}[/bold cyan]")

    async def task(self, name: str, label: str, total: int | None) -> None:
        # total=None renders an indeterminate bar
        self._tasks[name] = self._progress.add_task(label, total=total)

    async def progress(self, task_name: str, bytes_so_far: int) -> None:
        task_id = self._tasks.get(task_name)
        if task_id is not None:
            self._progress.update(task_id, completed=bytes_so_far)


def parse_filter(raw: str) -> ImportFilter:
    """Parse ``key:type:value``; ``in``/``nin`` take comma-separated values."""
    parts = raw.split(":", 2)
    if len(parts) != 3 or not parts[0] or not parts[1]:
        raise argparse.ArgumentTypeError(
            f"Invalid filter {raw!r}, expected key:type:value"
        )
    key, ftype, value = parts
    if ftype in (FilterType.IN, FilterType.NIN):
        return ImportFilter(
            field=FieldRef(key=key), type=ftype, values=value.split(",")
        )
    return ImportFilter(field=FieldRef(key=key), type=ftype, value=value)


def build_import_config(args: argparse.Namespace) -> ImportConfig:
    fields: list[FieldRef] = []
    if args.select:
        fields = [FieldRef(key=k) for k in args.select.split(",") if k]
    return ImportConfig(fields=fields, filters=list(args.filter or []))


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="datafair-catalog",
        description="Download Data Fair datasets as CSV",
    )
    sub = p.add_subparsers(dest="command")

    # --- fetch ---
    fetch = sub.add_parser("fetch", help="Download a dataset as a CSV file")
    fetch.add_argument("url", help="Data Fair instance URL")
    fetch.add_argument("resource_id", help="Dataset id")
    fetch.add_argument(
        "--select",
        default=None,
        help="Comma-separated field keys to keep",
    )
    fetch.add_argument(
        "--filter",
        action="append",
        type=parse_filter,
        help="Row filter key:type:value (in, nin, starts, gte, lte); repeatable",
    )
    fetch.add_argument(
        "--out",
        type=Path,
        default=Path("."),
        help="Destination directory",
    )

    # --- show ---
    show = sub.add_parser("show", help="Print normalized dataset metadata")
    show.add_argument("url", help="Data Fair instance URL")
    show.add_argument("resource_id", help="Dataset id")

    for cmd in (fetch, show):
        cmd.add_argument(
            "--api-key",
            default=None,
            help="API key (defaults to $DATAFAIR_API_KEY)",
        )
        cmd.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Enable verbose logging",
        )

    return p


def _run_fetch(args: argparse.Namespace) -> None:
    progress = Progress(
        TextColumn("[cyan]{task.description}"),
        BarColumn(),
        DownloadColumn(),
        TransferSpeedColumn(),
        console=console,
    )
    sink = RichSink(progress)
    context = GetResourceContext(
        catalog_config=CatalogConfig(url=args.url),
        resource_id=args.resource_id,
        tmp_dir=args.out,
        import_config=build_import_config(args),
        api_key=args.api_key,
        log=sink,
        progress=sink,
    )
    with progress:
        resource = asyncio.run(get_resource(context))
    console.print(f"[green]Saved to {resource.file_path}[/green]")


async def _show(args: argparse.Namespace) -> str:
    context = GetResourceContext(
        catalog_config=CatalogConfig(url=args.url),
        resource_id=args.resource_id,
        tmp_dir=Path("."),
        api_key=args.api_key,
    )
    async with build_client(args.api_key) as client:
        resource, has_bulk_file = await fetch_metadata(client, context)
    logger.info("Bulk file available: %s", has_bulk_file)
    return resource.model_dump_json(by_alias=True, indent=2, exclude={"file_path"})


def _run_show(args: argparse.Namespace) -> None:
    console.print_json(asyncio.run(_show(args)))


def main() -> None:
    from dotenv import load_dotenv

    load_dotenv()

    parser = build_parser()
    args = parser.parse_args()

    if args.command is None:
        parser.print_help()
        sys.exit(1)

    level = logging.DEBUG if args.verbose else logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    if not args.api_key:
        args.api_key = os.environ.get("DATAFAIR_API_KEY") or None

    try:
        if args.command == "fetch":
            _run_fetch(args)
        elif args.command == "show":
            _run_show(args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Cancelled.[/yellow]")
        sys.exit(1)
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        if args.verbose:
            import traceback

            traceback.print_exc()
        sys.exit(1)


if __name__ == "__main__":
    main()
