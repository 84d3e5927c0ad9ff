import argparse
import asyncio
import csv
import logging
import os
import sys
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from autoredirect.adapters.clock import SystemClock
from autoredirect.adapters.sqlite.migrator import SQLiteMigrator
from autoredirect.adapters.sqlite.repos import (
    SQLiteContentRepo,
    SQLiteGlobalSettingsRepo,
    SQLiteRedirectRepo,
)
from autoredirect.app_shell.config import (
    build_registry,
    engine_config_from_rules,
    redirect_config_from_rules,
)
from autoredirect.components.redirects import (
    CreateRedirectInput,
    ListActiveInput,
    ListRedirectsInput,
    Redirect,
    RedirectConfig,
    RedirectStorePort,
    run_create,
    run_list,
    run_list_active,
)
from autoredirect.components.settings import SettingsService
from autoredirect.components.slug_redirects import AutoRedirectEngine
from autoredirect.rules.loader import load_rules
from autoredirect.rules.models import Rules

logger = logging.getLogger("cli")

DATA_DIR = os.environ.get("AUTOREDIRECT_DATA_DIR", "./data")
RULES_PATH = os.environ.get("AUTOREDIRECT_RULES_PATH", "rules.yaml")

CSV_HEADER = ["fromPath", "toPath", "statusCode", "isActive", "description", "priority"]


# --- CSV ---


def redirect_to_row(redirect: Redirect) -> list[Any]:
    return [
        redirect.from_path,
        redirect.to_path,
        redirect.status_code,
        "true" if redirect.is_active else "false",
        redirect.description,
        redirect.priority,
    ]


def write_csv(redirects: Iterable[Redirect], path: Path) -> int:
    count = 0
    with open(path, "w", newline="") as f:
        writer = csv.writer(f, quoting=csv.QUOTE_MINIMAL)
        writer.writerow(CSV_HEADER)
        for redirect in redirects:
            writer.writerow(redirect_to_row(redirect))
            count += 1
    return count


def _int_or(value: str | None, default: int) -> int:
    try:
        return int(value) if value not in (None, "") else default
    except ValueError:
        return default


def read_csv(path: Path) -> list[CreateRedirectInput]:
    """Rows of an exported file; missing numbers fall back to 301 and 100."""
    items = []
    with open(path, newline="") as f:
        for row in csv.DictReader(f):
            if not any((v or "").strip() for v in row.values()):
                continue
            items.append(
                CreateRedirectInput(
                    from_path=(row.get("fromPath") or "").strip(),
                    to_path=(row.get("toPath") or "").strip(),
                    status_code=_int_or(row.get("statusCode"), 301),
                    is_active=(row.get("isActive") or "").strip().lower() == "true",
                    priority=_int_or(row.get("priority"), 100),
                    description=row.get("description") or "",
                )
            )
    return items


@dataclass
class ImportReport:
    successful: int = 0
    failed: list[tuple[CreateRedirectInput, str]] = field(default_factory=list)


async def import_items(
    items: Iterable[CreateRedirectInput],
    store: RedirectStorePort,
    config: RedirectConfig | None = None,
) -> ImportReport:
    """Create row by row; a rejected row does not stop the import."""
    report = ImportReport()
    for item in items:
        result = await run_create(item, store=store, config=config)
        if result.success:
            report.successful += 1
        else:
            report.failed.append((item, "; ".join(e.message for e in result.errors)))
    return report


# --- Commands ---


def _db_path(args: argparse.Namespace) -> str:
    return str(Path(args.data_dir) / "autoredirect.db")


def _load_rules(args: argparse.Namespace) -> Rules:
    rules_path = Path(args.rules)
    if not rules_path.exists():
        logger.error("Rules file %s not found.", rules_path)
        sys.exit(1)
    return load_rules(rules_path)


def handle_migrate(args: argparse.Namespace) -> None:
    applied = SQLiteMigrator(_db_path(args)).run_migrations()
    print(f"Applied {len(applied)} migrations.")


async def handle_export(args: argparse.Namespace) -> None:
    store = SQLiteRedirectRepo(_db_path(args))
    result = await run_list(ListRedirectsInput(), store=store)
    count = write_csv(result.redirects, Path(args.file))
    print(f"Exported {count} redirects to {args.file}")


async def handle_import(args: argparse.Namespace) -> None:
    path = Path(args.file)
    if not path.exists():
        logger.error("File %s not found.", path)
        sys.exit(1)

    rules = _load_rules(args)
    items = read_csv(path)
    print(f"Importing {len(items)} redirects...")
    report = await import_items(
        items, SQLiteRedirectRepo(_db_path(args)), redirect_config_from_rules(rules)
    )

    print(f"Successfully imported: {report.successful}")
    if report.failed:
        print(f"Failed imports: {len(report.failed)}")
        for item, reason in report.failed:
            print(f" - {item.from_path} -> {item.to_path}: {reason}")


async def handle_sweep(args: argparse.Namespace) -> None:
    rules = _load_rules(args)
    db_path = _db_path(args)
    clock = SystemClock()
    engine = AutoRedirectEngine(
        store=SQLiteRedirectRepo(db_path),
        content=SQLiteContentRepo(db_path),
        settings=SettingsService(repo=SQLiteGlobalSettingsRepo(db_path), time_port=clock),
        registry=build_registry(rules),
        config=engine_config_from_rules(rules),
        time_port=clock,
    )

    outcome = await engine.sweep_orphans(args.content_type_uid)
    if outcome.prefix is None:
        logger.error("Content type %s does not track redirects.", args.content_type_uid)
        sys.exit(1)

    print(
        f"Checked {outcome.checked} redirects under {outcome.prefix}: "
        f"{len(outcome.deactivated)} deactivated, {len(outcome.failed)} failed"
    )
    if not outcome.success:
        sys.exit(1)


async def handle_list_active(args: argparse.Namespace) -> None:
    result = await run_list_active(ListActiveInput(), store=SQLiteRedirectRepo(_db_path(args)))
    for r in result.redirects:
        print(f"{r.status_code} {r.from_path} -> {r.to_path}")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Auto-Redirect CLI")
    parser.add_argument("--data-dir", default=DATA_DIR, help="Directory holding autoredirect.db")
    parser.add_argument("--rules", default=RULES_PATH, help="Path to rules.yaml")
    subparsers = parser.add_subparsers(dest="command", required=True)

    subparsers.add_parser("migrate", help="Apply pending database migrations")

    export_parser = subparsers.add_parser("export", help="Export redirects to CSV")
    export_parser.add_argument("file", nargs="?", default="redirects-export.csv")

    import_parser = subparsers.add_parser("import", help="Import redirects from CSV")
    import_parser.add_argument("file", help="CSV file with the export header")

    sweep_parser = subparsers.add_parser(
        "sweep", help="Deactivate redirects pointing at deleted content"
    )
    sweep_parser.add_argument("content_type_uid", help="e.g. api::article.article")

    subparsers.add_parser("list-active", help="Print the active redirect set")

    return parser


def main(argv: list[str] | None = None) -> None:
    logging.basicConfig(level=logging.INFO)
    args = build_parser().parse_args(argv)

    if args.command == "migrate":
        handle_migrate(args)
    elif args.command == "export":
        asyncio.run(handle_export(args))
    elif args.command == "import":
        asyncio.run(handle_import(args))
    elif args.command == "sweep":
        asyncio.run(handle_sweep(args))
    elif args.command == "list-active":
        asyncio.run(handle_list_active(args))


if __name__ == "__main__":
    main()
