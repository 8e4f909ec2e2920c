"""Command line entry point for exporting and importing record workbooks."""
import argparse
import os
from pathlib import Path

from bizrecords.core.logging import configure_logging
from bizrecords.core.utils import DEFAULT_ENV_FILE, load_env_file
from bizrecords.store import open_store
from bizrecords.sync import (
    ExportError,
    ImportFailedError,
    export_to_file,
    get_import_metadata,
    import_from_file,
)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser with export, import and status commands."""

    parser = argparse.ArgumentParser(description="Exchange business records with Excel workbooks")
    parser.add_argument(
        "--db",
        type=Path,
        help="SQLite database file (defaults to BIZRECORDS_DB_PATH or bizrecords.db)",
    )
    parser.add_argument(
        "--log-level",
        help="Logging level, overriding the LOG_LEVEL environment variable",
    )
    commands = parser.add_subparsers(dest="command", required=True)

    export_parser = commands.add_parser("export", help="Write every table to an xlsx workbook")
    export_parser.add_argument(
        "--output",
        type=Path,
        default=Path("output/bizrecords.xlsx"),
        help="Workbook file to write",
    )

    import_parser = commands.add_parser("import", help="Merge an xlsx workbook into the store")
    import_parser.add_argument("workbook", type=Path, help="Workbook file to import")

    commands.add_parser("status", help="Show when the last import happened")
    return parser


def main() -> None:
    """Entrypoint for running exports and imports from the command line."""

    load_env_file(Path(os.getenv("BIZRECORDS_ENV_FILE", DEFAULT_ENV_FILE)))
    args = build_parser().parse_args()
    configure_logging(args.log_level)

    with open_store(args.db) as store:
        if args.command == "export":
            try:
                output_path = export_to_file(store, args.output)
            except ExportError as exc:
                print(f"Export failed: {exc}")
                raise SystemExit(1) from exc
            print(f"Wrote {output_path}")

        elif args.command == "import":
            try:
                report = import_from_file(store, args.workbook)
            except ImportFailedError as exc:
                print(f"Import failed: {exc}")
                raise SystemExit(1) from exc
            print(report.summary())
            for skipped in report.skipped:
                print(f"  skipped {skipped.describe()}")
            for failure in report.failed:
                print(f"  failed {failure.entity_type} {failure.record_id}: {failure.error}")
            if not report.ok:
                raise SystemExit(1)

        else:
            metadata = get_import_metadata(store)
            last = metadata.last_imported or "never"
            print(f"Imports: {metadata.import_count} (last: {last})")


if __name__ == "__main__":
    main()
