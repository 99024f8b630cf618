#!/usr/bin/env python3
"""
Service Center Reports - spreadsheet ingestion and VIN matching

CLI Commands:
    init-db                 - Create the SQLite tables
    upload <file>           - Ingest a spreadsheet for a showroom
    match <showroom>        - Run VIN matching for a showroom
    history <showroom>      - Show upload history and statistics
    serve                   - Run the HTTP API

Usage:
    python main.py init-db
    python main.py upload ro_billing.xlsx --type ro_billing --showroom SR001 --user alice
    python main.py match SR001 --json
    python main.py history SR001 --limit 10
    python main.py serve --port 8000
"""

import argparse
import json
import os
import sys


def _setup_logging():
    from core.config import get_config
    from core.logging_config import setup_logging

    config = get_config()
    setup_logging(level=config.log_level, format_type=config.log_format)
    return config


def cmd_init_db(args):
    """Create database tables."""
    from api.database import get_db_path, init_db

    _setup_logging()
    init_db()
    print(f"Database ready: {get_db_path()}")
    return 0


def cmd_upload(args):
    """Ingest one spreadsheet."""
    from api.database import init_db
    from core.exceptions import IngestionError, ValidationError
    from models.ingestion import FileMetadata, parse_file_type
    from services.orchestrator import UploadOrchestrator

    _setup_logging()

    if not os.path.exists(args.file):
        print(f"Error: File not found: {args.file}")
        return 1

    init_db()

    with open(args.file, "rb") as f:
        content = f.read()

    try:
        meta = FileMetadata(
            file_type=parse_file_type(args.type),
            uploaded_file_name=os.path.basename(args.file),
            uploaded_by=args.user,
            showroom_id=args.showroom,
            org_id=args.org,
            db_file_name=os.path.abspath(args.file),
            file_size=len(content),
        )
        result = UploadOrchestrator().upload_excel(meta, content)
    except ValidationError as e:
        print(f"Rejected: {e}")
        for sample in e.sample_rows:
            print(f"  row {sample['row_number']}: missing {', '.join(sample['fields'])}")
        return 1
    except IngestionError as e:
        print(f"ERROR: {e}")
        return 1

    print(result.message)
    print(f"  File ID:   {result.file_id}")
    print(f"  Case:      {result.upload_case.value}")
    print(f"  Inserted:  {result.inserted_count}")
    print(f"  Updated:   {result.updated_count}")
    if result.vin_matching:
        print("  VIN matching:")
        for name, count in result.vin_matching.items():
            print(f"    {name}: {count}")
    return 0


def cmd_match(args):
    """Run VIN matching for a showroom."""
    from services.vin_matching import perform_vin_matching

    _setup_logging()
    result = perform_vin_matching(args.showroom)

    if args.json:
        output = result.to_dict()
        for entry in output["status_summary"].values():
            entry.pop("records", None)
        print(json.dumps(output, indent=2, default=str))
        return 0

    print(f"Showroom {args.showroom}: {result.total_bookings} bookings")
    print(f"  Matched VINs:   {result.matched_vins}")
    print(f"  Unmatched VINs: {result.unmatched_vins}")
    print("\nBy status:")
    for category, entry in result.status_summary.items():
        print(f"  {entry['status']:<20} {entry['count']}")
    if result.advisor_totals:
        print("\nBy advisor:")
        for row in result.advisor_totals:
            print(f"  {row['advisor']:<20} {row['count']:>4}  converted={row['converted']}")
    return 0


def cmd_history(args):
    """Show upload history and statistics."""
    from api.database import init_db
    from core.exceptions import ClassificationError
    from services.orchestrator import UploadOrchestrator

    _setup_logging()
    init_db()
    orchestrator = UploadOrchestrator()

    try:
        files = orchestrator.upload_history(args.showroom, args.type, args.limit)
        stats = orchestrator.upload_stats(args.showroom, args.type)
    except ClassificationError as e:
        print(f"Error: {e}")
        return 1

    print(f"Last {len(files)} uploads for {args.showroom}:")
    for f in files:
        print(
            f"  #{f.id} {f.uploaded_at[:19]} | {f.file_type:<17} | {f.processing_status:<10} | "
            f"{f.upload_case or '-':<21} | +{f.rows_inserted} ~{f.rows_updated} | {f.uploaded_file_name}"
        )

    print("\nBy file type:")
    for entry in stats:
        print(
            f"  {entry['file_type']:<17} files={entry['total_files']} rows={entry['total_rows']} "
            f"ok={entry['successful_uploads']} failed={entry['failed_uploads']}"
        )
    return 0


def cmd_serve(args):
    """Run the HTTP API with uvicorn."""
    import uvicorn

    uvicorn.run("api.main:app", host=args.host, port=args.port, reload=args.reload)
    return 0


def main():
    parser = argparse.ArgumentParser(
        description="Service Center Reports - spreadsheet ingestion and VIN matching",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
    python main.py init-db
    python main.py upload bookings.xlsx --type booking_list --showroom SR001 --user alice
    python main.py match SR001
    python main.py history SR001 --type ro_billing
    python main.py serve --reload
        """,
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init-db command
    subparsers.add_parser("init-db", help="Create database tables")

    # upload command
    upload_parser = subparsers.add_parser("upload", help="Ingest a spreadsheet")
    upload_parser.add_argument("file", help="Path to .xlsx, .xls or .csv file")
    upload_parser.add_argument("--type", required=True, help="File type (e.g. ro_billing)")
    upload_parser.add_argument("--showroom", required=True, help="Showroom ID")
    upload_parser.add_argument("--user", required=True, help="Uploader identifier")
    upload_parser.add_argument("--org", help="Organization ID")

    # match command
    match_parser = subparsers.add_parser("match", help="Run VIN matching for a showroom")
    match_parser.add_argument("showroom", help="Showroom ID")
    match_parser.add_argument("--json", action="store_true", help="Output as JSON")

    # history command
    history_parser = subparsers.add_parser("history", help="Show upload history")
    history_parser.add_argument("showroom", help="Showroom ID")
    history_parser.add_argument("--type", help="Filter by file type")
    history_parser.add_argument("--limit", type=int, default=20, help="Maximum uploads to list")

    # serve command
    serve_parser = subparsers.add_parser("serve", help="Run the HTTP API")
    serve_parser.add_argument("--host", default="127.0.0.1")
    serve_parser.add_argument("--port", type=int, default=8000)
    serve_parser.add_argument("--reload", action="store_true", help="Auto-reload on code changes")

    args = parser.parse_args()

    if not args.command:
        parser.print_help()
        return 1

    commands = {
        "init-db": cmd_init_db,
        "upload": cmd_upload,
        "match": cmd_match,
        "history": cmd_history,
        "serve": cmd_serve,
    }

    return commands[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
