#!/usr/bin/env python3
"""
Import a project JSON document into a SQLite database.

Usage:
    python scripts/import_project.py --json data/project.json --db data/project.db
"""

import argparse
from pathlib import Path
import sys

from autopopulate.database import import_project, init_database, get_session
from autopopulate.storage import load_project


def run_import(json_path: Path, db_path: Path, dry_run: bool = False) -> bool:
    """
    Import fields, timeline and record data.

    Args:
        json_path: Path to project JSON file
        db_path: Path to SQLite database file
        dry_run: If True, don't write to database
    """
    print(f"Loading project from {json_path}...")
    try:
        project = load_project(json_path)
    except ValueError as e:
        print(f"❌ {e}")
        return False

    fields = project.metadata.get_fields()
    records = project.records.records
    print(f"Found {len(fields)} fields and {len(records)} records")

    if dry_run:
        print("\n[DRY RUN] Would import the following fields:")
        for i, descriptor in enumerate(fields[:5], 1):
            print(f"  {i}. {descriptor.name} ({descriptor.form_name}, {descriptor.element_type})")
        if len(fields) > 5:
            print(f"  ... and {len(fields) - 5} more")
        return True

    print(f"\nInitializing database at {db_path}...")
    init_database(db_path)
    session = get_session(db_path)

    try:
        counts = import_project(session, project)
        print("\n✅ Import complete!")
        print(f"   Fields: {counts['fields']}")
        print(f"   Events: {counts['events']}")
        print(f"   Values: {counts['values']}")
    except Exception as e:
        session.rollback()
        print(f"❌ Failed to import: {e}")
        return False
    finally:
        session.close()

    return True


def main():
    parser = argparse.ArgumentParser(description="Import a project JSON document into SQLite")
    parser.add_argument("--json", type=Path, default=Path("data/project.json"),
                       help="Path to project JSON file")
    parser.add_argument("--db", type=Path, default=Path("data/project.db"),
                       help="Path to SQLite database file")
    parser.add_argument("--dry-run", action="store_true",
                       help="Show what would be imported without writing")

    args = parser.parse_args()

    if not args.json.exists():
        print(f"❌ JSON file not found: {args.json}")
        sys.exit(1)

    if not run_import(args.json, args.db, dry_run=args.dry_run):
        sys.exit(1)


if __name__ == "__main__":
    main()
