import argparse
import json
from pathlib import Path

from .env import load_env, get_settings

from . import __version__
from .collaborators import BracketLogicCompiler
from .database import SqlMetadataStore, SqlRecordStore, SqlTimeline, get_session
from .logger import get_logger
from .models import RequestContext
from .overlay import MetadataView
from .piping import PipingService
from .render import prepare_data_entry
from .scanner import scan
from .schema import validate_project
from .storage import load_project


def cmd_validate(args: argparse.Namespace) -> None:
    input_path = Path(args.input)
    if not input_path.exists():
        raise SystemExit(f"Input file not found: {input_path}")
    with input_path.open("r", encoding="utf-8") as f:
        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise SystemExit(f"Invalid JSON: {e}")
    errors = validate_project(data)
    if errors:
        print("Invalid:")
        for e in errors:
            print(f" - {e}")
        raise SystemExit(2)
    print("Valid")


def cmd_scan(args: argparse.Namespace) -> None:
    tags = [t.strip() for t in args.tags.split(",") if t.strip()]
    if not tags:
        raise SystemExit("No tags specified. Use --tags \"@DEFAULT-FROM-PREVIOUS-EVENT,@DEFAULT\"")
    for tag in scan(tags, args.text):
        print(tag.token)


def _collaborators(args: argparse.Namespace):
    if args.project:
        try:
            project = load_project(Path(args.project))
        except ValueError as e:
            raise SystemExit(str(e))
        return project.metadata, project.timeline, project.records, project.piping

    db_path = Path(args.db) if args.db else get_settings().db_path
    if not db_path.exists():
        raise SystemExit(f"Database not found: {db_path}")
    session = get_session(db_path)
    metadata = SqlMetadataStore(session)
    records = SqlRecordStore(session)
    return metadata, SqlTimeline(session), records, PipingService(records, metadata)


def cmd_resolve(args: argparse.Namespace) -> None:
    try:
        context = RequestContext(
            record=args.record,
            event=args.event,
            instance=args.instance,
            form=args.form,
            entry_num=args.entry_num,
        )
    except ValueError as e:
        raise SystemExit(str(e))

    metadata, timeline, records, templating = _collaborators(args)
    view = MetadataView(metadata.get_fields())
    payload = prepare_data_entry(
        context,
        metadata,
        timeline,
        records,
        templating,
        compiler=BracketLogicCompiler(),
        ignore_form_data=args.ignore_form_data,
        view=view,
    )

    output = {
        "skipped": payload.skipped,
        "defaults": {r.field_name: {"value": r.value, "tag": r.winning_tag} for r in payload.resolved},
        "annotations": {r.field_name: view.fields[r.field_name].annotation_text for r in payload.resolved},
    }
    if context.form:
        output["branching_equations"] = payload.branching_equations
        output["settings"] = payload.settings
    print(json.dumps(output, indent=2, ensure_ascii=False))

    if args.metrics:
        get_logger().log_metrics_summary()


def main():
    # Load .env if present (AUTOPOPULATE_LOG_LEVEL, AUTOPOPULATE_DB, etc.)
    load_env()
    parser = argparse.ArgumentParser(prog="autopopulate", description="Resolve @DEFAULT values for data entry forms")
    parser.add_argument("--version", action="store_true", help="Show version")

    subparsers = parser.add_subparsers(dest="command")
    val = subparsers.add_parser("validate", help="Validate a project JSON document")
    val.add_argument("--input", required=True, help="Path to project JSON")
    val.set_defaults(func=cmd_validate)

    scn = subparsers.add_parser("scan", help="Show the tag queue found in an annotation")
    scn.add_argument("--tags", default="@DEFAULT-FROM-PREVIOUS-EVENT,@DEFAULT", help="Comma-separated tag names in priority order")
    scn.add_argument("--text", required=True, help="Annotation text to scan")
    scn.set_defaults(func=cmd_scan)

    res = subparsers.add_parser("resolve", help="Resolve defaults for a record/event (and optionally one form)")
    source = res.add_mutually_exclusive_group()
    source.add_argument("--project", help="Path to project JSON")
    source.add_argument("--db", help="Path to SQLite database (default: AUTOPOPULATE_DB or data/project.db)")
    res.add_argument("--record", required=True, help="Record identifier")
    res.add_argument("--event", required=True, help="Event identifier")
    res.add_argument("--form", help="Form name; omit to resolve every field of the event")
    res.add_argument("--instance", type=int, default=1, help="Repeat instance (default 1)")
    res.add_argument("--entry-num", type=int, help="Double data entry slot")
    res.add_argument("--ignore-form-data", action="store_true", help="Resolve even if the form already has data")
    res.add_argument("--metrics", action="store_true", help="Log a metrics summary afterwards")
    res.set_defaults(func=cmd_resolve)

    args = parser.parse_args()

    if args.version:
        print(__version__)
        return

    if hasattr(args, "func"):
        args.func(args)
        return

    parser.print_help()


if __name__ == "__main__":
    main()
