#!/usr/bin/env python3
"""
Spritediff CLI

Command-line interface for comparing sprite document snapshots.
"""
import argparse
import json
import logging
import sys

EXIT_IDENTICAL = 0
EXIT_DIFFERENT = 1
EXIT_UNREADABLE = 2


def load_document(path: str):
    """Load a JSON snapshot file into a document."""
    from pydantic import ValidationError
    from api.schemas import DocumentSnapshot, SnapshotDecodeError

    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
        snapshot = DocumentSnapshot.model_validate(data)
        document = snapshot.to_document()
    except (OSError, json.JSONDecodeError, ValidationError, SnapshotDecodeError) as e:
        print(f"Error: Could not read snapshot {path}: {e}", file=sys.stderr)
        return None

    if document.filename is None:
        document.filename = path
    return document


def compare_files(before_path: str, after_path: str, as_json: bool = False) -> int:
    """Compare two snapshot files and print the differing dimensions."""
    from core import compare_docs, DIMENSIONS
    from config import settings

    before = load_document(before_path)
    after = load_document(after_path)
    if before is None or after is None:
        return EXIT_UNREADABLE

    diff = compare_docs(before, after, color_tolerance=settings.COLOR_PROFILE_TOLERANCE)

    if as_json:
        print(json.dumps({
            "before": before_path,
            "after": after_path,
            "changed_dimensions": diff.changed_dimensions,
            **diff.to_dict()
        }, indent=2))
        return EXIT_DIFFERENT if diff else EXIT_IDENTICAL

    print(f"\nComparing: {before_path} vs {after_path}")
    print("=" * 60)

    if not diff:
        print("✅ Documents are identical")
        return EXIT_IDENTICAL

    print(f"⚠️  {len(diff.changed_dimensions)} dimension(s) differ:\n")
    for name in DIMENSIONS:
        if getattr(diff, name):
            print(f"  - {name.replace('_', ' ')}")
    print()
    return EXIT_DIFFERENT


def run_server(host: str = "127.0.0.1", port: int = 8000, reload: bool = False):
    """Run the FastAPI server."""
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=host,
        port=port,
        reload=reload
    )


def main(argv=None) -> int:
    parser = argparse.ArgumentParser(
        description="Spritediff CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log comparison details")

    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # compare
    compare_parser = subparsers.add_parser("compare", help="Compare two snapshot files")
    compare_parser.add_argument("before", help="Before/previous snapshot")
    compare_parser.add_argument("after", help="After/current snapshot")
    compare_parser.add_argument("--json", action="store_true", help="Print flags as JSON")

    # serve
    serve_parser = subparsers.add_parser("serve", help="Run the API server")
    serve_parser.add_argument("--host", default="127.0.0.1", help="Host to bind to")
    serve_parser.add_argument("--port", type=int, default=8000, help="Port to listen on")
    serve_parser.add_argument("--reload", action="store_true", help="Enable auto-reload")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    )

    if not args.command:
        parser.print_help()
        return EXIT_IDENTICAL

    if args.command == "compare":
        return compare_files(args.before, args.after, args.json)
    elif args.command == "serve":
        run_server(args.host, args.port, args.reload)
    return EXIT_IDENTICAL


if __name__ == "__main__":
    sys.exit(main())
