"""
Command line for the profile grid.

    python -m src serve [--host HOST] [--port PORT]
    python -m src check-catalog [PATH]
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="profile-grid",
                                description="Profile dashboard grid layout engine")
    sub = p.add_subparsers(dest="cmd", required=True)

    sv = sub.add_parser("serve", help="Start the layout HTTP API")
    sv.add_argument("--host", default="127.0.0.1", help="Host to bind")
    sv.add_argument("--port", type=int, default=8000, help="Port to bind")

    cc = sub.add_parser("check-catalog", help="Validate a widget catalog file")
    cc.add_argument("path", nargs="?", default=None,
                    help="Catalog JSON (default: catalog/widgets.json)")

    return p


def check_catalog(path: Path | None) -> int:
    from src.catalog import CATALOG_FILE, load_catalog

    catalog = load_catalog(path)
    name = path or CATALOG_FILE
    if catalog.ok:
        print(f"{name}: {len(catalog.types)} types, {len(catalog.sizes)} sizes")
        return 0
    for err in catalog.errors:
        print(f"{name}: {err}", file=sys.stderr)
    return 1


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    if args.cmd == "serve":
        from src.web.server import main as serve
        serve(host=args.host, port=args.port)
        return 0

    if args.cmd == "check-catalog":
        return check_catalog(Path(args.path) if args.path else None)

    return 2


if __name__ == "__main__":
    sys.exit(main())
