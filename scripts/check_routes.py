#!/usr/bin/env python3
"""Report application routes that have no AgriAccess permission rule.

Any path without a rule is served as a public page.  Run this over the
application's page list in CI to catch pages added without a rule.

Usage:
    python scripts/check_routes.py /dashboard /reports/weekly
    python scripts/check_routes.py --file routes.txt
    python scripts/check_routes.py --list
"""

from __future__ import annotations

import argparse
import sys
from pathlib import Path

from agriaccess.access import sort_roles
from agriaccess.permissions import ROUTE_PERMISSIONS, find_unregistered_routes


def _read_paths(path: Path) -> list[str]:
    lines = path.read_text().splitlines()
    return [line.strip() for line in lines if line.strip() and not line.lstrip().startswith("#")]


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Find routes without a permission rule")
    parser.add_argument("paths", nargs="*", help="Route paths to check")
    parser.add_argument("--file", type=Path, help="File with one route path per line")
    parser.add_argument("--list", action="store_true", help="Print the registered route rules")
    args = parser.parse_args(argv)

    if args.list:
        for route, roles in ROUTE_PERMISSIONS.items():
            print(f"{route:<32} {', '.join(sort_roles(roles))}")
        return 0

    paths = list(args.paths)
    if args.file is not None:
        if not args.file.exists():
            print(f"Route file not found: {args.file}", file=sys.stderr)
            return 2
        paths.extend(_read_paths(args.file))

    if not paths:
        parser.error("no route paths given")

    missing = find_unregistered_routes(paths)
    for path in missing:
        print(f"PUBLIC (no rule): {path}")
    if missing:
        print(f"{len(missing)} of {len(paths)} routes have no permission rule", file=sys.stderr)
        return 1
    print(f"All {len(paths)} routes are covered by a permission rule")
    return 0


if __name__ == "__main__":
    sys.exit(main())
