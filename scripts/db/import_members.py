#!/usr/bin/env python3
"""
Import a legacy users.json (array of member objects) into the member store.

Usage:
  .venv/bin/python scripts/db/import_members.py --json-file server/users.json
  .venv/bin/python scripts/db/import_members.py --json-file users.json --dry-run
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[2]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from posterkit import member_store
from posterkit.member_store import DuplicateMemberError
from posterkit.members import InvalidMemberError, Member


def import_rows(rows: list, *, dry_run: bool = False) -> dict:
    inserted = 0
    skipped_existing = 0
    skipped_invalid = 0

    for row in rows:
        try:
            member = Member.from_record(row)
        except InvalidMemberError:
            skipped_invalid += 1
            continue

        if dry_run:
            print(f"[DRY-RUN] insert {member.email} ({member.designation or '-'})")
            inserted += 1
            continue

        try:
            member_store.create_member(
                name=member.name,
                email=member.email,
                phone=member.phone,
                designation=member.designation,
                photo_url=member.photo,
            )
        except DuplicateMemberError:
            skipped_existing += 1
            continue
        inserted += 1

    return {
        "total_rows": len(rows),
        "inserted": inserted,
        "skipped_existing": skipped_existing,
        "skipped_invalid": skipped_invalid,
        "dry_run": dry_run,
    }


def main(argv=None):
    parser = argparse.ArgumentParser(description="Import users.json into the member store")
    parser.add_argument("--json-file", default="users.json", help="Path to users.json")
    parser.add_argument("--dry-run", action="store_true", help="Show what would be inserted without writing DB")
    args = parser.parse_args(argv)

    json_path = Path(args.json_file)
    if not json_path.exists():
        raise SystemExit(f"json file not found: {json_path}")

    payload = json.loads(json_path.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise SystemExit("json file must contain a JSON array")

    summary = import_rows(payload, dry_run=args.dry_run)
    print(json.dumps({"json_file": str(json_path), **summary}, ensure_ascii=False))


if __name__ == "__main__":
    main()
