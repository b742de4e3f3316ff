#!/usr/bin/env python3
"""Canonicalize a Work JSON file.

Walks the passage chain from head to tail, drops tombstones and orphans,
and writes a densely indexed Work with ``ordered: true``.

Usage::

    python3 scripts/sort_work.py --work edited.json --out canonical.json
    python3 scripts/sort_work.py --work edited.json            # canonical JSON on stdout
"""
from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from citeworks.io_utils import dumps, load_work, save_work, work_to_dict
from citeworks.passage_store import sort_passages
from citeworks.types import Err

log = logging.getLogger("sort_work")


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Sort a Work into canonical passage order")
    parser.add_argument("--work", type=Path, required=True, help="Work JSON file")
    parser.add_argument("--out", type=Path, default=None, help="Output path (default: stdout)")
    parser.add_argument("--verbose", "-v", action="store_true")
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(message)s",
        stream=sys.stderr,
    )

    try:
        work = load_work(args.work)
    except (OSError, ValueError) as exc:
        print(dumps({"error": "invalid_work", "message": str(exc), "ref": str(args.work)}, pretty=False), file=sys.stderr)
        return 1
    result = sort_passages(work)
    if isinstance(result, Err):
        err = result.error
        print(dumps({"error": err.reason, "message": err.message, "ref": err.ref}, pretty=False), file=sys.stderr)
        return 1
    canonical = result.value

    dropped = len(work.live_passages()) - len(canonical.passages)
    summary = {
        "work_id": canonical.id,
        "passages": len(canonical.passages),
        "tombstones_removed": len(work.passages) - len(work.live_passages()),
        "orphans_dropped": dropped,
        "first": canonical.first.passage_id,
        "last": canonical.last.passage_id,
    }

    if args.out is not None:
        save_work(canonical, args.out)
        summary["out"] = str(args.out)
        print(dumps(summary))
    else:
        print(dumps(work_to_dict(canonical)))
        log.info("Sorted %s: %d passages", canonical.id, len(canonical.passages))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
