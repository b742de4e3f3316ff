#!/usr/bin/env python3
"""Extract passage text addressed by a CTS URN from a Work JSON file.

Usage::

    python3 scripts/extract_text.py --work iliad.json --urn "urn:cts:greekLit:tlg0012.tlg001:1.1-1.7"
    python3 scripts/extract_text.py --work iliad.json --urn "...:1.1@μῆνιν-1.1@θεὰ" --sort-first -v

Prints the extracted ``{id, text}`` rows as JSON on stdout. Failures are
printed as a JSON error object on stderr with exit code 1.
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

from citeworks.extractor import extract_text_by_id
from citeworks.io_utils import dumps, load_work, rows_to_dicts
from citeworks.passage_store import sort_passages
from citeworks.types import CiteError, Err

log = logging.getLogger("extract_text")


def error_payload(error: CiteError) -> dict[str, str]:
    return {"error": error.reason, "message": error.message, "ref": error.ref}


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Extract text from a Work by CTS URN")
    parser.add_argument("--work", type=Path, required=True, help="Work JSON file")
    parser.add_argument("--urn", required=True, help="CTS URN (single, range or substring)")
    parser.add_argument(
        "--sort-first", action="store_true",
        help="Canonicalize the Work before extracting (enables the ordered fast path)",
    )
    parser.add_argument("--compact", action="store_true", help="Single-line JSON output")
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
    log.info("Loaded work %s with %d passage slots", work.id, len(work.passages))

    if args.sort_first:
        sorted_work = sort_passages(work)
        if isinstance(sorted_work, Err):
            print(dumps(error_payload(sorted_work.error), pretty=False), file=sys.stderr)
            return 1
        work = sorted_work.value

    result = extract_text_by_id(args.urn, work)
    if isinstance(result, Err):
        log.debug("Extraction failed: %s", result.error.message)
        print(dumps(error_payload(result.error), pretty=False), file=sys.stderr)
        return 1

    print(dumps(rows_to_dicts(result.value), pretty=not args.compact))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
