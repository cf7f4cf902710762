#!/usr/bin/env python3
"""Parse every timetable in samples/ and report what was extracted."""

from __future__ import annotations

import argparse
import json
from pathlib import Path
from typing import List

from roomplanner.parsers.parser_pdf import (
    SUPPORTED_SUFFIXES,
    DocumentDecodeError,
    extract_page_labels_from_file,
    extract_schedules_from_file,
)


def iter_documents(root: Path) -> List[Path]:
    files: List[Path] = []
    for path in sorted(root.rglob("*")):
        if path.suffix.lower() in SUPPORTED_SUFFIXES and path.is_file():
            files.append(path)
    return files


def main() -> int:
    parser = argparse.ArgumentParser(description="Parse all timetable samples")
    parser.add_argument(
        "--samples-dir",
        default="samples",
        help="Folder with PDF files or pdf2json dumps (default: samples)",
    )
    parser.add_argument(
        "--labels",
        action="store_true",
        help="Treat documents as semester-wise PDFs and print page labels",
    )
    parser.add_argument(
        "--dump",
        action="store_true",
        help="Print the full JSON result for each document",
    )
    parser.add_argument(
        "--stop-on-error",
        action="store_true",
        help="Stop at the first document that cannot be decoded",
    )
    args = parser.parse_args()

    root = Path(args.samples_dir).expanduser().resolve()
    if not root.exists():
        print(f"[x] samples folder missing: {root}")
        return 1

    files = iter_documents(root)
    if not files:
        print(f"[i] No documents found in {root}")
        return 0

    success = 0
    failed = 0
    for path in files:
        rel = path.relative_to(root)
        try:
            if args.labels:
                mapping = extract_page_labels_from_file(path)
                print(f"[✓] {rel} ({mapping.totalPages} pages)")
                for label in mapping.pageMapping:
                    print(f"    - page {label.pageNumber}: {label.fullText}")
                result = mapping
            else:
                result = extract_schedules_from_file(path)
                review = [s for s in result.schedules if s.needsReview]
                marker = "!" if review else "✓"
                print(
                    f"[{marker}] {rel} ({len(result.schedules)} schedules, "
                    f"{len(result.rooms)} rooms, {len(review)} need review)"
                )
                for record in review:
                    print(
                        f"    - {record.roomNumber} {record.day} {record.timeSlot.start}: "
                        f"{record.rawContent!r}"
                    )
            if args.dump:
                print(json.dumps(result.model_dump(), indent=2, ensure_ascii=False))
            success += 1
        except DocumentDecodeError as exc:
            print(f"[x] {rel}: {exc}")
            failed += 1
            if args.stop_on_error:
                break

    print(f"\nSummary: {success} parsed, {failed} failed")
    return 0 if failed == 0 else 2


if __name__ == "__main__":
    raise SystemExit(main())
