from __future__ import annotations

import argparse
import json
from collections import Counter
from pathlib import Path
from typing import Any

from harvesthub.core.env import resolve_project_path
from harvesthub.directory.loader import extract_records
from harvesthub.directory.normalize import normalize_farmer_record
from harvesthub.domain.models import Unlocated


def _read_json(path: Path) -> Any:
    return json.loads(path.read_text(encoding="utf-8"))


def main(argv: list[str] | None = None) -> int:
    p = argparse.ArgumentParser(description="Validate a HarvestHub farmer directory file (offline).")
    p.add_argument("--directory", type=str, default="data/farmers/farmers.json")
    args = p.parse_args(argv)

    path = resolve_project_path(args.directory)
    if not path.exists():
        print("Directory file not found:", path)
        return 2

    try:
        records = extract_records(_read_json(path))
    except ValueError as e:
        print("Invalid directory shape:", e)
        return 2

    bad_rows: list[str] = []
    seen: Counter[str] = Counter()
    reasons: Counter[str] = Counter()
    located = 0

    for i, raw in enumerate(records):
        if not isinstance(raw, dict):
            bad_rows.append(f"#{i}")
            continue
        try:
            farmer = normalize_farmer_record(raw)
        except ValueError:
            bad_rows.append(f"#{i}")
            continue
        seen[farmer.id] += 1
        if isinstance(farmer.location, Unlocated):
            reasons[farmer.location.reason] += 1
        else:
            located += 1

    duplicates = sorted(k for k, n in seen.items() if n > 1)

    print("Directory:", path)
    print("Records:", len(records))
    print("Located:", located)
    for reason, n in sorted(reasons.items()):
        print(f"Unlocated ({reason}):", n)
    if duplicates:
        print("Duplicate ids:", len(duplicates), "example:", ", ".join(duplicates[:8]))
    if bad_rows:
        print("Invalid rows:", len(bad_rows), "example:", ", ".join(bad_rows[:8]))

    if bad_rows or duplicates:
        return 2
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
