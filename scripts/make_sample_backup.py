#!/usr/bin/env python
from __future__ import annotations

import argparse
import random
import sys
from datetime import datetime, timedelta
from pathlib import Path

sys.path.append(str(Path(__file__).resolve().parents[1]))

from handover.core.backup import dumps_backup
from handover.core.csvio import COMPLETED_LOG_COLUMNS, completed_log_rows, write_records_to_csv
from handover.core.schema import CompletedJobRecord, JobRecord, PersistableState
from handover.core.settings import load_settings

DESCRIPTIONS = [
    "Replace mechanical seal on transfer pump",
    "Conveyor belt tracking off on line 2",
    "Filler valve leaking at head 14",
    "Forklift charger fault in bay 3",
    "Chiller alarm reset, monitor temperatures",
    "Label applicator jamming intermittently",
]


def main() -> None:
    parser = argparse.ArgumentParser(description="Generate a sample job board backup file")
    parser.add_argument("--output", required=True, help="output file path (.json)")
    parser.add_argument("--active", type=int, default=8, help="number of open jobs")
    parser.add_argument("--completed", type=int, default=40, help="number of archived jobs")
    parser.add_argument("--days", type=int, default=60, help="spread completed jobs over this many days")
    parser.add_argument("--seed", type=int, default=7, help="random seed")
    parser.add_argument("--csv", help="also write the completed log to this CSV path")
    args = parser.parse_args()

    rng = random.Random(args.seed)
    departments = load_settings().departments
    now = datetime.now().replace(second=0, microsecond=0)

    active = [
        JobRecord(
            date=now - timedelta(hours=rng.randint(0, 96)),
            department=rng.choice(departments),
            description=rng.choice(DESCRIPTIONS),
            job_complete=rng.random() < 0.3,
        )
        for _ in range(args.active)
    ]
    completed = []
    for _ in range(args.completed):
        raised = now - timedelta(days=rng.randint(1, args.days), hours=rng.randint(0, 23))
        completed.append(
            CompletedJobRecord(
                date=raised,
                department=rng.choice(departments),
                description=rng.choice(DESCRIPTIONS),
                job_complete=True,
                sap_complete=True,
                job_number=f"JN-{rng.randint(10000, 99999)}",
                completed_at=raised + timedelta(hours=rng.randint(1, 30)),
            )
        )

    output = Path(args.output)
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(dumps_backup(PersistableState(active_jobs=active, completed_jobs=completed)), encoding="utf-8")

    print(f"sample backup written: {output}")
    if args.csv:
        csv_path = write_records_to_csv(Path(args.csv), completed_log_rows(completed), COMPLETED_LOG_COLUMNS)
        print(f"completed log written: {csv_path}")


if __name__ == "__main__":
    main()
