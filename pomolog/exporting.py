from __future__ import annotations

import csv
from pathlib import Path

from .storage import Storage


def export_sessions_csv(storage: Storage, out_dir: Path, user_id: int | None = None) -> Path:
    out_path = Path(out_dir)
    out_path.mkdir(parents=True, exist_ok=True)
    csv_path = out_path / "pomolog-sessions.csv"

    sessions = storage.list_sessions(user_id)

    with csv_path.open("w", encoding="utf-8", newline="") as fp:
        writer = csv.writer(fp)
        writer.writerow(
            [
                "id",
                "user_id",
                "type",
                "duration",
                "start_time",
                "end_time",
                "completed",
            ]
        )
        for item in sessions:
            writer.writerow(
                [
                    item.id,
                    item.user_id,
                    item.type,
                    item.duration,
                    item.start_time.isoformat(),
                    item.end_time.isoformat() if item.end_time else "",
                    1 if item.completed else 0,
                ]
            )

    return csv_path
