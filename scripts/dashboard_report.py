#!/usr/bin/env python3
"""Print the dashboard summary as JSON.

Usage: dashboard_report.py [CATEGORY_ID ...]

With category ids, also print the first page of tasks linked to any of them.
"""
import sys
import logging
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.db import SessionLocal, init_db  # noqa: E402
from taskboard.services.dashboard import DashboardService  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)

def main(argv=None):
    argv = sys.argv[1:] if argv is None else argv
    try:
        category_ids = [int(arg) for arg in argv]
    except ValueError:
        print(f"Category ids must be integers, got: {' '.join(argv)}")
        return 1

    init_db()
    db = SessionLocal()
    try:
        service = DashboardService(db)
        summary = service.summary()
        tasks = service.tasks_in_categories(category_ids) if category_ids else None
    finally:
        db.close()
    print(summary.model_dump_json(indent=2))
    if tasks is not None:
        print(tasks.model_dump_json(indent=2))
    return 0

if __name__ == "__main__":
    sys.exit(main())
