#!/usr/bin/env python3
"""
Seed the database with baseline users, task categories and tasks.
Safe to run repeatedly: only missing fixtures are created.
Exit code 0 = OK, 1 = seeding aborted.
"""
import sys
import logging
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.config import settings  # noqa: E402
from taskboard.db import SessionLocal, init_db  # noqa: E402
from taskboard.exceptions import TaskboardException  # noqa: E402
from taskboard.services.seeder import run_seeders  # noqa: E402

def setup_logging():
    logging.basicConfig(
        level=settings.log_level.upper(),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        handlers=[logging.StreamHandler(sys.stdout)]
    )
    return logging.getLogger(__name__)

def main() -> int:
    logger = setup_logging()
    init_db()
    db = SessionLocal()
    try:
        report = run_seeders(db)
    except TaskboardException as e:
        logger.error(f"Seeding aborted: {e.message}")
        logger.error("Completed steps were kept; re-run once the problem is fixed")
        return 1
    finally:
        db.close()

    print(f"Users created:      {report.users_created}")
    print(f"Categories created: {report.categories_created}")
    print(f"Tasks created:      {report.tasks_created}")
    print(f"Tasks categorised:  {report.tasks_associated} ({report.links_created} links, {report.batches_processed} batches)")
    return 0

if __name__ == "__main__":
    sys.exit(main())
