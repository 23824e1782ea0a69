#!/usr/bin/env python3
"""
Validate environment configuration before seeding.
Checks the seeding knobs, database connectivity and basic security toggles.
Exit code 0 = OK, 1 = problems detected.
"""
import sys
import logging
from pathlib import Path
from typing import List
from urllib.parse import urlparse

sys.path.insert(0, str(Path(__file__).parent.parent))

from taskboard.config import Settings  # noqa: E402
from taskboard.exceptions import ConfigurationError  # noqa: E402
from taskboard.services.seeder import build_options  # noqa: E402

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s'
)
logger = logging.getLogger(__name__)

class EnvironmentValidator:
    """Validates environment configuration for a seeding run."""

    def __init__(self, settings: Settings = None):
        self.settings = settings or Settings()
        self.errors: List[str] = []
        self.warnings: List[str] = []
        self.info: List[str] = []

    def validate_all(self) -> bool:
        """Run all validation checks."""
        logger.info("Starting environment validation...")

        self.validate_seed_options()
        self.validate_database_connection()
        self.validate_security_settings()

        self.print_results()
        return len(self.errors) == 0

    def validate_seed_options(self):
        """Check that seeding settings would be accepted by the seeder."""
        try:
            options = build_options(self.settings)
        except ConfigurationError as e:
            self.errors.append(e.message)
            return
        self.info.append(
            f"Seeding {options.task_count} tasks across {len(options.categories)} categories "
            f"in batches of {options.batch_size}"
        )
        if not options.categories:
            self.warnings.append("SEED_CATEGORIES is empty; tasks will be left without categories")
        if options.random_seed is None:
            self.info.append("SEED_RANDOM_SEED not set; fixtures will differ between runs")

    def validate_database_connection(self):
        """Test database connectivity."""
        database_url = self.settings.database_url
        try:
            parsed = urlparse(database_url)
            backend = parsed.scheme.split('+')[0]
            if backend not in ["postgresql", "postgres", "sqlite"]:
                self.warnings.append(f"Database scheme '{parsed.scheme}' - expected postgresql or sqlite")
            from sqlalchemy import create_engine, text
            engine = create_engine(database_url, pool_pre_ping=True)
            with engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            self.info.append(f"Database connection successful ({backend})")
        except Exception as e:
            self.errors.append(f"Database connection failed: {str(e)}")

    def validate_security_settings(self):
        """Check basic security toggles."""
        if self.settings.debug:
            self.warnings.append("DEBUG is enabled; disable in production")
        if self.settings.bcrypt_rounds < 10:
            self.warnings.append(f"BCRYPT_ROUNDS={self.settings.bcrypt_rounds} is weak outside of tests")
        if self.settings.seed_test_user_password == "password":
            self.warnings.append("Test user keeps the placeholder password; do not seed production with it")

    def print_results(self):
        print("\n===== Environment Validation Report =====\n")
        if self.info:
            print("Info:")
            for msg in self.info:
                print(f"  - {msg}")
            print("")
        if self.warnings:
            print("Warnings:")
            for msg in self.warnings:
                print(f"  - {msg}")
            print("")
        if self.errors:
            print("Errors:")
            for msg in self.errors:
                print(f"  - {msg}")
            print("")
        overall = "PASS" if not self.errors else "FAIL"
        print(f"Overall: {overall}")
        print("")


def main() -> int:
    validator = EnvironmentValidator()
    ok = validator.validate_all()
    return 0 if ok else 1


if __name__ == "__main__":
    sys.exit(main())
