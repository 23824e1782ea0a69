from datetime import datetime, timezone
from random import Random
from typing import List, Optional, Tuple
import logging

from pydantic import ValidationError
from sqlalchemy.orm import Session

from taskboard.auth import hash_password
from taskboard.config import Settings, settings as default_settings
from taskboard.exceptions import ConfigurationError, handle_store_errors
from taskboard.schemas import SeedOptions, SeedReport
from taskboard.services.associations import AssociationAssigner, RandomSource
from taskboard.services.factories import make_faker, task_rows, user_rows
from taskboard.services.stores import CategoryStore, TaskStore, UserStore

logger = logging.getLogger(__name__)


def build_options(settings: Settings) -> SeedOptions:
    """Validate seeding settings, turning pydantic errors into a ConfigurationError."""
    try:
        return SeedOptions.from_settings(settings)
    except ValidationError as e:
        first = e.errors()[0]
        setting = ".".join(str(part) for part in first["loc"]) or "seed"
        raise ConfigurationError(setting, first["msg"]) from e


class DatabaseSeeder:
    """Populate an empty store with baseline users, categories and tasks.

    Every step is an ensurer: re-running the seeder against a populated store
    creates nothing new, and a run aborted by a store failure can simply be
    started again.
    """

    def __init__(
        self,
        db: Session,
        options: Optional[SeedOptions] = None,
        rng: Optional[RandomSource] = None,
        settings: Settings = default_settings,
    ):
        self.db = db
        self._options = options
        self._settings = settings
        self.rng = rng
        self.users = UserStore(db)
        self.categories = CategoryStore(db)
        self.tasks = TaskStore(db)
        self.fake = None

    @property
    def options(self) -> SeedOptions:
        if self._options is None:
            self._options = build_options(self._settings)
        return self._options

    def _prepare(self) -> None:
        # Resolving options first means bad configuration fails before any write
        options = self.options
        if self.rng is None:
            self.rng = Random(options.random_seed)
        if self.fake is None:
            self.fake = make_faker(options.random_seed)

    @handle_store_errors("ensure_categories")
    def ensure_categories(self, names: Optional[List[str]] = None) -> Tuple[List[int], int]:
        """Find-or-create each named category. Returns (ids in name order, number created)."""
        names = self.options.categories if names is None else names
        ids: List[int] = []
        created = 0
        for name in names:
            category, was_created = self.categories.get_or_create(name)
            created += was_created
            if category.id not in ids:
                ids.append(category.id)
        self.db.commit()
        if created:
            logger.info(f"Created {created} task categories")
        return ids, created

    @handle_store_errors("ensure_users")
    def ensure_users(self) -> int:
        """Ensure the test user exists; on a first run also add the supplementary users.

        Returns the number of users created.
        """
        self._prepare()
        options = self.options
        hashed = []

        def password_hash() -> str:
            # Hash at most once, and only when a user is created
            if not hashed:
                hashed.append(hash_password(options.test_user_password, rounds=options.bcrypt_rounds))
            return hashed[0]

        _, created_test_user = self.users.get_or_create(
            options.test_user_email,
            lambda: {
                "name": options.test_user_name,
                "password": password_hash(),
                "email_verified_at": datetime.now(timezone.utc),
            },
        )
        self.db.flush()
        created = int(created_test_user)

        # Population count, not whether the test user was new, decides the bulk insert
        if self.users.count() == 1 and options.extra_user_count:
            rows = user_rows(self.fake, options.extra_user_count, password_hash(), self.users.emails())
            inserted = self.users.bulk_create(rows)
            created += inserted
            logger.info(f"Created {inserted} supplementary users")

        self.db.commit()
        return created

    @handle_store_errors("ensure_tasks")
    def ensure_tasks(self) -> int:
        """Bulk-create placeholder tasks, but only into an empty task table."""
        self._prepare()
        if self.tasks.exists_any():
            logger.info("Tasks already present, skipping task fixtures")
            return 0
        created = self.tasks.bulk_create(task_rows(self.fake, self.rng, self.options.task_count))
        self.db.commit()
        logger.info(f"Created {created} tasks")
        return created

    def assign_categories(self, category_ids: List[int]) -> SeedReport:
        self._prepare()
        assigner = AssociationAssigner(
            self.db,
            self.rng,
            batch_size=self.options.batch_size,
            max_per_task=self.options.max_categories_per_task,
            tasks=self.tasks,
        )
        result = assigner.run(category_ids)
        return SeedReport(
            tasks_associated=result.tasks_processed,
            links_created=result.links_created,
            batches_processed=result.batches,
        )

    def run(self) -> SeedReport:
        self._prepare()
        logger.info("Seeding database...")

        users_created = self.ensure_users()
        tasks_created = self.ensure_tasks()
        category_ids, categories_created = self.ensure_categories()
        report = self.assign_categories(category_ids)

        report.users_created = users_created
        report.tasks_created = tasks_created
        report.categories_created = categories_created
        report.category_ids = category_ids
        logger.info(f"Seeding finished: {report.model_dump(exclude={'category_ids'})}")
        return report


def run_seeders(db: Session, settings: Settings = default_settings) -> SeedReport:
    return DatabaseSeeder(db, settings=settings).run()
