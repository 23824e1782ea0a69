"""SQLAlchemy-backed stores used by the fixture seeder.

Each store wraps a single ``Session`` and never commits on its own; the caller
decides where a unit of work ends.
"""
from typing import Any, Dict, Iterable, List, Set, Tuple
import logging

from sqlalchemy import func, insert, select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from taskboard.models import Task, TaskCategory, User, task_category_links

logger = logging.getLogger(__name__)


class _NaturalKeyStore:
    """Find-or-create keyed on a unique column, tolerant of concurrent inserts."""

    model = None

    def __init__(self, db: Session):
        self.db = db

    def _find(self, **lookup):
        return self.db.execute(select(self.model).filter_by(**lookup)).scalar_one_or_none()

    def _get_or_create(self, lookup: Dict[str, Any], defaults) -> Tuple[Any, bool]:
        """``defaults`` may be a dict or a zero-argument callable, evaluated only when creating."""
        instance = self._find(**lookup)
        if instance is not None:
            return instance, False

        if callable(defaults):
            defaults = defaults()
        try:
            with self.db.begin_nested():
                instance = self.model(**lookup, **defaults)
                self.db.add(instance)
                self.db.flush()  # Force unique constraint check inside the savepoint
        except IntegrityError:
            # Another writer created the same natural key between our read and insert
            logger.info(f"{self.model.__name__} {lookup} created concurrently, reusing existing row")
            return self.db.execute(select(self.model).filter_by(**lookup)).scalar_one(), False

        return instance, True


class UserStore(_NaturalKeyStore):
    model = User

    def get_or_create(self, email: str, defaults) -> Tuple[User, bool]:
        return self._get_or_create({"email": email}, defaults)

    def bulk_create(self, rows: List[Dict[str, Any]]) -> int:
        """Insert ``rows``, skipping any whose email another writer already took.

        Returns the number of rows actually inserted.
        """
        created = 0
        for row in rows:
            try:
                with self.db.begin_nested():
                    self.db.execute(insert(User).values(**row))
            except IntegrityError:
                if self._find(email=row["email"]) is None:
                    raise
                logger.info(f"User {row['email']} created concurrently, skipping")
                continue
            created += 1
        return created

    def count(self) -> int:
        return self.db.execute(select(func.count()).select_from(User)).scalar_one()

    def emails(self) -> Set[str]:
        return set(self.db.execute(select(User.email)).scalars())


class CategoryStore(_NaturalKeyStore):
    model = TaskCategory

    def get_or_create(self, name: str) -> Tuple[TaskCategory, bool]:
        return self._get_or_create({"name": name}, {})

    def list_ids(self) -> List[int]:
        return list(self.db.execute(select(TaskCategory.id).order_by(TaskCategory.id)).scalars())


class TaskStore:
    def __init__(self, db: Session):
        self.db = db

    def exists_any(self) -> bool:
        return self.db.execute(select(Task.id).limit(1)).first() is not None

    def bulk_create(self, rows: List[Dict[str, Any]]) -> int:
        if not rows:
            return 0
        self.db.execute(insert(Task), rows)
        return len(rows)

    def unassociated_after(self, after_id: int, limit: int) -> List[int]:
        """Ids of tasks with no category links, ``id > after_id``, ascending, at most ``limit``."""
        has_link = (
            select(task_category_links.c.task_id)
            .where(task_category_links.c.task_id == Task.id)
            .exists()
        )
        stmt = (
            select(Task.id)
            .where(Task.id > after_id)
            .where(~has_link)
            .order_by(Task.id)
            .limit(limit)
        )
        return list(self.db.execute(stmt).scalars())

    def category_ids_for(self, task_id: int) -> Set[int]:
        stmt = select(task_category_links.c.task_category_id).where(
            task_category_links.c.task_id == task_id
        )
        return set(self.db.execute(stmt).scalars())

    def attach_missing(self, task_id: int, category_ids: Iterable[int], skip_if_linked: bool = False) -> int:
        """Link ``task_id`` to each category it isn't linked to yet. Returns the number of new links.

        With ``skip_if_linked`` a task that already has any link is left alone entirely.
        """
        existing = self.category_ids_for(task_id)
        if existing and skip_if_linked:
            return 0
        created = 0
        for category_id in dict.fromkeys(category_ids):
            if category_id in existing:
                continue
            try:
                with self.db.begin_nested():
                    self.db.execute(
                        insert(task_category_links).values(task_id=task_id, task_category_id=category_id)
                    )
            except IntegrityError:
                # Only a duplicate link is benign; a missing task or category is not
                if category_id not in self.category_ids_for(task_id):
                    raise
                logger.debug(f"Link task={task_id} category={category_id} already present")
                continue
            created += 1
        return created
