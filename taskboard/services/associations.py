from typing import Collection, Iterable, Optional, Protocol, Sequence, Set
import logging

from sqlalchemy.orm import Session

from taskboard.exceptions import handle_store_errors
from taskboard.schemas import BatchCursor, BatchResult
from taskboard.services.stores import TaskStore

logger = logging.getLogger(__name__)

DEFAULT_BATCH_SIZE = 50
DEFAULT_MAX_PER_TASK = 3


class RandomSource(Protocol):
    """The slice of ``random.Random`` the assigner needs."""

    def randint(self, a: int, b: int) -> int: ...

    def sample(self, population: Sequence, k: int) -> list: ...


def clamp_selection_count(requested: int, available: int) -> int:
    """Never ask for more distinct categories than exist."""
    if requested < 0 or available < 0:
        raise ValueError(f"counts must be non-negative (requested={requested}, available={available})")
    return min(requested, available)


def sample_without_replacement(pool: Collection[int], k: int, rng: RandomSource) -> Set[int]:
    """Draw ``k`` distinct members of ``pool``.

    The pool is sorted first so the same seed always yields the same picks,
    whatever the iteration order of the collection passed in.
    """
    ordered = sorted(set(pool))
    if k < 0 or k > len(ordered):
        raise ValueError(f"cannot draw {k} distinct items from a pool of {len(ordered)}")
    return set(rng.sample(ordered, k))


class AssociationAssigner:
    """Backfill category links for tasks that have none.

    Tasks are visited in primary-key order, ``batch_size`` at a time; each
    batch is committed before the next cursor is handed back, so an aborted
    run keeps every batch it finished. A task that already has a link is
    never touched.
    """

    def __init__(
        self,
        db: Session,
        rng: RandomSource,
        batch_size: int = DEFAULT_BATCH_SIZE,
        max_per_task: int = DEFAULT_MAX_PER_TASK,
        tasks: Optional[TaskStore] = None,
    ):
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if max_per_task < 1:
            raise ValueError("max_per_task must be at least 1")
        self.db = db
        self.rng = rng
        self.batch_size = batch_size
        self.max_per_task = max_per_task
        self.tasks = tasks or TaskStore(db)

    def pick_categories(self, category_ids: Collection[int]) -> Set[int]:
        k = clamp_selection_count(self.rng.randint(1, self.max_per_task), len(category_ids))
        return sample_without_replacement(category_ids, k, self.rng)

    @handle_store_errors("assign_categories_batch")
    def assign_batch(self, category_ids: Collection[int], cursor: BatchCursor = BatchCursor()) -> BatchResult:
        if cursor.exhausted or not category_ids:
            return BatchResult(cursor=BatchCursor(after_id=cursor.after_id, exhausted=True))

        task_ids = self.tasks.unassociated_after(cursor.after_id, self.batch_size)
        if not task_ids:
            return BatchResult(cursor=BatchCursor(after_id=cursor.after_id, exhausted=True))

        links_created = 0
        for task_id in task_ids:
            picked = self.pick_categories(category_ids)
            logger.debug(f"Task {task_id} -> categories {sorted(picked)}")
            # Another run may have claimed the task since the batch was read
            links_created += self.tasks.attach_missing(task_id, picked, skip_if_linked=True)
        self.db.commit()

        next_cursor = BatchCursor(after_id=task_ids[-1], exhausted=len(task_ids) < self.batch_size)
        return BatchResult(cursor=next_cursor, tasks_processed=len(task_ids), links_created=links_created, batches=1)

    def batches(self, category_ids: Collection[int], cursor: BatchCursor = BatchCursor()) -> Iterable[BatchResult]:
        """Yield one result per committed batch until the scan is exhausted."""
        category_ids = list(category_ids)
        while not cursor.exhausted:
            result = self.assign_batch(category_ids, cursor)
            cursor = result.cursor
            if result.tasks_processed:
                yield result

    def run(self, category_ids: Collection[int]) -> BatchResult:
        """Assign categories to every unassociated task; returns the totals."""
        if not category_ids:
            logger.info("No categories available, skipping association backfill")
            return BatchResult(cursor=BatchCursor(exhausted=True))

        tasks_processed = links_created = batches = 0
        cursor = BatchCursor()
        for result in self.batches(category_ids):
            batches += 1
            tasks_processed += result.tasks_processed
            links_created += result.links_created
            cursor = result.cursor
            logger.info(f"Batch {batches}: {result.tasks_processed} tasks, {result.links_created} links (cursor={cursor.after_id})")

        logger.info(f"Association backfill done: {tasks_processed} tasks in {batches} batches")
        return BatchResult(
            cursor=BatchCursor(after_id=cursor.after_id, exhausted=True),
            tasks_processed=tasks_processed,
            links_created=links_created,
            batches=batches,
        )
