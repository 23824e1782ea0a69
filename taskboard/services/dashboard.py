from collections import Counter
from datetime import date, datetime, time, timedelta, timezone
from typing import Iterable, List, Optional
import logging

from sqlalchemy import func, select
from sqlalchemy.orm import Session, selectinload

from taskboard.models import Task, TaskCategory, task_category_links
from taskboard.schemas import (
    BarPoint,
    CategoryCount,
    ChartData,
    ChartDataset,
    DashboardSummary,
    PieSlice,
    TaskOut,
    TaskPage,
)

logger = logging.getLogger(__name__)

COMPLETED_COLOR = "#16a34a"
PENDING_COLOR = "#b91c1c"
NEUTRAL_SWATCHES = ["#171717", "#525252", "#737373", "#a3a3a3", "#d4d4d4"]
FALLBACK_COLOR = "#e5e5e5"
FOREGROUND_COLOR = "#0a0a0a"
DEFAULT_PER_PAGE = 15


def utc_today() -> date:
    """Stored timestamps are UTC, so "today" is the UTC calendar day."""
    return datetime.now(timezone.utc).date()


def _as_utc_naive(ts: datetime) -> datetime:
    if ts.tzinfo is not None:
        ts = ts.astimezone(timezone.utc).replace(tzinfo=None)
    return ts


class DashboardService:
    """Aggregate task progress into chart-ready datasets."""

    def __init__(self, db: Session):
        self.db = db

    def completed_vs_pending_chart(self) -> ChartData:
        rows = self.db.execute(
            select(Task.is_completed, func.count()).group_by(Task.is_completed)
        ).all()
        counts = {bool(done): total for done, total in rows}
        return ChartData(
            labels=["Completed", "Pending"],
            datasets=[
                ChartDataset(
                    label="Tasks",
                    data=[counts.get(True, 0), counts.get(False, 0)],
                    backgroundColor=[COMPLETED_COLOR, PENDING_COLOR],
                )
            ],
        )

    def pending_tasks_today(self, today: Optional[date] = None) -> int:
        today = today or utc_today()
        stmt = (
            select(func.count())
            .select_from(Task)
            .where(Task.is_completed.is_(False))
            .where(Task.due_date == today)
        )
        return self.db.execute(stmt).scalar_one()

    def tasks_created_by_day(self, days: int = 7, today: Optional[date] = None) -> ChartData:
        if days < 1:
            raise ValueError("days must be at least 1")
        today = today or utc_today()
        first_day = today - timedelta(days=days - 1)
        window_start = datetime.combine(first_day, time.min, tzinfo=timezone.utc)

        created = self.db.execute(
            select(Task.created_at).where(Task.created_at >= window_start)
        ).scalars()
        per_day = Counter(_as_utc_naive(ts).date() for ts in created if ts is not None)

        labels = [(first_day + timedelta(days=i)).isoformat() for i in range(days)]
        data = [per_day.get(first_day + timedelta(days=i), 0) for i in range(days)]
        return ChartData(
            labels=labels,
            datasets=[ChartDataset(label="Tasks created", data=data, backgroundColor=NEUTRAL_SWATCHES[0])],
        )

    def category_task_counts(self) -> List[CategoryCount]:
        stmt = (
            select(TaskCategory.id, TaskCategory.name, func.count(task_category_links.c.task_id))
            .outerjoin(task_category_links, task_category_links.c.task_category_id == TaskCategory.id)
            .group_by(TaskCategory.id, TaskCategory.name)
            .order_by(TaskCategory.name)
        )
        return [
            CategoryCount(id=category_id, name=name, tasks_count=total)
            for category_id, name, total in self.db.execute(stmt).all()
        ]

    def tasks_in_categories(
        self,
        category_ids: Optional[Iterable[int]] = None,
        page: int = 1,
        per_page: int = DEFAULT_PER_PAGE,
    ) -> TaskPage:
        """Newest-first page of tasks linked to any of ``category_ids``; no filter lists every task."""
        if page < 1 or per_page < 1:
            raise ValueError("page and per_page must be at least 1")
        category_ids = list(dict.fromkeys(category_ids or []))

        stmt = select(Task)
        if category_ids:
            linked = select(task_category_links.c.task_id).where(
                task_category_links.c.task_category_id.in_(category_ids)
            )
            stmt = stmt.where(Task.id.in_(linked))

        total = self.db.execute(select(func.count()).select_from(stmt.subquery())).scalar_one()
        tasks = self.db.execute(
            stmt.options(selectinload(Task.categories))
            .order_by(Task.id.desc())
            .offset((page - 1) * per_page)
            .limit(per_page)
        ).scalars().all()
        return TaskPage(
            items=[TaskOut.model_validate(task) for task in tasks],
            total=total,
            page=page,
            per_page=per_page,
            last_page=max(1, -(-total // per_page)),
        )

    def summary(self, today: Optional[date] = None) -> DashboardSummary:
        today = today or utc_today()
        logger.debug(f"Building dashboard summary for {today}")
        pie_chart = self.completed_vs_pending_chart()
        created_chart = self.tasks_created_by_day(today=today)
        return DashboardSummary(
            today=today,
            completed_vs_pending=pie_chart,
            pending_tasks_today=self.pending_tasks_today(today),
            tasks_created_by_day=created_chart,
            categories=self.category_task_counts(),
            pie=pie_series(pie_chart),
            bars=bar_series(created_chart),
            bar_fill=bar_fill(created_chart),
            bar_label=bar_legend_label(created_chart),
        )


def pie_series(chart: ChartData) -> List[PieSlice]:
    """One slice per label. Colors come from the dataset when it has them, else a neutral cycle."""
    dataset = chart.datasets[0] if chart.datasets else ChartDataset()
    background = dataset.backgroundColor

    slices = []
    for idx, label in enumerate(chart.labels):
        swatch = NEUTRAL_SWATCHES[idx % len(NEUTRAL_SWATCHES)]
        if isinstance(background, list):
            color = background[idx] if idx < len(background) else swatch
        elif isinstance(background, str) and background.strip():
            color = background
        else:
            color = swatch
        value = dataset.data[idx] if idx < len(dataset.data) else 0
        slices.append(PieSlice(name=label, value=value, color=color or FALLBACK_COLOR))
    return slices


def bar_series(chart: ChartData) -> List[BarPoint]:
    dataset = chart.datasets[0] if chart.datasets else ChartDataset()
    return [
        BarPoint(day=label, count=dataset.data[idx] if idx < len(dataset.data) else 0)
        for idx, label in enumerate(chart.labels)
    ]


def bar_fill(chart: ChartData) -> str:
    dataset = chart.datasets[0] if chart.datasets else ChartDataset()
    background = dataset.backgroundColor
    if isinstance(background, list):
        return background[0] if background else FALLBACK_COLOR
    if isinstance(background, str) and background.strip():
        return background
    return FOREGROUND_COLOR


def bar_legend_label(chart: ChartData) -> str:
    dataset = chart.datasets[0] if chart.datasets else ChartDataset()
    return dataset.label if dataset.label is not None else "Tasks"
