from datetime import date, datetime, timedelta, timezone

import pytest
from sqlalchemy import select
from sqlalchemy.orm import Session

from taskboard.models import Task, TaskCategory
from taskboard.schemas import ChartData, ChartDataset
from taskboard.services import dashboard as dashboard_module
from taskboard.services.dashboard import (
    FALLBACK_COLOR,
    FOREGROUND_COLOR,
    NEUTRAL_SWATCHES,
    DashboardService,
    bar_fill,
    bar_legend_label,
    bar_series,
    pie_series,
    utc_today,
)

TODAY = date(2026, 3, 12)


@pytest.fixture
def populated(db_session: Session) -> Session:
    work, home = TaskCategory(name="Work"), TaskCategory(name="Home")
    noon = datetime.combine(TODAY, datetime.min.time()).replace(hour=12)
    tasks = [
        Task(name="Done today", is_completed=True, due_date=TODAY, created_at=noon),
        Task(name="Due today", is_completed=False, due_date=TODAY, created_at=noon),
        Task(name="Also due", is_completed=False, due_date=TODAY, created_at=noon - timedelta(days=2)),
        Task(name="Tomorrow", is_completed=False, due_date=TODAY + timedelta(days=1), created_at=noon - timedelta(days=10)),
    ]
    tasks[0].categories = [work]
    tasks[1].categories = [work, home]
    db_session.add_all([work, home, *tasks])
    db_session.commit()
    return db_session


class TestDashboardService:

    def test_completed_vs_pending(self, populated: Session):
        chart = DashboardService(populated).completed_vs_pending_chart()

        assert chart.labels == ["Completed", "Pending"]
        assert chart.datasets[0].data == [1, 3]

    def test_pending_tasks_today(self, populated: Session):
        assert DashboardService(populated).pending_tasks_today(TODAY) == 2

    def test_tasks_created_by_day_fills_gaps(self, populated: Session):
        chart = DashboardService(populated).tasks_created_by_day(days=7, today=TODAY)

        assert chart.labels[0] == (TODAY - timedelta(days=6)).isoformat()
        assert chart.labels[-1] == TODAY.isoformat()
        assert chart.datasets[0].data == [0, 0, 0, 0, 1, 0, 2]

    def test_tasks_created_by_day_rejects_empty_window(self, db_session: Session):
        with pytest.raises(ValueError):
            DashboardService(db_session).tasks_created_by_day(days=0)

    def test_category_task_counts(self, populated: Session):
        counts = DashboardService(populated).category_task_counts()

        assert [(c.name, c.tasks_count) for c in counts] == [("Home", 1), ("Work", 2)]

    def test_summary_on_empty_store(self, db_session: Session):
        summary = DashboardService(db_session).summary(TODAY)

        assert summary.pending_tasks_today == 0
        assert [s.value for s in summary.pie] == [0, 0]
        assert len(summary.bars) == 7
        assert all(point.count == 0 for point in summary.bars)
        assert summary.categories == []

    def test_summary_carries_bar_fill_and_label(self, populated: Session):
        summary = DashboardService(populated).summary(TODAY)

        assert summary.bar_fill == NEUTRAL_SWATCHES[0]
        assert summary.bar_label == "Tasks created"

    def test_default_day_is_the_utc_day(self, populated: Session, monkeypatch):
        monkeypatch.setattr(dashboard_module, "utc_today", lambda: TODAY)

        summary = DashboardService(populated).summary()

        assert summary.today == TODAY
        assert summary.pending_tasks_today == 2
        assert summary.bars[-1].day == TODAY.isoformat()
        assert summary.bars[-1].count == 2

    def test_created_around_utc_midnight(self, db_session: Session, monkeypatch):
        midnight = datetime.combine(TODAY, datetime.min.time())
        db_session.add_all([
            Task(name="Late yesterday", created_at=midnight - timedelta(minutes=30)),
            Task(name="Early today", created_at=midnight + timedelta(minutes=30)),
        ])
        db_session.commit()
        monkeypatch.setattr(dashboard_module, "utc_today", lambda: TODAY)

        chart = DashboardService(db_session).tasks_created_by_day(days=2)

        assert chart.labels == [(TODAY - timedelta(days=1)).isoformat(), TODAY.isoformat()]
        assert chart.datasets[0].data == [1, 1]

    def test_utc_today_follows_utc_clock(self):
        before = datetime.now(timezone.utc).date()
        today = utc_today()
        after = datetime.now(timezone.utc).date()

        assert today in (before, after)

    def test_aware_timestamps_bucket_on_utc_day(self):
        plus_five = timezone(timedelta(hours=5))

        shifted = dashboard_module._as_utc_naive(datetime(2026, 3, 12, 1, 0, tzinfo=plus_five))

        assert shifted == datetime(2026, 3, 11, 20, 0)
        assert dashboard_module._as_utc_naive(datetime(2026, 3, 12, 1, 0)) == datetime(2026, 3, 12, 1, 0)


class TestTaskListing:

    def _category_id(self, db: Session, name: str) -> int:
        return db.execute(select(TaskCategory.id).where(TaskCategory.name == name)).scalar_one()

    def test_no_filter_lists_every_task_newest_first(self, populated: Session):
        page = DashboardService(populated).tasks_in_categories()

        ids = [task.id for task in page.items]
        assert page.total == 4
        assert ids == sorted(ids, reverse=True)
        assert (page.page, page.last_page) == (1, 1)

    def test_single_category_filter(self, populated: Session):
        home_id = self._category_id(populated, "Home")

        page = DashboardService(populated).tasks_in_categories([home_id])

        assert page.total == 1
        assert page.items[0].name == "Due today"
        assert sorted(c.name for c in page.items[0].categories) == ["Home", "Work"]

    def test_any_of_filter_lists_each_task_once(self, populated: Session):
        ids = [self._category_id(populated, "Work"), self._category_id(populated, "Home")]

        page = DashboardService(populated).tasks_in_categories(ids)

        assert page.total == 2
        assert sorted(task.name for task in page.items) == ["Done today", "Due today"]

    def test_pagination(self, populated: Session):
        service = DashboardService(populated)

        first = service.tasks_in_categories(per_page=3)
        second = service.tasks_in_categories(page=2, per_page=3)
        beyond = service.tasks_in_categories(page=5, per_page=3)

        assert [len(first.items), len(second.items), len(beyond.items)] == [3, 1, 0]
        assert first.last_page == second.last_page == 2
        assert not {t.id for t in first.items} & {t.id for t in second.items}

    def test_empty_store_has_one_empty_page(self, db_session: Session):
        page = DashboardService(db_session).tasks_in_categories([1])

        assert page.items == []
        assert (page.total, page.last_page) == (0, 1)

    @pytest.mark.parametrize("page,per_page", [(0, 10), (1, 0)])
    def test_rejects_invalid_paging(self, db_session: Session, page, per_page):
        with pytest.raises(ValueError):
            DashboardService(db_session).tasks_in_categories(page=page, per_page=per_page)


class TestSeriesReshaping:

    def test_pie_uses_dataset_colors(self):
        chart = ChartData(labels=["A", "B"], datasets=[ChartDataset(data=[3, 4], backgroundColor=["red", "blue"])])

        assert [(s.name, s.value, s.color) for s in pie_series(chart)] == [("A", 3, "red"), ("B", 4, "blue")]

    def test_pie_falls_back_to_swatches(self):
        chart = ChartData(labels=["A", "B", "C"], datasets=[ChartDataset(data=[1], backgroundColor=["red"])])

        slices = pie_series(chart)

        assert [s.value for s in slices] == [1, 0, 0]
        assert [s.color for s in slices] == ["red", NEUTRAL_SWATCHES[1], NEUTRAL_SWATCHES[2]]

    def test_pie_single_color_string(self):
        chart = ChartData(labels=["A", "B"], datasets=[ChartDataset(data=[1, 2], backgroundColor="green")])

        assert {s.color for s in pie_series(chart)} == {"green"}

    def test_pie_blank_color_string_uses_swatches(self):
        chart = ChartData(labels=["A"], datasets=[ChartDataset(data=[1], backgroundColor="  ")])

        assert pie_series(chart)[0].color == NEUTRAL_SWATCHES[0]

    def test_bar_series_without_dataset(self):
        chart = ChartData(labels=["Mon", "Tue"])

        assert [(p.day, p.count) for p in bar_series(chart)] == [("Mon", 0), ("Tue", 0)]

    def test_bar_fill_takes_first_listed_color(self):
        chart = ChartData(labels=["Mon"], datasets=[ChartDataset(data=[1], backgroundColor=["red", "blue"])])

        assert bar_fill(chart) == "red"

    def test_bar_fill_empty_color_list(self):
        chart = ChartData(labels=["Mon"], datasets=[ChartDataset(data=[1], backgroundColor=[])])

        assert bar_fill(chart) == FALLBACK_COLOR

    @pytest.mark.parametrize("background", ["  ", None])
    def test_bar_fill_defaults_to_foreground(self, background):
        chart = ChartData(labels=["Mon"], datasets=[ChartDataset(data=[1], backgroundColor=background)])

        assert bar_fill(chart) == FOREGROUND_COLOR
        assert bar_fill(ChartData()) == FOREGROUND_COLOR

    def test_bar_legend_label(self):
        labelled = ChartData(datasets=[ChartDataset(label="Created")])

        assert bar_legend_label(labelled) == "Created"
        assert bar_legend_label(ChartData(datasets=[ChartDataset()])) == "Tasks"
        assert bar_legend_label(ChartData()) == "Tasks"
