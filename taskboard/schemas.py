from datetime import date
from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator
from typing import List, Optional, Union

from .config import Settings

class SeedOptions(BaseModel):
    """Validated knobs for a seeding run. Built from Settings before any write happens."""

    test_user_email: EmailStr
    test_user_name: str = Field(min_length=1)
    test_user_password: str = Field(min_length=1)
    extra_user_count: int = Field(ge=0)
    task_count: int = Field(ge=0)
    categories: List[str]
    batch_size: int = Field(ge=1)
    max_categories_per_task: int = Field(ge=1)
    random_seed: Optional[int] = None
    bcrypt_rounds: int = Field(default=12, ge=4, le=31)

    @field_validator("categories")
    @classmethod
    def _clean_categories(cls, value: List[str]) -> List[str]:
        cleaned = []
        for name in value:
            name = name.strip()
            if not name:
                raise ValueError("category names must not be blank")
            if name not in cleaned:
                cleaned.append(name)
        return cleaned

    @classmethod
    def from_settings(cls, settings: Settings) -> "SeedOptions":
        return cls(
            test_user_email=settings.seed_test_user_email,
            test_user_name=settings.seed_test_user_name,
            test_user_password=settings.seed_test_user_password,
            extra_user_count=settings.seed_extra_user_count,
            task_count=settings.seed_task_count,
            categories=settings.seed_categories,
            batch_size=settings.seed_batch_size,
            max_categories_per_task=settings.seed_max_categories_per_task,
            random_seed=settings.seed_random_seed,
            bcrypt_rounds=settings.bcrypt_rounds,
        )

class SeedReport(BaseModel):
    users_created: int = 0
    tasks_created: int = 0
    categories_created: int = 0
    category_ids: List[int] = []
    tasks_associated: int = 0
    links_created: int = 0
    batches_processed: int = 0

class BatchCursor(BaseModel):
    """Resumable position in the primary-key ordered scan of unassociated tasks."""

    model_config = ConfigDict(frozen=True)

    after_id: int = 0
    exhausted: bool = False

class BatchResult(BaseModel):
    cursor: BatchCursor
    tasks_processed: int = 0
    links_created: int = 0
    batches: int = 0

# Dashboard

class ChartDataset(BaseModel):
    label: Optional[str] = None
    data: List[int] = []
    backgroundColor: Optional[Union[str, List[str]]] = None

class ChartData(BaseModel):
    labels: List[str] = []
    datasets: List[ChartDataset] = []

class PieSlice(BaseModel):
    name: str
    value: int
    color: str

class BarPoint(BaseModel):
    day: str
    count: int

class CategoryCount(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    tasks_count: int

class DashboardSummary(BaseModel):
    today: date
    completed_vs_pending: ChartData
    pending_tasks_today: int
    tasks_created_by_day: ChartData
    categories: List[CategoryCount]
    pie: List[PieSlice]
    bars: List[BarPoint]
    bar_fill: str
    bar_label: str

# Task listing

class CategoryOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str

class TaskOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    is_completed: bool
    due_date: Optional[date] = None
    media_location: Optional[str] = None
    categories: List[CategoryOut] = []

class TaskPage(BaseModel):
    items: List[TaskOut]
    total: int
    page: int
    per_page: int
    last_page: int
