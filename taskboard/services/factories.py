"""Placeholder attribute generators for fixture users and tasks."""
from datetime import date, datetime, timedelta, timezone
from random import Random
from typing import Any, Dict, Iterable, List, Optional

from faker import Faker

DUE_DATE_WINDOW_DAYS = 30


def make_faker(seed: Optional[int] = None) -> Faker:
    fake = Faker()
    if seed is not None:
        fake.seed_instance(seed)
    return fake


def user_rows(fake: Faker, count: int, password_hash: str, taken_emails: Iterable[str] = ()) -> List[Dict[str, Any]]:
    """Rows for ``count`` verified users whose emails avoid ``taken_emails`` and each other."""
    taken = set(taken_emails)
    verified_at = datetime.now(timezone.utc)
    rows = []
    while len(rows) < count:
        email = fake.unique.safe_email()
        if email in taken:
            continue
        taken.add(email)
        rows.append({
            "name": fake.name(),
            "email": email,
            "password": password_hash,
            "email_verified_at": verified_at,
        })
    return rows


def task_rows(fake: Faker, rng: Random, count: int, today: Optional[date] = None) -> List[Dict[str, Any]]:
    today = today or date.today()
    rows = []
    for _ in range(count):
        offset = rng.randint(-DUE_DATE_WINDOW_DAYS, DUE_DATE_WINDOW_DAYS)
        rows.append({
            "name": fake.sentence(nb_words=4).rstrip("."),
            "is_completed": rng.random() < 0.5,
            "due_date": today + timedelta(days=offset),
        })
    return rows
