from random import Random

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import StaticPool

from taskboard.config import Settings, settings as _settings
from taskboard.db import Base, init_db

@pytest.fixture(scope="session", autouse=True)
def _configure_settings_for_tests():
    # Cheap hashes keep user fixtures fast
    _settings.bcrypt_rounds = 4
    yield

@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    init_db(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def db_session(engine) -> Session:
    session: Session = sessionmaker(bind=engine, autoflush=False, future=True)()
    try:
        yield session
    finally:
        session.close()

@pytest.fixture
def rng() -> Random:
    return Random(1234)

@pytest.fixture
def seed_settings() -> Settings:
    return Settings(
        bcrypt_rounds=4,
        seed_extra_user_count=5,
        seed_task_count=100,
        seed_categories=["Work", "Personal", "Shopping", "Others"],
        seed_batch_size=50,
        seed_max_categories_per_task=3,
        seed_random_seed=42,
    )
