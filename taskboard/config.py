from functools import lru_cache
from typing import List, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    app_name: str = "Taskboard"
    debug: bool = False
    database_url: str = "sqlite:///./taskboard.db"
    log_level: str = "INFO"

    # Password hashing
    bcrypt_rounds: int = 12

    # Seeding
    seed_test_user_email: str = "test@example.com"
    seed_test_user_name: str = "Test User"
    seed_test_user_password: str = "password"
    seed_extra_user_count: int = 10
    seed_task_count: int = 100
    seed_categories: List[str] = ["Work", "Personal", "Shopping", "Others"]
    seed_batch_size: int = 50
    seed_max_categories_per_task: int = 3
    seed_random_seed: Optional[int] = None

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

@lru_cache
def get_settings() -> Settings:
    return Settings()

settings = get_settings()
