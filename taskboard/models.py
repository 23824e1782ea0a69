from sqlalchemy import Column, String, DateTime, Date, Integer, Boolean, ForeignKey, Table, Index
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from .db import Base

# Composite primary key: a task can link to a category at most once
task_category_links = Table(
    "task_category_links",
    Base.metadata,
    Column("task_id", Integer, ForeignKey("tasks.id", ondelete="CASCADE"), primary_key=True),
    Column("task_category_id", Integer, ForeignKey("task_categories.id", ondelete="CASCADE"), primary_key=True),
    Index("ix_task_category_links_category", "task_category_id"),
)

class User(Base):
    __tablename__ = "users"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)  # bcrypt hash
    email_verified_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

class TaskCategory(Base):
    __tablename__ = "task_categories"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(120), unique=True, index=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    tasks = relationship("Task", secondary=task_category_links, back_populates="categories")

class Task(Base):
    __tablename__ = "tasks"
    id = Column(Integer, primary_key=True, autoincrement=True)
    name = Column(String(255), nullable=False)
    is_completed = Column(Boolean, default=False, nullable=False)
    due_date = Column(Date)
    media_location = Column(String(512))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    categories = relationship("TaskCategory", secondary=task_category_links, back_populates="tasks")

    __table_args__ = (
        Index("ix_tasks_completed_due", "is_completed", "due_date"),
    )
