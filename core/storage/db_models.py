from __future__ import annotations

from datetime import datetime, UTC
from enum import Enum
from typing import Optional

from sqlalchemy import Column, DateTime, Enum as SAEnum, Index, Integer, String, Text, UniqueConstraint
from sqlmodel import SQLModel, Field

TITLE_MAX_LENGTH = 200


class TaskStatus(str, Enum):
    pending = "pending"
    in_progress = "in_progress"
    completed = "completed"


class Task(SQLModel, table=True):
    __tablename__ = "tasks"
    __table_args__ = (
        UniqueConstraint("title", name="uq_tasks_title"),
        Index("ix_tasks_status", "status"),
    )

    id: Optional[int] = Field(
        default=None,
        sa_column=Column(Integer, primary_key=True, autoincrement=True),
    )
    title: str = Field(sa_column=Column(String(TITLE_MAX_LENGTH), nullable=False))
    description: str = Field(default="", sa_column=Column(Text, nullable=False, default=""))
    status: TaskStatus = Field(
        default=TaskStatus.pending,
        sa_column=Column(SAEnum(TaskStatus, name="taskstatus"), nullable=False),
    )
    due_date: Optional[datetime] = Field(
        default=None, sa_column=Column(DateTime(timezone=True), nullable=True)
    )
    created_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(UTC),
        sa_column=Column(DateTime(timezone=True), nullable=False),
    )
