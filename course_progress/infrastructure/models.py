# course_progress/infrastructure/models.py
from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional

from sqlalchemy import (
    JSON, Boolean, CheckConstraint, ForeignKey, Integer, String, Text,
    TIMESTAMP, UniqueConstraint, func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from .db import Base


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# --- Структура курса (пишет админка, сервис только читает)

class CourseORM(Base):
    __tablename__ = "courses"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    slug: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    title_ru: Mapped[str | None] = mapped_column(String(255), nullable=True)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    description_ru: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), default=utcnow
    )

    units: Mapped[list["UnitORM"]] = relationship(
        "UnitORM",
        back_populates="course",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="UnitORM.order",
    )

    def __repr__(self) -> str:
        return f"CourseORM(id={self.id!r}, slug={self.slug!r})"


class UnitORM(Base):
    __tablename__ = "course_units"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    title_ru: Mapped[str | None] = mapped_column(String(255), nullable=True)

    course: Mapped["CourseORM"] = relationship("CourseORM", back_populates="units")
    lessons: Mapped[list["LessonORM"]] = relationship(
        "LessonORM",
        back_populates="unit",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="LessonORM.order",
    )
    quiz: Mapped[Optional["QuizORM"]] = relationship(
        "QuizORM",
        back_populates="unit",
        cascade="all, delete-orphan",
        uselist=False,
    )

    __table_args__ = (UniqueConstraint("course_id", "order", name="uq_unit_course_order"),)


class LessonORM(Base):
    __tablename__ = "course_lessons"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    unit_id: Mapped[int] = mapped_column(
        ForeignKey("course_units.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    title_ru: Mapped[str | None] = mapped_column(String(255), nullable=True)
    type: Mapped[str] = mapped_column(String(16), nullable=False, default="ARTICLE")
    video_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    pdf_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    content_ru: Mapped[str | None] = mapped_column(Text, nullable=True)
    duration: Mapped[int] = mapped_column(Integer, nullable=False, default=0)  # минуты
    is_free: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    unit: Mapped["UnitORM"] = relationship("UnitORM", back_populates="lessons")

    __table_args__ = (UniqueConstraint("unit_id", "order", name="uq_lesson_unit_order"),)

    def __repr__(self) -> str:
        return f"LessonORM(id={self.id!r}, unit_id={self.unit_id!r}, order={self.order!r})"


class QuizORM(Base):
    __tablename__ = "quizzes"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    unit_id: Mapped[int] = mapped_column(
        ForeignKey("course_units.id", ondelete="CASCADE"), nullable=False, unique=True
    )
    title: Mapped[str] = mapped_column(String(255), nullable=False)
    title_ru: Mapped[str | None] = mapped_column(String(255), nullable=True)
    passing_score: Mapped[int] = mapped_column(Integer, nullable=False, default=70)

    unit: Mapped["UnitORM"] = relationship("UnitORM", back_populates="quiz")
    questions: Mapped[list["QuizQuestionORM"]] = relationship(
        "QuizQuestionORM",
        back_populates="quiz",
        cascade="all, delete-orphan",
        passive_deletes=True,
        order_by="QuizQuestionORM.order",
    )


class QuizQuestionORM(Base):
    __tablename__ = "quiz_questions"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    quiz_id: Mapped[int] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    order: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    question: Mapped[str] = mapped_column(Text, nullable=False)
    question_ru: Mapped[str | None] = mapped_column(Text, nullable=True)
    options: Mapped[list[str]] = mapped_column(JSON, nullable=False)
    options_ru: Mapped[list[str] | None] = mapped_column(JSON, nullable=True)
    correct_index: Mapped[int] = mapped_column(Integer, nullable=False)

    quiz: Mapped["QuizORM"] = relationship("QuizORM", back_populates="questions")

    __table_args__ = (CheckConstraint("correct_index >= 0", name="ck_question_correct_index"),)


# --- Состояние учащегося

class EnrollmentORM(Base):
    __tablename__ = "course_enrollments"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)  # sub из JWT
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    current_lesson_id: Mapped[int | None] = mapped_column(
        ForeignKey("course_lessons.id", ondelete="SET NULL"), nullable=True
    )
    enrolled_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), default=utcnow
    )
    last_accessed_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), default=utcnow
    )
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)

    __table_args__ = (UniqueConstraint("user_id", "course_id", name="uq_user_course"),)


class LessonProgressORM(Base):
    __tablename__ = "lesson_progress"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    lesson_id: Mapped[int] = mapped_column(
        ForeignKey("course_lessons.id", ondelete="CASCADE"), nullable=False, index=True
    )
    completed: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    watch_time: Mapped[int | None] = mapped_column(Integer, nullable=True)  # секунды
    completed_at: Mapped[datetime | None] = mapped_column(TIMESTAMP(timezone=True), nullable=True)
    updated_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), default=utcnow, onupdate=utcnow
    )

    __table_args__ = (UniqueConstraint("user_id", "lesson_id", name="uq_user_lesson"),)


class QuizAttemptORM(Base):
    __tablename__ = "quiz_attempts"

    id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[str] = mapped_column(String(255), nullable=False, index=True)
    quiz_id: Mapped[int] = mapped_column(
        ForeignKey("quizzes.id", ondelete="CASCADE"), nullable=False, index=True
    )
    course_id: Mapped[int] = mapped_column(
        ForeignKey("courses.id", ondelete="CASCADE"), nullable=False, index=True
    )
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    passed: Mapped[bool] = mapped_column(Boolean, nullable=False)
    created_at: Mapped[datetime] = mapped_column(
        TIMESTAMP(timezone=True), server_default=func.now(), default=utcnow
    )


__all__ = [
    "Base",
    "CourseORM",
    "UnitORM",
    "LessonORM",
    "QuizORM",
    "QuizQuestionORM",
    "EnrollmentORM",
    "LessonProgressORM",
    "QuizAttemptORM",
]
